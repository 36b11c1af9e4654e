# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Access gate — read-only allow/deny decision for the member portal.

The member's status is the single source of truth: the dues ledger promotes
to ACTIVE when dues clear, so the gate never looks at dues itself.
"""

from app.core.logging import get_logger
from app.metrics import ACCESS_CHECKS
from app.models.domain import AccessDecision, MemberStatus
from app.models.lifecycle import STATUS_MESSAGES, STATUS_REDIRECTS
from app.services.member_registry import MemberRegistry

logger = get_logger(__name__)


class AccessGate:
    def __init__(self, registry: MemberRegistry):
        self._registry = registry

    def check_access(self, email: str) -> AccessDecision:
        if not email or not email.strip():
            ACCESS_CHECKS.labels(outcome="no_email").inc()
            return AccessDecision(has_access=False, reason="No email provided")

        member = self._registry.find_by_email(email)
        if member is None:
            ACCESS_CHECKS.labels(outcome="not_member").inc()
            return AccessDecision(has_access=False, reason="Not a member")

        has_access = member.status == MemberStatus.ACTIVE
        ACCESS_CHECKS.labels(outcome="allowed" if has_access else member.status.value.lower()).inc()
        return AccessDecision(
            has_access=has_access,
            member=member,
            reason=None if has_access else STATUS_MESSAGES[member.status],
            redirect=STATUS_REDIRECTS[member.status],
        )

    def is_admin(self, email: str) -> bool:
        decision = self.check_access(email)
        return decision.has_access and decision.member.is_admin
