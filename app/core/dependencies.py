# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from fastapi import Request

from app.core.config import settings
from app.core.database import engine
from app.core.errors import UnauthorizedError
from app.repositories.cycle_repository import CycleRepository
from app.repositories.invitation_repository import InvitationRepository
from app.repositories.member_dues_repository import MemberDuesRepository
from app.repositories.member_repository import MemberRepository
from app.repositories.payment_repository import PaymentRepository
from app.services.access_gate import AccessGate
from app.services.cycle_manager import DuesCycleManager
from app.services.dues_ledger import DuesLedger
from app.services.invitation_service import InvitationService
from app.services.member_registry import MemberRegistry
from app.services.onboarding_service import OnboardingService
from app.services.webhook_service import StripeWebhookService

# ── Singleton repository instances (shared engine) ──
_member_repo = MemberRepository(engine)
_invitation_repo = InvitationRepository(engine)
_cycle_repo = CycleRepository(engine)
_dues_repo = MemberDuesRepository(engine)
_payment_repo = PaymentRepository(engine)

# ── Service instances (with injected dependencies) ──
_invitation_service = InvitationService(_invitation_repo)
_member_registry = MemberRegistry(_member_repo)
_onboarding_service = OnboardingService(_invitation_service, _member_registry)
_cycle_manager = DuesCycleManager(_cycle_repo)
_dues_ledger = DuesLedger(_dues_repo, _payment_repo, _member_registry, _cycle_manager)
_access_gate = AccessGate(_member_registry)
_webhook_service = StripeWebhookService(_dues_ledger)


# ── FastAPI dependency functions ──
def get_invitation_service() -> InvitationService:
    return _invitation_service


def get_member_registry() -> MemberRegistry:
    return _member_registry


def get_onboarding_service() -> OnboardingService:
    return _onboarding_service


def get_cycle_manager() -> DuesCycleManager:
    return _cycle_manager


def get_dues_ledger() -> DuesLedger:
    return _dues_ledger


def get_access_gate() -> AccessGate:
    return _access_gate


def get_webhook_service() -> StripeWebhookService:
    return _webhook_service


def get_member_repo() -> MemberRepository:
    return _member_repo


def get_admin_uid(request: Request) -> str:
    """Admin identity forwarded by the control surface; required on mutations."""
    admin_uid = (request.headers.get(settings.ADMIN_HEADER) or "").strip()
    if not admin_uid:
        raise UnauthorizedError(f"Missing {settings.ADMIN_HEADER} header")
    return admin_uid
