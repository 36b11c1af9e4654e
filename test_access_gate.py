# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the portal access gate."""

import pytest

from app.models.domain import MemberStatus


class TestCheckAccess:
    def test_no_email(self, services):
        decision = services.gate.check_access("  ")
        assert decision.has_access is False
        assert decision.reason == "No email provided"
        assert decision.member is None

    def test_not_a_member(self, services):
        decision = services.gate.check_access("stranger@x.org")
        assert decision.has_access is False
        assert decision.reason == "Not a member"

    def test_active_member_allowed(self, services):
        services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.ACTIVE)
        decision = services.gate.check_access("A@X.org")
        assert decision.has_access is True
        assert decision.reason is None
        assert decision.redirect == "/portal"
        assert decision.member.email == "a@x.org"

    @pytest.mark.parametrize("status,reason,redirect", [
        (MemberStatus.INVITED,
         "Please complete your profile to access the portal", "/portal/onboarding"),
        (MemberStatus.PENDING_PROFILE,
         "Please complete your profile to access the portal", "/portal/onboarding"),
        (MemberStatus.PENDING_PAYMENT,
         "Please pay your membership dues to access the portal", "/portal/onboarding"),
        (MemberStatus.INACTIVE,
         "Your membership is inactive. Please contact an administrator", "/portal/inactive"),
    ])
    def test_denied_statuses(self, services, status, reason, redirect):
        services.registry.create_member("a@x.org", "A", "B", status=status)
        decision = services.gate.check_access("a@x.org")
        assert decision.has_access is False
        assert decision.reason == reason
        assert decision.redirect == redirect

    def test_gate_ignores_dues_summary_cache(self, services):
        member = services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.PENDING_PAYMENT)
        cached = member.dues_summary.model_copy(update={"paid": True})
        services.registry.record_dues_summary(member.id, cached)
        assert services.gate.check_access("a@x.org").has_access is False

    def test_access_follows_payment(self, services):
        cycle = services.cycles.create_cycle(2026, "admin_1")
        services.cycles.activate_cycle(cycle.id)
        member, _, token = services.onboarding.invite_member("new@x.org", "admin_1", "N", "M")
        services.onboarding.redeem(token)
        assert services.gate.check_access("new@x.org").has_access is False
        services.registry.update_profile(member.id, {"full_name": "N M"})
        services.ledger.create_payment(member.id, "new@x.org", "sess_1", 8500, "USD", cycle_id=cycle.id)
        services.ledger.reconcile("sess_1")
        assert services.gate.check_access("new@x.org").has_access is True


class TestIsAdmin:
    def test_active_admin(self, services):
        services.registry.create_member("adm@x.org", "A", "D", status=MemberStatus.ACTIVE, is_admin=True)
        assert services.gate.is_admin("adm@x.org") is True

    def test_inactive_admin_is_not_admin(self, services):
        services.registry.create_member("adm@x.org", "A", "D", status=MemberStatus.INACTIVE, is_admin=True)
        assert services.gate.is_admin("adm@x.org") is False

    def test_regular_member(self, services):
        services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.ACTIVE)
        assert services.gate.is_admin("a@x.org") is False
        assert services.gate.is_admin("nobody@x.org") is False
