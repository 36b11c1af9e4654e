# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for invitation issue, validation, redemption and expiry."""

from datetime import timedelta

import pytest

from app.core.clock import parse_iso
from app.core.errors import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.domain import InvitationStatus, MemberStatus
from app.services.invitation_service import hash_token


# ═══════════════════════════════════════════════════════════════════════
# Issue
# ═══════════════════════════════════════════════════════════════════════
class TestCreateInvitation:
    def test_stores_only_hash_of_token(self, services):
        invitation, token = services.invitations.create_invitation("A@X.org", "admin_1")
        stored = services.repos.invitations.get(invitation.id)
        assert stored.token_hash == hash_token(token)
        assert stored.token_hash != token
        assert token not in stored.model_dump_json()

    def test_email_lower_cased_and_status_sent(self, services):
        invitation, _ = services.invitations.create_invitation("  Mixed@Case.ORG ", "admin_1")
        assert invitation.email == "mixed@case.org"
        assert invitation.status == InvitationStatus.SENT
        assert invitation.used_at is None

    def test_expires_after_seven_days(self, services, clock):
        invitation, _ = services.invitations.create_invitation("a@x.org", "admin_1")
        assert parse_iso(invitation.expires_at) - parse_iso(invitation.created_at) == timedelta(days=7)

    def test_tokens_are_long_and_unique(self, services):
        _, first = services.invitations.create_invitation("a@x.org", "admin_1")
        _, second = services.invitations.create_invitation("a@x.org", "admin_1")
        assert first != second
        assert len(first) >= 43

    def test_requires_creator(self, services):
        with pytest.raises(UnauthorizedError):
            services.invitations.create_invitation("a@x.org", "")

    def test_rejects_invalid_email(self, services):
        with pytest.raises(ValidationError):
            services.invitations.create_invitation("not-an-email", "admin_1")


# ═══════════════════════════════════════════════════════════════════════
# Validate
# ═══════════════════════════════════════════════════════════════════════
class TestValidateToken:
    def test_valid_token(self, services):
        invitation, token = services.invitations.create_invitation("a@x.org", "admin_1")
        result = services.invitations.validate_token(token)
        assert result.valid is True
        assert result.invitation.id == invitation.id
        assert result.error is None

    def test_unknown_token(self, services):
        result = services.invitations.validate_token("nope")
        assert result.valid is False
        assert result.error == "not_found"
        assert result.message == "Invalid invitation token"

    def test_empty_token(self, services):
        assert services.invitations.validate_token("").error == "not_found"

    def test_just_before_expiry_is_valid(self, services, clock):
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(days=7, microseconds=-1)
        assert services.invitations.validate_token(token).valid is True

    def test_exactly_at_expiry_is_expired(self, services, clock):
        invitation, token = services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(days=7)
        result = services.invitations.validate_token(token)
        assert result.valid is False
        assert result.error == "expired"
        assert services.repos.invitations.get(invitation.id).status == InvitationStatus.EXPIRED

    def test_lazy_expiry_is_idempotent(self, services, clock):
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(days=8)
        assert services.invitations.validate_token(token).error == "expired"
        assert services.invitations.validate_token(token).error == "expired"

    def test_used_token_reports_already_used(self, services):
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        assert services.invitations.validate_token(token).valid is True
        services.onboarding.redeem(token)
        result = services.invitations.validate_token(token)
        assert result.valid is False
        assert result.error == "already_used"


# ═══════════════════════════════════════════════════════════════════════
# Redeem
# ═══════════════════════════════════════════════════════════════════════
class TestRedeem:
    def test_redeem_creates_member_and_uses_token(self, services):
        invitation, token = services.invitations.create_invitation(
            "a@x.org", "admin_1", first_name="Ada", last_name="Lovelace",
        )
        member, used = services.onboarding.redeem(token)
        assert member.status in (MemberStatus.INVITED, MemberStatus.PENDING_PROFILE)
        assert member.email == "a@x.org"
        assert member.full_name == "Ada Lovelace"
        assert used.status == InvitationStatus.USED
        assert used.member_id == member.id
        stored = services.repos.invitations.get(invitation.id)
        assert stored.status == InvitationStatus.USED
        assert stored.used_at is not None

    def test_second_redeem_is_already_used(self, services):
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        services.onboarding.redeem(token)
        with pytest.raises(AlreadyUsedError):
            services.onboarding.redeem(token)
        assert len(services.registry.list_all()) == 1

    def test_redeem_expired_token(self, services, clock):
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(days=7)
        with pytest.raises(ExpiredError):
            services.onboarding.redeem(token)
        assert services.registry.find_by_email("a@x.org") is None

    def test_redeem_unknown_token(self, services):
        with pytest.raises(NotFoundError):
            services.onboarding.redeem("missing")

    def test_redeem_attaches_existing_member_by_email(self, services):
        existing = services.registry.create_member("a@x.org", "Ada", "L")
        _, token = services.invitations.create_invitation("a@x.org", "admin_1")
        member, used = services.onboarding.redeem(token)
        assert member.id == existing.id
        assert used.member_id == existing.id

    def test_mark_used_loses_to_concurrent_redeemer(self, services, clock):
        invitation, _ = services.invitations.create_invitation("a@x.org", "admin_1")
        services.repos.invitations.mark_used(invitation.id, "someone-else", "2026-01-15T12:00:00.000000+00:00")
        with pytest.raises(AlreadyUsedError):
            services.invitations.mark_used(invitation.id, "me")

    def test_mark_used_unknown_invitation(self, services):
        with pytest.raises(NotFoundError):
            services.invitations.mark_used("missing", "me")


# ═══════════════════════════════════════════════════════════════════════
# Admin onboarding
# ═══════════════════════════════════════════════════════════════════════
class TestInviteMember:
    def test_creates_invited_member_linked_to_invitation(self, services):
        member, invitation, token = services.onboarding.invite_member(
            "B@x.org", "admin_1", first_name="Bea", last_name="Smith",
        )
        assert member.status == MemberStatus.INVITED
        assert member.invited_at is not None
        assert invitation.member_id == member.id
        assert invitation.created_by == "admin_1"
        assert token

    def test_redeem_advances_invited_member(self, services):
        member, _, token = services.onboarding.invite_member("b@x.org", "admin_1", "Bea", "Smith")
        redeemed, _ = services.onboarding.redeem(token)
        assert redeemed.id == member.id
        assert redeemed.status == MemberStatus.PENDING_PROFILE
        assert len(services.registry.list_all()) == 1

    def test_existing_email_conflicts(self, services):
        services.onboarding.invite_member("b@x.org", "admin_1", "Bea", "Smith")
        with pytest.raises(ConflictError):
            services.onboarding.invite_member("B@X.org", "admin_1", "Bea", "Smith")
        assert len(services.invitations.list_invitations()) == 1

    def test_requires_admin(self, services):
        with pytest.raises(UnauthorizedError):
            services.onboarding.invite_member("b@x.org", "", "Bea", "Smith")
        assert services.registry.list_all() == []


# ═══════════════════════════════════════════════════════════════════════
# Sweep & listing
# ═══════════════════════════════════════════════════════════════════════
class TestSweepAndList:
    def test_sweep_expires_only_past_due(self, services, clock):
        services.invitations.create_invitation("a@x.org", "admin_1")
        services.invitations.create_invitation("b@x.org", "admin_1")
        clock.advance(days=5)
        fresh, _ = services.invitations.create_invitation("c@x.org", "admin_1")
        clock.advance(days=2)
        assert services.invitations.expire_old_invitations() == 2
        assert services.invitations.expire_old_invitations() == 0
        assert services.repos.invitations.get(fresh.id).status == InvitationStatus.SENT

    def test_sweep_leaves_used_invitations(self, services, clock):
        invitation, token = services.invitations.create_invitation("a@x.org", "admin_1")
        services.onboarding.redeem(token)
        clock.advance(days=30)
        assert services.invitations.expire_old_invitations() == 0
        assert services.repos.invitations.get(invitation.id).status == InvitationStatus.USED

    def test_list_newest_first_with_filter(self, services, clock):
        first, _ = services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(minutes=1)
        second, token = services.invitations.create_invitation("b@x.org", "admin_1")
        assert [i.id for i in services.invitations.list_invitations()] == [second.id, first.id]
        services.onboarding.redeem(token)
        used = services.invitations.list_invitations(InvitationStatus.USED)
        assert [i.id for i in used] == [second.id]

    def test_latest_for_email(self, services, clock):
        services.invitations.create_invitation("a@x.org", "admin_1")
        clock.advance(hours=1)
        latest, _ = services.invitations.create_invitation("a@x.org", "admin_2")
        assert services.invitations.latest_for_email("A@x.org").id == latest.id
        assert services.invitations.latest_for_email("zz@x.org") is None
