# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the member registry and the member status state machine."""

import pytest

from app.core.errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models.domain import MemberStatus
from app.models.lifecycle import (
    MEMBER_TRANSITIONS,
    STATUS_MESSAGES,
    STATUS_REDIRECTS,
    advance_on_profile_complete,
    can_transition,
    is_profile_complete,
)


# ═══════════════════════════════════════════════════════════════════════
# State machine
# ═══════════════════════════════════════════════════════════════════════
class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(MEMBER_TRANSITIONS) == set(MemberStatus)
        assert set(STATUS_MESSAGES) == set(MemberStatus)
        assert set(STATUS_REDIRECTS) == set(MemberStatus)

    @pytest.mark.parametrize("current,target", [
        (MemberStatus.INVITED, MemberStatus.PENDING_PROFILE),
        (MemberStatus.PENDING_PROFILE, MemberStatus.PENDING_PAYMENT),
        (MemberStatus.PENDING_PAYMENT, MemberStatus.ACTIVE),
        (MemberStatus.ACTIVE, MemberStatus.INACTIVE),
        (MemberStatus.INACTIVE, MemberStatus.PENDING_PAYMENT),
        (MemberStatus.INACTIVE, MemberStatus.ACTIVE),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (MemberStatus.INVITED, MemberStatus.ACTIVE),
        (MemberStatus.PENDING_PROFILE, MemberStatus.ACTIVE),
        (MemberStatus.ACTIVE, MemberStatus.PENDING_PAYMENT),
        (MemberStatus.PENDING_PAYMENT, MemberStatus.PENDING_PROFILE),
        (MemberStatus.INACTIVE, MemberStatus.INVITED),
    ])
    def test_forbidden(self, current, target):
        assert not can_transition(current, target)


class TestAdvanceOnProfileComplete:
    def test_name_advances_pending_profile(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert advance_on_profile_complete(member, {"full_name": "A B"}) == MemberStatus.PENDING_PAYMENT

    def test_bio_advances_pending_profile(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert advance_on_profile_complete(member, {"bio": "Hi"}) == MemberStatus.PENDING_PAYMENT

    def test_photo_alone_does_not_advance(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert advance_on_profile_complete(member, {"photo_url": "https://x/p.png"}) is None

    def test_blank_name_does_not_advance(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert advance_on_profile_complete(member, {"full_name": ""}) is None

    def test_other_statuses_do_not_advance(self, services):
        member = services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.ACTIVE)
        assert advance_on_profile_complete(member, {"full_name": "A B"}) is None


# ═══════════════════════════════════════════════════════════════════════
# Create & read
# ═══════════════════════════════════════════════════════════════════════
class TestCreateMember:
    def test_defaults_to_pending_profile(self, services):
        member = services.registry.create_member("New@X.org", "Nia", "Okafor")
        assert member.status == MemberStatus.PENDING_PROFILE
        assert member.email == "new@x.org"
        assert member.full_name == "Nia Okafor"
        assert member.is_admin is False
        assert member.dues_summary.amount == 8500
        assert member.dues_summary.currency == "USD"
        assert member.dues_summary.paid is False

    def test_explicit_status_and_admin(self, services):
        member = services.registry.create_member("adm@x.org", "A", "D",
                                                 status=MemberStatus.ACTIVE, is_admin=True)
        stored = services.registry.get_by_id(member.id)
        assert stored.status == MemberStatus.ACTIVE
        assert stored.is_admin is True

    def test_duplicate_email_is_case_insensitive(self, services):
        services.registry.create_member("dup@x.org", "A", "B")
        with pytest.raises(ConflictError):
            services.registry.create_member("DUP@X.ORG", "C", "D")

    def test_lookups(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert services.registry.get_by_email("A@X.org").id == member.id
        assert services.registry.find_by_email("missing@x.org") is None
        with pytest.raises(NotFoundError):
            services.registry.get_by_email("missing@x.org")
        with pytest.raises(NotFoundError):
            services.registry.get_by_id("missing")

    def test_list_by_status(self, services, clock):
        a = services.registry.create_member("a@x.org", "A", "A")
        clock.advance(seconds=1)
        b = services.registry.create_member("b@x.org", "B", "B", status=MemberStatus.ACTIVE)
        clock.advance(seconds=1)
        c = services.registry.create_member("c@x.org", "C", "C")
        assert [m.id for m in services.registry.list_all()] == [c.id, b.id, a.id]
        pending = services.registry.list_by_status(MemberStatus.PENDING_PROFILE)
        assert [m.id for m in pending] == [c.id, a.id]


# ═══════════════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════════════
class TestUpdateProfile:
    def test_profile_completion_advances_status(self, services, clock):
        member = services.registry.create_member("a@x.org", "A", "B")
        clock.advance(minutes=5)
        updated = services.registry.update_profile(member.id, {"full_name": "Ada B", "bio": "Engineer"})
        assert updated.status == MemberStatus.PENDING_PAYMENT
        assert updated.full_name == "Ada B"
        assert updated.bio == "Engineer"
        assert updated.profile_completed_at is not None
        assert updated.updated_at > member.updated_at
        assert is_profile_complete(updated)

    def test_partial_update_keeps_status(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        updated = services.registry.update_profile(member.id, {"company": "Acme"})
        assert updated.status == MemberStatus.PENDING_PROFILE
        assert updated.company == "Acme"
        assert updated.profile_completed_at is None
        assert not is_profile_complete(updated)

    def test_update_after_completion_keeps_timestamp(self, services, clock):
        member = services.registry.create_member("a@x.org", "A", "B")
        first = services.registry.update_profile(member.id, {"bio": "one"})
        clock.advance(days=1)
        second = services.registry.update_profile(member.id, {"bio": "two"})
        assert second.profile_completed_at == first.profile_completed_at
        assert second.status == MemberStatus.PENDING_PAYMENT

    def test_unknown_field_rejected(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        with pytest.raises(ValidationError):
            services.registry.update_profile(member.id, {"status": "ACTIVE"})

    def test_missing_member(self, services):
        with pytest.raises(NotFoundError):
            services.registry.update_profile("missing", {"bio": "x"})


# ═══════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════
class TestUpdateStatus:
    def test_legal_transition(self, services):
        member = services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.ACTIVE)
        updated = services.registry.update_status(member.id, MemberStatus.INACTIVE)
        assert updated.status == MemberStatus.INACTIVE

    def test_illegal_transition(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        with pytest.raises(IllegalTransitionError):
            services.registry.update_status(member.id, MemberStatus.ACTIVE)
        assert services.registry.get_by_id(member.id).status == MemberStatus.PENDING_PROFILE

    def test_same_status_is_noop(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        again = services.registry.update_status(member.id, MemberStatus.PENDING_PROFILE)
        assert again.updated_at == member.updated_at

    def test_reactivation_to_pending_payment(self, services):
        member = services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.INACTIVE)
        assert services.registry.update_status(member.id, MemberStatus.PENDING_PAYMENT).status == \
            MemberStatus.PENDING_PAYMENT

    def test_stale_compare_and_swap_conflicts(self, services):
        member = services.registry.create_member("a@x.org", "A", "B", status=MemberStatus.ACTIVE)
        services.repos.members.update_status(member.id, MemberStatus.ACTIVE, MemberStatus.INACTIVE,
                                             "2026-01-15T12:00:00.000000+00:00")
        assert not services.repos.members.update_status(
            member.id, MemberStatus.ACTIVE, MemberStatus.INACTIVE, "2026-01-15T12:00:01.000000+00:00",
        )

    def test_promote_requires_complete_profile(self, services):
        member = services.registry.create_member("a@x.org", "A", "B")
        assert services.registry.promote_to_active(member.id) is False
        services.registry.update_profile(member.id, {"full_name": "A B"})
        assert services.registry.promote_to_active(member.id) is True
        assert services.registry.promote_to_active(member.id) is False
        assert services.registry.get_by_id(member.id).status == MemberStatus.ACTIVE
