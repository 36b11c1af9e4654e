# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: in-memory SQLite store, controllable clock, wired services."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
WEBHOOK_SECRET = "whsec_test_secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ.setdefault("LOG_LEVEL", "WARNING")

import hashlib  # noqa: E402
import hmac  # noqa: E402
import json  # noqa: E402
import time  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import text  # noqa: E402

from app.core.database import TABLES, build_engine, init_schema  # noqa: E402
from app.repositories import (  # noqa: E402
    CycleRepository,
    InvitationRepository,
    MemberDuesRepository,
    MemberRepository,
    PaymentRepository,
)
from app.services.access_gate import AccessGate  # noqa: E402
from app.services.cycle_manager import DuesCycleManager  # noqa: E402
from app.services.dues_ledger import DuesLedger  # noqa: E402
from app.services.invitation_service import InvitationService  # noqa: E402
from app.services.member_registry import MemberRegistry  # noqa: E402
from app.services.onboarding_service import OnboardingService  # noqa: E402
from app.services.webhook_service import StripeWebhookService  # noqa: E402

START = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def services(engine, clock):
    repos = SimpleNamespace(
        members=MemberRepository(engine),
        invitations=InvitationRepository(engine),
        cycles=CycleRepository(engine),
        dues=MemberDuesRepository(engine),
        payments=PaymentRepository(engine),
    )
    invitations = InvitationService(repos.invitations, clock=clock)
    registry = MemberRegistry(repos.members, clock=clock)
    cycles = DuesCycleManager(repos.cycles, clock=clock)
    ledger = DuesLedger(repos.dues, repos.payments, registry, cycles, clock=clock)
    return SimpleNamespace(
        repos=repos,
        invitations=invitations,
        registry=registry,
        onboarding=OnboardingService(invitations, registry),
        cycles=cycles,
        ledger=ledger,
        gate=AccessGate(registry),
        webhooks=StripeWebhookService(ledger, secret=WEBHOOK_SECRET),
        clock=clock,
    )


@pytest.fixture
def clean_app_db():
    """Empty the tables behind the application's own engine."""
    from app.core.database import engine as app_engine

    init_schema(app_engine)
    with app_engine.begin() as conn:
        for table in TABLES:
            conn.execute(text(f"DELETE FROM {table}"))
    yield app_engine


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Build a ``Stripe-Signature`` header the way Stripe signs deliveries."""
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def stripe_delivery():
    """Factory for signed checkout session events: returns (payload, signature)."""

    def build(event_type: str, session_id: str, secret: str = WEBHOOK_SECRET, **session):
        payload = json.dumps({
            "id": f"evt_{session_id}",
            "object": "event",
            "type": event_type,
            "data": {"object": dict({"id": session_id, "object": "checkout.session"}, **session)},
        }).encode("utf-8")
        return payload, sign_payload(payload, secret)

    return build


@pytest.fixture
def stripe_signature():
    return sign_payload
