# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Database engine — single source of truth for DB connectivity.

Five record families: invitations, members, dues_cycles, payments and the
member_dues child records keyed by (member_id, cycle_id).
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS members (
        id                   TEXT PRIMARY KEY,
        email                TEXT NOT NULL UNIQUE,
        first_name           TEXT NOT NULL,
        last_name            TEXT NOT NULL,
        full_name            TEXT,
        bio                  TEXT,
        photo_url            TEXT,
        role                 TEXT,
        company              TEXT,
        status               TEXT NOT NULL,
        is_admin             BOOLEAN NOT NULL DEFAULT FALSE,
        dues_amount          INTEGER NOT NULL,
        dues_currency        TEXT NOT NULL,
        dues_paid            BOOLEAN NOT NULL DEFAULT FALSE,
        dues_paid_at         TEXT,
        dues_payment_ref     TEXT,
        created_at           TEXT NOT NULL,
        updated_at           TEXT NOT NULL,
        invited_at           TEXT,
        profile_completed_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_members_status ON members (status, created_at)",
    """
    CREATE TABLE IF NOT EXISTS invitations (
        id          TEXT PRIMARY KEY,
        email       TEXT NOT NULL,
        first_name  TEXT,
        last_name   TEXT,
        token_hash  TEXT NOT NULL UNIQUE,
        status      TEXT NOT NULL,
        member_id   TEXT,
        created_by  TEXT NOT NULL,
        created_at  TEXT NOT NULL,
        expires_at  TEXT NOT NULL,
        used_at     TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_invitations_status_expiry ON invitations (status, expires_at)",
    "CREATE INDEX IF NOT EXISTS ix_invitations_email ON invitations (email, created_at)",
    """
    CREATE TABLE IF NOT EXISTS dues_cycles (
        id          TEXT PRIMARY KEY,
        label       TEXT NOT NULL,
        start_date  TEXT NOT NULL,
        end_date    TEXT NOT NULL,
        amount      INTEGER NOT NULL,
        currency    TEXT NOT NULL,
        is_active   BOOLEAN NOT NULL DEFAULT FALSE,
        grace_days  INTEGER NOT NULL,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL,
        created_by  TEXT NOT NULL
    )
    """,
    # At most one row may carry is_active = true.
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_dues_cycles_single_active ON dues_cycles (is_active) WHERE is_active",
    """
    CREATE TABLE IF NOT EXISTS member_dues (
        member_id        TEXT NOT NULL,
        cycle_id         TEXT NOT NULL,
        status           TEXT NOT NULL,
        paid_at          TEXT,
        paid_offline_at  TEXT,
        waived_at        TEXT,
        payment_ref      TEXT,
        note             TEXT,
        updated_by       TEXT,
        updated_at       TEXT NOT NULL,
        PRIMARY KEY (member_id, cycle_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_member_dues_cycle ON member_dues (cycle_id)",
    """
    CREATE TABLE IF NOT EXISTS payments (
        id                         TEXT PRIMARY KEY,
        member_id                  TEXT NOT NULL,
        cycle_id                   TEXT,
        email                      TEXT NOT NULL,
        gateway_session_id         TEXT NOT NULL UNIQUE,
        gateway_payment_intent_id  TEXT,
        amount                     INTEGER NOT NULL,
        currency                   TEXT NOT NULL,
        status                     TEXT NOT NULL,
        description                TEXT,
        created_at                 TEXT NOT NULL,
        updated_at                 TEXT NOT NULL,
        paid_at                    TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_payments_member ON payments (member_id, created_at)",
)

TABLES: tuple[str, ...] = ("member_dues", "payments", "invitations", "dues_cycles", "members")


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite URLs share one connection across threads."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def init_schema(bind: Engine) -> None:
    """Create tables and indexes if they do not exist yet."""
    with bind.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("Schema ensured (%d statements)", len(SCHEMA_STATEMENTS))


engine = build_engine(settings.DATABASE_URL)
