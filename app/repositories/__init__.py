# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package — re-exports the SQL repositories."""
from app.repositories.base import BaseRepository
from app.repositories.cycle_repository import CycleRepository
from app.repositories.invitation_repository import InvitationRepository
from app.repositories.member_dues_repository import MemberDuesRepository
from app.repositories.member_repository import MemberRepository
from app.repositories.payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "CycleRepository",
    "InvitationRepository",
    "MemberDuesRepository",
    "MemberRepository",
    "PaymentRepository",
]
