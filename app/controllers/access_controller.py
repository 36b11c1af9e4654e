# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: access gate decisions for the member portal."""
from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_access_gate
from app.models.domain import AccessDecision
from app.schemas import AdminCheckOut
from app.services.access_gate import AccessGate

router = APIRouter(prefix="/api/v1", tags=["Access"])


@router.get("/access", response_model=AccessDecision)
def check_access(email: str = Query(default=""), gate: AccessGate = Depends(get_access_gate)):
    return gate.check_access(email)


@router.get("/access/admin", response_model=AdminCheckOut)
def check_admin(email: str = Query(default=""), gate: AccessGate = Depends(get_access_gate)):
    return AdminCheckOut(email=email.strip().lower(), is_admin=gate.is_admin(email))
