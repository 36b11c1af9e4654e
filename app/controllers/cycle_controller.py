# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: dues cycle definitions and activation."""
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import get_admin_uid, get_cycle_manager
from app.models.domain import Cycle
from app.schemas import CycleCreate
from app.services.cycle_manager import DuesCycleManager

router = APIRouter(prefix="/api/v1", tags=["Cycles"])


@router.post("/cycles", status_code=201, response_model=Cycle)
def create_cycle(body: CycleCreate,
                 admin_uid: str = Depends(get_admin_uid),
                 manager: DuesCycleManager = Depends(get_cycle_manager)):
    return manager.create_cycle(
        body.ending_year, admin_uid,
        amount=body.amount, grace_days=body.grace_days, currency=body.currency,
    )


@router.get("/cycles", response_model=List[Cycle])
def list_cycles(manager: DuesCycleManager = Depends(get_cycle_manager)):
    return manager.list_all()


@router.get("/cycles/active", response_model=Optional[Cycle])
def get_active_cycle(manager: DuesCycleManager = Depends(get_cycle_manager)):
    return manager.get_active_cycle()


@router.get("/cycles/{cycle_id}", response_model=Cycle)
def get_cycle(cycle_id: str, manager: DuesCycleManager = Depends(get_cycle_manager)):
    return manager.get_by_id(cycle_id)


@router.post("/cycles/{cycle_id}/activate", response_model=Cycle)
def activate_cycle(cycle_id: str,
                   admin_uid: str = Depends(get_admin_uid),
                   manager: DuesCycleManager = Depends(get_cycle_manager)):
    return manager.activate_cycle(cycle_id)
