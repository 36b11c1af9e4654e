# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: checkout payments, manual reconciliation and the Stripe webhook."""
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.core.dependencies import get_admin_uid, get_dues_ledger, get_webhook_service
from app.core.errors import StoreUnavailableError
from app.core.logging import get_logger
from app.models.domain import Payment
from app.schemas import PaymentCreate, ReconcileOut, ReconcileRequest
from app.services.dues_ledger import DuesLedger
from app.services.webhook_service import StripeWebhookService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Payments"])


@router.post("/payments", status_code=201, response_model=Payment)
def create_payment(body: PaymentCreate, ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.create_payment(
        body.member_id, body.email, body.gateway_session_id,
        body.amount, body.currency,
        cycle_id=body.cycle_id, description=body.description,
    )


@router.post("/payments/reconcile", response_model=ReconcileOut)
def reconcile_payment(body: ReconcileRequest,
                      admin_uid: str = Depends(get_admin_uid),
                      ledger: DuesLedger = Depends(get_dues_ledger)):
    result = ledger.reconcile(body.gateway_session_id, body.gateway_payment_intent_id)
    if result is None:
        return ReconcileOut(outcome="unknown")
    return ReconcileOut(**result.model_dump())


@router.get("/payments/{payment_id}", response_model=Payment)
def get_payment(payment_id: str, ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.get_payment(payment_id)


@router.get("/members/{member_id}/payments", response_model=List[Payment])
def list_member_payments(member_id: str, ledger: DuesLedger = Depends(get_dues_ledger)):
    return ledger.list_member_payments(member_id)


@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request,
                         webhooks: StripeWebhookService = Depends(get_webhook_service)):
    payload = await request.body()
    event = webhooks.parse_event(payload, request.headers.get("Stripe-Signature"))
    try:
        return await run_in_threadpool(webhooks.handle, event)
    except StoreUnavailableError as exc:
        # 5xx makes the gateway redeliver.
        logger.error("Webhook processing deferred: %s", exc)
        return JSONResponse(status_code=503, content={"received": False, "error": exc.code})
