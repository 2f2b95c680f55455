"""Billing run overview and customer actions."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...boards import BoardStore
from ...domains import billing
from ...models import BillingRun
from ...utils.exceptions import NotFoundError
from ..dependencies import get_boards
from ..schemas import InvoiceStatusRequest

router = APIRouter(prefix="/api/billing", tags=["billing"])


def _current_run(boards: BoardStore) -> BillingRun:
    runs = boards.board("billing").entities
    if not runs:
        raise NotFoundError("No billing run loaded")
    return runs[0]


def _customer_update(boards: BoardStore, customer_id: str, action) -> Dict[str, Any]:
    run = _current_run(boards)
    updated = boards.board("billing").apply(run.id, action)
    return billing.find_customer(updated, customer_id).model_dump(mode="json")


@router.get("")
def billing_overview(boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    run = _current_run(boards)
    return {
        "run": run.model_dump(mode="json"),
        "step": billing.BILLING_STAGES.label(run.current_stage),
        "stats": billing.billing_stats(run),
        "invoices": billing.invoice_totals(run),
        "plan": billing.financial_plan(run),
    }


@router.post("/customers/{customer_id}/verify")
def verify_customer(customer_id: str, boards: BoardStore = Depends(get_boards)) -> Dict[str, Any]:
    return _customer_update(boards, customer_id, lambda run: billing.toggle_verified(run, customer_id))


@router.post("/customers/{customer_id}/invoice")
def set_invoice_status(
    customer_id: str,
    body: InvoiceStatusRequest,
    boards: BoardStore = Depends(get_boards),
) -> Dict[str, Any]:
    return _customer_update(
        boards, customer_id, lambda run: billing.update_invoice_status(run, customer_id, body.status)
    )
