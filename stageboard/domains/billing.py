"""
Monthly billing run.

A run walks one billing period through data review, invoicing and the
financial plan. Customer figures are derived arithmetically from their
position, so the same count always gives the same customers.
"""
import logging
import math
from datetime import date, datetime
from typing import Dict, List, Optional

from ..models import (
    BillingCustomer, BillingRun, BillingStep, CustomerStatus, InvoiceStatus, LicenseType
)
from ..utils.exceptions import NotFoundError, ValidationError
from ..workflow import PipelineTracker, StageModel

log = logging.getLogger(__name__)

STAGE_LABELS = {
    BillingStep.REVIEW: "Data Review",
    BillingStep.INVOICING: "Invoicing",
    BillingStep.FINANCIAL: "Financial Plan",
}

BILLING_STAGES = StageModel.from_enum(BillingStep, STAGE_LABELS)

ANOMALY_FLAG_REASON = "Customer data needs review"

TRACKER = PipelineTracker(BILLING_STAGES, default_flag_reason=ANOMALY_FLAG_REASON)

PREFIXES = ['Nord', 'Süd', 'Ost', 'West', 'Alt', 'Neu', 'Groß', 'Klein', 'Ober', 'Unter']
ROOTS = ['berg', 'stein', 'feld', 'wald', 'bach', 'dorf', 'hausen', 'burg', 'thal', 'heim']
SUFFIXES = ['GmbH', 'AG', 'KG', 'e.K.', 'GmbH & Co. KG']
BUSINESS_TYPES = ['Logistik', 'Technik', 'Handel', 'Bau', 'Consulting', 'Services', 'Solutions', 'Industrie']

LICENSES = [LicenseType.STANDARD, LicenseType.PREMIUM, LicenseType.ENTERPRISE]
LICENSE_FEES = {
    LicenseType.STANDARD: 9.90,
    LicenseType.PREMIUM: 14.90,
    LicenseType.ENTERPRISE: 24.90,
}
TRANSACTION_FEE_PER_LOAD = 0.50
INVOICE_CYCLE = [InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.PAID]

# Card loads further than this from the employee count are anomalies
ANOMALY_TOLERANCE = 2


def generate_company_name(seed: int) -> str:
    prefix = PREFIXES[seed % len(PREFIXES)]
    root = ROOTS[(seed * 3) % len(ROOTS)]
    business_type = BUSINESS_TYPES[(seed * 7) % len(BUSINESS_TYPES)]
    suffix = SUFFIXES[(seed * 11) % len(SUFFIXES)]
    return f"{prefix}{root} {business_type} {suffix}"


def _customer(seed: int) -> BillingCustomer:
    employees = 5 + math.floor(((seed * 17) % 100) ** 0.8)
    card_loads = employees + ((seed * 13) % 20 - 10)

    if seed % 17 == 0:
        status = CustomerStatus.MISSING
    elif abs(card_loads - employees) > ANOMALY_TOLERANCE:
        status = CustomerStatus.ANOMALY
    else:
        status = CustomerStatus.PENDING

    license_type = LICENSES[seed % 3]
    license_fee = LICENSE_FEES[license_type]
    transaction_fee = card_loads * TRANSACTION_FEE_PER_LOAD
    total = employees * license_fee + transaction_fee

    return BillingCustomer(
        id=f"CUS-{seed:04d}",
        name=generate_company_name(seed),
        employees=employees,
        card_loads=card_loads,
        status=status,
        license_type=license_type,
        license_fee=license_fee,
        transaction_fee=transaction_fee,
        total=total,
        invoice_status=INVOICE_CYCLE[(seed * 7) % 3],
        due_date=date(2025, 2, 15 + seed % 10),
        last_month=total * (0.85 + (seed % 30) / 100),
    )


def generate_customers(count: int = 28) -> List[BillingCustomer]:
    """Customers ``CUS-0001`` to ``CUS-{count}``, derived from their position."""
    return [_customer(i + 1) for i in range(count)]


def create_billing_run(
    period: str = "January 2025",
    customers: Optional[List[BillingCustomer]] = None,
    run_id: str = "RUN-0001",
    now: Optional[datetime] = None
) -> BillingRun:
    """New run at the review step. Generates the default customers when none are given."""
    now = now or datetime.now()
    if customers is None:
        customers = generate_customers()
    return BillingRun(
        id=run_id,
        period=period,
        customers=customers,
        current_stage=BILLING_STAGES.initial,
        stage_history=TRACKER.initial_history(now),
        created_at=now,
    )


def advance_run(run: BillingRun, now: Optional[datetime] = None) -> BillingRun:
    return TRACKER.advance(run, now)


def find_customer(run: BillingRun, customer_id: str) -> BillingCustomer:
    for customer in run.customers:
        if customer.id == customer_id:
            return customer
    raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})


def _replace_customer(run: BillingRun, customer_id: str, **updates) -> BillingRun:
    find_customer(run, customer_id)
    customers = [
        c.model_copy(update=updates) if c.id == customer_id else c
        for c in run.customers
    ]
    return run.model_copy(update={"customers": customers}, deep=True)


def toggle_verified(run: BillingRun, customer_id: str) -> BillingRun:
    """
    Flip a customer's verified mark.

    Verifying sets the status to Verified; un-verifying always returns it to
    Pending, even for a customer that started as an anomaly.
    """
    verified = not find_customer(run, customer_id).verified
    status = CustomerStatus.VERIFIED if verified else CustomerStatus.PENDING
    log.debug(f"{run.id}: {customer_id} verified={verified}")
    return _replace_customer(run, customer_id, verified=verified, status=status)


def update_invoice_status(run: BillingRun, customer_id: str, status) -> BillingRun:
    try:
        status = InvoiceStatus(status)
    except ValueError:
        raise ValidationError(
            f"Invalid invoice status '{status}'",
            details={"allowed": [s.value for s in InvoiceStatus]}
        ) from None
    log.debug(f"{run.id}: {customer_id} invoice -> {status.value}")
    return _replace_customer(run, customer_id, invoice_status=status)


def billing_stats(run: BillingRun) -> Dict[str, float]:
    customers = run.customers
    return {
        "active": len(customers),
        "monthly_revenue": sum(c.total for c in customers),
        "pending_invoices": sum(1 for c in customers if c.invoice_status != InvoiceStatus.PAID),
        "anomalies": sum(
            1 for c in customers if c.status in (CustomerStatus.ANOMALY, CustomerStatus.MISSING)
        ),
        "verified": sum(1 for c in customers if c.verified),
    }


def invoice_totals(run: BillingRun) -> Dict[str, float]:
    """Amounts invoiced overall and per invoice status."""
    totals = {"total": sum(c.total for c in run.customers)}
    for status in InvoiceStatus:
        totals[status.value.lower()] = sum(
            c.total for c in run.customers if c.invoice_status == status
        )
    return totals


def financial_plan(run: BillingRun) -> Dict[str, object]:
    """Per-customer cumulative revenue and change against last month, plus period totals."""
    rows = []
    cumulative = 0.0
    for customer in run.customers:
        cumulative += customer.total
        rows.append({
            "id": customer.id,
            "name": customer.name,
            "total": customer.total,
            "last_month": customer.last_month,
            "cumulative": cumulative,
            "change": (customer.total - customer.last_month) / customer.last_month * 100,
        })

    this_period = sum(c.total for c in run.customers)
    last_period = sum(c.last_month for c in run.customers)
    return {
        "rows": rows,
        "this_period": this_period,
        "last_period": last_period,
        "change": (this_period - last_period) / last_period * 100 if last_period else 0.0,
    }
