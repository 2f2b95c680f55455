"""Data models for stageboard pipelines."""
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class FulfillmentStage(str, Enum):
    """Voucher order fulfillment stages, in pipeline order."""
    ORDER_RECEIVED = "order_received"
    INVOICE_CREATED = "invoice_created"
    CODES_GENERATED = "codes_generated"
    PDFS_CREATED = "pdfs_created"
    DELIVERED = "delivered"


class TicketStage(str, Enum):
    """Traffic ticket processing stages, in pipeline order."""
    INGESTED = "ingested"
    PARSED = "parsed"
    VEHICLE_MATCHED = "vehicle_matched"
    RENTER_IDENTIFIED = "renter_identified"
    DISPATCHED = "dispatched"


class DonationStage(str, Enum):
    """Donation workflow stages, in pipeline order."""
    PAYMENT_CAPTURED = "payment_captured"
    DATA_LOGGED = "data_logged"
    RECEIPT_GENERATED = "receipt_generated"
    RECEIPT_SENT = "receipt_sent"
    ACCOUNTING_ENTRY = "accounting_entry"


class BillingStep(str, Enum):
    """Monthly billing run steps, in pipeline order."""
    REVIEW = "review"
    INVOICING = "invoicing"
    FINANCIAL = "financial"


class TicketStatus(str, Enum):
    INGESTED = "ingested"
    MATCHED = "matched"
    DISPATCHED = "dispatched"
    EXCEPTION = "exception"


class ViolationType(str, Enum):
    SPEEDING = "speeding"
    PARKING = "parking"
    RED_LIGHT = "red_light"
    TOLL_EVASION = "toll_evasion"


class ExceptionReason(str, Enum):
    UNMATCHED_VEHICLE = "unmatched_vehicle"
    AMBIGUOUS_RENTER = "ambiguous_renter"
    MISSING_DATA = "missing_data"
    DEADLINE_RISK = "deadline_risk"


class ReceiptStatus(str, Enum):
    SENT = "sent"
    PENDING = "pending"
    FAILED = "failed"


class AccountingStatus(str, Enum):
    LOGGED = "logged"
    PENDING = "pending"


class CustomerStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    ANOMALY = "Anomaly"
    MISSING = "Missing"


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"


class LicenseType(str, Enum):
    STANDARD = "Standard"
    PREMIUM = "Premium"
    ENTERPRISE = "Enterprise"


class StageDefinition(BaseModel):
    """One named step of a linear workflow."""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str


class StageEntry(BaseModel):
    """Timestamped record of an entity entering a stage."""
    stage: str
    timestamp: datetime
    completed: bool = False


class TrackedEntity(BaseModel):
    """
    Anything that moves through a linear stage pipeline.

    ``current_stage`` always mirrors the last ``stage_history`` entry.
    """
    id: str
    current_stage: str
    stage_history: List[StageEntry]
    created_at: datetime = Field(default_factory=datetime.now)
    flagged: bool = False
    flag_reason: Optional[str] = None

    @model_validator(mode='after')
    def _history_matches_current_stage(self):
        if not self.stage_history:
            raise ValueError("stage_history must contain at least one entry")
        if self.stage_history[-1].stage != self.current_stage:
            raise ValueError(
                f"current_stage '{self.current_stage}' does not match last history "
                f"entry '{self.stage_history[-1].stage}'"
            )
        return self


class VoucherItem(BaseModel):
    """A line item: ``quantity`` vouchers of one type and face value."""
    type: str
    value: float = Field(gt=0)
    quantity: int = Field(ge=1)


class VoucherCode(BaseModel):
    code: str
    type: str
    value: float
    generated: bool = False


class Order(TrackedEntity):
    """Voucher order moving through fulfillment."""
    customer_name: str
    customer_email: str
    items: List[VoucherItem]
    voucher_codes: List[VoucherCode] = Field(default_factory=list)

    @model_validator(mode='after')
    def _one_code_per_voucher(self):
        expected = sum(item.quantity for item in self.items)
        if len(self.voucher_codes) != expected:
            raise ValueError(
                f"Order {self.id} has {len(self.voucher_codes)} voucher codes "
                f"but items add up to {expected}"
            )
        return self

    @computed_field
    @property
    def total(self) -> float:
        return sum(item.value * item.quantity for item in self.items)

    @computed_field
    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class Ticket(TrackedEntity):
    """Traffic violation notice being matched to a renter. ``created_at`` is the receive date."""
    violation_type: ViolationType
    license_plate: str
    vehicle_make: str
    vehicle_model: str
    fleet_assignment: str
    renter_name: Optional[str] = None
    renter_confidence: Optional[int] = Field(default=None, ge=0, le=100)
    booking_start: Optional[datetime] = None
    booking_end: Optional[datetime] = None
    deadline: datetime
    processing_time_ms: int = 0
    fine_amount: int = 0
    location: str = ""

    @property
    def date_received(self) -> datetime:
        return self.created_at

    @computed_field
    @property
    def status(self) -> TicketStatus:
        if self.flagged:
            return TicketStatus.EXCEPTION
        if self.current_stage == TicketStage.DISPATCHED:
            return TicketStatus.DISPATCHED
        if self.current_stage == TicketStage.RENTER_IDENTIFIED:
            return TicketStatus.MATCHED
        return TicketStatus.INGESTED

    @computed_field
    @property
    def exception_reason(self) -> Optional[ExceptionReason]:
        if not self.flagged or self.flag_reason is None:
            return None
        try:
            return ExceptionReason(self.flag_reason)
        except ValueError:
            return None


_DONATION_ORDER = [stage.value for stage in DonationStage]


class Donation(TrackedEntity):
    """Online donation and its receipt/accounting follow-up. ``created_at`` is the donation date."""
    donor_name: str
    email: str
    address: str
    amount: int
    payment_method: str
    transaction_id: str

    @property
    def date(self) -> datetime:
        return self.created_at

    @computed_field
    @property
    def receipt_status(self) -> ReceiptStatus:
        if self.flagged:
            return ReceiptStatus.FAILED
        if _DONATION_ORDER.index(self.current_stage) >= _DONATION_ORDER.index(DonationStage.RECEIPT_SENT.value):
            return ReceiptStatus.SENT
        return ReceiptStatus.PENDING

    @computed_field
    @property
    def accounting_status(self) -> AccountingStatus:
        if self.current_stage == DonationStage.ACCOUNTING_ENTRY:
            return AccountingStatus.LOGGED
        return AccountingStatus.PENDING


class ActivityEvent(BaseModel):
    id: str
    timestamp: datetime
    message: str
    type: str  # receipt | payment | accounting | error


class BillingCustomer(BaseModel):
    id: str
    name: str
    employees: int
    card_loads: int
    status: CustomerStatus
    verified: bool = False
    license_type: LicenseType
    license_fee: float
    transaction_fee: float
    total: float
    invoice_status: InvoiceStatus
    due_date: date
    notes: str = ""
    last_month: float


class BillingRun(TrackedEntity):
    """One billing period's review, invoicing and financial planning pass."""
    period: str
    customers: List[BillingCustomer] = Field(default_factory=list)
