"""
Donation workflow pipeline.

Each donation is captured, logged, gets a receipt generated and sent, and is
finally booked into accounting. A receipt that fails to generate flags the
donation.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from operator import attrgetter
from typing import Dict, Iterable, List, Optional

from ..models import AccountingStatus, ActivityEvent, Donation, DonationStage, ReceiptStatus, StageEntry
from ..utils.exceptions import ValidationError
from ..utils.formatting import format_usd
from ..utils.seeded import SeededRandom
from ..workflow import PipelineTracker, StageModel

log = logging.getLogger(__name__)

STAGE_LABELS = {
    DonationStage.PAYMENT_CAPTURED: "Payment Captured",
    DonationStage.DATA_LOGGED: "Data Logged",
    DonationStage.RECEIPT_GENERATED: "Receipt Generated",
    DonationStage.RECEIPT_SENT: "Receipt Sent",
    DonationStage.ACCOUNTING_ENTRY: "Accounting Entry",
}

DONATION_STAGES = StageModel.from_enum(DonationStage, STAGE_LABELS)

RECEIPT_FAILED_REASON = "Receipt generation failed"

TRACKER = PipelineTracker(DONATION_STAGES, default_flag_reason=RECEIPT_FAILED_REASON)

FIRST_NAMES = [
    'James', 'Mary', 'Robert', 'Patricia', 'John', 'Jennifer', 'Michael', 'Linda', 'David', 'Elizabeth',
    'William', 'Barbara', 'Richard', 'Susan', 'Joseph', 'Jessica', 'Thomas', 'Sarah', 'Christopher', 'Karen',
    'Charles', 'Lisa', 'Daniel', 'Nancy', 'Matthew', 'Betty', 'Anthony', 'Margaret', 'Mark', 'Sandra',
    'Donald', 'Ashley', 'Steven', 'Kimberly', 'Paul', 'Emily', 'Andrew', 'Donna', 'Joshua', 'Michelle',
]
LAST_NAMES = [
    'Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller', 'Davis', 'Rodriguez', 'Martinez',
    'Hernandez', 'Lopez', 'Gonzalez', 'Wilson', 'Anderson', 'Thomas', 'Taylor', 'Moore', 'Jackson', 'Martin',
    'Lee', 'Perez', 'Thompson', 'White', 'Harris', 'Sanchez', 'Clark', 'Ramirez', 'Lewis', 'Robinson',
]
STREETS = ['Oak St', 'Maple Ave', 'Cedar Ln', 'Pine Dr', 'Elm Way', 'Birch Rd', 'Walnut Ct', 'Cherry Blvd', 'Spruce Pl', 'Willow Ter']
CITIES = [
    'San Francisco, CA', 'New York, NY', 'Los Angeles, CA', 'Chicago, IL', 'Houston, TX',
    'Phoenix, AZ', 'Philadelphia, PA', 'San Antonio, TX', 'San Diego, CA', 'Dallas, TX',
]
EMAIL_DOMAINS = ['gmail.com', 'yahoo.com', 'outlook.com', 'icloud.com']
AMOUNTS = [10, 25, 50, 75, 100, 150, 200, 250, 500, 750, 1000, 2500, 5000]
TRANSACTION_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'

# Seconds after capture at which each later stage completes
STAGE_OFFSETS = [2, 5, 8, 15]

SORT_FIELDS = ("date", "amount")
SORT_DIRECTIONS = ("asc", "desc")

FEED_SOURCE_SIZE = 20
FEED_LIMIT = 30


@dataclass(frozen=True)
class SortState:
    field: str = "date"
    direction: str = "desc"


def _history(captured: datetime, stage_index: int) -> List[StageEntry]:
    history = []
    for position in range(stage_index + 1):
        offset = 0 if position == 0 else STAGE_OFFSETS[position - 1]
        history.append(StageEntry(
            stage=DONATION_STAGES.keys[position],
            timestamp=captured + timedelta(seconds=offset),
            completed=position < stage_index or position == len(DONATION_STAGES) - 1,
        ))
    return history


def generate_donations(count: int = 45, seed: int = 45, now: Optional[datetime] = None) -> List[Donation]:
    """
    Deterministic demo donations from the last 30 days, newest first.

    Receipts: 75% sent, 15% pending, 10% failed. Sent receipts are booked
    into accounting 85% of the time.
    """
    rng = SeededRandom(seed)
    now = now or datetime.now()
    donations = []

    for i in range(count):
        first_name = rng.choice(FIRST_NAMES)
        last_name = rng.choice(LAST_NAMES)
        email = f"{first_name.lower()}.{last_name.lower()}@{rng.choice(EMAIL_DOMAINS)}"
        address = (
            f"{rng.below(9999) + 1} {rng.choice(STREETS)}, "
            f"{rng.choice(CITIES)} {rng.below(90000) + 10000}"
        )

        captured = now - timedelta(days=rng.below(30), hours=rng.below(24))

        amount = rng.choice(AMOUNTS)
        if rng.random() < 0.3:
            amount += rng.below(50)

        receipt_roll = rng.random()
        failed = False
        if receipt_roll < 0.75:
            logged = rng.random() < 0.85
            stage = DonationStage.ACCOUNTING_ENTRY if logged else DonationStage.RECEIPT_SENT
        elif receipt_roll < 0.9:
            stage = DonationStage.RECEIPT_GENERATED
        else:
            stage = DonationStage.DATA_LOGGED
            failed = True

        stage_index = DONATION_STAGES.index(stage)
        donations.append(Donation(
            id=f"DON-{i + 1:05d}",
            created_at=captured,
            current_stage=stage.value,
            stage_history=_history(captured, stage_index),
            flagged=failed,
            flag_reason=RECEIPT_FAILED_REASON if failed else None,
            donor_name=f"{first_name} {last_name}",
            email=email,
            address=address,
            amount=amount,
            payment_method='PayPal' if rng.random() < 0.9 else 'Stripe',
            transaction_id=rng.token(TRANSACTION_ALPHABET, 17),
        ))

    log.debug(f"Generated {len(donations)} donations (seed={seed})")
    return sorted(donations, key=lambda d: d.created_at, reverse=True)


def advance_donation(donation: Donation, now: Optional[datetime] = None) -> Donation:
    return TRACKER.advance(donation, now)


def toggle_donation_flag(donation: Donation, reason: Optional[str] = None) -> Donation:
    return TRACKER.toggle_flag(donation, reason)


def toggle_sort(state: SortState, field: str) -> SortState:
    """Clicking the active column flips direction; a new column starts descending."""
    if field not in SORT_FIELDS:
        raise ValidationError(f"Cannot sort by '{field}'")
    if state.field == field:
        return SortState(field, "asc" if state.direction == "desc" else "desc")
    return SortState(field, "desc")


def filter_and_sort_donations(
    donations: Iterable[Donation],
    status: str = "all",
    sort: SortState = SortState()
) -> List[Donation]:
    if sort.field not in SORT_FIELDS or sort.direction not in SORT_DIRECTIONS:
        raise ValidationError(f"Invalid sort {sort.field} {sort.direction}")

    result = list(donations)
    if status != "all":
        try:
            wanted = ReceiptStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown receipt status '{status}'") from None
        result = [d for d in result if d.receipt_status == wanted]

    key = attrgetter("created_at" if sort.field == "date" else "amount")
    return sorted(result, key=key, reverse=sort.direction == "desc")


def donation_stats(donations: Iterable[Donation]) -> Dict[str, int]:
    donations = list(donations)
    return {
        "total": len(donations),
        "total_amount": sum(d.amount for d in donations),
        "receipts_sent": sum(1 for d in donations if d.receipt_status == ReceiptStatus.SENT),
        "pending": sum(
            1 for d in donations
            if d.receipt_status == ReceiptStatus.PENDING or d.accounting_status == AccountingStatus.PENDING
        ),
    }


def activity_feed(donations: Iterable[Donation]) -> List[ActivityEvent]:
    """Recent events derived from the newest donations, newest first."""
    newest = sorted(donations, key=lambda d: d.created_at, reverse=True)[:FEED_SOURCE_SIZE]
    events = []

    def add(timestamp: datetime, message: str, kind: str) -> None:
        events.append(ActivityEvent(id=str(len(events)), timestamp=timestamp, message=message, type=kind))

    for donation in newest:
        add(donation.created_at,
            f"Payment {format_usd(donation.amount)} captured from {donation.payment_method}", "payment")
        if donation.receipt_status == ReceiptStatus.SENT:
            add(donation.created_at + timedelta(seconds=8), f"Receipt sent to {donation.donor_name}", "receipt")
        if donation.accounting_status == AccountingStatus.LOGGED:
            add(donation.created_at + timedelta(seconds=15), f"Accounting entry created for {donation.id}", "accounting")
        if donation.receipt_status == ReceiptStatus.FAILED:
            add(donation.created_at + timedelta(seconds=5),
                f"Receipt generation failed for {donation.donor_name}", "error")

    return sorted(events, key=lambda e: e.timestamp, reverse=True)[:FEED_LIMIT]
