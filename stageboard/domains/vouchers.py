"""
Voucher fulfillment pipeline.

Orders move from receipt through invoicing, code generation and PDF creation
to delivery. Entering ``codes_generated`` (or anything later) marks every
voucher code as generated; codes are never un-generated.
"""
import logging
import zlib
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import FulfillmentStage, Order, StageEntry, VoucherCode, VoucherItem
from ..utils.formatting import start_of_day
from ..utils.seeded import SeededRandom
from ..workflow import PipelineTracker, StageModel

log = logging.getLogger(__name__)

STAGE_LABELS = {
    FulfillmentStage.ORDER_RECEIVED: "Order Received",
    FulfillmentStage.INVOICE_CREATED: "Invoice Created",
    FulfillmentStage.CODES_GENERATED: "Codes Generated",
    FulfillmentStage.PDFS_CREATED: "PDFs Created",
    FulfillmentStage.DELIVERED: "Delivered",
}

VOUCHER_STAGES = StageModel.from_enum(FulfillmentStage, STAGE_LABELS)

CODES_STAGE_INDEX = VOUCHER_STAGES.index(FulfillmentStage.CODES_GENERATED)

MANUAL_FLAG_REASON = "Manually flagged for review"
PAYMENT_FLAG_REASON = "Payment verification required"

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

FIRST_NAMES = [
    'Anna', 'Thomas', 'Maria', 'Stefan', 'Julia', 'Michael', 'Laura', 'Andreas',
    'Sarah', 'Christian', 'Lisa', 'Markus', 'Nina', 'Daniel', 'Katharina', 'Florian',
    'Sophie', 'Tobias', 'Hannah', 'Sebastian', 'Lena', 'Philipp', 'Emma', 'Lukas',
    'Johanna', 'Felix', 'Clara', 'Maximilian', 'Marie', 'David',
]

LAST_NAMES = [
    'Mueller', 'Schmidt', 'Schneider', 'Fischer', 'Weber', 'Meyer', 'Wagner', 'Becker',
    'Schulz', 'Hoffmann', 'Schaefer', 'Koch', 'Bauer', 'Richter', 'Klein', 'Wolf',
    'Schroeder', 'Neumann', 'Schwarz', 'Zimmermann', 'Braun', 'Krueger', 'Hofmann', 'Hartmann',
    'Lange', 'Schmitt', 'Werner', 'Schmitz', 'Krause', 'Meier',
]

VOUCHER_TYPES = ['Nachhaltig Shoppen', 'Bio Genuss', 'Oeko Lifestyle', 'Gruener Konsum']
VOUCHER_VALUES = [25, 50, 100]

# More orders sit in early stages and in "delivered"
STAGE_WEIGHTS = [0.15, 0.2, 0.2, 0.15, 0.3]
FLAG_PROBABILITY = 0.08


def _mark_codes_generated(order: Order, stage: str, index: int) -> Dict[str, object]:
    if index < CODES_STAGE_INDEX:
        return {}
    return {"voucher_codes": [code.model_copy(update={"generated": True}) for code in order.voucher_codes]}


def make_tracker(clock=datetime.now) -> PipelineTracker:
    return PipelineTracker(
        VOUCHER_STAGES,
        default_flag_reason=MANUAL_FLAG_REASON,
        on_enter=_mark_codes_generated,
        clock=clock,
    )


TRACKER = make_tracker()


def generate_voucher_code(rng: SeededRandom) -> str:
    return f"GUD-{rng.token(CODE_ALPHABET, 4)}-{rng.token(CODE_ALPHABET, 4)}"


def codes_for_items(items: Sequence[VoucherItem], rng: SeededRandom) -> List[VoucherCode]:
    """One code per voucher unit, in item order."""
    return [
        VoucherCode(code=generate_voucher_code(rng), type=item.type, value=item.value)
        for item in items
        for _ in range(item.quantity)
    ]


def create_order(
    order_id: str,
    customer_name: str,
    customer_email: str,
    items: Sequence[VoucherItem],
    rng: Optional[SeededRandom] = None,
    now: Optional[datetime] = None
) -> Order:
    """Build a fresh order at ``order_received`` with codes reserved but not yet generated."""
    now = now or datetime.now()
    rng = rng or SeededRandom(zlib.crc32(order_id.encode("utf-8")))
    return Order(
        id=order_id,
        customer_name=customer_name,
        customer_email=customer_email,
        items=list(items),
        voucher_codes=codes_for_items(items, rng),
        current_stage=VOUCHER_STAGES.initial,
        stage_history=TRACKER.initial_history(now),
        created_at=now,
    )


def generate_orders(count: int = 28, seed: int = 42, now: Optional[datetime] = None) -> List[Order]:
    """
    Deterministic demo orders.

    Args:
        count: Number of orders
        seed: LCG seed; the same seed and ``now`` always give the same orders
        now: Reference time; orders are created within the 24 hours before it

    Returns:
        Orders in generation order
    """
    rng = SeededRandom(seed)
    now = now or datetime.now()
    orders = []

    for i in range(count):
        first_name = rng.choice(FIRST_NAMES)
        last_name = rng.choice(LAST_NAMES)

        items = []
        codes = []
        for _ in range(rng.below(3) + 1):
            item = VoucherItem(
                type=rng.choice(VOUCHER_TYPES),
                value=rng.choice(VOUCHER_VALUES),
                quantity=rng.below(3) + 1,
            )
            items.append(item)
            codes.extend(codes_for_items([item], rng))

        stage_index = rng.weighted_index(STAGE_WEIGHTS)
        terminal = stage_index == len(VOUCHER_STAGES) - 1

        created_at = now - timedelta(days=rng.random())
        history = []
        current_time = created_at
        for position in range(stage_index + 1):
            history.append(StageEntry(
                stage=VOUCHER_STAGES.keys[position],
                timestamp=current_time,
                completed=position < stage_index or terminal,
            ))
            current_time += timedelta(minutes=rng.random() * 30 + 5)

        if stage_index >= CODES_STAGE_INDEX:
            codes = [code.model_copy(update={"generated": True}) for code in codes]

        flagged = rng.random() < FLAG_PROBABILITY

        orders.append(Order(
            id=f"ORD-{str(10000 + i)[1:]}",
            customer_name=f"{first_name} {last_name}",
            customer_email=f"{first_name.lower()}.{last_name.lower()}@mail.de",
            items=items,
            voucher_codes=codes,
            current_stage=VOUCHER_STAGES.keys[stage_index],
            stage_history=history,
            created_at=created_at,
            flagged=flagged,
            flag_reason=PAYMENT_FLAG_REASON if flagged else None,
        ))

    log.debug(f"Generated {len(orders)} voucher orders (seed={seed})")
    return orders


def advance_order(order: Order, now: Optional[datetime] = None) -> Order:
    return TRACKER.advance(order, now)


def toggle_order_flag(order: Order, reason: Optional[str] = None) -> Order:
    return TRACKER.toggle_flag(order, reason)


def voucher_stats(orders: Iterable[Order], now: Optional[datetime] = None) -> Dict[str, float]:
    """Header figures: orders today, open orders, deliveries today, revenue today."""
    today = start_of_day(now or datetime.now())
    orders = list(orders)

    todays = [o for o in orders if o.created_at >= today]
    delivered = FulfillmentStage.DELIVERED.value
    completed_today = [
        o for o in orders
        if o.current_stage == delivered
        and any(e.stage == delivered and e.timestamp >= today for e in o.stage_history)
    ]

    return {
        "orders_today": len(todays),
        "pending_fulfillment": sum(1 for o in orders if o.current_stage != delivered),
        "completed_today": len(completed_today),
        "revenue_today": sum(o.total for o in todays),
    }
