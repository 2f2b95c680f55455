"""
Traffic ticket triage pipeline.

Fines issued against fleet vehicles are ingested, parsed, matched to a
vehicle, matched to the renter who had the car, and dispatched to that
renter. Tickets that cannot be processed automatically are flagged as
exceptions; the flag reason is the exception kind.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..models import ExceptionReason, StageEntry, Ticket, TicketStage, TicketStatus, ViolationType
from ..utils.exceptions import NotFoundError, ValidationError
from ..utils.formatting import days_until, start_of_day
from ..utils.seeded import SeededRandom
from ..workflow import PipelineTracker, StageModel
from .vouchers import FIRST_NAMES, LAST_NAMES

log = logging.getLogger(__name__)

STAGE_LABELS = {
    TicketStage.INGESTED: "Ingested",
    TicketStage.PARSED: "Parsed",
    TicketStage.VEHICLE_MATCHED: "Vehicle Matched",
    TicketStage.RENTER_IDENTIFIED: "Renter Identified",
    TicketStage.DISPATCHED: "Dispatched",
}

TICKET_STAGES = StageModel.from_enum(TicketStage, STAGE_LABELS)

TRACKER = PipelineTracker(TICKET_STAGES, default_flag_reason=ExceptionReason.MISSING_DATA.value)

VIOLATION_LABELS = {
    ViolationType.SPEEDING: "Speeding",
    ViolationType.PARKING: "Parking",
    ViolationType.RED_LIGHT: "Red Light",
    ViolationType.TOLL_EVASION: "Toll Evasion",
}

EXCEPTION_LABELS = {
    ExceptionReason.UNMATCHED_VEHICLE: "Unmatched Vehicle",
    ExceptionReason.AMBIGUOUS_RENTER: "Ambiguous Renter",
    ExceptionReason.MISSING_DATA: "Missing Data",
    ExceptionReason.DEADLINE_RISK: "Deadline Risk",
}

TABS = ("incoming", "exceptions", "completed", "analytics")

PLATE_PREFIXES = {
    'Berlin': 'B', 'Hamburg': 'HH', 'München': 'M', 'Köln': 'K', 'Frankfurt': 'F',
    'Stuttgart': 'S', 'Düsseldorf': 'D', 'Leipzig': 'L', 'Dortmund': 'DO', 'Essen': 'E',
    'Bremen': 'HB', 'Dresden': 'DD', 'Hannover': 'H', 'Nürnberg': 'N', 'Duisburg': 'DU',
    'Bochum': 'BO', 'Wuppertal': 'W', 'Bielefeld': 'BI', 'Bonn': 'BN', 'Münster': 'MS',
}
CITIES = list(PLATE_PREFIXES)
PLATE_LETTERS = 'ABCDEFGHJKLMNPRSTUVWXYZ'

VEHICLE_MODELS = {
    'BMW': ['320i', '520d', 'X3', 'X5', '118i'],
    'Mercedes': ['C200', 'E300', 'A180', 'GLA', 'CLA'],
    'Audi': ['A3', 'A4', 'A6', 'Q3', 'Q5'],
    'VW': ['Golf', 'Passat', 'Tiguan', 'Polo', 'T-Roc'],
    'Opel': ['Astra', 'Corsa', 'Insignia', 'Mokka', 'Crossland'],
    'Ford': ['Focus', 'Fiesta', 'Kuga', 'Puma', 'Mondeo'],
    'Skoda': ['Octavia', 'Fabia', 'Superb', 'Kodiaq', 'Kamiq'],
    'Seat': ['Leon', 'Ibiza', 'Ateca', 'Arona', 'Tarraco'],
}
VEHICLE_MAKES = list(VEHICLE_MODELS)

FLEET_ASSIGNMENTS = [
    'Corporate Fleet A', 'Corporate Fleet B', 'Rental Pool Berlin', 'Rental Pool Hamburg',
    'Rental Pool München', 'Long-Term Leasing', 'Short-Term Rental', 'Executive Fleet',
]

# Fine ranges in EUR
FINE_RANGES = {
    ViolationType.SPEEDING: (15, 680),
    ViolationType.PARKING: (10, 55),
    ViolationType.RED_LIGHT: (90, 360),
    ViolationType.TOLL_EVASION: (20, 130),
}

# Processing time ranges in ms; automated paths are faster
PROCESSING_TIMES = {
    TicketStatus.INGESTED: (500, 2000),
    TicketStatus.MATCHED: (1500, 5000),
    TicketStatus.DISPATCHED: (3000, 8000),
    TicketStatus.EXCEPTION: (8000, 30000),
}

# Offsets (ms) after receipt at which each later stage is reached: (base, jitter)
STAGE_OFFSETS_MS = [(500, 1000), (2000, 2000), (4000, 2000), (6000, 2000)]

DEADLINE_ALERT_DAYS = 3


def generate_license_plate(rng: SeededRandom, city: str) -> str:
    prefix = PLATE_PREFIXES.get(city, 'XX')
    letters = rng.choice(PLATE_LETTERS) + rng.choice(PLATE_LETTERS)
    return f"{prefix}-{letters} {rng.below(9000) + 1000}"


def _random_renter(rng: SeededRandom) -> str:
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def _history(rng: SeededRandom, received: datetime, stage_index: int) -> List[StageEntry]:
    history = [StageEntry(stage=TICKET_STAGES.initial, timestamp=received, completed=stage_index > 0)]
    for position in range(1, stage_index + 1):
        base, jitter = STAGE_OFFSETS_MS[position - 1]
        history.append(StageEntry(
            stage=TICKET_STAGES.keys[position],
            timestamp=received + timedelta(milliseconds=base + rng.random() * jitter),
            completed=position < stage_index or position == len(TICKET_STAGES) - 1,
        ))
    return history


def generate_tickets(count: int = 42, seed: int = 2024, now: Optional[datetime] = None) -> List[Ticket]:
    """
    Deterministic demo tickets, newest first.

    Status mix: 15% ingested, 25% matched, 45% dispatched, 15% exception.
    """
    rng = SeededRandom(seed)
    now = now or datetime.now()
    tickets = []

    for i in range(count):
        city = rng.choice(CITIES)
        violation = rng.choice(list(ViolationType))
        make = rng.choice(VEHICLE_MAKES)
        model = rng.choice(VEHICLE_MODELS[make])

        min_fine, max_fine = FINE_RANGES[violation]
        fine_amount = round(rng.uniform(min_fine, max_fine))

        received = now - timedelta(days=rng.random() * 7)
        deadline = received + timedelta(days=14 + rng.below(16))

        roll = rng.random()
        reason = None
        if roll < 0.15:
            status = TicketStatus.INGESTED
        elif roll < 0.40:
            status = TicketStatus.MATCHED
        elif roll < 0.85:
            status = TicketStatus.DISPATCHED
        else:
            status = TicketStatus.EXCEPTION
            reason = rng.choice(list(ExceptionReason))

        renter_name = None
        renter_confidence = None
        booking_start = None
        booking_end = None
        if status in (TicketStatus.MATCHED, TicketStatus.DISPATCHED):
            renter_name = _random_renter(rng)
            renter_confidence = 85 + rng.below(15)
            violation_at = received - timedelta(days=rng.random() * 2)
            booking_start = violation_at - timedelta(days=rng.random() * 3)
            booking_end = violation_at + timedelta(days=rng.random() * 5)
        elif reason == ExceptionReason.AMBIGUOUS_RENTER:
            renter_name = _random_renter(rng)
            renter_confidence = 45 + rng.below(30)

        min_time, max_time = PROCESSING_TIMES[status]
        processing_time_ms = round(rng.uniform(min_time, max_time))

        stage_index = {
            TicketStatus.INGESTED: TICKET_STAGES.index(TicketStage.INGESTED),
            TicketStatus.MATCHED: TICKET_STAGES.index(TicketStage.RENTER_IDENTIFIED),
            TicketStatus.DISPATCHED: TICKET_STAGES.index(TicketStage.DISPATCHED),
            TicketStatus.EXCEPTION: TICKET_STAGES.index(TicketStage.PARSED),
        }[status]

        tickets.append(Ticket(
            id=f"TKT-{str(100000 + i)[1:]}",
            created_at=received,
            current_stage=TICKET_STAGES.keys[stage_index],
            stage_history=_history(rng, received, stage_index),
            flagged=reason is not None,
            flag_reason=reason.value if reason else None,
            violation_type=violation,
            license_plate=generate_license_plate(rng, city),
            vehicle_make=make,
            vehicle_model=model,
            fleet_assignment=rng.choice(FLEET_ASSIGNMENTS),
            renter_name=renter_name,
            renter_confidence=renter_confidence,
            booking_start=booking_start,
            booking_end=booking_end,
            deadline=deadline,
            processing_time_ms=processing_time_ms,
            fine_amount=fine_amount,
            location=city,
        ))

    log.debug(f"Generated {len(tickets)} tickets (seed={seed})")
    return sorted(tickets, key=lambda t: t.created_at, reverse=True)


def confirm_and_dispatch(ticket: Ticket, now: Optional[datetime] = None) -> Ticket:
    """Send the ticket on to the renter, walking through any remaining stages."""
    return TRACKER.advance_to(ticket, TicketStage.DISPATCHED, now)


def reassign_ticket(ticket: Ticket, rng: Optional[SeededRandom] = None, now: Optional[datetime] = None) -> Ticket:
    """
    Assign a different renter with high confidence and move the ticket to matched.

    A ticket already dispatched keeps its stage and only gets the new renter;
    stages never move backwards.
    """
    now = now or datetime.now()
    rng = rng or SeededRandom(int(now.timestamp() * 1000))
    renter_name = _random_renter(rng)
    renter_confidence = 95 + rng.below(5)

    updated = ticket.model_copy(update={
        "renter_name": renter_name,
        "renter_confidence": renter_confidence,
        "flagged": False,
        "flag_reason": None,
    }, deep=True)
    return TRACKER.advance_to(updated, TicketStage.RENTER_IDENTIFIED, now)


def flag_for_review(ticket: Ticket, reason: ExceptionReason = ExceptionReason.MISSING_DATA) -> Ticket:
    """Mark the ticket as an exception. Already-flagged tickets just get the new reason."""
    return ticket.model_copy(update={"flagged": True, "flag_reason": ExceptionReason(reason).value}, deep=True)


def resolve_exception(ticket: Ticket, now: Optional[datetime] = None) -> Ticket:
    """Clear the exception, boost renter confidence and move the ticket to matched."""
    if ticket.renter_confidence:
        confidence = min(99, ticket.renter_confidence + 30)
    else:
        confidence = 95
    updated = ticket.model_copy(update={
        "flagged": False,
        "flag_reason": None,
        "renter_confidence": confidence,
    }, deep=True)
    return TRACKER.advance_to(updated, TicketStage.RENTER_IDENTIFIED, now)


def dismiss_ticket(tickets: Iterable[Ticket], ticket_id: str) -> List[Ticket]:
    """Return the collection without ``ticket_id``."""
    tickets = list(tickets)
    remaining = [t for t in tickets if t.id != ticket_id]
    if len(remaining) == len(tickets):
        raise NotFoundError(f"Ticket {ticket_id} not found", details={"ticket_id": ticket_id})
    return remaining


def filter_tickets(tickets: Iterable[Ticket], tab: str) -> List[Ticket]:
    """Tickets shown on a tab: incoming, exceptions, completed or analytics (everything)."""
    if tab not in TABS:
        raise ValidationError(f"Unknown tab '{tab}'. Valid tabs: {', '.join(TABS)}")
    tickets = list(tickets)
    if tab == "incoming":
        return [t for t in tickets if t.status not in (TicketStatus.DISPATCHED, TicketStatus.EXCEPTION)]
    if tab == "exceptions":
        return [t for t in tickets if t.status == TicketStatus.EXCEPTION]
    if tab == "completed":
        return [t for t in tickets if t.status == TicketStatus.DISPATCHED]
    return tickets


def pipeline_counts(tickets: Iterable[Ticket]) -> Dict[str, int]:
    counts = Counter(t.status for t in tickets)
    return {status.value: counts.get(status, 0) for status in TicketStatus}


def ticket_kpis(tickets: Iterable[Ticket], now: Optional[datetime] = None) -> Dict[str, float]:
    now = now or datetime.now()
    today = start_of_day(now)
    tickets = list(tickets)

    todays = [t for t in tickets if t.created_at >= today]
    dispatched_today = [t for t in todays if t.status == TicketStatus.DISPATCHED]
    auto_rate = len(dispatched_today) / len(todays) * 100 if todays else 0.0
    avg_time = sum(t.processing_time_ms for t in tickets) / len(tickets) if tickets else 0.0

    return {
        "tickets_today": len(todays),
        "auto_processed_rate": auto_rate,
        "avg_processing_time": avg_time,
        "pending_review": sum(1 for t in tickets if t.status == TicketStatus.EXCEPTION),
        "deadline_alerts": sum(
            1 for t in tickets
            if days_until(t.deadline, now) <= DEADLINE_ALERT_DAYS and t.status != TicketStatus.DISPATCHED
        ),
    }


def ticket_analytics(tickets: Iterable[Ticket], now: Optional[datetime] = None) -> Dict[str, list]:
    """Violation mix plus daily volume and auto-dispatch rate over the last seven days."""
    now = now or datetime.now()
    tickets = list(tickets)

    violations = Counter(t.violation_type for t in tickets)
    violation_data = [
        {"name": VIOLATION_LABELS[v], "value": violations.get(v, 0)} for v in ViolationType
    ]

    volume_data = []
    rate_data = []
    for days_back in range(6, -1, -1):
        day_start = start_of_day(now - timedelta(days=days_back))
        day_end = day_start + timedelta(days=1)
        day_tickets = [t for t in tickets if day_start <= t.created_at < day_end]
        dispatched = [t for t in day_tickets if t.status == TicketStatus.DISPATCHED]
        label = day_start.strftime("%a")
        volume_data.append({"name": label, "date": day_start.date().isoformat(), "count": len(day_tickets)})
        rate_data.append({
            "name": label,
            "date": day_start.date().isoformat(),
            "rate": round(len(dispatched) / len(day_tickets) * 100) if day_tickets else 0,
        })

    return {"violations": violation_data, "volume": volume_data, "rate": rate_data}
