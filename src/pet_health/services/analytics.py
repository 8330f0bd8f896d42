"""
Event history analytics.

Aggregates a pet's complete event history into status and type counts plus
monthly and yearly spending timelines. The snapshot is rebuilt from scratch
on every call.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..schemas.analytics import EventAnalyticsSnapshot, TimelineBucket
from ..utils.datetime_utils import parse_flexible_date
from ..utils.validation import coerce_decimal, enum_value, field_value

# Bucket for events without a status, spelled as a key like the lower-cased
# statuses beside it rather than as the "No status" caption.
NO_STATUS_KEY = "no_status"
OTHER_TYPE_KEY = "other"
ALL_OPTION = "all"

_MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _count_key(value: Any, fallback: str) -> str:
    value = enum_value(value)
    if not value:
        return fallback
    return str(value).lower()


class _BucketTotals:
    __slots__ = ("label", "count", "spent")

    def __init__(self, label: str):
        self.label = label
        self.count = 0
        self.spent = Decimal("0")

    def add(self, price: Decimal) -> None:
        self.count += 1
        self.spent += price


def _timeline(buckets: Dict[str, _BucketTotals]) -> List[TimelineBucket]:
    return [
        TimelineBucket(key=key, label=totals.label, count=totals.count, spent=totals.spent)
        for key, totals in sorted(buckets.items())
    ]


def build_event_analytics(events: Iterable[Any]) -> EventAnalyticsSnapshot:
    """
    Aggregate an event history in a single pass.

    Missing, non-numeric or non-finite prices count as zero. Events without a
    parseable date are counted everywhere except the timelines.

    Args:
        events: Event models or mapping rows for one pet

    Returns:
        Snapshot whose buckets are ordered by key, independent of input order
    """
    total_events = 0
    total_spent = Decimal("0")
    status_counts: Dict[str, int] = defaultdict(int)
    type_counts: Dict[str, int] = defaultdict(int)
    monthly: Dict[str, _BucketTotals] = {}
    yearly: Dict[str, _BucketTotals] = {}

    for event in events:
        total_events += 1
        price = coerce_decimal(field_value(event, "price"))
        total_spent += price

        status_counts[_count_key(field_value(event, "status"), NO_STATUS_KEY)] += 1
        type_counts[_count_key(field_value(event, "event_type"), OTHER_TYPE_KEY)] += 1

        instant = parse_flexible_date(field_value(event, "date"))
        if instant is None:
            continue

        month_key = f"{instant.year:04d}-{instant.month:02d}"
        year_key = f"{instant.year:04d}"
        if month_key not in monthly:
            monthly[month_key] = _BucketTotals(
                f"{_MONTH_LABELS[instant.month - 1]} {instant.year}"
            )
        if year_key not in yearly:
            yearly[year_key] = _BucketTotals(year_key)
        monthly[month_key].add(price)
        yearly[year_key].add(price)

    return EventAnalyticsSnapshot(
        total_events=total_events,
        total_spent=total_spent,
        status_counts=dict(sorted(status_counts.items())),
        type_counts=dict(sorted(type_counts.items())),
        monthly=_timeline(monthly),
        yearly=_timeline(yearly),
    )


def _matches(criterion: Optional[Any], value: Any) -> bool:
    if criterion is None or criterion == ALL_OPTION:
        return True
    return str(enum_value(criterion)).lower() == str(value).lower()


def filter_events(
    events: Iterable[Any],
    event_type: Optional[Any] = None,
    pet_id: Optional[Any] = None,
    status: Optional[Any] = None,
) -> List[Any]:
    """
    Filter events by type, pet and status.

    ``None`` or ``"all"`` disables a criterion. Events without a status are
    treated as scheduled.
    """
    return [
        event
        for event in events
        if _matches(event_type, _count_key(field_value(event, "event_type"), OTHER_TYPE_KEY))
        and _matches(pet_id, field_value(event, "pet_id"))
        and _matches(status, _count_key(field_value(event, "status"), "scheduled"))
    ]
