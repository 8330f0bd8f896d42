"""
Schemas for the per-pet event history snapshot.
"""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class TimelineBucket(BaseModel):
    """Events and spend grouped by a calendar period."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Sortable period key, YYYY-MM or YYYY")
    label: str = Field(..., description="Display label for the period")
    count: int = Field(0, description="Number of events in the period", ge=0)
    spent: Decimal = Field(Decimal("0"), description="Total price in the period")


class EventAnalyticsSnapshot(BaseModel):
    """Aggregate view over a pet's complete event history."""

    model_config = ConfigDict(frozen=True)

    total_events: int = Field(0, description="Number of events scanned", ge=0)
    total_spent: Decimal = Field(Decimal("0"), description="Sum of event prices")
    status_counts: Dict[str, int] = Field(
        default_factory=dict, description="Event count by lower-cased status"
    )
    type_counts: Dict[str, int] = Field(
        default_factory=dict, description="Event count by lower-cased type"
    )
    monthly: List[TimelineBucket] = Field(
        default_factory=list, description="Buckets keyed YYYY-MM, ascending"
    )
    yearly: List[TimelineBucket] = Field(
        default_factory=list, description="Buckets keyed YYYY, ascending"
    )
