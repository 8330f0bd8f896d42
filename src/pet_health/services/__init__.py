"""
Services for the pet health core.

The course tracker, reminder builder and history analytics are derivations
over records supplied by the owner-scoped store; view loaders rebuild them
when the change bus reports that events changed.
"""

from .analytics import build_event_analytics, filter_events
from .change_bus import ChangeBus, Subscription, Topic
from .identity import SessionIdentityProvider
from .notifications import NotificationWindow, build_notifications
from .store import PetHealthStore
from .treatment import (
    CourseProgress,
    DisplayStatus,
    TreatmentTracker,
    describe_course,
    progress_percent,
    remaining_days,
)
from .views import NotificationFeed, PetHistoryView

__all__ = [
    # Treatment tracking
    "CourseProgress",
    "DisplayStatus",
    "TreatmentTracker",
    "describe_course",
    "progress_percent",
    "remaining_days",
    # Derivations
    "NotificationWindow",
    "build_notifications",
    "build_event_analytics",
    "filter_events",
    # Collaborators
    "ChangeBus",
    "Subscription",
    "Topic",
    "SessionIdentityProvider",
    "PetHealthStore",
    # View loaders
    "NotificationFeed",
    "PetHistoryView",
]
