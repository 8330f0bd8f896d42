"""
In-process change notifications.

Consumers that derive state from stored records (the notification feed, the
pet history view) subscribe to a topic and rebuild when it fires. Each
subscription is an object whose lifetime the consumer owns; there is no
module-level bus.

Example:
    >>> bus = ChangeBus()
    >>> with bus.subscribe(Topic.EVENTS_CHANGED, feed.reload):
    ...     await bus.publish(Topic.EVENTS_CHANGED)
"""

import enum
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class Topic(enum.Enum):
    """Broadcast topics."""

    EVENTS_CHANGED = "events_changed"
    USER_CHANGED = "user_changed"


Callback = Callable[[Any], Union[None, Awaitable[None]]]


class Subscription:
    """Handle for one registered callback."""

    def __init__(self, bus: "ChangeBus", topic: Topic, callback: Callback):
        self.bus = bus
        self.topic = topic
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving broadcasts. Safe to call more than once."""
        if self._active:
            self.bus._remove(self)
            self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class ChangeBus:
    """Publish/subscribe registry keyed by :class:`Topic`."""

    def __init__(self) -> None:
        self._subscriptions: Dict[Topic, List[Subscription]] = {}

    def subscribe(self, topic: Topic, callback: Callback) -> Subscription:
        """
        Register ``callback`` for ``topic``.

        Args:
            topic: Topic to listen on
            callback: Called with the published payload; may be a coroutine function

        Returns:
            Subscription to release when the consumer goes away
        """
        subscription = Subscription(self, topic, callback)
        self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._subscriptions.get(topic, []))

    async def publish(self, topic: Topic, payload: Optional[Any] = None) -> None:
        """
        Deliver ``payload`` to every current subscriber of ``topic``, in
        subscription order. Awaitable results are awaited before the next
        subscriber runs. A failing subscriber is logged and does not stop
        delivery to the others.
        """
        # Copy so callbacks may unsubscribe while being notified
        for subscription in list(self._subscriptions.get(topic, [])):
            if not subscription.active:
                continue
            try:
                result = subscription.callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Subscriber {subscription.callback!r} failed on {topic.value}: {e}"
                )

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
