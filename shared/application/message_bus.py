"""
Message Bus

Delivers domain events to the subscribers registered for their exact type.
The composition root owns the bus and the subscriptions; producers only
call publish().
"""

from collections import defaultdict
import logging
from typing import Callable, DefaultDict, List, Type

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Synchronous event bus

    Subscribers run in registration order. A failing subscriber is logged
    and skipped; the producer never sees its exception.
    """

    def __init__(self):
        self._subscribers: DefaultDict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._subscribers[event_type].append(handler)
        logger.debug("%s subscribed to %s", getattr(handler, '__qualname__', handler), event_type.__name__)

    def subscribers(self, event_type: Type[DomainEvent]) -> List[Handler]:
        return list(self._subscribers.get(event_type, ()))

    def publish(self, *events: DomainEvent) -> int:
        """Deliver events in order; returns how many subscribers completed"""
        delivered = 0
        for event in events:
            name = type(event).__name__
            for handler in self.subscribers(type(event)):
                try:
                    handler(event)
                except Exception:
                    logger.exception("Subscriber %s failed on %s %s",
                                     getattr(handler, '__qualname__', handler), name, event.event_id)
                else:
                    delivered += 1
        return delivered
