import logging
from typing import Callable, List

from pickleball.models.enums import EventType
from pickleball.schemas.event_schemas import MatchEvent
from pickleball.schemas.match_schemas import MatchRead

log = logging.getLogger(__name__)

Subscriber = Callable[[MatchEvent], None]


class EventPublisher:
    """Fan-out of match transitions to whoever broadcasts them to viewers.

    The engine publishes exactly one event per successful transition, after
    the transaction has committed. Delivery is best effort: a failing
    subscriber is logged and the remaining subscribers still receive the
    event.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Subscriber:
        self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber):
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, event: MatchEvent):
        log.info("Event %s for match %s (tournament %s)", event.type.value, event.match_id, event.tournament_id)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                log.exception("Subscriber %r failed on %s", subscriber, event.type.value)

    def emit(self, event_type: EventType, match: MatchRead):
        self.publish(MatchEvent(type=event_type, tournament_id=match.tournament_id, match_id=match.id, match=match))


publisher = EventPublisher()
