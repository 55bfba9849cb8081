from __future__ import annotations

from collections import defaultdict

from railreserve.bus.routing import EVENT_TOPIC_MAP
from railreserve.models.events import ReservationEvent


class InMemoryBus:
    def __init__(self) -> None:
        self.topics: dict[str, list[ReservationEvent]] = defaultdict(list)
        self.events: list[ReservationEvent] = []

    def publish(self, event: ReservationEvent) -> None:
        topic = EVENT_TOPIC_MAP[event.event_type]
        self.topics[topic].append(event)
        self.events.append(event)
