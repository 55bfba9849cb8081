from __future__ import annotations

from typing import Iterable

from loguru import logger

from railreserve.models.events import ReservationEvent


class FanoutBus:
    def __init__(self, buses: Iterable[object]) -> None:
        self._buses = list(buses)

    def publish(self, event: ReservationEvent) -> None:
        for bus in self._buses:
            try:
                bus.publish(event)
            except Exception:
                # one failing sink must not starve the others
                logger.exception("{} failed to publish {}", type(bus).__name__, event.event_type.value)

    def close(self) -> None:
        for bus in self._buses:
            close = getattr(bus, "close", None)
            if callable(close):
                close()
