from __future__ import annotations

import datetime
from typing import Any

from loguru import logger

from railreserve.coordinator import EventSink
from railreserve.locking import TrainLockRegistry
from railreserve.models.domain import Train
from railreserve.models.events import ReservationEvent, train_added, train_deleted, train_modified
from railreserve.stores.inventory import SeatInventoryStore
from railreserve.validation import validate_train_fields

MODIFIABLE_FIELDS = ("name", "source", "destination", "date", "departure_time", "seats_available", "fare")


class TrainAdministration:
    """Administrative writes into the seat inventory.

    Raises ``ReservationError`` subclasses on bad input; the HTTP layer turns
    them into responses.
    """

    def __init__(
        self,
        inventory: SeatInventoryStore,
        locks: TrainLockRegistry,
        sink: EventSink | None = None,
        today: datetime.date | None = None,
    ) -> None:
        self.inventory = inventory
        self.locks = locks
        self.sink = sink
        self.today = today

    def add_train(
        self,
        train_id: str,
        name: str,
        source: str,
        destination: str,
        date: str,
        departure_time: str,
        seats_available: int,
        fare: float,
    ) -> Train:
        cleaned = validate_train_fields(
            {
                "train_id": train_id,
                "name": name,
                "source": source,
                "destination": destination,
                "date": date,
                "departure_time": departure_time,
                "seats_available": seats_available,
                "fare": fare,
            },
            today=self.today,
        )
        with self.locks.hold(cleaned["train_id"]):
            train = self.inventory.add(Train(**cleaned))
        logger.info("Added train {}", train.train_id)
        self._emit(train_added(train))
        return train

    def modify_train(self, train_id: str, **changes: Any) -> Train:
        unknown = set(changes) - set(MODIFIABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot modify {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in changes.items() if value is not None}
        with self.locks.hold(train_id):
            current = self.inventory.get(train_id)
            cleaned = validate_train_fields(changes, current=current, today=self.today)
            train = self.inventory.replace(current.train_id, cleaned) if cleaned else current
        logger.info("Modified train {} ({})", train.train_id, ", ".join(sorted(cleaned)) or "no changes")
        self._emit(train_modified(train, sorted(cleaned)))
        return train

    def delete_train(self, train_id: str) -> Train:
        with self.locks.hold(train_id):
            train = self.inventory.remove(train_id)
        logger.info("Deleted train {}", train.train_id)
        self._emit(train_deleted(train.train_id))
        return train

    def _emit(self, event: ReservationEvent) -> None:
        if self.sink is None:
            return
        try:
            self.sink.publish(event)
        except Exception:
            logger.exception("Notification sink failed for {}", event.event_type.value)
