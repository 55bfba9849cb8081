from __future__ import annotations

from typing import Any

from loguru import logger

from railreserve.db.repositories import TrainRepository
from railreserve.errors import DuplicateTrain, InvalidAdjustment, TrainNotFound
from railreserve.models.domain import Train

SORT_KEYS = ("fare", "departure_time", "seats_available")


def _train_from_row(row: dict[str, Any]) -> Train:
    return Train(**row)


class SeatInventoryStore:
    def __init__(self, repository: TrainRepository | None = None) -> None:
        self.repository = repository or TrainRepository()

    def get(self, train_id: str) -> Train:
        row = self.repository.get(train_id)
        if row is None:
            raise TrainNotFound(f"Train {train_id} not found", field="train_id")
        return _train_from_row(row)

    def adjust_seats(self, train_id: str, delta: int) -> Train:
        with self.repository.lock:
            current = self.get(train_id)
            new_seats = current.seats_available + delta
            if new_seats < 0:
                logger.warning(
                    "Rejected seat adjustment {:+d} on {} with {} seat(s) left",
                    delta,
                    current.train_id,
                    current.seats_available,
                )
                raise InvalidAdjustment(f"Train {current.train_id} has no seat to take", field="seats_available")
            row = self.repository.update(current.train_id, {"seats_available": new_seats})
        return _train_from_row(row)

    def list(self) -> list[Train]:
        return [_train_from_row(row) for row in self.repository.all_rows()]

    def add(self, train: Train) -> Train:
        try:
            row = self.repository.insert(train.model_dump())
        except ValueError:
            raise DuplicateTrain(f"Train {train.train_id} already exists", field="train_id") from None
        return _train_from_row(row)

    def replace(self, train_id: str, values: dict[str, Any]) -> Train:
        values = {key: value for key, value in values.items() if key != "train_id"}
        row = self.repository.update(train_id, values)
        if row is None:
            raise TrainNotFound(f"Train {train_id} not found", field="train_id")
        return _train_from_row(row)

    def remove(self, train_id: str) -> Train:
        row = self.repository.delete(train_id)
        if row is None:
            raise TrainNotFound(f"Train {train_id} not found", field="train_id")
        return _train_from_row(row)

    def search(self, source: str, destination: str, date: str | None = None) -> list[Train]:
        source_key = source.strip().lower()
        destination_key = destination.strip().lower()
        return [
            train
            for train in self.list()
            if train.source.lower() == source_key
            and train.destination.lower() == destination_key
            and (date is None or train.date == date)
        ]

    def sorted_by(self, key: str, descending: bool = False) -> list[Train]:
        if key not in SORT_KEYS:
            raise ValueError(f"Unsupported sort key {key!r}")
        return sorted(self.list(), key=lambda train: getattr(train, key), reverse=descending)
