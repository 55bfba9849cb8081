from __future__ import annotations

from typing import Any

from railreserve.db.repositories import WaitlistRepository
from railreserve.models.domain import TravelClass, WaitlistEntry


def _entry_from_row(row: dict[str, Any]) -> WaitlistEntry:
    return WaitlistEntry(**{**row, "travel_class": TravelClass(row["travel_class"])})


def _entry_to_row(entry: WaitlistEntry) -> dict[str, Any]:
    return {**entry.model_dump(), "travel_class": entry.travel_class.value}


class WaitlistQueue:
    """Per-train FIFO backlog of unconfirmed requests.

    Entries for every train share one ordered record list; file order is
    enqueue order. Only ``dequeue_first`` removes entries.
    """

    def __init__(self, repository: WaitlistRepository | None = None) -> None:
        self.repository = repository or WaitlistRepository()

    def enqueue(self, entry: WaitlistEntry) -> None:
        self.repository.append(_entry_to_row(entry))

    def dequeue_first(self, train_id: str) -> WaitlistEntry | None:
        row = self.repository.pop_first(train_id)
        return _entry_from_row(row) if row is not None else None

    def requeue_front(self, entry: WaitlistEntry) -> None:
        # the head of the shared list is ahead of every entry for this train
        self.repository.prepend(_entry_to_row(entry))

    def all(self) -> list[WaitlistEntry]:
        return [_entry_from_row(row) for row in self.repository.all_rows()]

    def for_train(self, train_id: str) -> list[WaitlistEntry]:
        key = train_id.upper()
        return [entry for entry in self.all() if entry.train_id == key]

    def for_owner(self, owner_email: str) -> list[WaitlistEntry]:
        key = owner_email.strip().lower()
        return [entry for entry in self.all() if entry.user_email.strip().lower() == key]
