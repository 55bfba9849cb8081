from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from threading import RLock
from typing import Any, Callable

from loguru import logger

from railreserve.db.flat_file import read_records, write_records
from railreserve.errors import CorruptedRecord
from railreserve.models.domain import TravelClass
from railreserve.validation import MAX_AGE, MIN_AGE, PNR_PATTERN, TRAIN_ID_PATTERN


class StorageBackend(str, Enum):
    MEMORY = "memory"
    FILE = "file"


def get_storage_backend() -> StorageBackend:
    raw = os.getenv("RAILRESERVE_STORAGE_BACKEND", StorageBackend.MEMORY.value).strip().lower()
    if raw == StorageBackend.FILE.value:
        return StorageBackend.FILE
    return StorageBackend.MEMORY


def get_data_dir() -> Path:
    return Path(os.getenv("RAILRESERVE_DATA_DIR", "data"))


def _int_field(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CorruptedRecord(f"{name} is not an integer: {value!r}", field=name) from None


def _float_field(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise CorruptedRecord(f"{name} is not a number: {value!r}", field=name) from None


def _require(value: str, name: str) -> str:
    if not value:
        raise CorruptedRecord(f"{name} is empty", field=name)
    return value


def _id_field(value: str, pattern: re.Pattern[str], name: str) -> str:
    key = _require(value, name).upper()
    if not pattern.match(key):
        raise CorruptedRecord(f"malformed {name} {value!r}", field=name)
    return key


def _age_field(value: str) -> int:
    age = _int_field(value, "passenger_age")
    if not MIN_AGE <= age <= MAX_AGE:
        raise CorruptedRecord(f"passenger_age out of range: {age}", field="passenger_age")
    return age


def _travel_class_field(value: str) -> str:
    try:
        return TravelClass.parse(value).value
    except ValueError:
        raise CorruptedRecord(f"unknown travel_class {value!r}", field="travel_class") from None


class _BaseRepository:
    filename: str = ""
    columns: tuple[str, ...] = ()

    def __init__(self, backend: StorageBackend | None = None, data_dir: Path | None = None) -> None:
        self.backend = backend or get_storage_backend()
        self.path = (data_dir or get_data_dir()) / self.filename if self.backend == StorageBackend.FILE else None
        self.lock = RLock()
        self._rows: list[dict[str, Any]] = self._load()

    def _parse(self, fields: list[str]) -> dict[str, Any]:
        raise NotImplementedError

    def _load(self) -> list[dict[str, Any]]:
        if self.path is None:
            return []
        rows: list[dict[str, Any]] = []
        for line_number, fields in read_records(self.path):
            try:
                if len(fields) != len(self.columns):
                    raise CorruptedRecord(f"expected {len(self.columns)} fields, found {len(fields)}")
                row = self._parse(fields)
                self._check_unique(rows, row)
            except CorruptedRecord as exc:
                logger.warning("Skipping corrupted record {}:{} ({})", self.filename, line_number, exc.message)
                continue
            rows.append(row)
        logger.debug("Loaded {} record(s) from {}", len(rows), self.path)
        return rows

    def _check_unique(self, rows: list[dict[str, Any]], row: dict[str, Any]) -> None:
        return None

    def _commit(self, rows: list[dict[str, Any]]) -> None:
        # file first, so a failed write leaves the in-memory view untouched
        if self.path is not None:
            write_records(self.path, ([row[column] for column in self.columns] for row in rows))
        self._rows = rows

    def _find_index(self, predicate: Callable[[dict[str, Any]], bool]) -> int | None:
        for index, row in enumerate(self._rows):
            if predicate(row):
                return index
        return None

    def all_rows(self) -> list[dict[str, Any]]:
        with self.lock:
            return [dict(row) for row in self._rows]

    def reset(self) -> None:
        with self.lock:
            self._commit([])


class TrainRepository(_BaseRepository):
    filename = "trains.txt"
    columns = ("train_id", "name", "source", "destination", "date", "departure_time", "seats_available", "fare")

    def _parse(self, fields: list[str]) -> dict[str, Any]:
        train_id, name, source, destination, date, departure_time, seats, fare = fields
        seats_available = _int_field(seats, "seats_available")
        if seats_available < 0:
            raise CorruptedRecord("seats_available is negative", field="seats_available")
        fare_value = _float_field(fare, "fare")
        if fare_value <= 0:
            raise CorruptedRecord(f"fare is not positive: {fare_value}", field="fare")
        return {
            "train_id": _id_field(train_id, TRAIN_ID_PATTERN, "train_id"),
            "name": name,
            "source": source,
            "destination": destination,
            "date": date,
            "departure_time": departure_time,
            "seats_available": seats_available,
            "fare": fare_value,
        }

    def _check_unique(self, rows: list[dict[str, Any]], row: dict[str, Any]) -> None:
        if any(existing["train_id"] == row["train_id"] for existing in rows):
            raise CorruptedRecord(f"duplicate train_id {row['train_id']}", field="train_id")

    def get(self, train_id: str) -> dict[str, Any] | None:
        key = train_id.upper()
        with self.lock:
            index = self._find_index(lambda row: row["train_id"] == key)
            return dict(self._rows[index]) if index is not None else None

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        with self.lock:
            if self._find_index(lambda existing: existing["train_id"] == row["train_id"]) is not None:
                raise ValueError("Duplicate train_id")
            self._commit([*self._rows, dict(row)])
            return dict(row)

    def update(self, train_id: str, values: dict[str, Any]) -> dict[str, Any] | None:
        key = train_id.upper()
        with self.lock:
            index = self._find_index(lambda row: row["train_id"] == key)
            if index is None:
                return None
            rows = list(self._rows)
            rows[index] = {**rows[index], **values}
            self._commit(rows)
            return dict(rows[index])

    def delete(self, train_id: str) -> dict[str, Any] | None:
        key = train_id.upper()
        with self.lock:
            index = self._find_index(lambda row: row["train_id"] == key)
            if index is None:
                return None
            rows = list(self._rows)
            removed = rows.pop(index)
            self._commit(rows)
            return removed


class TicketRepository(_BaseRepository):
    filename = "tickets.txt"
    columns = ("pnr", "train_id", "user_email", "passenger_name", "passenger_age", "travel_class")

    def _parse(self, fields: list[str]) -> dict[str, Any]:
        pnr, train_id, user_email, passenger_name, passenger_age, travel_class = fields
        return {
            "pnr": _id_field(pnr, PNR_PATTERN, "pnr"),
            "train_id": _require(train_id, "train_id").upper(),
            "user_email": _require(user_email, "user_email"),
            "passenger_name": passenger_name,
            "passenger_age": _age_field(passenger_age),
            "travel_class": _travel_class_field(travel_class),
        }

    def _check_unique(self, rows: list[dict[str, Any]], row: dict[str, Any]) -> None:
        if any(existing["pnr"] == row["pnr"] for existing in rows):
            raise CorruptedRecord(f"duplicate pnr {row['pnr']}", field="pnr")

    def get(self, pnr: str) -> dict[str, Any] | None:
        key = pnr.upper()
        with self.lock:
            index = self._find_index(lambda row: row["pnr"] == key)
            return dict(self._rows[index]) if index is not None else None

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        with self.lock:
            if self._find_index(lambda existing: existing["pnr"] == row["pnr"]) is not None:
                raise ValueError("Duplicate pnr")
            self._commit([*self._rows, dict(row)])
            return dict(row)

    def delete(self, pnr: str) -> dict[str, Any] | None:
        key = pnr.upper()
        with self.lock:
            index = self._find_index(lambda row: row["pnr"] == key)
            if index is None:
                return None
            rows = list(self._rows)
            removed = rows.pop(index)
            self._commit(rows)
            return removed

    def pnrs(self) -> set[str]:
        with self.lock:
            return {row["pnr"] for row in self._rows}


class WaitlistRepository(_BaseRepository):
    filename = "waitlist.txt"
    columns = ("user_email", "train_id", "passenger_name", "passenger_age", "travel_class")

    def _parse(self, fields: list[str]) -> dict[str, Any]:
        user_email, train_id, passenger_name, passenger_age, travel_class = fields
        return {
            "user_email": _require(user_email, "user_email"),
            "train_id": _require(train_id, "train_id").upper(),
            "passenger_name": passenger_name,
            "passenger_age": _age_field(passenger_age),
            "travel_class": _travel_class_field(travel_class),
        }

    def append(self, row: dict[str, Any]) -> None:
        with self.lock:
            self._commit([*self._rows, dict(row)])

    def prepend(self, row: dict[str, Any]) -> None:
        with self.lock:
            self._commit([dict(row), *self._rows])

    def pop_first(self, train_id: str) -> dict[str, Any] | None:
        key = train_id.upper()
        with self.lock:
            index = self._find_index(lambda row: row["train_id"] == key)
            if index is None:
                return None
            rows = list(self._rows)
            removed = rows.pop(index)
            self._commit(rows)
            return removed
