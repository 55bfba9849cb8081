from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    INVALID_ADJUSTMENT = "invalid_adjustment"
    DUPLICATE_PNR = "duplicate_pnr"
    BUSY = "busy"
    CORRUPTED_RECORD = "corrupted_record"


class ReservationError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(ReservationError):
    kind = ErrorKind.VALIDATION


class TrainNotFound(ReservationError):
    kind = ErrorKind.NOT_FOUND


class TicketNotFound(ReservationError):
    kind = ErrorKind.NOT_FOUND


class NotOwner(ReservationError):
    kind = ErrorKind.NOT_FOUND


class InvalidAdjustment(ReservationError):
    kind = ErrorKind.INVALID_ADJUSTMENT


class DuplicatePNR(ReservationError):
    kind = ErrorKind.DUPLICATE_PNR


class DuplicateTrain(ReservationError):
    kind = ErrorKind.VALIDATION


class Busy(ReservationError):
    kind = ErrorKind.BUSY


class CorruptedRecord(ReservationError):
    kind = ErrorKind.CORRUPTED_RECORD
