from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from railreserve.models.domain import Ticket, Train, WaitlistEntry


class ReservationEventType(str, Enum):
    TICKET_BOOKED = "ticket_booked"
    TICKET_CANCELLED = "ticket_cancelled"
    WAITLIST_PROMOTED = "waitlist_promoted"
    TRAIN_ADDED = "train_added"
    TRAIN_MODIFIED = "train_modified"
    TRAIN_DELETED = "train_deleted"


class ReservationEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: ReservationEventType
    train_id: str
    user_email: str | None = None
    ticket: Ticket | None = None
    train: Train | None = None
    waitlist_entry: WaitlistEntry | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def ticket_booked(ticket: Ticket, train: Train) -> ReservationEvent:
    return ReservationEvent(
        event_type=ReservationEventType.TICKET_BOOKED,
        train_id=ticket.train_id,
        user_email=ticket.user_email,
        ticket=ticket,
        train=train,
    )


def ticket_cancelled(ticket: Ticket, owner_email: str) -> ReservationEvent:
    return ReservationEvent(
        event_type=ReservationEventType.TICKET_CANCELLED,
        train_id=ticket.train_id,
        user_email=owner_email,
        ticket=ticket,
    )


def waitlist_promoted(ticket: Ticket, entry: WaitlistEntry) -> ReservationEvent:
    return ReservationEvent(
        event_type=ReservationEventType.WAITLIST_PROMOTED,
        train_id=ticket.train_id,
        user_email=entry.user_email,
        ticket=ticket,
        waitlist_entry=entry,
    )


def train_added(train: Train) -> ReservationEvent:
    return ReservationEvent(event_type=ReservationEventType.TRAIN_ADDED, train_id=train.train_id, train=train)


def train_modified(train: Train, changed_fields: list[str]) -> ReservationEvent:
    return ReservationEvent(
        event_type=ReservationEventType.TRAIN_MODIFIED,
        train_id=train.train_id,
        train=train,
        metadata={"changed_fields": changed_fields},
    )


def train_deleted(train_id: str) -> ReservationEvent:
    return ReservationEvent(event_type=ReservationEventType.TRAIN_DELETED, train_id=train_id)
