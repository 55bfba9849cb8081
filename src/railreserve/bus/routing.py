from __future__ import annotations

from railreserve.models.events import ReservationEventType


EVENT_TOPIC_MAP = {
    ReservationEventType.TICKET_BOOKED: "reservation.booked",
    ReservationEventType.TICKET_CANCELLED: "reservation.cancelled",
    ReservationEventType.WAITLIST_PROMOTED: "reservation.promoted",
    ReservationEventType.TRAIN_ADDED: "train.admin",
    ReservationEventType.TRAIN_MODIFIED: "train.admin",
    ReservationEventType.TRAIN_DELETED: "train.admin",
}
