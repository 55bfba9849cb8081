from __future__ import annotations

from loguru import logger

from railreserve.models.events import ReservationEvent, ReservationEventType

ACTIVITY_CHANNEL = "activity"


def render_activity(event: ReservationEvent) -> str:
    ticket = event.ticket
    train = event.train
    if event.event_type == ReservationEventType.TICKET_BOOKED and ticket and train:
        return (
            f"BOOKING: {ticket.user_email} booked {train.name} ({train.train_id}) "
            f"{train.source} to {train.destination} on {train.date}, PNR {ticket.pnr}"
        )
    if event.event_type == ReservationEventType.TICKET_CANCELLED and ticket:
        return f"BOOKING: {event.user_email} cancelled PNR {ticket.pnr} on {ticket.train_id}"
    if event.event_type == ReservationEventType.WAITLIST_PROMOTED and ticket:
        return f"BOOKING: waitlist confirmed for {event.user_email} on {ticket.train_id}, PNR {ticket.pnr}"
    if event.event_type == ReservationEventType.TRAIN_ADDED and train:
        return f"ADMIN: added train {train.train_id} - {train.name} ({train.source} to {train.destination})"
    if event.event_type == ReservationEventType.TRAIN_MODIFIED and train:
        return (
            f"ADMIN: modified train {train.train_id} - {train.name} "
            f"(seats: {train.seats_available}, fare: {train.fare:.2f})"
        )
    if event.event_type == ReservationEventType.TRAIN_DELETED:
        return f"ADMIN: deleted train {event.train_id}"
    return f"{event.event_type.value}: {event.train_id}"


class ActivityLogBus:
    """Writes one human-readable activity line per event through loguru."""

    def __init__(self) -> None:
        self._logger = logger.bind(channel=ACTIVITY_CHANNEL)

    def publish(self, event: ReservationEvent) -> None:
        self._logger.info(render_activity(event))
