from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Protocol

from loguru import logger

from railreserve.errors import (
    DuplicatePNR,
    ErrorKind,
    InvalidAdjustment,
    NotOwner,
    ReservationError,
    TicketNotFound,
    TrainNotFound,
)
from railreserve.locking import TrainLockRegistry
from railreserve.models.domain import Ticket, Train, TravelClass, WaitlistEntry
from railreserve.models.events import ReservationEvent, ticket_booked, ticket_cancelled, waitlist_promoted
from railreserve.pnr import PNRAllocator
from railreserve.stores.inventory import SeatInventoryStore
from railreserve.stores.ledger import ReservationLedger
from railreserve.stores.waitlist import WaitlistQueue
from railreserve.validation import validate_email, validate_passenger, validate_pnr

TICKET_NOT_FOUND_MESSAGE = "Ticket not found or you don't have permission to access it"
STORAGE_UNAVAILABLE_MESSAGE = "Reservation storage is unavailable, please retry"
PNR_CREATE_ATTEMPTS = 3


class EventSink(Protocol):
    def publish(self, event: ReservationEvent) -> None: ...


class OutcomeStatus(str, Enum):
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    field: str | None = None

    @classmethod
    def from_error(cls, error: ReservationError) -> Failure:
        if isinstance(error, InvalidAdjustment):
            return cls(kind=ErrorKind.BUSY, message="Seat inventory changed, please retry", field=error.field)
        if isinstance(error, (TicketNotFound, NotOwner)):
            return cls(kind=ErrorKind.NOT_FOUND, message=TICKET_NOT_FOUND_MESSAGE, field="pnr")
        return cls(kind=error.kind, message=error.message, field=error.field)

    @classmethod
    def storage_unavailable(cls) -> Failure:
        return cls(kind=ErrorKind.BUSY, message=STORAGE_UNAVAILABLE_MESSAGE)


@dataclass(frozen=True)
class BookingOutcome:
    status: OutcomeStatus
    ticket: Ticket | None = None
    train: Train | None = None
    waitlist_entry: WaitlistEntry | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class CancellationOutcome:
    status: OutcomeStatus
    ticket: Ticket | None = None
    promoted_ticket: Ticket | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class PNRStatus:
    status: OutcomeStatus
    ticket: Ticket | None = None
    train: Train | None = None
    failure: Failure | None = None


class ReservationCoordinator:
    """Books, cancels and promotes across inventory, ledger and waitlist.

    Every mutation for a train runs inside that train's critical section, from
    the availability check through the promotion decision. Events are
    published only after the section is released, and a failing sink never
    undoes a committed reservation.
    """

    def __init__(
        self,
        inventory: SeatInventoryStore,
        ledger: ReservationLedger,
        waitlist: WaitlistQueue,
        allocator: PNRAllocator | None = None,
        locks: TrainLockRegistry | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self.inventory = inventory
        self.ledger = ledger
        self.waitlist = waitlist
        self.allocator = allocator or PNRAllocator()
        self.locks = locks or TrainLockRegistry()
        self.sink = sink

    def book(
        self,
        train_id: str,
        passenger_name: str,
        passenger_age: Any,
        travel_class: str | TravelClass,
        owner_email: str,
    ) -> BookingOutcome:
        train_key = (train_id or "").strip().upper()
        events: list[ReservationEvent] = []
        try:
            self.inventory.get(train_key)
            name, age, parsed_class = validate_passenger(passenger_name, passenger_age, travel_class)
            email = validate_email(owner_email)
            request = WaitlistEntry(
                user_email=email,
                train_id=train_key,
                passenger_name=name,
                passenger_age=age,
                travel_class=parsed_class,
            )
            with self.locks.hold(train_key):
                outcome = self._book_locked(request, events)
        except ReservationError as exc:
            logger.info("Booking on {} failed: {} ({})", train_key, exc.kind.value, exc.message)
            return BookingOutcome(status=OutcomeStatus.FAILED, failure=Failure.from_error(exc))
        except OSError as exc:
            logger.error("Booking on {} hit a storage error: {}", train_key, exc)
            return BookingOutcome(status=OutcomeStatus.FAILED, failure=Failure.storage_unavailable())
        self._emit(events)
        return outcome

    def cancel(self, pnr: str, owner_email: str) -> CancellationOutcome:
        events: list[ReservationEvent] = []
        try:
            pnr_key = validate_pnr(pnr)
            ticket = self.ledger.find_by_pnr(pnr_key)
            # lock the train the ticket lives on, then re-check ownership under it
            with self.locks.hold(ticket.train_id):
                outcome = self._cancel_locked(pnr_key, owner_email or "", events)
        except ReservationError as exc:
            logger.info("Cancellation of {} failed: {} ({})", pnr, exc.kind.value, exc.message)
            return CancellationOutcome(status=OutcomeStatus.FAILED, failure=Failure.from_error(exc))
        except OSError as exc:
            logger.error("Cancellation of {} hit a storage error: {}", pnr, exc)
            return CancellationOutcome(status=OutcomeStatus.FAILED, failure=Failure.storage_unavailable())
        self._emit(events)
        return outcome

    def pnr_status(self, pnr: str) -> PNRStatus:
        try:
            ticket = self.ledger.find_by_pnr(validate_pnr(pnr))
        except ReservationError as exc:
            return PNRStatus(status=OutcomeStatus.FAILED, failure=Failure.from_error(exc))
        try:
            train = self.inventory.get(ticket.train_id)
        except TrainNotFound:
            train = None
        return PNRStatus(status=OutcomeStatus.CONFIRMED, ticket=ticket, train=train)

    def tickets_for(self, owner_email: str) -> list[Ticket]:
        return self.ledger.find_by_owner(owner_email)

    def waitlist_for(self, owner_email: str) -> list[WaitlistEntry]:
        return self.waitlist.for_owner(owner_email)

    def _book_locked(self, request: WaitlistEntry, events: list[ReservationEvent]) -> BookingOutcome:
        train = self.inventory.get(request.train_id)
        if train.seats_available <= 0:
            self.waitlist.enqueue(request)
            logger.info("No seats on {}, waitlisted {}", train.train_id, request.user_email)
            return BookingOutcome(status=OutcomeStatus.WAITLISTED, train=train, waitlist_entry=request)

        ticket, train = self._issue_ticket(request)
        logger.info("Booked {} on {} for {}", ticket.pnr, train.train_id, ticket.user_email)
        events.append(ticket_booked(ticket, train))
        return BookingOutcome(status=OutcomeStatus.CONFIRMED, ticket=ticket, train=train)

    def _cancel_locked(self, pnr: str, owner_email: str, events: list[ReservationEvent]) -> CancellationOutcome:
        ticket = self.ledger.remove(pnr, owner_email)
        try:
            self.inventory.adjust_seats(ticket.train_id, +1)
        except TrainNotFound:
            logger.warning("Cancelled {} on {}, which no longer exists", ticket.pnr, ticket.train_id)
            events.append(ticket_cancelled(ticket, owner_email))
            return CancellationOutcome(status=OutcomeStatus.CANCELLED, ticket=ticket)
        except Exception:
            # the seat was not returned, so the ticket stays issued
            self.ledger.create(ticket)
            raise
        events.append(ticket_cancelled(ticket, owner_email))
        logger.info("Cancelled {} on {}", ticket.pnr, ticket.train_id)

        promoted = self._promote_next(ticket.train_id, events)
        return CancellationOutcome(status=OutcomeStatus.CANCELLED, ticket=ticket, promoted_ticket=promoted)

    def _promote_next(self, train_id: str, events: list[ReservationEvent]) -> Ticket | None:
        entry = self.waitlist.dequeue_first(train_id)
        if entry is None:
            return None
        try:
            if self.inventory.get(train_id).seats_available <= 0:
                self.waitlist.requeue_front(entry)
                return None
            promoted, _train = self._issue_ticket(entry)
        except (ReservationError, OSError) as exc:
            logger.warning("Promotion on {} failed, requeued {} ({})", train_id, entry.user_email, exc)
            self.waitlist.requeue_front(entry)
            return None
        logger.info("Promoted waitlisted {} to {} on {}", entry.user_email, promoted.pnr, train_id)
        events.append(waitlist_promoted(promoted, entry))
        return promoted

    def _issue_ticket(self, request: WaitlistEntry) -> tuple[Ticket, Train]:
        ticket = self._create_with_fresh_pnr(request)
        try:
            train = self.inventory.adjust_seats(request.train_id, -1)
        except Exception:
            self.ledger.remove(ticket.pnr, ticket.user_email)
            raise
        return ticket, train

    def _create_with_fresh_pnr(self, request: WaitlistEntry) -> Ticket:
        for _ in range(PNR_CREATE_ATTEMPTS):
            pnr = self.allocator.allocate(self.ledger.pnrs())
            try:
                return self.ledger.create(request.to_ticket(pnr))
            except DuplicatePNR:
                logger.warning("PNR {} was taken before it could be issued, reallocating", pnr)
        raise DuplicatePNR("Could not issue a unique PNR, please retry", field="pnr")

    def _emit(self, events: Iterable[ReservationEvent]) -> None:
        if self.sink is None:
            return
        for event in events:
            try:
                self.sink.publish(event)
            except Exception:
                logger.exception("Notification sink failed for {}", event.event_type.value)

