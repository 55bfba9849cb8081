from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from railreserve.stores.inventory import SeatInventoryStore
from railreserve.stores.ledger import ReservationLedger
from railreserve.stores.waitlist import WaitlistQueue

TOP_TRAINS = 5


@dataclass
class TrainOccupancy:
    train_id: str
    name: str
    booked: int
    capacity: int
    available: int
    waitlisted: int


@dataclass
class ReservationReport:
    total_trains: int
    total_tickets: int
    total_waitlisted: int
    occupancy: list[TrainOccupancy] = field(default_factory=list)
    most_booked: list[TrainOccupancy] = field(default_factory=list)


def build_report(
    inventory: SeatInventoryStore,
    ledger: ReservationLedger,
    waitlist: WaitlistQueue,
) -> ReservationReport:
    trains = inventory.list()
    tickets = ledger.all()
    entries = waitlist.all()
    booked_by_train = Counter(ticket.train_id for ticket in tickets)
    waiting_by_train = Counter(entry.train_id for entry in entries)

    occupancy = [
        TrainOccupancy(
            train_id=train.train_id,
            name=train.name,
            booked=booked_by_train[train.train_id],
            capacity=booked_by_train[train.train_id] + train.seats_available,
            available=train.seats_available,
            waitlisted=waiting_by_train[train.train_id],
        )
        for train in trains
    ]
    most_booked = sorted(
        (row for row in occupancy if row.booked > 0),
        key=lambda row: (-row.booked, row.train_id),
    )[:TOP_TRAINS]
    return ReservationReport(
        total_trains=len(trains),
        total_tickets=len(tickets),
        total_waitlisted=len(entries),
        occupancy=occupancy,
        most_booked=most_booked,
    )
