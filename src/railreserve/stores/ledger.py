from __future__ import annotations

from typing import Any

from railreserve.db.repositories import TicketRepository
from railreserve.errors import DuplicatePNR, NotOwner, TicketNotFound
from railreserve.models.domain import Ticket, TravelClass


def _ticket_from_row(row: dict[str, Any]) -> Ticket:
    return Ticket(**{**row, "travel_class": TravelClass(row["travel_class"])})


def _ticket_to_row(ticket: Ticket) -> dict[str, Any]:
    return {**ticket.model_dump(), "travel_class": ticket.travel_class.value}


def _same_email(left: str, right: str) -> bool:
    return left.strip().lower() == right.strip().lower()


class ReservationLedger:
    def __init__(self, repository: TicketRepository | None = None) -> None:
        self.repository = repository or TicketRepository()

    def create(self, ticket: Ticket) -> Ticket:
        try:
            self.repository.insert(_ticket_to_row(ticket))
        except ValueError:
            raise DuplicatePNR(f"PNR {ticket.pnr} is already issued", field="pnr") from None
        return ticket

    def remove(self, pnr: str, owner_email: str) -> Ticket:
        with self.repository.lock:
            ticket = self.find_by_pnr(pnr)
            if not _same_email(ticket.user_email, owner_email):
                raise NotOwner(f"PNR {ticket.pnr} belongs to another user", field="pnr")
            self.repository.delete(ticket.pnr)
        return ticket

    def find_by_pnr(self, pnr: str) -> Ticket:
        row = self.repository.get(pnr)
        if row is None:
            raise TicketNotFound(f"PNR {pnr} not found", field="pnr")
        return _ticket_from_row(row)

    def find_by_owner(self, owner_email: str) -> list[Ticket]:
        return [ticket for ticket in self.all() if _same_email(ticket.user_email, owner_email)]

    def find_by_train(self, train_id: str) -> list[Ticket]:
        key = train_id.upper()
        return [ticket for ticket in self.all() if ticket.train_id == key]

    def all(self) -> list[Ticket]:
        return [_ticket_from_row(row) for row in self.repository.all_rows()]

    def pnrs(self) -> set[str]:
        return self.repository.pnrs()
