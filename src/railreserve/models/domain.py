from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TravelClass(str, Enum):
    GENERAL = "General"
    SLEEPER = "Sleeper"
    AC = "AC"

    @classmethod
    def parse(cls, raw: str) -> TravelClass:
        value = raw.strip().lower()
        for member in cls:
            if member.value.lower() == value:
                return member
        raise ValueError(f"Unknown travel class: {raw!r}")


class Train(BaseModel):
    model_config = ConfigDict(frozen=True)

    train_id: str
    name: str
    source: str
    destination: str
    date: str
    departure_time: str
    seats_available: int
    fare: float


class Ticket(BaseModel):
    model_config = ConfigDict(frozen=True)

    pnr: str
    train_id: str
    user_email: str
    passenger_name: str
    passenger_age: int
    travel_class: TravelClass


class WaitlistEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_email: str
    train_id: str
    passenger_name: str
    passenger_age: int
    travel_class: TravelClass

    def to_ticket(self, pnr: str) -> Ticket:
        return Ticket(
            pnr=pnr,
            train_id=self.train_id,
            user_email=self.user_email,
            passenger_name=self.passenger_name,
            passenger_age=self.passenger_age,
            travel_class=self.travel_class,
        )


class AuthenticatedUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    name: str = ""
