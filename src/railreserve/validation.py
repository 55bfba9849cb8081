from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from railreserve.errors import ValidationError
from railreserve.models.domain import Train, TravelClass

PNR_PATTERN = re.compile(r"^PNR[0-9]{5}$")
TRAIN_ID_PATTERN = re.compile(r"^TRAIN\d{3}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
PASSENGER_NAME_PATTERN = re.compile(r"^[a-zA-Z ]+$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[^,\s]+$")

MIN_AGE = 1
MAX_AGE = 120
MAX_SEATS = 1000
MAX_FARE = 100000.0


def validate_pnr(pnr: str) -> str:
    value = (pnr or "").strip().upper()
    if not PNR_PATTERN.match(value):
        raise ValidationError("Invalid PNR format, expected PNR followed by 5 digits", field="pnr")
    return value


def validate_email(email: str, field: str = "owner_email") -> str:
    value = (email or "").strip()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("Invalid email address", field=field)
    return value


def validate_passenger(name: str, age: Any, travel_class: str | TravelClass) -> tuple[str, int, TravelClass]:
    cleaned_name = (name or "").strip()
    if not cleaned_name or not PASSENGER_NAME_PATTERN.match(cleaned_name):
        raise ValidationError("Passenger name may only contain letters and spaces", field="passenger_name")

    if isinstance(age, (bool, float)):
        raise ValidationError("Passenger age must be a whole number", field="passenger_age")
    try:
        parsed_age = int(age)
    except (TypeError, ValueError):
        raise ValidationError("Passenger age must be a whole number", field="passenger_age") from None
    if not MIN_AGE <= parsed_age <= MAX_AGE:
        raise ValidationError(f"Passenger age must be between {MIN_AGE} and {MAX_AGE}", field="passenger_age")

    if isinstance(travel_class, TravelClass):
        return cleaned_name, parsed_age, travel_class
    try:
        parsed_class = TravelClass.parse(travel_class or "")
    except ValueError:
        raise ValidationError("Travel class must be General, Sleeper or AC", field="travel_class") from None
    return cleaned_name, parsed_age, parsed_class


def _text(value: Any, field: str, minimum: int, maximum: int) -> str:
    cleaned = str(value or "").strip()
    if not minimum <= len(cleaned) <= maximum:
        raise ValidationError(f"{field} must be {minimum}-{maximum} characters", field=field)
    if "," in cleaned:
        raise ValidationError(f"{field} may not contain commas", field=field)
    return cleaned


def validate_train_fields(
    fields: dict[str, Any],
    current: Train | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Validate administrative train fields.

    Only keys present in ``fields`` are checked, so the same rules serve both
    add (every field) and modify (a subset, checked against ``current``).
    Returns the normalized values.
    """
    cleaned: dict[str, Any] = {}
    if "train_id" in fields:
        train_id = str(fields["train_id"] or "").strip().upper()
        if not TRAIN_ID_PATTERN.match(train_id):
            raise ValidationError("Train ID must be TRAIN followed by 3 digits", field="train_id")
        cleaned["train_id"] = train_id
    if "name" in fields:
        cleaned["name"] = _text(fields["name"], "name", 2, 100)
    if "source" in fields:
        cleaned["source"] = _text(fields["source"], "source", 2, 50)
    if "destination" in fields:
        cleaned["destination"] = _text(fields["destination"], "destination", 2, 50)
    if "date" in fields:
        raw_date = str(fields["date"] or "").strip()
        try:
            parsed = datetime.strptime(raw_date, "%Y-%m-%d").date()
        except ValueError:
            raise ValidationError("Date must be YYYY-MM-DD", field="date") from None
        if parsed < (today or date.today()):
            raise ValidationError("Date cannot be in the past", field="date")
        cleaned["date"] = raw_date
    if "departure_time" in fields:
        raw_time = str(fields["departure_time"] or "").strip()
        if not TIME_PATTERN.match(raw_time):
            raise ValidationError("Departure time must be HH:MM in 24-hour format", field="departure_time")
        cleaned["departure_time"] = raw_time
    if "seats_available" in fields:
        try:
            seats = int(fields["seats_available"])
        except (TypeError, ValueError):
            raise ValidationError("Seats must be a whole number", field="seats_available") from None
        if not 1 <= seats <= MAX_SEATS:
            raise ValidationError(f"Seats must be between 1 and {MAX_SEATS}", field="seats_available")
        cleaned["seats_available"] = seats
    if "fare" in fields:
        try:
            fare = float(fields["fare"])
        except (TypeError, ValueError):
            raise ValidationError("Fare must be a number", field="fare") from None
        if not 0 < fare <= MAX_FARE:
            raise ValidationError(f"Fare must be greater than 0 and at most {MAX_FARE:g}", field="fare")
        cleaned["fare"] = fare

    source = cleaned.get("source", current.source if current else None)
    destination = cleaned.get("destination", current.destination if current else None)
    if source and destination and source.lower() == destination.lower():
        raise ValidationError("Source and destination cannot be the same", field="destination")
    return cleaned
