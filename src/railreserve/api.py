from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from railreserve.config import load_settings
from railreserve.coordinator import Failure, OutcomeStatus
from railreserve.errors import DuplicateTrain, ErrorKind, ReservationError
from railreserve.logging_config import configure_logging
from railreserve.models.domain import AuthenticatedUser
from railreserve.runtime import ReservationRuntime

ERROR_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_ADJUSTMENT: 503,
    ErrorKind.DUPLICATE_PNR: 503,
    ErrorKind.BUSY: 503,
    ErrorKind.CORRUPTED_RECORD: 500,
}


class BookingRequest(BaseModel):
    train_id: str
    passenger_name: str
    passenger_age: int | str
    travel_class: str


class TrainCreateRequest(BaseModel):
    train_id: str
    name: str
    source: str
    destination: str
    date: str
    departure_time: str
    seats_available: int
    fare: float


class TrainUpdateRequest(BaseModel):
    name: str | None = None
    source: str | None = None
    destination: str | None = None
    date: str | None = None
    departure_time: str | None = None
    seats_available: int | None = None
    fare: float | None = None


def current_user(
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
) -> AuthenticatedUser:
    if not x_user_email:
        raise HTTPException(status_code=401, detail="X-User-Email header is required")
    return AuthenticatedUser(email=x_user_email.strip(), name=(x_user_name or "").strip())


def _failure_response(failure: Failure) -> JSONResponse:
    status_code = ERROR_STATUS.get(failure.kind, 400)
    headers = {"Retry-After": "1"} if status_code == 503 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": failure.kind.value, "detail": failure.message, "field": failure.field},
        headers=headers,
    )


def build_app(runtime: ReservationRuntime) -> FastAPI:
    app = FastAPI(title="Rail Reservation API", version="0.1.0")
    app.state.runtime = runtime

    @app.exception_handler(ReservationError)
    async def reservation_error_handler(_request: Request, exc: ReservationError) -> JSONResponse:
        if isinstance(exc, DuplicateTrain):
            return JSONResponse(status_code=409, content={"error": exc.kind.value, "detail": exc.message, "field": exc.field})
        return _failure_response(Failure(kind=exc.kind, message=exc.message, field=exc.field))

    @app.get("/")
    def root() -> dict[str, str]:
        return {"service": "railreserve-api", "status": "ok"}

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/trains")
    def list_trains(sort_by: str | None = None, descending: bool = False) -> list[dict[str, Any]]:
        if sort_by:
            try:
                trains = runtime.inventory.sorted_by(sort_by, descending=descending)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        else:
            trains = runtime.inventory.list()
        return [train.model_dump(mode="json") for train in trains]

    @app.get("/api/trains/search")
    def search_trains(source: str, destination: str, date: str | None = None) -> list[dict[str, Any]]:
        return [train.model_dump(mode="json") for train in runtime.inventory.search(source, destination, date)]

    @app.get("/api/trains/{train_id}")
    def get_train(train_id: str) -> dict[str, Any]:
        return runtime.inventory.get(train_id).model_dump(mode="json")

    @app.post("/api/bookings", response_model=None)
    def book(payload: BookingRequest, user: AuthenticatedUser = Depends(current_user)) -> JSONResponse:
        outcome = runtime.coordinator.book(
            train_id=payload.train_id,
            passenger_name=payload.passenger_name,
            passenger_age=payload.passenger_age,
            travel_class=payload.travel_class,
            owner_email=user.email,
        )
        if outcome.failure:
            return _failure_response(outcome.failure)
        if outcome.status == OutcomeStatus.WAITLISTED:
            entry = outcome.waitlist_entry.model_dump(mode="json") if outcome.waitlist_entry else None
            return JSONResponse(status_code=202, content={"status": outcome.status.value, "waitlist_entry": entry})
        return JSONResponse(
            status_code=201,
            content={
                "status": outcome.status.value,
                "ticket": outcome.ticket.model_dump(mode="json") if outcome.ticket else None,
                "train": outcome.train.model_dump(mode="json") if outcome.train else None,
            },
        )

    @app.delete("/api/bookings/{pnr}", response_model=None)
    def cancel(pnr: str, user: AuthenticatedUser = Depends(current_user)) -> JSONResponse | dict[str, Any]:
        outcome = runtime.coordinator.cancel(pnr, user.email)
        if outcome.failure:
            return _failure_response(outcome.failure)
        return {
            "status": outcome.status.value,
            "ticket": outcome.ticket.model_dump(mode="json") if outcome.ticket else None,
            "promoted_ticket": outcome.promoted_ticket.model_dump(mode="json") if outcome.promoted_ticket else None,
        }

    @app.get("/api/bookings/{pnr}", response_model=None)
    def pnr_status(pnr: str) -> JSONResponse | dict[str, Any]:
        status = runtime.coordinator.pnr_status(pnr)
        if status.failure:
            return _failure_response(status.failure)
        return {
            "status": status.status.value,
            "ticket": status.ticket.model_dump(mode="json") if status.ticket else None,
            "train": status.train.model_dump(mode="json") if status.train else None,
        }

    @app.get("/api/me/tickets")
    def my_tickets(user: AuthenticatedUser = Depends(current_user)) -> list[dict[str, Any]]:
        return [ticket.model_dump(mode="json") for ticket in runtime.coordinator.tickets_for(user.email)]

    @app.get("/api/me/waitlist")
    def my_waitlist(user: AuthenticatedUser = Depends(current_user)) -> list[dict[str, Any]]:
        return [entry.model_dump(mode="json") for entry in runtime.coordinator.waitlist_for(user.email)]

    @app.post("/api/admin/trains", status_code=201)
    def add_train(payload: TrainCreateRequest) -> dict[str, Any]:
        return runtime.admin.add_train(**payload.model_dump()).model_dump(mode="json")

    @app.patch("/api/admin/trains/{train_id}")
    def modify_train(train_id: str, payload: TrainUpdateRequest) -> dict[str, Any]:
        changes = payload.model_dump(exclude_none=True)
        return runtime.admin.modify_train(train_id, **changes).model_dump(mode="json")

    @app.delete("/api/admin/trains/{train_id}")
    def delete_train(train_id: str) -> dict[str, str]:
        train = runtime.admin.delete_train(train_id)
        return {"status": "deleted", "train_id": train.train_id}

    @app.get("/api/admin/tickets")
    def all_tickets() -> list[dict[str, Any]]:
        return [ticket.model_dump(mode="json") for ticket in runtime.ledger.all()]

    @app.get("/api/admin/waitlist")
    def all_waitlist() -> list[dict[str, Any]]:
        return [entry.model_dump(mode="json") for entry in runtime.waitlist.all()]

    @app.get("/api/admin/report")
    def report() -> dict[str, Any]:
        return runtime.report_payload()

    return app


settings = load_settings()
configure_logging(settings)
runtime = ReservationRuntime(settings)
app = build_app(runtime)
