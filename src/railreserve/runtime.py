from __future__ import annotations

import random
from dataclasses import asdict
from typing import Any

from loguru import logger

from railreserve.admin import TrainAdministration
from railreserve.bus import ActivityLogBus, FanoutBus, InMemoryBus, build_transport_bus_from_env
from railreserve.config import Settings, load_settings
from railreserve.coordinator import ReservationCoordinator
from railreserve.db.repositories import TicketRepository, TrainRepository, WaitlistRepository
from railreserve.locking import TrainLockRegistry
from railreserve.pnr import PNRAllocator
from railreserve.reports import build_report
from railreserve.stores.inventory import SeatInventoryStore
from railreserve.stores.ledger import ReservationLedger
from railreserve.stores.waitlist import WaitlistQueue


class ReservationRuntime:
    def __init__(
        self,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        transport_bus: object | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        backend = self.settings.storage_backend
        data_dir = self.settings.data_dir
        self.inventory = SeatInventoryStore(TrainRepository(backend=backend, data_dir=data_dir))
        self.ledger = ReservationLedger(TicketRepository(backend=backend, data_dir=data_dir))
        self.waitlist = WaitlistQueue(WaitlistRepository(backend=backend, data_dir=data_dir))
        self.locks = TrainLockRegistry(timeout=self.settings.lock_timeout, retries=self.settings.lock_retries)

        self.event_log = InMemoryBus()
        buses: list[object] = [self.event_log, ActivityLogBus()]
        transport = transport_bus if transport_bus is not None else build_transport_bus_from_env()
        if transport is not None:
            buses.append(transport)
        self.bus = FanoutBus(buses)

        self.coordinator = ReservationCoordinator(
            inventory=self.inventory,
            ledger=self.ledger,
            waitlist=self.waitlist,
            allocator=PNRAllocator(rng=rng),
            locks=self.locks,
            sink=self.bus,
        )
        self.admin = TrainAdministration(inventory=self.inventory, locks=self.locks, sink=self.bus)
        logger.info(
            "Reservation runtime ready ({} backend, {} train(s), {} ticket(s), {} waitlisted)",
            backend.value,
            len(self.inventory.list()),
            len(self.ledger.all()),
            len(self.waitlist.all()),
        )

    def report_payload(self) -> dict[str, Any]:
        return asdict(build_report(self.inventory, self.ledger, self.waitlist))

    def close(self) -> None:
        self.bus.close()
