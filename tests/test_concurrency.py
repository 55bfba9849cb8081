import random
import threading
from concurrent.futures import ThreadPoolExecutor

from railreserve.coordinator import OutcomeStatus, ReservationCoordinator
from railreserve.db.repositories import StorageBackend, TicketRepository, TrainRepository, WaitlistRepository
from railreserve.errors import Busy
from railreserve.locking import TrainLockRegistry
from railreserve.models.domain import Train
from railreserve.pnr import PNRAllocator
from railreserve.stores.inventory import SeatInventoryStore
from railreserve.stores.ledger import ReservationLedger
from railreserve.stores.waitlist import WaitlistQueue


def _coordinator(seats: dict[str, int], locks: TrainLockRegistry | None = None) -> ReservationCoordinator:
    inventory = SeatInventoryStore(TrainRepository(backend=StorageBackend.MEMORY))
    for train_id, count in seats.items():
        inventory.add(
            Train(
                train_id=train_id,
                name="Night Mail",
                source="Pune",
                destination="Nagpur",
                date="2030-02-01",
                departure_time="22:05",
                seats_available=count,
                fare=640.0,
            )
        )
    return ReservationCoordinator(
        inventory=inventory,
        ledger=ReservationLedger(TicketRepository(backend=StorageBackend.MEMORY)),
        waitlist=WaitlistQueue(WaitlistRepository(backend=StorageBackend.MEMORY)),
        allocator=PNRAllocator(rng=random.Random(11)),
        locks=locks or TrainLockRegistry(timeout=5.0),
    )


def test_two_concurrent_bookings_for_last_seat() -> None:
    coordinator = _coordinator({"TRAIN002": 1})
    barrier = threading.Barrier(2)

    def book(email: str) -> OutcomeStatus:
        barrier.wait()
        return coordinator.book("TRAIN002", "Race Runner", 30, "General", email).status

    with ThreadPoolExecutor(max_workers=2) as pool:
        statuses = list(pool.map(book, ["a@example.com", "b@example.com"]))

    assert sorted(status.value for status in statuses) == ["confirmed", "waitlisted"]
    assert coordinator.inventory.get("TRAIN002").seats_available == 0
    assert len(coordinator.waitlist.for_train("TRAIN002")) == 1


def test_many_concurrent_bookings_never_oversell() -> None:
    coordinator = _coordinator({"TRAIN100": 10, "TRAIN101": 4})
    requests = [("TRAIN100" if index % 2 else "TRAIN101", f"user{index}@example.com") for index in range(40)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(
            pool.map(lambda item: coordinator.book(item[0], "Load Tester", 25, "Sleeper", item[1]), requests)
        )

    confirmed = [outcome for outcome in outcomes if outcome.status == OutcomeStatus.CONFIRMED]
    assert len(confirmed) == 14
    assert len({outcome.ticket.pnr for outcome in confirmed}) == 14
    assert coordinator.inventory.get("TRAIN100").seats_available == 0
    assert coordinator.inventory.get("TRAIN101").seats_available == 0
    assert len(coordinator.waitlist.all()) == 26


def test_concurrent_cancellations_promote_each_waiter_once() -> None:
    coordinator = _coordinator({"TRAIN200": 5})
    holders = [coordinator.book("TRAIN200", "Seat Holder", 40, "AC", f"holder{i}@example.com") for i in range(5)]
    for index in range(5):
        coordinator.book("TRAIN200", "Waiting Person", 33, "AC", f"waiter{index}@example.com")

    with ThreadPoolExecutor(max_workers=5) as pool:
        outcomes = list(
            pool.map(lambda outcome: coordinator.cancel(outcome.ticket.pnr, outcome.ticket.user_email), holders)
        )

    promoted = sorted(outcome.promoted_ticket.user_email for outcome in outcomes)
    assert promoted == [f"waiter{index}@example.com" for index in range(5)]
    assert coordinator.inventory.get("TRAIN200").seats_available == 0
    assert coordinator.waitlist.all() == []
    assert len(coordinator.ledger.all()) == 5


def test_lock_timeout_surfaces_busy() -> None:
    locks = TrainLockRegistry(timeout=0.01, retries=2)
    coordinator = _coordinator({"TRAIN300": 3}, locks=locks)
    held = threading.Event()
    release = threading.Event()

    def hold_lock() -> None:
        with locks.hold("TRAIN300"):
            held.set()
            release.wait(timeout=5)

    worker = threading.Thread(target=hold_lock)
    worker.start()
    held.wait(timeout=5)
    try:
        outcome = coordinator.book("TRAIN300", "Blocked Person", 30, "AC", "blocked@example.com")
    finally:
        release.set()
        worker.join()

    assert outcome.status == OutcomeStatus.FAILED
    assert outcome.failure.kind.value == "busy"
    assert coordinator.inventory.get("TRAIN300").seats_available == 3


def test_other_trains_are_not_blocked() -> None:
    locks = TrainLockRegistry(timeout=0.01, retries=1)
    coordinator = _coordinator({"TRAIN400": 1, "TRAIN401": 1}, locks=locks)

    with locks.hold("TRAIN400"):
        outcome = coordinator.book("TRAIN401", "Free Lane", 30, "AC", "free@example.com")

    assert outcome.status == OutcomeStatus.CONFIRMED


def test_lock_registry_raises_busy_directly() -> None:
    locks = TrainLockRegistry(timeout=0.01, retries=1)
    with locks.hold("train500"):
        try:
            with locks.hold("TRAIN500"):
                raise AssertionError("lock should have been held")
        except Busy as exc:
            assert exc.field == "train_id"
