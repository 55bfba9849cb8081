from __future__ import annotations

from pathlib import Path

from loguru import logger

from railreserve.bus.activity_log import ActivityLogBus
from railreserve.config import Settings, load_settings
from railreserve.db.repositories import StorageBackend
from railreserve.logging_config import configure_logging
from railreserve.models.events import train_deleted
from railreserve.runtime import ReservationRuntime

ENV_VARS = (
    "RAILRESERVE_STORAGE_BACKEND",
    "RAILRESERVE_DATA_DIR",
    "RAILRESERVE_LOCK_TIMEOUT",
    "RAILRESERVE_LOCK_RETRIES",
    "RAILRESERVE_LOG_LEVEL",
    "RAILRESERVE_ACTIVITY_LOG",
)


def test_load_settings_defaults(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    assert load_settings() == Settings()


def test_load_settings_reads_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RAILRESERVE_STORAGE_BACKEND", "FILE")
    monkeypatch.setenv("RAILRESERVE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RAILRESERVE_LOCK_TIMEOUT", "0.5")
    monkeypatch.setenv("RAILRESERVE_LOCK_RETRIES", "7")
    monkeypatch.setenv("RAILRESERVE_LOG_LEVEL", "debug")
    monkeypatch.setenv("RAILRESERVE_ACTIVITY_LOG", str(tmp_path / "activity.log"))

    settings = load_settings()

    assert settings.storage_backend == StorageBackend.FILE
    assert settings.data_dir == tmp_path
    assert settings.lock_timeout == 0.5
    assert settings.lock_retries == 7
    assert settings.log_level == "DEBUG"
    assert settings.activity_log == tmp_path / "activity.log"


def test_load_settings_rejects_bad_numbers(monkeypatch) -> None:
    monkeypatch.setenv("RAILRESERVE_LOCK_RETRIES", "many")
    try:
        load_settings()
        raise AssertionError("Expected ValueError")
    except ValueError as exc:
        assert "RAILRESERVE_LOCK_RETRIES" in str(exc)


def test_activity_log_file_only_receives_activity_lines(tmp_path: Path) -> None:
    activity_log = tmp_path / "activity.log"
    configure_logging(Settings(log_level="WARNING", activity_log=activity_log))
    try:
        ActivityLogBus().publish(train_deleted("TRAIN004"))
        logger.info("plain application line")
        logger.complete()
    finally:
        logger.remove()

    content = activity_log.read_text(encoding="utf-8")
    assert "ADMIN: deleted train TRAIN004" in content
    assert "plain application line" not in content


def test_runtime_with_file_backend_persists_bookings(tmp_path: Path) -> None:
    settings = Settings(storage_backend=StorageBackend.FILE, data_dir=tmp_path)
    runtime = ReservationRuntime(settings, transport_bus=None)
    runtime.admin.add_train(
        train_id="TRAIN050",
        name="Howrah Mail",
        source="Howrah",
        destination="Chennai",
        date="2030-04-04",
        departure_time="23:45",
        seats_available=1,
        fare=1500.0,
    )
    booked = runtime.coordinator.book("TRAIN050", "Kiran Das", 45, "Sleeper", "kiran@example.com")
    runtime.close()

    reopened = ReservationRuntime(settings, transport_bus=None)

    assert reopened.coordinator.pnr_status(booked.ticket.pnr).ticket == booked.ticket
    assert reopened.inventory.get("TRAIN050").seats_available == 0
