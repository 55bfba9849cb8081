from .repositories import (
    StorageBackend,
    TicketRepository,
    TrainRepository,
    WaitlistRepository,
    get_data_dir,
    get_storage_backend,
)

__all__ = [
    "StorageBackend",
    "TicketRepository",
    "TrainRepository",
    "WaitlistRepository",
    "get_data_dir",
    "get_storage_backend",
]
