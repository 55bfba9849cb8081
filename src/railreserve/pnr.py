from __future__ import annotations

import random

from railreserve.errors import DuplicatePNR

PNR_PREFIX = "PNR"
PNR_SPACE = 100_000


def format_pnr(number: int) -> str:
    return f"{PNR_PREFIX}{number:05d}"


class PNRAllocator:
    def __init__(self, rng: random.Random | None = None, max_attempts: int = PNR_SPACE) -> None:
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts

    def allocate(self, existing: set[str]) -> str:
        if len(existing) >= PNR_SPACE:
            raise DuplicatePNR("Reservation code space is exhausted", field="pnr")
        for _ in range(self.max_attempts):
            candidate = format_pnr(self.rng.randrange(PNR_SPACE))
            if candidate not in existing:
                return candidate
        raise DuplicatePNR(f"No free reservation code after {self.max_attempts} attempts", field="pnr")
