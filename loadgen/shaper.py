"""Per-table traffic shaping.

Each table repeats a square wave: a burst window at the start of every cycle,
steady traffic for the rest of it. Burst multiplier and window lengths are
drawn once per table so tables drift out of phase with each other.
"""
import math
import time
from dataclasses import dataclass
from typing import Optional

STEADY = "steady"
BURST = "burst"


@dataclass(frozen=True)
class Shape:
    phase: str
    rate: float
    max_rows: int

    @property
    def bursting(self) -> bool:
        return self.phase == BURST

    @property
    def interval(self) -> float:
        if self.rate <= 0:
            raise ValueError(f"effective rate must be positive, got {self.rate}")
        return 1.0 / self.rate


@dataclass(frozen=True)
class TableState:
    name: str
    steady_rate: float
    burst_multiplier: float
    burst_duration: int
    cycle_duration: int
    started_at: float

    @classmethod
    def create(cls, index, config, fake, now: Optional[float] = None) -> "TableState":
        """Draw this table's burst parameters within half-to-full of the configured maximums."""
        burst_multiplier = fake.random.uniform(config.burst_multiplier / 2, config.burst_multiplier)
        burst_duration = fake.random_int(config.burst_duration // 2, config.burst_duration)
        cycle_duration = fake.random_int(config.cycle_duration // 2, config.cycle_duration)
        return cls(
            name=config.table_name(index),
            steady_rate=config.rate,
            burst_multiplier=burst_multiplier,
            burst_duration=burst_duration,
            # CYCLE_DURATION=1 would otherwise allow a zero-length cycle
            cycle_duration=max(1, cycle_duration),
            started_at=time.time() if now is None else now,
        )

    def phase_clock(self, now: float) -> int:
        elapsed = now - self.started_at
        return int(math.floor(elapsed)) % self.cycle_duration

    def phase(self, now: float) -> str:
        if self.phase_clock(now) < self.burst_duration:
            return BURST
        return STEADY

    def shape(self, max_rows: int, min_rows: int = 1, now: Optional[float] = None) -> Shape:
        if now is None:
            now = time.time()
        if self.phase(now) == BURST:
            burst_rows = int(math.floor(max_rows * self.burst_multiplier))
            return Shape(BURST, self.steady_rate * self.burst_multiplier, max(min_rows, burst_rows))
        return Shape(STEADY, self.steady_rate, max_rows)
