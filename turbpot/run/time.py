"""Simple time control utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class TimeControl:
    """Steady pseudo-steps (``1, 2, ..., iterations``) or physical times."""

    start: float = 0.0
    end: float = 0.0
    dt: float = 1.0
    steady: bool = True
    iterations: int = 1
    write_interval: int = 1

    def __post_init__(self) -> None:
        if self.dt <= 0.0:
            raise ValueError("dt must be positive")
        if self.iterations < 1:
            raise ValueError("iterations must be at least 1")
        if self.write_interval < 1:
            raise ValueError("writeInterval must be at least 1")

    def __iter__(self) -> Iterator[float]:
        if self.steady:
            for step in range(1, self.iterations + 1):
                yield float(step)
            return
        step = 1
        t = self.start + self.dt
        while t <= self.end + 1e-12:
            yield t
            step += 1
            t = self.start + step * self.dt

    def __len__(self) -> int:
        if self.steady:
            return self.iterations
        return max(int(round((self.end - self.start) / self.dt)), 0)

    @property
    def delta_t(self) -> Optional[float]:
        """Model time step; ``None`` in steady mode."""
        return None if self.steady else self.dt

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        mode = data.get("mode", "steady").lower()
        write_interval = int(data.get("writeInterval", 1))
        if mode == "steady":
            return cls(
                steady=True,
                iterations=int(data.get("iterations", 1)),
                write_interval=write_interval,
            )
        if mode != "transient":
            raise ValueError(f"Unknown time mode '{mode}'")
        return cls(
            start=float(data.get("start", 0.0)),
            end=float(data.get("end", 1.0)),
            dt=float(data.get("dt", 1.0)),
            steady=False,
            write_interval=write_interval,
        )
