from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Wall-clock time within a single day, stored as minutes since midnight.

    Roster times travel as ``HH:MM`` strings; comparing them as strings breaks on
    values like ``"9:5"``, so all arithmetic goes through :attr:`minutes`.
    """

    minutes: int

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse ``H:M``, ``HH:MM`` or ``HH:MM:SS`` (seconds are ignored).

        Raises ValueError on anything else.
        """

        parts = str(value).strip().split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid time of day: {value!r}")
        hours, mins = int(parts[0]), int(parts[1])
        if not (0 <= hours < 24 and 0 <= mins < 60):
            raise ValueError(f"Invalid time of day: {value!r}")
        return cls(hours * 60 + mins)

    @classmethod
    def from_datetime(cls, value: datetime) -> "TimeOfDay":
        return cls(value.hour * 60 + value.minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def minutes_after(self, other: "TimeOfDay") -> int:
        """Signed difference ``self - other`` in minutes (same day)."""
        return self.minutes - other.minutes

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def format_hhmm(value: datetime) -> str:
    return str(TimeOfDay.from_datetime(value))


def now_local() -> datetime:
    """Current local time.

    Note: wrapped so tests can patch it.
    """
    return datetime.now()
