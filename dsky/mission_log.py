"""Append-only mission log shown to the operator.

Entries come from two voices: the crew (OPERATOR) and mission control
(GROUND). The log is the operator-facing record; it is separate from
Python logging, which carries diagnostics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator


class Role(str, Enum):
    OPERATOR = "OPERATOR"
    GROUND = "GROUND"


@dataclass(frozen=True)
class LogEntry:
    """One log line.

    Attributes:
        role: Who is speaking
        message: Text
        timestamp: Wall-clock time, ``HH:MM:SS``
    """
    role: Role
    message: str
    timestamp: str


def _wall_clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


@dataclass
class MissionLog:
    """Ordered log; entries are never edited or removed."""

    clock: Callable[[], str] = _wall_clock
    _entries: list[LogEntry] = field(default_factory=list)

    def append(self, role: Role, message: str) -> LogEntry:
        entry = LogEntry(role=role, message=message, timestamp=self.clock())
        self._entries.append(entry)
        return entry

    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def messages(self, role: Role | None = None) -> list[str]:
        """Message texts, optionally filtered by role."""
        return [e.message for e in self._entries if role is None or e.role is role]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(tuple(self._entries))

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame({
            "timestamp": [e.timestamp for e in self._entries],
            "role": [e.role.value for e in self._entries],
            "message": [e.message for e in self._entries],
        }, schema={"timestamp": pl.Utf8, "role": pl.Utf8, "message": pl.Utf8})
