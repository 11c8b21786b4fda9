"""Mission elapsed time (GET)."""

from dataclasses import dataclass


@dataclass
class MissionClock:
    """Counts whole seconds since scenario load.

    Runs whether or not the engine is firing; it only feeds the display.

    Attributes:
        running: False until a mission is loaded
    """
    running: bool = False
    _elapsed: float = 0.0

    def start(self, initial_seconds: int = 0) -> None:
        """Restart from ``initial_seconds``."""
        self.running = True
        self._elapsed = float(max(0, initial_seconds))

    def tick(self, dt: float) -> int:
        """Add host time; returns the whole-second count."""
        if self.running and dt > 0.0:
            self._elapsed += dt
        return self.elapsed_seconds

    @property
    def elapsed_seconds(self) -> int:
        return int(self._elapsed)

    def format(self) -> str:
        """``GET hh:mm:ss``."""
        return format_mission_time(self.elapsed_seconds)


def format_mission_time(seconds: int) -> str:
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    return f"GET {hours:02d}:{minutes:02d}:{secs:02d}"
