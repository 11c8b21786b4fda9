"""Vehicle state for the single-axis descent model."""

from dataclasses import dataclass, replace
from enum import Enum

from beartype import beartype


class GroundContact(Enum):
    """Outcome of reaching the surface without a scenario verdict."""

    TOUCHDOWN = "TOUCHDOWN"
    CRASH = "CRASH"


@beartype
@dataclass
class FlightState:
    """Vertical flight state.

    Attributes:
        altitude: Height above the surface [m], never negative
        velocity: Vertical velocity [m/s] (negative is descending)
        fuel: Remaining fuel [%]
        thrust: Commanded engine thrust [%]
        active: True while the integrator is running
    """
    altitude: float = 15000.0
    velocity: float = -100.0
    fuel: float = 100.0
    thrust: float = 0.0
    active: bool = False

    def __post_init__(self) -> None:
        """Validate ranges."""
        if self.altitude < 0.0:
            raise ValueError(f"altitude must be >= 0, got {self.altitude}")
        if not 0.0 <= self.fuel <= 100.0:
            raise ValueError(f"fuel must be within [0, 100], got {self.fuel}")
        if not 0.0 <= self.thrust <= 100.0:
            raise ValueError(f"thrust must be within [0, 100], got {self.thrust}")

    def copy(self) -> "FlightState":
        """Independent copy of this state."""
        return replace(self)

    @property
    def descending(self) -> bool:
        return self.velocity < 0.0

    def value_of(self, trigger: str) -> float:
        """Look up a telemetry channel by name (altitude, velocity or fuel)."""
        if trigger == "altitude":
            return self.altitude
        if trigger == "velocity":
            return self.velocity
        if trigger == "fuel":
            return self.fuel
        raise ValueError(f"Unknown telemetry channel: {trigger!r}")
