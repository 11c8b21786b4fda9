"""Display state and register formatting.

The display shows a program code, a verb/noun pair and three signed
five-digit registers. What the registers mean depends on the noun: each
monitored noun maps to a fixed layout of three fields, kept in
:data:`NOUN_LAYOUTS` so every layout can be read and tested on its own.
"""

from dataclasses import dataclass, replace
from enum import Enum

from dsky.constants import (
    NOUN_ALARM_CODES,
    UNSET,
    VERB_DISPLAY_ALARM,
    ZERO_REGISTER,
)
from dsky.dynamics.state import FlightState

# =============================================================================
# Command State
# =============================================================================


@dataclass
class CommandState:
    """Everything the display shows, plus the alarm lock.

    ``verb`` and ``noun`` hold a two-digit code, an empty string while
    the field is blanked for entry, or a single digit while being typed.

    Attributes:
        program: Active program code
        verb: Verb field
        noun: Noun field
        r1: Register 1
        r2: Register 2
        r3: Register 3
        priority_lock: Display is hijacked by an alarm
        alarm_code: Code of the displayed alarm
    """
    program: str = UNSET
    verb: str = UNSET
    noun: str = UNSET
    r1: str = ZERO_REGISTER
    r2: str = ZERO_REGISTER
    r3: str = ZERO_REGISTER
    priority_lock: bool = False
    alarm_code: str | None = None

    def copy(self) -> "CommandState":
        return replace(self)

    @property
    def registers(self) -> tuple[str, str, str]:
        return (self.r1, self.r2, self.r3)

    def set_registers(self, r1: str, r2: str, r3: str) -> None:
        self.r1, self.r2, self.r3 = r1, r2, r3

    def show_alarm(self, code: str) -> None:
        """Hijack the display with an alarm code (V05 N09)."""
        self.priority_lock = True
        self.alarm_code = code
        self.verb = VERB_DISPLAY_ALARM
        self.noun = NOUN_ALARM_CODES
        self.set_registers(code, "00000", "00000")

    def clear_alarm(self) -> None:
        self.priority_lock = False
        self.alarm_code = None


# =============================================================================
# Register Formatting
# =============================================================================

_REGISTER_MAX = 99999


def _digits(magnitude: float) -> str:
    return str(min(_REGISTER_MAX, int(round(abs(magnitude))))).zfill(5)


def format_velocity(velocity: float) -> str:
    """Signed velocity, whole m/s."""
    sign = "+" if velocity >= 0.0 else "-"
    return sign + _digits(velocity)


def format_altitude(altitude: float) -> str:
    """Altitude in tens of meters."""
    return "+" + _digits(altitude / 10.0)


def format_percent(value: float) -> str:
    """Fuel as a whole percentage."""
    return "+" + _digits(value)


def format_elapsed(seconds: int) -> str:
    """Elapsed seconds, wrapped at 100000."""
    return "+" + str(int(seconds) % 100000).zfill(5)


# =============================================================================
# Noun Layouts
# =============================================================================


class Field(Enum):
    """Quantity shown in one register."""

    TIME = "time"
    VELOCITY = "velocity"
    ALTITUDE = "altitude"
    FUEL = "fuel"
    ZERO = "zero"
    APOLUNE = "apolune"
    PERILUNE = "perilune"


# Fixed orbit figures shown by N50; the model has no orbit
_FIXED_FIELDS = {
    Field.ZERO: ZERO_REGISTER,
    Field.APOLUNE: "+00100",
    Field.PERILUNE: "+00010",
}

NOUN_LAYOUTS: dict[str, tuple[Field, Field, Field]] = {
    "36": (Field.TIME, Field.VELOCITY, Field.ALTITUDE),
    "43": (Field.ZERO, Field.ZERO, Field.ALTITUDE),
    "50": (Field.APOLUNE, Field.PERILUNE, Field.FUEL),
    "60": (Field.ZERO, Field.VELOCITY, Field.ALTITUDE),
    "62": (Field.VELOCITY, Field.FUEL, Field.ALTITUDE),
    "68": (Field.ALTITUDE, Field.ZERO, Field.VELOCITY),
}


def render_field(kind: Field, flight: FlightState, elapsed_seconds: int) -> str:
    """Format one register field from telemetry."""
    if kind is Field.TIME:
        return format_elapsed(elapsed_seconds)
    if kind is Field.VELOCITY:
        return format_velocity(flight.velocity)
    if kind is Field.ALTITUDE:
        return format_altitude(flight.altitude)
    if kind is Field.FUEL:
        return format_percent(flight.fuel)
    return _FIXED_FIELDS[kind]


def render_registers(
    noun: str,
    flight: FlightState,
    elapsed_seconds: int = 0,
) -> tuple[str, str, str] | None:
    """Registers for a monitored noun, or None if the noun has no layout."""
    layout = NOUN_LAYOUTS.get(noun)
    if layout is None:
        return None
    r1, r2, r3 = (render_field(kind, flight, elapsed_seconds) for kind in layout)
    return r1, r2, r3
