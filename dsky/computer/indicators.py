"""Indicator lamp derivation.

Only a subset of the lamps follows from flight and program state; the
rest (OPR ERR, PROG, activity lamps) are latched by the command
interpreter. :func:`derive_indicators` overlays the derived subset on the
latched lamps and returns a new mapping.
"""

from dataclasses import dataclass, field

from dsky.constants import LANDING_PROGRAMS, IndicatorName, initial_indicators
from dsky.dynamics.state import FlightState
from dsky.timers import TimerQueue

Indicators = dict[IndicatorName, bool]


def is_landing_program(program: str) -> bool:
    return program in LANDING_PROGRAMS


def derive_indicators(
    latched: Indicators,
    program: str,
    flight: FlightState,
    low_fuel_threshold: float = 10.0,
) -> Indicators:
    """Overlay the program- and fuel-derived lamps on ``latched``.

    ALT follows the landing-program predicate. VEL does too, except that
    it is forced on while the engine runs on critically low fuel.

    Args:
        latched: Current lamp state; not modified
        program: Active program code
        flight: Latest flight state
        low_fuel_threshold: Fuel level below which VEL is forced on [%]

    Returns:
        New lamp mapping
    """
    landing = is_landing_program(program)
    lamps = dict(latched)
    lamps[IndicatorName.ALT] = landing
    if flight.active and flight.fuel < low_fuel_threshold:
        lamps[IndicatorName.VEL] = True
    else:
        lamps[IndicatorName.VEL] = landing
    return lamps


def all_lamps_on() -> Indicators:
    """Every lamp lit (lamp test)."""
    return {name: True for name in IndicatorName}


@dataclass(frozen=True)
class OverflowMonitor:
    """Executive overflow rule: a fast, low descent overloads the computer.

    Attributes:
        altitude_limit: Alarm below this altitude [m]
        descent_rate_limit: Alarm when descending faster than this [m/s]
        code: Alarm code raised
    """
    altitude_limit: float = 3000.0
    descent_rate_limit: float = 80.0
    code: str = "01202"
    message: str = "ALARM 1202 DETECTED. EXEC OVERFLOW."

    def triggered(self, flight: FlightState, alarm_showing: bool) -> bool:
        return (
            flight.active
            and not alarm_showing
            and flight.altitude < self.altitude_limit
            and flight.velocity < -self.descent_rate_limit
        )


@dataclass
class IndicatorPanel:
    """Latched lamps plus timed flashes and the lamp-test overlay.

    A lamp reads lit if it is latched, currently flashing, or a lamp test
    is running. Flashes are counted so overlapping flashes of the same
    lamp end with the last one.
    """

    timers: TimerQueue
    latched: Indicators = field(default_factory=initial_indicators)
    lamp_test: bool = False
    _flashing: dict[IndicatorName, int] = field(default_factory=dict)

    def reset(self) -> None:
        self.latched = initial_indicators()
        self.lamp_test = False
        self._flashing.clear()

    def set(self, name: IndicatorName, on: bool) -> None:
        self.latched[name] = on

    def is_lit(self, name: IndicatorName) -> bool:
        return self.lamp_test or self.latched[name] or self._flashing.get(name, 0) > 0

    def flash(self, name: IndicatorName, duration: float) -> None:
        """Light ``name`` for ``duration`` seconds of host time."""
        self._flashing[name] = self._flashing.get(name, 0) + 1
        self.timers.schedule(duration, lambda: self._end_flash(name))

    def _end_flash(self, name: IndicatorName) -> None:
        count = self._flashing.get(name, 0) - 1
        if count > 0:
            self._flashing[name] = count
        else:
            self._flashing.pop(name, None)

    def apply_derived(self, program: str, flight: FlightState, low_fuel_threshold: float) -> None:
        self.latched = derive_indicators(self.latched, program, flight, low_fuel_threshold)

    def snapshot(self) -> Indicators:
        if self.lamp_test:
            return all_lamps_on()
        return {name: self.is_lit(name) for name in IndicatorName}
