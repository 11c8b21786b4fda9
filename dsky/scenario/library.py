"""Scenario templates, validation and the in-memory scenario library.

A scenario is an immutable template: initial flight values, optional
initial display codes and an ordered tuple of events. Loading a scenario
into the kernel never hands out the template's event objects; runtime
copies are made instead.

Scenario records use the interchange shape::

    {
        "id": "apollo11_landing",
        "name": "Apollo 11: The Eagle Landing",
        "description": "...",
        "initialState": {"prog": "63", "verb": "06", "noun": "62",
                         "altitude": 40000, "velocity": -500, "fuel": 100},
        "events": [{"trigger": "altitude", "op": "<", "val": 33000,
                    "type": "ALARM", "code": "1202"}]
    }

Example:
    >>> from dsky.scenario import ScenarioLibrary
    >>>
    >>> library = ScenarioLibrary.with_defaults()
    >>> scenario = library.import_json(open("custom.json").read())
    >>> library.get("apollo11_landing").name
    'Apollo 11: The Eagle Landing'
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from beartype import beartype

from dsky.constants import UNSET
from dsky.dynamics.state import FlightState
from dsky.scenario.events import ScenarioEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class ScenarioValidationError(ValueError):
    """A scenario record is malformed and was not loaded."""


class UnknownScenarioError(KeyError):
    """No scenario with the requested id is in the library."""


# =============================================================================
# Templates
# =============================================================================


@beartype
@dataclass(frozen=True)
class InitialState:
    """Values a scenario starts from.

    Attributes:
        altitude: Initial altitude [m]
        velocity: Initial vertical velocity [m/s]
        fuel: Initial fuel [%]
        program: Initial program code
        verb: Initial verb code
        noun: Initial noun code
        mission_time: Initial mission elapsed time [s]
    """
    altitude: float
    velocity: float
    fuel: float
    program: str = UNSET
    verb: str = UNSET
    noun: str = UNSET
    mission_time: int = 0

    def flight_state(self) -> FlightState:
        """Fresh flight state: engine off, integrator stopped."""
        return FlightState(
            altitude=self.altitude,
            velocity=self.velocity,
            fuel=self.fuel,
            thrust=0.0,
            active=False,
        )


@beartype
@dataclass(frozen=True)
class Scenario:
    """Immutable scenario template.

    Attributes:
        id: Unique identifier
        name: Display name
        initial_state: Starting values
        events: Ordered template events
        description: Optional free text
    """
    id: str
    name: str
    initial_state: InitialState
    events: tuple[ScenarioEvent, ...] = ()
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Scenario":
        """Validate an interchange record and build a template.

        Raises:
            ScenarioValidationError: if the record is malformed
        """
        if not isinstance(data, dict):
            raise ScenarioValidationError("Scenario record must be an object")

        for key in ("id", "name", "initialState"):
            if not data.get(key):
                raise ScenarioValidationError(f"Scenario record missing {key!r}")

        raw_events = data.get("events") or []
        if not isinstance(raw_events, list):
            raise ScenarioValidationError("'events' must be a list")

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            initial_state=_parse_initial_state(data["initialState"]),
            events=tuple(
                _parse_event(raw, index) for index, raw in enumerate(raw_events)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Interchange record for this template."""
        initial = self.initial_state
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "initialState": {
                "prog": initial.program,
                "verb": initial.verb,
                "noun": initial.noun,
                "altitude": initial.altitude,
                "velocity": initial.velocity,
                "fuel": initial.fuel,
            },
            "events": [event.to_dict() for event in self.events],
        }
        if initial.mission_time:
            data["initialState"]["missionTime"] = initial.mission_time
        if self.description:
            data["description"] = self.description
        return data


# =============================================================================
# Parsing Helpers
# =============================================================================


def _number(record: dict[str, Any], key: str, where: str) -> float:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScenarioValidationError(f"{where}: {key!r} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ScenarioValidationError(f"{where}: {key!r} must be finite")
    return value


def _code(record: dict[str, Any], key: str, where: str) -> str:
    value = record.get(key)
    if value is None or value == "":
        return UNSET
    text = str(value)
    if not text.isdigit() or len(text) > 2:
        raise ScenarioValidationError(f"{where}: {key!r} must be a 2-digit code, got {value!r}")
    return text.zfill(2)


def _parse_initial_state(raw: Any) -> InitialState:
    where = "initialState"
    if not isinstance(raw, dict):
        raise ScenarioValidationError(f"{where} must be an object")

    altitude = _number(raw, "altitude", where)
    velocity = _number(raw, "velocity", where)
    fuel = _number(raw, "fuel", where)
    if altitude < 0.0:
        raise ScenarioValidationError(f"{where}: altitude must be >= 0")
    if not 0.0 <= fuel <= 100.0:
        raise ScenarioValidationError(f"{where}: fuel must be within [0, 100]")

    mission_time = 0
    if raw.get("missionTime") is not None:
        mission_time = int(_number(raw, "missionTime", where))
        if mission_time < 0:
            raise ScenarioValidationError(f"{where}: missionTime must be >= 0")

    return InitialState(
        altitude=altitude,
        velocity=velocity,
        fuel=fuel,
        program=_code(raw, "prog", where),
        verb=_code(raw, "verb", where),
        noun=_code(raw, "noun", where),
        mission_time=mission_time,
    )


def _parse_event(raw: Any, index: int) -> ScenarioEvent:
    where = f"events[{index}]"
    if not isinstance(raw, dict):
        raise ScenarioValidationError(f"{where} must be an object")

    code = raw.get("code")
    try:
        return ScenarioEvent(
            trigger=str(raw.get("trigger")),
            comparator=str(raw.get("op")),
            threshold=_number(raw, "val", where),
            kind=str(raw.get("type")),
            code=None if code is None else str(code),
            message=str(raw.get("msg") or ""),
        )
    except ValueError as err:
        raise ScenarioValidationError(f"{where}: {err}") from err


# =============================================================================
# Built-in Scenarios
# =============================================================================


DEFAULT_SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="apollo11_landing",
        name="Apollo 11: The Eagle Landing",
        description="Historical simulation of the Apollo 11 landing. Watch out for 1202 alarms.",
        initial_state=InitialState(
            altitude=40000.0, velocity=-500.0, fuel=100.0,
            program="63", verb="06", noun="62",
        ),
        events=(
            ScenarioEvent("altitude", "<", 33000.0, "ALARM", code="1202"),
            ScenarioEvent("altitude", "<=", 0.0, "SUCCESS", message="THE EAGLE HAS LANDED"),
        ),
    ),
    Scenario(
        id="manual_descent",
        name="P66 Manual Descent",
        description="Take control in the final phase. Don't run out of fuel.",
        initial_state=InitialState(
            altitude=3000.0, velocity=-20.0, fuel=40.0,
            program="66", verb="16", noun="62",
        ),
        events=(
            ScenarioEvent("fuel", "<=", 0.0, "FAIL", message="FUEL EXHAUSTED. ABORT."),
            ScenarioEvent("altitude", "<=", 0.0, "SUCCESS", message="TOUCHDOWN CONFIRMED"),
        ),
    ),
    Scenario(
        id="orbit",
        name="Lunar Orbit (Idle)",
        description="Safe orbit. System check.",
        initial_state=InitialState(
            altitude=110000.0, velocity=1600.0, fuel=100.0,
            program="00", verb="00", noun="00",
        ),
    ),
)


# =============================================================================
# Library
# =============================================================================


@dataclass
class ScenarioLibrary:
    """Ordered, id-keyed collection of scenario templates."""

    _scenarios: dict[str, Scenario] = field(default_factory=dict)

    @classmethod
    def with_defaults(cls) -> "ScenarioLibrary":
        library = cls()
        for scenario in DEFAULT_SCENARIOS:
            library.add(scenario)
        return library

    def add(self, scenario: Scenario) -> None:
        """Add a template, replacing any existing one with the same id."""
        if scenario.id in self._scenarios:
            logger.info("Replacing scenario %r", scenario.id)
        self._scenarios[scenario.id] = scenario

    def import_record(self, data: Any) -> Scenario:
        """Validate an interchange record and add it.

        Raises:
            ScenarioValidationError: if the record is malformed; the
                library is left unchanged
        """
        scenario = Scenario.from_dict(data)
        self.add(scenario)
        logger.info("Imported scenario %r (%s)", scenario.id, scenario.name)
        return scenario

    def import_json(self, text: str) -> Scenario:
        """Parse JSON text and import it as a scenario record."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as err:
            raise ScenarioValidationError(f"Invalid scenario JSON: {err}") from err
        return self.import_record(data)

    def get(self, scenario_id: str) -> Scenario:
        try:
            return self._scenarios[scenario_id]
        except KeyError:
            raise UnknownScenarioError(scenario_id) from None

    def ids(self) -> list[str]:
        return list(self._scenarios)

    def __contains__(self, scenario_id: object) -> bool:
        return scenario_id in self._scenarios

    def __iter__(self):
        return iter(self._scenarios.values())

    def __len__(self) -> int:
        return len(self._scenarios)
