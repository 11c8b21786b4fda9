"""Scenario templates and the one-shot event engine."""

from dsky.scenario.events import (
    Comparator,
    EventEngine,
    EventKind,
    EventOutcome,
    ScenarioEvent,
    Trigger,
)
from dsky.scenario.library import (
    DEFAULT_SCENARIOS,
    InitialState,
    Scenario,
    ScenarioLibrary,
    ScenarioValidationError,
    UnknownScenarioError,
)

__all__ = [
    # Events
    "Comparator",
    "EventEngine",
    "EventKind",
    "EventOutcome",
    "ScenarioEvent",
    "Trigger",
    # Library
    "DEFAULT_SCENARIOS",
    "InitialState",
    "Scenario",
    "ScenarioLibrary",
    "ScenarioValidationError",
    "UnknownScenarioError",
]
