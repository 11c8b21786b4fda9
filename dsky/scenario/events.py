"""Declarative one-shot threshold rules evaluated against flight telemetry.

A scenario carries an ordered list of events such as "alarm 1202 below
33 km" or "success at the surface". Each tick the engine compares every
unfired event with the freshly integrated state; an event that matches is
marked fired for the rest of the run and reported exactly once.

Example:
    >>> from dsky.scenario.events import EventEngine, ScenarioEvent
    >>>
    >>> engine = EventEngine([
    ...     ScenarioEvent("altitude", "<", 33000.0, "ALARM", code="1202"),
    ...     ScenarioEvent("altitude", "<=", 0.0, "SUCCESS", message="LANDED"),
    ... ])
    >>> outcomes = engine.evaluate(state)
"""

import logging
import operator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from beartype import beartype

from dsky.dynamics.state import FlightState

logger = logging.getLogger(__name__)


# =============================================================================
# Rule Vocabulary
# =============================================================================


class Trigger(str, Enum):
    """Telemetry channel an event watches."""

    ALTITUDE = "altitude"
    VELOCITY = "velocity"
    FUEL = "fuel"


class Comparator(str, Enum):
    """Threshold comparison."""

    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    def compare(self, value: float, threshold: float) -> bool:
        return _COMPARATORS[self](value, threshold)


_COMPARATORS: dict[Comparator, Callable[[float, float], bool]] = {
    Comparator.LT: operator.lt,
    Comparator.LE: operator.le,
    Comparator.GT: operator.gt,
    Comparator.GE: operator.ge,
}


class EventKind(str, Enum):
    """Effect applied when an event fires."""

    ALARM = "ALARM"
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"

    @property
    def terminal(self) -> bool:
        return self is not EventKind.ALARM


# =============================================================================
# Events
# =============================================================================


@beartype
@dataclass
class ScenarioEvent:
    """A single threshold rule.

    String values are accepted for the enum fields and converted.

    Attributes:
        trigger: Telemetry channel to watch
        comparator: How the channel is compared with ``threshold``
        threshold: Threshold value in the channel's units
        kind: ALARM, SUCCESS or FAIL
        code: Alarm code shown in R1 (required for ALARM)
        message: Log text; a default is used when empty
        fired: Set once the rule has fired; never reset during a run
    """
    trigger: Trigger | str
    comparator: Comparator | str
    threshold: float
    kind: EventKind | str
    code: str | None = None
    message: str = ""
    fired: bool = False

    def __post_init__(self) -> None:
        """Normalize enum fields and check the alarm code."""
        self.trigger = Trigger(self.trigger)
        self.comparator = Comparator(self.comparator)
        self.kind = EventKind(self.kind)
        if self.kind is EventKind.ALARM and not self.code:
            raise ValueError("ALARM events require a code")

    def matches(self, state: FlightState) -> bool:
        """True if the rule's condition holds for ``state``."""
        return self.comparator.compare(state.value_of(self.trigger.value), self.threshold)

    def fresh_copy(self) -> "ScenarioEvent":
        """Unfired copy for a new run; the template is left untouched."""
        return replace(self, fired=False)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "trigger": self.trigger.value,
            "op": self.comparator.value,
            "val": self.threshold,
            "type": self.kind.value,
        }
        if self.code is not None:
            data["code"] = self.code
        if self.message:
            data["msg"] = self.message
        return data


@dataclass(frozen=True)
class EventOutcome:
    """A fired event, reported to the kernel for its side effects."""

    kind: EventKind
    code: str | None
    message: str

    @property
    def terminal(self) -> bool:
        return self.kind.terminal


_DEFAULT_MESSAGES = {
    EventKind.ALARM: "SYSTEM ERROR",
    EventKind.SUCCESS: "MISSION SUCCESS",
    EventKind.FAIL: "MISSION FAILURE",
}


# =============================================================================
# Engine
# =============================================================================


@dataclass
class EventEngine:
    """Evaluates the runtime event list of the loaded scenario.

    The engine owns its events: construct it with copies (see
    :meth:`from_templates`) so firing never marks the stored scenario.

    Attributes:
        events: Runtime events in declared order
        stop_on_terminal: Stop evaluating on a tick once SUCCESS/FAIL fires
    """
    events: list[ScenarioEvent] = field(default_factory=list)
    stop_on_terminal: bool = True

    @classmethod
    def from_templates(
        cls,
        templates: "list[ScenarioEvent] | tuple[ScenarioEvent, ...]",
        stop_on_terminal: bool = True,
    ) -> "EventEngine":
        """Build an engine over fresh copies of template events."""
        return cls(
            events=[event.fresh_copy() for event in templates],
            stop_on_terminal=stop_on_terminal,
        )

    def evaluate(self, state: FlightState) -> list[EventOutcome]:
        """Fire every unfired event whose condition holds for ``state``.

        All events are checked against the same snapshot, in declared
        order.

        Returns:
            Outcomes of the events fired on this call, in order
        """
        outcomes: list[EventOutcome] = []
        for event in self.events:
            if event.fired or not event.matches(state):
                continue

            event.fired = True
            outcome = EventOutcome(
                kind=event.kind,
                code=event.code,
                message=event.message or _DEFAULT_MESSAGES[event.kind],
            )
            logger.info(
                "Scenario event fired: %s %s %s -> %s",
                event.trigger.value, event.comparator.value, event.threshold,
                event.kind.value,
            )
            outcomes.append(outcome)

            if outcome.terminal and self.stop_on_terminal:
                break
        return outcomes

    @property
    def pending(self) -> list[ScenarioEvent]:
        """Events that have not fired yet."""
        return [event for event in self.events if not event.fired]
