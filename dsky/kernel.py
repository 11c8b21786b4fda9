"""Guidance computer kernel: the single entry point for hosts.

The kernel wires the command interpreter, flight model, scenario event
engine, indicator panel, mission clock and advisory link together and
exposes three inputs and a set of read-only snapshots:

    kernel.load_scenario(...)   # reset everything to a scenario
    kernel.handle_key(key)      # one keypad event
    kernel.advance(dt)          # host time elapsed since the last call

Everything runs on the caller's thread. Keypresses and ticks must be
serialized by the host; no locking is done here.

Example:
    >>> from dsky import GuidanceKernel, Key
    >>>
    >>> kernel = GuidanceKernel()
    >>> kernel.load_scenario("apollo11_landing")
    >>> for key in ["VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR", Key.PRO]:
    ...     kernel.handle_key(key)
    >>> while kernel.flight_state().active:
    ...     kernel.advance(0.1)
    >>> kernel.mission_log()[-1].message
    'THE EAGLE HAS LANDED'
"""

import logging
from concurrent.futures import Executor
from typing import Any, Callable

from dsky.advisory import Advisor, AdvisoryChannel
from dsky.clock import MissionClock
from dsky.computer.display import CommandState
from dsky.computer.indicators import IndicatorPanel, Indicators, OverflowMonitor
from dsky.computer.interpreter import CommandInterpreter, InterpreterMode
from dsky.config import KernelConfig
from dsky.constants import IndicatorName, Key
from dsky.dynamics.flight_model import FlightHistory, FlightModel
from dsky.dynamics.state import FlightState, GroundContact
from dsky.mission_log import LogEntry, MissionLog, Role
from dsky.scenario.events import EventEngine, EventKind, EventOutcome
from dsky.scenario.library import Scenario, ScenarioLibrary
from dsky.timers import TimerQueue

logger = logging.getLogger(__name__)


class GuidanceKernel:
    """Command/telemetry simulation kernel.

    Attributes:
        config: Kernel configuration
        library: Scenarios loadable by id
        scenario: Currently loaded scenario, or None
    """

    def __init__(
        self,
        config: KernelConfig | None = None,
        library: ScenarioLibrary | None = None,
        advisor: Advisor | None = None,
        advisory_executor: Executor | None = None,
        log_clock: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or KernelConfig()
        self.library = library if library is not None else ScenarioLibrary.with_defaults()
        self.scenario: Scenario | None = None

        self._timers = TimerQueue()
        self._clock = MissionClock()
        self._log = MissionLog(clock=log_clock) if log_clock is not None else MissionLog()
        self._flight = FlightModel(FlightState(), self.config.flight)
        self._panel = IndicatorPanel(self._timers)
        self._advisory = AdvisoryChannel(
            advisor,
            executor=advisory_executor,
            timeout=self.config.timing.advisory_timeout,
        )
        self._events = EventEngine(stop_on_terminal=self.config.stop_on_terminal)
        self._overflow = OverflowMonitor() if self.config.overflow_alarm else None
        self._interpreter = CommandInterpreter(
            flight=self._flight,
            panel=self._panel,
            log=self._log,
            timers=self._timers,
            clock=self._clock,
            advisory=self._advisory,
            flight_config=self.config.flight,
            timing=self.config.timing,
        )

        self._log.append(Role.GROUND, "SYSTEM READY. AWAITING COMMANDS.")

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def load_scenario(self, scenario: "Scenario | str | dict[str, Any]") -> Scenario:
        """Reset all mission state to a scenario.

        Args:
            scenario: A template, a library id, or an interchange record

        Returns:
            The loaded template

        Raises:
            ScenarioValidationError: malformed record; nothing is changed
            UnknownScenarioError: id not in the library; nothing is changed
        """
        if isinstance(scenario, str):
            scenario = self.library.get(scenario)
        elif isinstance(scenario, dict):
            scenario = Scenario.from_dict(scenario)

        initial = scenario.initial_state
        self._timers.clear()
        self._flight.reset(initial.flight_state())
        self._interpreter.reset(initial.program, initial.verb, initial.noun)
        self._panel.reset()
        self._clock.start(initial.mission_time)
        self._events = EventEngine.from_templates(
            scenario.events, stop_on_terminal=self.config.stop_on_terminal,
        )
        self.scenario = scenario

        logger.info("Loaded scenario %r", scenario.id)
        self._interpreter.announce(Role.GROUND, f"MISSION LOADED: {scenario.name}")
        if scenario.description:
            self._interpreter.announce(Role.GROUND, scenario.description[:30] + "...")
        return scenario

    def handle_key(self, key: "Key | str | int") -> None:
        """Feed one keypad event to the command interpreter."""
        self._interpreter.handle_key(key)

    def advance(self, dt: float) -> None:
        """Advance timers, the mission clock and the flight by ``dt`` seconds.

        Raises:
            ValueError: if ``dt`` is negative
        """
        if dt < 0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        dt = float(dt)

        self._timers.advance(dt)
        self._clock.tick(dt)
        if self._flight.advance(dt) > 0.0:
            self._after_step()

        for text in self._advisory.poll(self._timers.now):
            self._interpreter.announce(Role.GROUND, text)

    # -------------------------------------------------------------------------
    # Tick Processing
    # -------------------------------------------------------------------------

    def _after_step(self) -> None:
        state = self._flight.get_state()

        for outcome in self._events.evaluate(state):
            self._apply_outcome(outcome)

        contact = self._flight.resolve_ground()
        if contact is not None:
            self._apply_contact(contact)

        flight = self._flight.state
        if flight.active:
            program = self._interpreter.state.program
            if self._overflow is not None and self._overflow.triggered(
                flight, self._interpreter.state.alarm_code is not None,
            ):
                self._interpreter.raise_alarm(self._overflow.code, self._overflow.message)
            self._panel.apply_derived(
                program, flight, self.config.flight.low_fuel_threshold,
            )

        self._interpreter.refresh_registers()

    def _apply_outcome(self, outcome: EventOutcome) -> None:
        if outcome.kind is EventKind.ALARM:
            self._interpreter.raise_alarm(
                outcome.code or "", f"ALARM {outcome.code}. {outcome.message}",
            )
            return

        self._flight.end_mission()
        self._interpreter.announce(Role.GROUND, outcome.message)
        if outcome.kind is EventKind.SUCCESS:
            self._panel.set(IndicatorName.UPLINK_ACTY, True)
        else:
            self._panel.set(IndicatorName.OPR_ERR, True)
        logger.info("Mission ended: %s (%s)", outcome.kind.value, outcome.message)

    def _apply_contact(self, contact: GroundContact) -> None:
        if contact is GroundContact.CRASH:
            self._interpreter.announce(
                Role.GROUND, f"CRASH. VEL: {self._flight.state.velocity:.1f} M/S",
            )
            self._panel.set(IndicatorName.OPR_ERR, True)
        else:
            self._interpreter.announce(Role.GROUND, "TOUCHDOWN. ENGINE STOP.")
            self._panel.set(IndicatorName.UPLINK_ACTY, True)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def command_state(self) -> CommandState:
        """Copy of the display state."""
        return self._interpreter.state.copy()

    def flight_state(self) -> FlightState:
        """Copy of the flight state."""
        return self._flight.get_state()

    def indicators(self) -> Indicators:
        """Current lamp state."""
        return self._panel.snapshot()

    def mission_log(self) -> tuple[LogEntry, ...]:
        """All log entries, oldest first."""
        return self._log.entries()

    @property
    def log(self) -> MissionLog:
        return self._log

    @property
    def mode(self) -> InterpreterMode:
        return self._interpreter.mode

    @property
    def pending_confirmation(self):
        """The action waiting for PRO, or None."""
        return self._interpreter.pending

    @property
    def mission_time(self) -> str:
        """Mission elapsed time as ``GET hh:mm:ss``."""
        return self._clock.format()

    @property
    def elapsed_seconds(self) -> int:
        return self._clock.elapsed_seconds

    @property
    def advisories_pending(self) -> int:
        return self._advisory.pending

    def flight_history(self) -> FlightHistory:
        return self._flight.get_history()

    def scenario_events(self):
        """Runtime copies of the loaded scenario's events."""
        return list(self._events.events)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        self._advisory.close()

    def __enter__(self) -> "GuidanceKernel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
