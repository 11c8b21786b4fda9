"""Keypad command interpreter.

A finite-state machine over keypad events. The operator builds a
two-digit verb and noun, and the pair is dispatched as a command when
one of them is entered while the other is already set:

    VERB 3 7 ENTR  NOUN 6 3 ENTR    -> V37 N63: run program 63
    PRO                             -> confirm the armed ignition
    RSET                            -> clear an alarm

States:
    IDLE                   nothing in progress
    ENTERING_VERB          digits go into the verb field
    ENTERING_NOUN          digits go into the noun field
    AWAITING_CONFIRMATION  an action is armed and waits for PRO
    PRIORITY_LOCKED        an alarm holds the display; only RSET is accepted

Input errors never raise. They light OPR ERR, are logged, and leave the
state untouched.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from dsky.advisory import AdvisoryChannel
from dsky.clock import MissionClock
from dsky.computer.confirmation import Ignition, PendingConfirmation
from dsky.computer.display import CommandState, render_registers
from dsky.computer.indicators import IndicatorPanel
from dsky.config import FlightConfig, TimingConfig
from dsky.constants import (
    FLIGHT_MONITOR,
    LAMP_TEST_REGISTER,
    MONITOR_VERBS,
    NOUN_CHECKLIST_ACTION,
    PROGRAM_BRAKING,
    PROGRAM_CODES,
    PROGRAM_IDLE,
    PROGRAM_MANUAL,
    UNSET,
    VERB_LAMP_TEST,
    VERB_MONITOR_DECIMAL,
    VERB_PLEASE_PERFORM,
    VERB_RUN_PROGRAM,
    ZERO_REGISTER,
    IndicatorName,
    Key,
    describe_noun,
    describe_verb,
    normalize_key,
)
from dsky.dynamics.flight_model import FlightModel
from dsky.mission_log import MissionLog, Role
from dsky.timers import TimerQueue

logger = logging.getLogger(__name__)

# Thrust applied on ignition, per program
IGNITION_THRUST = {
    PROGRAM_BRAKING: 10.0,
    PROGRAM_MANUAL: 0.0,
}


class InterpreterMode(Enum):
    IDLE = "IDLE"
    ENTERING_VERB = "ENTERING_VERB"
    ENTERING_NOUN = "ENTERING_NOUN"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    PRIORITY_LOCKED = "PRIORITY_LOCKED"


@dataclass
class _Entry:
    """Verb or noun field being typed."""

    field: str          # "verb" or "noun"
    committed: str      # value restored if the entry is abandoned
    buffer: str = ""


class CommandInterpreter:
    """Turns keypresses into display changes and flight directives.

    The interpreter owns the :class:`CommandState`. It never writes
    altitude, velocity or fuel; it asks the flight model to ignite, shut
    down or change thrust.
    """

    def __init__(
        self,
        flight: FlightModel,
        panel: IndicatorPanel,
        log: MissionLog,
        timers: TimerQueue,
        clock: MissionClock,
        advisory: AdvisoryChannel,
        flight_config: FlightConfig | None = None,
        timing: TimingConfig | None = None,
    ) -> None:
        self.flight = flight
        self.panel = panel
        self.log = log
        self.timers = timers
        self.clock = clock
        self.advisory = advisory
        self.flight_config = flight_config or FlightConfig()
        self.timing = timing or TimingConfig()

        self.state = CommandState()
        self.pending: PendingConfirmation | None = None
        self._entry: _Entry | None = None
        self._lamp_test_registers: tuple[str, str, str] | None = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> InterpreterMode:
        if self.state.priority_lock:
            return InterpreterMode.PRIORITY_LOCKED
        if self._entry is not None:
            if self._entry.field == "verb":
                return InterpreterMode.ENTERING_VERB
            return InterpreterMode.ENTERING_NOUN
        if self.pending is not None:
            return InterpreterMode.AWAITING_CONFIRMATION
        return InterpreterMode.IDLE

    def reset(self, program: str = UNSET, verb: str = UNSET, noun: str = UNSET) -> None:
        """Fresh display for a newly loaded scenario."""
        self.state = CommandState(program=program, verb=verb, noun=noun)
        self.pending = None
        self._entry = None
        self._lamp_test_registers = None

    def announce(self, role: Role, message: str) -> None:
        """Append to the mission log; ground messages flash UPLINK ACTY."""
        self.log.append(role, message)
        if role is Role.GROUND:
            self.panel.flash(IndicatorName.UPLINK_ACTY, self.timing.uplink_flash)

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def handle_key(self, key: "Key | str | int") -> None:
        """Process one keypress.

        Raises:
            ValueError: if ``key`` is not a keypad key
        """
        key = normalize_key(key)
        logger.debug("Key %s in %s", getattr(key, "value", key), self.mode.value)

        if self.state.priority_lock:
            self._handle_locked(key)
            return

        self.panel.set(IndicatorName.OPR_ERR, False)

        if not isinstance(key, Key):
            self._digit(key)
            return

        handler = {
            Key.VERB: self._begin_verb,
            Key.NOUN: self._begin_noun,
            Key.ENTR: self._enter,
            Key.CLR: self._clear,
            Key.KEY_REL: self._key_release,
            Key.PRO: self._proceed,
            Key.RSET: self._reset_alarm,
            Key.THRUST_UP: self._thrust_up,
            Key.THRUST_DOWN: self._thrust_down,
            Key.LAMP_TEST: self._lamp_test_key,
        }[key]
        handler()

    def _handle_locked(self, key: "Key | str") -> None:
        if key is Key.RSET:
            self._reset_alarm()
        elif key is Key.PRO:
            # Alarms clear with RSET only
            self._flash_activity()
        else:
            self._operator_error(f"key {getattr(key, 'value', key)} rejected during alarm")

    def _begin_verb(self) -> None:
        self._begin_entry("verb")

    def _begin_noun(self) -> None:
        self._begin_entry("noun")

    def _begin_entry(self, name: str) -> None:
        self._abandon_entry()
        self._entry = _Entry(field=name, committed=getattr(self.state, name))
        setattr(self.state, name, "")

    def _digit(self, digit: str) -> None:
        entry = self._entry
        if entry is None or len(entry.buffer) >= 2:
            return
        entry.buffer += digit
        setattr(self.state, entry.field, entry.buffer)

    def _enter(self) -> None:
        entry = self._entry
        if entry is None:
            self.dispatch(self.state.verb, self.state.noun)
            return

        code = entry.buffer.zfill(2)
        setattr(self.state, entry.field, code)
        self._entry = None

        other = self.state.noun if entry.field == "verb" else self.state.verb
        if other != UNSET:
            verb, noun = (code, other) if entry.field == "verb" else (other, code)
            self.dispatch(verb, noun)

    def _clear(self) -> None:
        self._abandon_entry()

    def _key_release(self) -> None:
        self._abandon_entry()
        self.log.append(Role.OPERATOR, "KEY REL")

    def _abandon_entry(self) -> None:
        if self._entry is not None:
            setattr(self.state, self._entry.field, self._entry.committed)
            self._entry = None

    def _proceed(self) -> None:
        self._flash_activity()
        pending = self.pending
        if pending is None:
            self.log.append(Role.OPERATOR, "PROCEED")
            return

        self.pending = None
        self._entry = None
        if isinstance(pending, Ignition):
            self.flight.ignite(pending.thrust)
            self.announce(Role.GROUND, pending.announcement)
            self.state.verb, self.state.noun = FLIGHT_MONITOR
            self.refresh_registers()
            logger.info("Confirmed %s for P%s", pending.action, pending.program)

    def _reset_alarm(self) -> None:
        self._entry = None
        self.state.clear_alarm()
        self.state.verb, self.state.noun = FLIGHT_MONITOR
        for name in (IndicatorName.OPR_ERR, IndicatorName.PROG, IndicatorName.VEL):
            self.panel.set(name, False)
        self.log.append(Role.OPERATOR, "RSET")
        self.refresh_registers()

    def _thrust_up(self) -> None:
        thrust = self.flight.adjust_thrust(self.flight_config.thrust_step)
        logger.debug("Thrust %.0f%%", thrust)

    def _thrust_down(self) -> None:
        thrust = self.flight.adjust_thrust(-self.flight_config.thrust_step)
        logger.debug("Thrust %.0f%%", thrust)

    def _lamp_test_key(self) -> None:
        self.dispatch(VERB_LAMP_TEST, UNSET)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def dispatch(self, verb: str, noun: str) -> None:
        """Execute a verb/noun pair."""
        self._flash_activity()
        if verb != VERB_MONITOR_DECIMAL:
            self.log.append(Role.OPERATOR, f"CMD: {describe_verb(verb)} / {describe_noun(noun)}")

        if verb == VERB_RUN_PROGRAM:
            self._run_program(noun)
        elif verb == VERB_LAMP_TEST:
            self._start_lamp_test()
        elif verb in MONITOR_VERBS and render_registers(noun, self.flight.state) is not None:
            self.refresh_registers()
        else:
            self.advisory.request(
                self.flight.get_state(), self.state.program, verb, noun, now=self.timers.now,
            )

    def _run_program(self, program: str) -> None:
        if program not in PROGRAM_CODES:
            self._operator_error(f"unknown program {program}")
            return

        self.state.program = program
        self.announce(Role.GROUND, f"PROG CHANGE: P{program}")
        logger.info("Program change to P%s", program)

        if program == PROGRAM_BRAKING:
            self._arm(Ignition(program=program, thrust=IGNITION_THRUST[program]))
        elif program == PROGRAM_MANUAL:
            if self.flight.state.active:
                self.announce(Role.GROUND, "P66 MANUAL ENABLED. YOU HAVE CONTROL.")
            else:
                self._arm(Ignition(program=program, thrust=IGNITION_THRUST[program]))
        elif program == PROGRAM_IDLE:
            self.flight.shutdown()
            self.pending = None
            self.announce(Role.GROUND, "P00 IDLE. ENGINE OFF.")

    def _arm(self, action: PendingConfirmation) -> None:
        self.pending = action
        self.state.verb = VERB_PLEASE_PERFORM
        self.state.noun = NOUN_CHECKLIST_ACTION
        self._show_registers("+000" + action.program, ZERO_REGISTER, ZERO_REGISTER)
        self.announce(Role.GROUND, f"P{action.program} SELECTED. PLEASE PERFORM (PRO).")

    def _start_lamp_test(self) -> None:
        if self.panel.lamp_test:
            return
        self._lamp_test_registers = self.state.registers
        self.panel.lamp_test = True
        self.state.set_registers(LAMP_TEST_REGISTER, LAMP_TEST_REGISTER, LAMP_TEST_REGISTER)
        self.timers.schedule(self.timing.lamp_test_duration, self._end_lamp_test)

    def _end_lamp_test(self) -> None:
        self.panel.lamp_test = False
        saved, self._lamp_test_registers = self._lamp_test_registers, None
        if saved is not None and not self.state.priority_lock:
            self.state.set_registers(*saved)
            self.refresh_registers()

    # -------------------------------------------------------------------------
    # Alarms and Display
    # -------------------------------------------------------------------------

    def raise_alarm(self, code: str, message: str) -> None:
        """Hijack the display with an alarm and log it."""
        self._entry = None
        self.state.show_alarm(code)
        self.panel.set(IndicatorName.OPR_ERR, True)
        self.panel.set(IndicatorName.PROG, True)
        self.announce(Role.GROUND, message)
        logger.warning("Alarm %s raised", code)

    def refresh_registers(self) -> None:
        """Re-render monitored registers from current telemetry."""
        if self.state.priority_lock or self.state.verb not in MONITOR_VERBS:
            return
        registers = render_registers(
            self.state.noun, self.flight.state, self.clock.elapsed_seconds,
        )
        if registers is not None:
            self._show_registers(*registers)

    def _show_registers(self, r1: str, r2: str, r3: str) -> None:
        # A running lamp test owns the live registers until it ends
        if self._lamp_test_registers is not None:
            self._lamp_test_registers = (r1, r2, r3)
        else:
            self.state.set_registers(r1, r2, r3)

    def _flash_activity(self) -> None:
        self.panel.flash(IndicatorName.COMP_ACTY, self.timing.comp_acty_flash)

    def _operator_error(self, reason: str) -> None:
        self.panel.set(IndicatorName.OPR_ERR, True)
        logger.warning("Operator error: %s", reason)
