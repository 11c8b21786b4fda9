"""Unit tests for the keypad command interpreter.

Keys are fed through the kernel so the interpreter runs against a real
flight model, lamp panel and timer queue.
"""

import pytest

from dsky import GuidanceKernel, IndicatorName, InterpreterMode, Key
from dsky.computer import Ignition
from dsky.constants import normalize_key


def press(kernel: GuidanceKernel, *keys) -> None:
    for key in keys:
        kernel.handle_key(key)


@pytest.fixture
def kernel():
    """Kernel on the idle orbit scenario (all codes 00, engine off)."""
    with GuidanceKernel(log_clock=lambda: "00:00:00") as k:
        k.load_scenario("orbit")
        yield k


@pytest.fixture
def apollo():
    """Kernel on the Apollo 11 scenario (P63, V06 N62, engine off)."""
    with GuidanceKernel(log_clock=lambda: "00:00:00") as k:
        k.load_scenario("apollo11_landing")
        yield k


def lit(kernel: GuidanceKernel, name: IndicatorName) -> bool:
    return kernel.indicators()[name]


# =============================================================================
# Key Identifier Tests
# =============================================================================


class TestNormalizeKey:
    """Test raw key identifiers."""

    def test_names_case_insensitive(self):
        assert normalize_key("pro") is Key.PRO
        assert normalize_key("key rel") is Key.KEY_REL

    def test_digits(self):
        assert normalize_key(7) == "7"
        assert normalize_key("0") == "0"

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            normalize_key("ABORT")

    def test_bool_is_not_a_digit(self):
        with pytest.raises(ValueError):
            normalize_key(True)

    def test_kernel_rejects_unknown_key(self, kernel):
        with pytest.raises(ValueError):
            kernel.handle_key("FOO")


# =============================================================================
# Verb/Noun Entry Tests
# =============================================================================


class TestEntry:
    """Test the verb/noun entry states."""

    def test_verb_key_blanks_field(self, kernel):
        press(kernel, Key.VERB)
        assert kernel.mode is InterpreterMode.ENTERING_VERB
        assert kernel.command_state().verb == ""

    def test_digits_echo_and_cap(self, kernel):
        press(kernel, "VERB", 3)
        assert kernel.command_state().verb == "3"

        press(kernel, 7, 5)
        assert kernel.command_state().verb == "37"

    def test_enter_pads_and_returns_to_idle(self, kernel):
        press(kernel, "VERB", 5, "ENTR")
        assert kernel.command_state().verb == "05"
        assert kernel.mode is InterpreterMode.IDLE

    def test_no_dispatch_while_other_field_unset(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR")
        assert not any(m.startswith("CMD:") for m in kernel.log.messages())

    def test_digit_in_idle_ignored(self, kernel):
        press(kernel, 4)
        assert kernel.command_state().verb == "00"
        assert kernel.command_state().noun == "00"

    def test_clear_restores_committed_value(self, apollo):
        press(apollo, "VERB", 3, "CLR")
        assert apollo.command_state().verb == "06"
        assert apollo.mode is InterpreterMode.IDLE

    def test_key_release_restores_and_logs(self, apollo):
        press(apollo, "NOUN", 1, "KEY_REL")
        assert apollo.command_state().noun == "62"
        assert apollo.log.messages()[-1] == "KEY REL"

    def test_switching_fields_restores(self, apollo):
        press(apollo, "VERB", 3, "NOUN")
        state = apollo.command_state()
        assert state.verb == "06"
        assert state.noun == ""
        assert apollo.mode is InterpreterMode.ENTERING_NOUN

    def test_enter_in_idle_redispatches(self, apollo):
        """Test ENTR with no entry re-runs the displayed V06 N62."""
        press(apollo, "ENTR")
        assert apollo.command_state().registers == ("-00500", "+00100", "+04000")

    def test_command_log_uses_dictionary(self, kernel):
        press(kernel, "VERB", 9, 9, "ENTR", "NOUN", 2, 3, "ENTR")
        assert "CMD: Confirm Burn / Burn Details" in kernel.log.messages()

    def test_unknown_codes_logged_as_unk(self, kernel):
        press(kernel, "VERB", 9, 8, "ENTR", "NOUN", 9, 8, "ENTR")
        assert "CMD: UNK / UNK" in kernel.log.messages()

    def test_monitor_verb_not_logged(self):
        with GuidanceKernel() as k:
            k.load_scenario("manual_descent")
            before = len(k.log)
            press(k, "ENTR")
            assert len(k.log) == before
            assert k.command_state().registers == ("-00020", "+00040", "+00300")


# =============================================================================
# Program Selection Tests
# =============================================================================


class TestPrograms:
    """Test V37 program changes and the PRO handshake."""

    def test_p63_arms_ignition(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR")

        state = kernel.command_state()
        assert kernel.mode is InterpreterMode.AWAITING_CONFIRMATION
        assert kernel.pending_confirmation == Ignition(program="63", thrust=10.0)
        assert state.program == "63"
        assert (state.verb, state.noun) == ("50", "25")
        assert state.r1 == "+00063"

        messages = kernel.log.messages()
        assert "CMD: Run Program / DeltaAlt/Rate/Alt" in messages
        assert "PROG CHANGE: P63" in messages
        assert messages[-1] == "P63 SELECTED. PLEASE PERFORM (PRO)."
        assert kernel.flight_state().active is False

    def test_pro_confirms_ignition(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR", "PRO")

        flight = kernel.flight_state()
        state = kernel.command_state()
        assert flight.active is True
        assert flight.thrust == 10.0
        assert (state.verb, state.noun) == ("16", "62")
        assert kernel.pending_confirmation is None
        assert kernel.mode is InterpreterMode.IDLE
        assert kernel.log.messages()[-1] == "IGNITION. AUTOMATIC BRAKING."

    def test_p66_inactive_arms_manual_ignition(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 6, "ENTR")
        assert kernel.pending_confirmation == Ignition(program="66", thrust=0.0)

        press(kernel, "PRO")
        assert kernel.flight_state().active is True
        assert kernel.flight_state().thrust == 0.0
        assert kernel.log.messages()[-1] == "IGNITION. MANUAL CONTROL."

    def test_p66_active_takes_control(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR", "PRO")
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 6, "ENTR")

        assert kernel.command_state().program == "66"
        assert kernel.pending_confirmation is None
        assert kernel.flight_state().thrust == 10.0
        assert kernel.log.messages()[-1] == "P66 MANUAL ENABLED. YOU HAVE CONTROL."

    def test_p00_shuts_down(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 6, "ENTR", "PRO", "THRUST_UP")
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 0, 0, "ENTR")

        flight = kernel.flight_state()
        assert kernel.command_state().program == "00"
        assert flight.active is False
        assert flight.thrust == 0.0
        assert kernel.log.messages()[-1] == "P00 IDLE. ENGINE OFF."

    def test_p64_changes_program_only(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 4, "ENTR")
        assert kernel.command_state().program == "64"
        assert kernel.pending_confirmation is None

    def test_unknown_program_rejected(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 4, 2, "ENTR")

        assert lit(kernel, IndicatorName.OPR_ERR)
        assert kernel.command_state().program == "00"
        assert "PROG CHANGE: P42" not in kernel.log.messages()

    def test_next_key_clears_operator_error(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 4, 2, "ENTR")
        press(kernel, "CLR")
        assert not lit(kernel, IndicatorName.OPR_ERR)

    def test_pro_without_pending(self, kernel):
        press(kernel, "PRO")
        assert kernel.log.messages()[-1] == "PROCEED"
        assert lit(kernel, IndicatorName.COMP_ACTY)
        assert kernel.flight_state().active is False


# =============================================================================
# Throttle Tests
# =============================================================================


class TestThrottle:
    """Test the thrust shortcuts."""

    def test_thrust_steps(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 6, "ENTR", "PRO")
        press(kernel, *["THRUST_UP"] * 3)
        assert kernel.flight_state().thrust == 15.0

        press(kernel, "THRUST_DOWN")
        assert kernel.flight_state().thrust == 10.0

    def test_thrust_clamped(self, kernel):
        press(kernel, *["THRUST_UP"] * 25)
        assert kernel.flight_state().thrust == 100.0

        press(kernel, *["THRUST_DOWN"] * 25)
        assert kernel.flight_state().thrust == 0.0


# =============================================================================
# Timed Lamp Tests
# =============================================================================


class TestTimedLamps:
    """Test activity flashes and the lamp test."""

    def test_comp_acty_flash(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 4, "ENTR")
        assert lit(kernel, IndicatorName.COMP_ACTY)

        kernel.advance(0.2)
        assert not lit(kernel, IndicatorName.COMP_ACTY)

    def test_uplink_flash_on_ground_message(self, kernel):
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 4, "ENTR")
        assert lit(kernel, IndicatorName.UPLINK_ACTY)

        kernel.advance(0.5)
        assert not lit(kernel, IndicatorName.UPLINK_ACTY)

    def test_lamp_test(self, kernel):
        press(kernel, "LAMP_TEST")

        assert all(kernel.indicators().values())
        assert kernel.command_state().registers == ("+88888",) * 3
        assert "CMD: Lamp Test / Not Applicable" in kernel.log.messages()

        kernel.advance(1.0)
        assert all(kernel.indicators().values())

        kernel.advance(0.6)
        lamps = kernel.indicators()
        assert kernel.command_state().registers == ("+00000",) * 3
        assert lamps[IndicatorName.STBY]
        assert not lamps[IndicatorName.COMP_ACTY]
        assert not lamps[IndicatorName.OPR_ERR]

    def test_program_armed_during_lamp_test(self, kernel):
        """Test the please-perform display survives the end of a lamp test."""
        press(kernel, "LAMP_TEST")
        press(kernel, "VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR")
        assert kernel.command_state().registers == ("+88888",) * 3

        kernel.advance(2.0)

        state = kernel.command_state()
        assert (state.verb, state.noun) == ("50", "25")
        assert state.registers == ("+00063", "+00000", "+00000")
        assert kernel.pending_confirmation == Ignition(program="63", thrust=10.0)

    def test_monitor_selected_during_lamp_test(self, apollo):
        press(apollo, "LAMP_TEST", "ENTR")
        assert apollo.command_state().registers == ("+88888",) * 3

        apollo.advance(2.0)
        assert apollo.command_state().registers == ("-00500", "+00100", "+04000")

    def test_lamp_test_by_verb(self, kernel):
        press(kernel, "VERB", 3, 5, "ENTR", "NOUN", 0, "ENTR")
        assert all(kernel.indicators().values())
