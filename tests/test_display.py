"""Unit tests for register formatting, lamp derivation and timed effects."""

import pytest

from dsky.clock import MissionClock, format_mission_time
from dsky.computer import (
    NOUN_LAYOUTS,
    CommandState,
    IndicatorPanel,
    OverflowMonitor,
    derive_indicators,
    format_altitude,
    format_elapsed,
    format_velocity,
    render_registers,
)
from dsky.constants import IndicatorName, describe_noun, describe_verb, initial_indicators
from dsky.dynamics import FlightState
from dsky.timers import TimerQueue

# =============================================================================
# Register Formatting Tests
# =============================================================================


class TestFormatting:
    """Test five-digit register formatting."""

    def test_velocity_sign(self):
        assert format_velocity(-500.0) == "-00500"
        assert format_velocity(12.4) == "+00012"
        assert format_velocity(0.0) == "+00000"

    def test_altitude_in_tens_of_meters(self):
        assert format_altitude(40000.0) == "+04000"
        assert format_altitude(5.0) == "+00000"

    def test_register_saturates(self):
        assert format_velocity(-250000.0) == "-99999"
        assert format_altitude(5.0e6) == "+99999"

    def test_elapsed_wraps(self):
        assert format_elapsed(75) == "+00075"
        assert format_elapsed(100005) == "+00005"


class TestNounLayouts:
    """Test the noun to register table."""

    @pytest.fixture
    def flight(self):
        return FlightState(altitude=2500.0, velocity=-42.0, fuel=37.0, thrust=55.0, active=True)

    def test_all_monitor_nouns_present(self):
        assert set(NOUN_LAYOUTS) == {"36", "43", "50", "60", "62", "68"}

    @pytest.mark.parametrize("noun,expected", [
        ("36", ("+00090", "-00042", "+00250")),
        ("43", ("+00000", "+00000", "+00250")),
        ("50", ("+00100", "+00010", "+00037")),
        ("60", ("+00000", "-00042", "+00250")),
        ("62", ("-00042", "+00037", "+00250")),
        ("68", ("+00250", "+00000", "-00042")),
    ])
    def test_layout(self, flight, noun, expected):
        assert render_registers(noun, flight, elapsed_seconds=90) == expected

    def test_unknown_noun_has_no_layout(self, flight):
        assert render_registers("94", flight) is None


class TestCommandState:
    """Test the alarm display."""

    def test_show_and_clear_alarm(self):
        state = CommandState(program="63", verb="16", noun="62")
        state.show_alarm("1202")

        assert state.priority_lock is True
        assert (state.verb, state.noun) == ("05", "09")
        assert state.registers == ("1202", "00000", "00000")

        state.clear_alarm()
        assert state.priority_lock is False
        assert state.alarm_code is None
        assert state.program == "63"

    def test_copy_is_independent(self):
        state = CommandState()
        copy = state.copy()
        copy.r1 = "+12345"
        assert state.r1 == "+00000"


class TestDictionary:
    def test_known_codes(self):
        assert describe_verb("37") == "Run Program"
        assert describe_noun("62") == "Vel/Alt/DeltaH"

    def test_unknown_codes(self):
        assert describe_verb("98") == "UNK"
        assert describe_noun("") == "UNK"


# =============================================================================
# Indicator Tests
# =============================================================================


class TestDeriveIndicators:
    """Test ALT/VEL derivation."""

    def test_landing_program_lights_alt_and_vel(self):
        lamps = derive_indicators(initial_indicators(), "63", FlightState(active=True))
        assert lamps[IndicatorName.ALT]
        assert lamps[IndicatorName.VEL]

    def test_idle_program(self):
        lamps = derive_indicators(initial_indicators(), "00", FlightState(active=True))
        assert not lamps[IndicatorName.ALT]
        assert not lamps[IndicatorName.VEL]

    def test_low_fuel_forces_vel(self):
        flight = FlightState(fuel=5.0, active=True)
        lamps = derive_indicators(initial_indicators(), "00", flight)
        assert lamps[IndicatorName.VEL]
        assert not lamps[IndicatorName.ALT]

    def test_low_fuel_ignored_when_inactive(self):
        lamps = derive_indicators(initial_indicators(), "00", FlightState(fuel=5.0))
        assert not lamps[IndicatorName.VEL]

    def test_latched_lamps_kept(self):
        latched = initial_indicators()
        latched[IndicatorName.OPR_ERR] = True
        lamps = derive_indicators(latched, "66", FlightState(active=True))

        assert lamps[IndicatorName.OPR_ERR]
        assert lamps[IndicatorName.STBY]
        assert not latched[IndicatorName.ALT]


class TestIndicatorPanel:
    """Test latched lamps, flashes and the lamp test overlay."""

    def test_flash_expires(self):
        timers = TimerQueue()
        panel = IndicatorPanel(timers)
        panel.flash(IndicatorName.COMP_ACTY, 0.1)

        assert panel.is_lit(IndicatorName.COMP_ACTY)
        timers.advance(0.1)
        assert not panel.is_lit(IndicatorName.COMP_ACTY)

    def test_overlapping_flashes_end_with_the_last(self):
        timers = TimerQueue()
        panel = IndicatorPanel(timers)
        panel.flash(IndicatorName.UPLINK_ACTY, 0.4)
        timers.advance(0.3)
        panel.flash(IndicatorName.UPLINK_ACTY, 0.4)

        timers.advance(0.2)
        assert panel.is_lit(IndicatorName.UPLINK_ACTY)
        timers.advance(0.3)
        assert not panel.is_lit(IndicatorName.UPLINK_ACTY)

    def test_flash_does_not_clear_latched(self):
        timers = TimerQueue()
        panel = IndicatorPanel(timers)
        panel.set(IndicatorName.UPLINK_ACTY, True)
        panel.flash(IndicatorName.UPLINK_ACTY, 0.4)
        timers.advance(1.0)
        assert panel.is_lit(IndicatorName.UPLINK_ACTY)

    def test_lamp_test_overlay(self):
        panel = IndicatorPanel(TimerQueue())
        panel.lamp_test = True
        assert all(panel.snapshot().values())

        panel.lamp_test = False
        assert panel.snapshot() == initial_indicators()


class TestOverflowMonitor:
    def test_triggered(self):
        monitor = OverflowMonitor()
        fast_low = FlightState(altitude=2000.0, velocity=-90.0, active=True)

        assert monitor.triggered(fast_low, alarm_showing=False)
        assert not monitor.triggered(fast_low, alarm_showing=True)
        assert not monitor.triggered(FlightState(altitude=4000.0, velocity=-90.0, active=True), False)
        assert not monitor.triggered(FlightState(altitude=2000.0, velocity=-50.0, active=True), False)


# =============================================================================
# Timer and Clock Tests
# =============================================================================


class TestTimerQueue:
    """Test one-shot callbacks on host time."""

    def test_fires_in_time_order(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(0.5, lambda: fired.append("late"))
        timers.schedule(0.2, lambda: fired.append("early"))

        assert timers.advance(0.1) == 0
        assert timers.advance(1.0) == 2
        assert fired == ["early", "late"]
        assert len(timers) == 0

    def test_equal_deadlines_fire_in_schedule_order(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(0.1, lambda: fired.append("first"))
        timers.schedule(0.1, lambda: fired.append("second"))

        timers.advance(0.1)
        assert fired == ["first", "second"]

    def test_clear_drops_pending(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(0.1, lambda: fired.append(1))
        timers.clear()

        assert len(timers) == 0
        timers.advance(1.0)
        assert fired == []


class TestMissionClock:
    def test_format(self):
        assert format_mission_time(0) == "GET 00:00:00"
        assert format_mission_time(3725) == "GET 01:02:05"

    def test_stopped_clock_does_not_tick(self):
        clock = MissionClock()
        clock.tick(10.0)
        assert clock.elapsed_seconds == 0

        clock.start(5)
        clock.tick(2.5)
        assert clock.elapsed_seconds == 7
        assert clock.format() == "GET 00:00:07"
