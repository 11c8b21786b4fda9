"""Display, indicator lamps and the keypad command interpreter."""

from dsky.computer.confirmation import Ignition, PendingConfirmation
from dsky.computer.display import (
    NOUN_LAYOUTS,
    CommandState,
    Field,
    format_altitude,
    format_elapsed,
    format_percent,
    format_velocity,
    render_registers,
)
from dsky.computer.indicators import (
    IndicatorPanel,
    OverflowMonitor,
    all_lamps_on,
    derive_indicators,
    is_landing_program,
)
from dsky.computer.interpreter import CommandInterpreter, InterpreterMode

__all__ = [
    # Confirmation
    "Ignition",
    "PendingConfirmation",
    # Display
    "CommandState",
    "Field",
    "NOUN_LAYOUTS",
    "format_altitude",
    "format_elapsed",
    "format_percent",
    "format_velocity",
    "render_registers",
    # Indicators
    "IndicatorPanel",
    "OverflowMonitor",
    "all_lamps_on",
    "derive_indicators",
    "is_landing_program",
    # Interpreter
    "CommandInterpreter",
    "InterpreterMode",
]
