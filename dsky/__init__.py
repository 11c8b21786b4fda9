"""DSKY - Guidance computer display/keyboard emulator with a descent simulator.

The operator drives the computer with two-digit verb/noun commands, the
computer answers through three registers and a panel of lamps, and a
vertical flight model advances the lander while scenario events raise
alarms and decide the mission outcome.

Example:
    >>> from dsky import GuidanceKernel
    >>>
    >>> kernel = GuidanceKernel()
    >>> kernel.load_scenario("manual_descent")
    >>> for key in ["VERB", 3, 7, "ENTR", "NOUN", 6, 6, "ENTR", "PRO"]:
    ...     kernel.handle_key(key)
    >>> kernel.advance(0.1)
    >>> print(kernel.command_state().registers)
"""

__version__ = "0.1.0"

from dsky.advisory import Advisor, AdvisoryChannel, TelemetryAdvisor
from dsky.clock import MissionClock, format_mission_time
from dsky.computer import (
    CommandInterpreter,
    CommandState,
    Ignition,
    IndicatorPanel,
    InterpreterMode,
    PendingConfirmation,
    derive_indicators,
    render_registers,
)
from dsky.config import FlightConfig, KernelConfig, TimingConfig
from dsky.constants import IndicatorName, Key
from dsky.dynamics import FlightHistory, FlightModel, FlightState, GroundContact
from dsky.kernel import GuidanceKernel
from dsky.mission_log import LogEntry, MissionLog, Role
from dsky.scenario import (
    DEFAULT_SCENARIOS,
    EventEngine,
    EventKind,
    InitialState,
    Scenario,
    ScenarioEvent,
    ScenarioLibrary,
    ScenarioValidationError,
    UnknownScenarioError,
)

__all__ = [
    # Version
    "__version__",
    # Kernel
    "GuidanceKernel",
    # Configuration
    "FlightConfig",
    "KernelConfig",
    "TimingConfig",
    # Keys and lamps
    "IndicatorName",
    "Key",
    # Computer
    "CommandInterpreter",
    "CommandState",
    "Ignition",
    "IndicatorPanel",
    "InterpreterMode",
    "PendingConfirmation",
    "derive_indicators",
    "render_registers",
    # Dynamics
    "FlightHistory",
    "FlightModel",
    "FlightState",
    "GroundContact",
    # Scenarios
    "DEFAULT_SCENARIOS",
    "EventEngine",
    "EventKind",
    "InitialState",
    "Scenario",
    "ScenarioEvent",
    "ScenarioLibrary",
    "ScenarioValidationError",
    "UnknownScenarioError",
    # Log, clock, advisory
    "LogEntry",
    "MissionLog",
    "Role",
    "MissionClock",
    "format_mission_time",
    "Advisor",
    "AdvisoryChannel",
    "TelemetryAdvisor",
]
