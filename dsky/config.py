"""Configuration dataclasses for the guidance computer kernel.

All tunables live here so hosts can build a kernel with non-default
physics or timing without touching the simulation code.

Example:
    >>> from dsky.config import FlightConfig, KernelConfig
    >>>
    >>> # Heavier lander, gentler touchdown limit
    >>> config = KernelConfig(
    ...     flight=FlightConfig(vehicle_mass=17000.0, soft_landing_speed=3.0),
    ... )
"""

from dataclasses import dataclass, field

from beartype import beartype

# =============================================================================
# Flight Model
# =============================================================================


@beartype
@dataclass
class FlightConfig:
    """Single-axis flight model constants.

    Attributes:
        gravity: Surface gravity [m/s^2] (lunar default)
        engine_power: Engine force at 100% thrust [N]
        vehicle_mass: Vehicle mass, held constant [kg]
        fuel_burn_rate: Fuel consumed at 100% thrust [%/s]
        soft_landing_speed: Largest impact speed classified as touchdown [m/s]
        thrust_step: Thrust change per throttle keypress [%]
        min_step: Accumulated dt below this is not integrated yet [s]
        max_step: Largest dt integrated in one step; excess is dropped [s]
        low_fuel_threshold: Fuel level that lights the VEL warning [%]
        record_history: Keep a per-step state history
    """
    gravity: float = 1.62
    engine_power: float = 45000.0
    vehicle_mass: float = 15000.0
    fuel_burn_rate: float = 0.5
    soft_landing_speed: float = 5.0
    thrust_step: float = 5.0
    min_step: float = 0.05
    max_step: float = 0.25
    low_fuel_threshold: float = 10.0
    record_history: bool = True

    def __post_init__(self) -> None:
        """Validate step bounds."""
        if self.min_step < 0.0:
            raise ValueError(f"min_step must be >= 0, got {self.min_step}")
        if self.max_step <= 0.0 or self.max_step < self.min_step:
            raise ValueError(
                f"max_step must be positive and >= min_step, got {self.max_step}"
            )
        if self.vehicle_mass <= 0.0:
            raise ValueError(f"vehicle_mass must be positive, got {self.vehicle_mass}")

    @property
    def max_thrust_acceleration(self) -> float:
        """Acceleration at 100% thrust [m/s^2]."""
        return self.engine_power / self.vehicle_mass


# =============================================================================
# Timing
# =============================================================================


@beartype
@dataclass
class TimingConfig:
    """Durations of timed display effects, in seconds.

    Attributes:
        comp_acty_flash: COMP ACTY lamp on-time after a dispatched command
        uplink_flash: UPLINK ACTY lamp on-time after a ground message
        lamp_test_duration: How long V35 holds every lamp on
        advisory_timeout: Time allowed for an advisory reply before fallback
    """
    comp_acty_flash: float = 0.1
    uplink_flash: float = 0.4
    lamp_test_duration: float = 1.5
    advisory_timeout: float = 10.0


# =============================================================================
# Kernel
# =============================================================================


@beartype
@dataclass
class KernelConfig:
    """Top-level kernel configuration.

    Attributes:
        flight: Flight model constants
        timing: Timed display effect durations
        stop_on_terminal: Stop evaluating scenario events on a tick once a
            SUCCESS or FAIL has fired
        overflow_alarm: Enable the built-in 1202 executive overflow rule
    """
    flight: FlightConfig = field(default_factory=FlightConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    stop_on_terminal: bool = True
    overflow_alarm: bool = False
