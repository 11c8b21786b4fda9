"""Step-driven vertical flight model.

Owns the vehicle state and advances it by elapsed host time. The model
knows nothing about commands or displays: the command interpreter asks it
to ignite, change thrust or shut down, and the kernel asks it to advance.

Physics (single vertical axis, constant mass):
    a_thrust  = (thrust/100) * engine_power / vehicle_mass
    v'        = v + (a_thrust - g) * dt
    h'        = h + v' * dt
    fuel'     = max(0, fuel - burn_rate * (thrust/100) * dt)
    thrust'   = 0 once fuel' reaches 0

Host ticks arrive at irregular intervals. Ticks shorter than
``min_step`` are accumulated; an accumulated interval longer than
``max_step`` is clamped so a stalled host cannot tunnel the vehicle
through the surface in one jump.

Example:
    >>> from dsky.dynamics import FlightModel, FlightState
    >>>
    >>> model = FlightModel(FlightState(altitude=3000.0, velocity=-20.0, fuel=40.0))
    >>> model.ignite(thrust=50.0)
    >>> while model.state.active:
    ...     model.advance(0.1)
    ...     contact = model.resolve_ground()
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from dsky.config import FlightConfig
from dsky.dynamics.state import FlightState, GroundContact

logger = logging.getLogger(__name__)


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True)
def _vertical_step(
    altitude: float, velocity: float, fuel: float, thrust: float,
    dt: float,
    gravity: float, max_accel: float, burn_rate: float,
) -> tuple[float, float, float, float]:
    """Semi-implicit Euler step of the vertical force balance."""
    if fuel <= 0.0:
        thrust = 0.0

    throttle = thrust / 100.0
    velocity_new = velocity + (throttle * max_accel - gravity) * dt
    altitude_new = altitude + velocity_new * dt
    fuel_new = max(0.0, fuel - burn_rate * throttle * dt)

    # Flame-out on an empty tank
    thrust_new = 0.0 if fuel_new <= 0.0 else thrust

    return altitude_new, velocity_new, fuel_new, thrust_new


# =============================================================================
# History
# =============================================================================


@dataclass
class FlightHistory:
    """Per-step record of an integrated flight.

    Provides array access and a Polars export for post-flight analysis.
    """
    times: list[float] = field(default_factory=list)
    states: list[FlightState] = field(default_factory=list)

    def append(self, time: float, state: FlightState) -> None:
        self.times.append(time)
        self.states.append(state.copy())

    def clear(self) -> None:
        self.times.clear()
        self.states.clear()

    def __len__(self) -> int:
        return len(self.states)

    @property
    def time(self) -> NDArray[np.float64]:
        """Time since ignition [s]."""
        return np.array(self.times, dtype=np.float64)

    @property
    def altitude(self) -> NDArray[np.float64]:
        """Altitude history [m]."""
        return np.array([s.altitude for s in self.states], dtype=np.float64)

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Vertical velocity history [m/s]."""
        return np.array([s.velocity for s in self.states], dtype=np.float64)

    @property
    def fuel(self) -> NDArray[np.float64]:
        """Fuel history [%]."""
        return np.array([s.fuel for s in self.states], dtype=np.float64)

    @property
    def thrust(self) -> NDArray[np.float64]:
        """Thrust history [%]."""
        return np.array([s.thrust for s in self.states], dtype=np.float64)

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame({
            "time": self.time,
            "altitude": self.altitude,
            "velocity": self.velocity,
            "fuel": self.fuel,
            "thrust": self.thrust,
        })


# =============================================================================
# Flight Model
# =============================================================================


@beartype
@dataclass
class FlightModel:
    """Owner of the vehicle state.

    Callers may request ignition, shutdown and thrust changes. Altitude,
    velocity and fuel are only ever written by the integrator.

    Attributes:
        state: Current truth state
        config: Physical constants and step bounds
    """
    state: FlightState = field(default_factory=FlightState)
    config: FlightConfig = field(default_factory=FlightConfig)

    # Internal
    _pending_dt: float = field(default=0.0, init=False, repr=False)
    _time: float = field(default=0.0, init=False, repr=False)
    _history: FlightHistory = field(default_factory=FlightHistory, init=False, repr=False)

    def reset(self, state: FlightState) -> None:
        """Replace the state wholesale (scenario load)."""
        self.state = state.copy()
        self._pending_dt = 0.0
        self._time = 0.0
        self._history.clear()

    def get_state(self) -> FlightState:
        """Get current state.

        Returns a copy to prevent external modification.
        """
        return self.state.copy()

    # -------------------------------------------------------------------------
    # Directives
    # -------------------------------------------------------------------------

    def ignite(self, thrust: float) -> None:
        """Start the integrator at the given thrust [%]."""
        self.state.active = True
        self.state.thrust = self._clamp_thrust(thrust)
        self._pending_dt = 0.0
        logger.info("Ignition at %.0f%% thrust", self.state.thrust)

    def shutdown(self) -> None:
        """Stop the integrator and cut the engine."""
        self.state.active = False
        self.state.thrust = 0.0
        self._pending_dt = 0.0

    def end_mission(self) -> None:
        """Stop the integrator, leaving the last thrust setting in place."""
        self.state.active = False
        self._pending_dt = 0.0

    def adjust_thrust(self, delta: float) -> float:
        """Change thrust by ``delta`` percent, clamped to [0, 100].

        Returns:
            The resulting thrust setting
        """
        self.state.thrust = self._clamp_thrust(self.state.thrust + delta)
        return self.state.thrust

    def _clamp_thrust(self, thrust: float) -> float:
        if self.state.fuel <= 0.0:
            return 0.0
        return float(min(100.0, max(0.0, thrust)))

    # -------------------------------------------------------------------------
    # Integration
    # -------------------------------------------------------------------------

    def advance(self, dt: float) -> float:
        """Accumulate host time and integrate once enough has built up.

        Args:
            dt: Host time elapsed since the previous call [s], >= 0

        Returns:
            The interval actually integrated [s], or 0.0 if no step ran
        """
        if dt < 0.0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        if not self.state.active:
            self._pending_dt = 0.0
            return 0.0

        self._pending_dt += dt
        if self._pending_dt < self.config.min_step or self._pending_dt <= 0.0:
            return 0.0

        step_dt = min(self._pending_dt, self.config.max_step)
        if step_dt < self._pending_dt:
            logger.debug("Clamped %.3f s gap to %.3f s step", self._pending_dt, step_dt)
        self._pending_dt = 0.0
        self.step(step_dt)
        return step_dt

    def step(self, dt: float) -> FlightState:
        """Integrate one step of at most ``max_step`` seconds.

        Does nothing while inactive. Altitude is clamped at the surface but
        the integrator keeps running; see :meth:`resolve_ground`.

        Returns:
            The new state (a copy)
        """
        if not self.state.active or dt <= 0.0:
            return self.get_state()

        dt = min(dt, self.config.max_step)
        cfg = self.config
        altitude, velocity, fuel, thrust = _vertical_step(
            self.state.altitude, self.state.velocity,
            self.state.fuel, self.state.thrust,
            dt,
            cfg.gravity, cfg.max_thrust_acceleration, cfg.fuel_burn_rate,
        )

        self.state.altitude = max(0.0, float(altitude))
        self.state.velocity = float(velocity)
        self.state.fuel = float(fuel)
        self.state.thrust = float(thrust)
        self._time += dt

        if cfg.record_history:
            self._history.append(self._time, self.state)

        return self.get_state()

    def resolve_ground(self) -> GroundContact | None:
        """Apply the default surface rule to an active vehicle.

        Call after scenario events have had their chance to end the
        mission on this step.

        Returns:
            CRASH or TOUCHDOWN if the vehicle just reached the surface,
            otherwise None
        """
        if not self.state.active or self.state.altitude > 0.0:
            return None

        self.state.altitude = 0.0
        self.state.active = False
        if abs(self.state.velocity) > self.config.soft_landing_speed:
            logger.info("Surface impact at %.1f m/s: crash", self.state.velocity)
            return GroundContact.CRASH
        logger.info("Surface contact at %.1f m/s: touchdown", self.state.velocity)
        return GroundContact.TOUCHDOWN

    def get_history(self) -> FlightHistory:
        """Get recorded state history."""
        return FlightHistory(
            times=list(self._history.times),
            states=[s.copy() for s in self._history.states],
        )

    @property
    def time(self) -> float:
        """Integrated flight time since the last reset [s]."""
        return self._time
