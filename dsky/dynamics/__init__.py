"""Dynamics module for the single-axis descent model.

Example:
    >>> from dsky.dynamics import FlightModel, FlightState
    >>>
    >>> model = FlightModel(FlightState(altitude=500.0, velocity=-10.0))
    >>> model.ignite(thrust=40.0)
    >>> model.advance(0.1)
"""

from dsky.dynamics.flight_model import FlightHistory, FlightModel
from dsky.dynamics.state import FlightState, GroundContact

__all__ = [
    "FlightHistory",
    "FlightModel",
    "FlightState",
    "GroundContact",
]
