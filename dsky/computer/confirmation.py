"""Actions that wait for the operator's PRO keypress.

Selecting some programs only arms their effect; the effect is committed
when the operator presses PRO. Each confirmable action is its own frozen
dataclass, and :data:`PendingConfirmation` is the union of them, so new
actions slot in without touching the fields of the others.
"""

from dataclasses import dataclass

from dsky.constants import PROGRAM_BRAKING


@dataclass(frozen=True)
class Ignition:
    """Start the descent engine for ``program`` at ``thrust`` percent."""

    program: str
    thrust: float

    action = "IGNITION"

    @property
    def automatic(self) -> bool:
        return self.program == PROGRAM_BRAKING

    @property
    def announcement(self) -> str:
        if self.automatic:
            return "IGNITION. AUTOMATIC BRAKING."
        return "IGNITION. MANUAL CONTROL."


PendingConfirmation = Ignition
