"""Ground advisory link.

Verb/noun pairs the computer has no built-in handling for are passed to
an advisor, an opaque and possibly slow function that turns telemetry
into a short line of guidance from mission control. The call runs on an
executor so it never blocks the tick loop; :meth:`AdvisoryChannel.poll`
collects finished replies on the tick thread. Failures and timeouts turn
into fixed fallback text and are never retried.

Example:
    >>> from dsky.advisory import AdvisoryChannel, TelemetryAdvisor
    >>>
    >>> channel = AdvisoryChannel(TelemetryAdvisor(), timeout=5.0)
    >>> channel.request(flight_state, "63", "06", "36", now=0.0)
    >>> for text in channel.poll(now=0.5):
    ...     print(text)
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from dsky.constants import LANDING_PROGRAMS, PROGRAM_BRAKING
from dsky.dynamics.state import FlightState

logger = logging.getLogger(__name__)

FALLBACK_FAILURE = "STATIC INTERFERENCE..."
FALLBACK_EMPTY = "RADIO SILENCE..."
FALLBACK_NO_LINK = "COMM ERROR: ADVISORY LINK UNAVAILABLE"

# Worker threads of the default executor. An abandoned call keeps its
# worker until the advisor returns; a stuck advisor can hold at most this
# many requests before later ones queue.
ADVISORY_WORKERS = 4


class Advisor(Protocol):
    """Turns telemetry and the last command into guidance text."""

    def __call__(self, flight: FlightState, program: str, verb: str, noun: str) -> str:
        ...


# =============================================================================
# Built-in Advisor
# =============================================================================


@dataclass
class TelemetryAdvisor:
    """Rule-based advisor for hosts without a remote guidance service.

    Attributes:
        danger_altitude: Below this, fast descents draw a warning [m]
        danger_descent_rate: Descent rate considered dangerous near the ground [m/s]
        bingo_fuel: Fuel level that draws a low-fuel call [%]
    """
    danger_altitude: float = 1000.0
    danger_descent_rate: float = 30.0
    bingo_fuel: float = 10.0

    def __call__(self, flight: FlightState, program: str, verb: str, noun: str) -> str:
        if not flight.active and flight.altitude <= 0.0:
            return "WE COPY YOU DOWN. SAFE THE VEHICLE."
        if flight.altitude < self.danger_altitude and flight.velocity < -self.danger_descent_rate:
            return f"SINK RATE {abs(flight.velocity):.0f}. THROTTLE UP NOW!"
        if flight.active and flight.fuel < self.bingo_fuel:
            return f"BINGO FUEL, {flight.fuel:.0f} PERCENT. LAND IT OR ABORT."
        if program not in LANDING_PROGRAMS and flight.descending:
            return f"SELECT P{PROGRAM_BRAKING} FOR BRAKING. V37 N{PROGRAM_BRAKING}."
        if not flight.active and program in LANDING_PROGRAMS:
            return "ENGINE IS SAFED. PRESS PRO WHEN READY FOR IGNITION."
        return f"COPY V{verb} N{noun}. YOU ARE GO. MONITOR V16 N36."


# =============================================================================
# Channel
# =============================================================================


@dataclass
class _Request:
    future: "Future[str]"
    submitted_at: float
    verb: str
    noun: str


class AdvisoryChannel:
    """Fire-and-forget advisory requests, collected on the tick thread.

    Attributes:
        advisor: The collaborator, or None when no link is configured
        timeout: Seconds of host time before a reply is abandoned. The
            advisor call itself is not interrupted and keeps its worker
            until it returns (see ``ADVISORY_WORKERS``)
    """

    def __init__(
        self,
        advisor: Advisor | None = None,
        executor: Executor | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.advisor = advisor
        self.timeout = timeout
        self._executor = executor
        self._owns_executor = executor is None
        self._requests: list[_Request] = []

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=ADVISORY_WORKERS, thread_name_prefix="advisory",
            )
        return self._executor

    def request(
        self,
        flight: FlightState,
        program: str,
        verb: str,
        noun: str,
        now: float,
    ) -> None:
        """Start an advisory call; the reply arrives through :meth:`poll`."""
        if self.advisor is None:
            future: Future[str] = Future()
            future.set_result(FALLBACK_NO_LINK)
        else:
            future = self._get_executor().submit(
                self.advisor, flight.copy(), program, verb, noun,
            )
        self._requests.append(_Request(future, now, verb, noun))
        logger.debug("Advisory requested for V%s N%s", verb, noun)

    def poll(self, now: float) -> list[str]:
        """Replies that resolved or timed out since the last poll, in request order."""
        replies: list[str] = []
        waiting: list[_Request] = []
        for req in self._requests:
            if req.future.done():
                replies.append(self._reply_text(req))
            elif now - req.submitted_at >= self.timeout:
                req.future.cancel()
                logger.warning(
                    "Advisory for V%s N%s timed out after %.1f s",
                    req.verb, req.noun, now - req.submitted_at,
                )
                replies.append(FALLBACK_FAILURE)
            else:
                waiting.append(req)
        self._requests = waiting
        return replies

    def _reply_text(self, req: _Request) -> str:
        if req.future.cancelled():
            return FALLBACK_FAILURE
        error = req.future.exception()
        if error is not None:
            logger.warning("Advisory for V%s N%s failed: %s", req.verb, req.noun, error)
            return FALLBACK_FAILURE
        text = req.future.result()
        if not isinstance(text, str) or not text.strip():
            return FALLBACK_EMPTY
        return text.strip()

    @property
    def pending(self) -> int:
        return len(self._requests)

    def close(self) -> None:
        """Shut down the executor if this channel created it."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
