"""Headless terminal host for the guidance kernel.

Loads a scenario, plays a key script against it on a fixed tick and
prints the mission log and final state. A key script is a
whitespace-separated list of tokens:

    VERB 37 ENTR NOUN 63 ENTR PRO WAIT=30 THRUST_UP RSET

Digit runs expand to single digit keys, ``WAIT=<seconds>`` advances the
simulation, and every other token is a key name.
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from dsky.advisory import TelemetryAdvisor
from dsky.config import FlightConfig, KernelConfig
from dsky.constants import normalize_key
from dsky.kernel import GuidanceKernel
from dsky.scenario.library import (
    ScenarioLibrary,
    ScenarioValidationError,
    UnknownScenarioError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Wait:
    seconds: float


def parse_key_script(text: str) -> Iterator["str | Wait"]:
    """Expand a key script into keys and waits.

    Raises:
        ValueError: on an unknown token
    """
    for token in text.split():
        upper = token.upper()
        if upper.startswith("WAIT="):
            try:
                seconds = float(upper.split("=", 1)[1])
            except ValueError as err:
                raise ValueError(f"Bad wait token: {token!r}") from err
            if seconds < 0:
                raise ValueError(f"Bad wait token: {token!r}")
            yield Wait(seconds)
        elif upper.isdigit():
            yield from upper
        else:
            normalize_key(upper)
            yield upper


def run_for(kernel: GuidanceKernel, seconds: float, tick: float) -> None:
    """Advance ``kernel`` in ``tick`` steps for ``seconds`` of host time."""
    elapsed = 0.0
    while elapsed < seconds:
        step = min(tick, seconds - elapsed)
        kernel.advance(step)
        elapsed += step


def run_script(
    kernel: GuidanceKernel,
    script: str,
    tick: float = 0.1,
    duration: float = 0.0,
) -> None:
    """Play a key script, then run until the flight stops or ``duration`` passes."""
    for item in parse_key_script(script):
        if isinstance(item, Wait):
            run_for(kernel, item.seconds, tick)
        else:
            kernel.handle_key(item)

    elapsed = 0.0
    while elapsed < duration and kernel.flight_state().active:
        kernel.advance(tick)
        elapsed += tick
    # Let timed lamps and advisory replies settle
    run_for(kernel, max(kernel.config.timing.lamp_test_duration, tick), tick)
    deadline = time.monotonic() + 2.0
    while kernel.advisories_pending and time.monotonic() < deadline:
        time.sleep(0.01)
        kernel.advance(0.0)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments for the headless host."""
    parser = argparse.ArgumentParser(prog="dsky", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--scenario", default="apollo11_landing",
                        help="built-in scenario id (default: %(default)s)")
    parser.add_argument("--scenario-file", type=Path,
                        help="JSON scenario record to import and load")
    parser.add_argument("--keys", default="",
                        help="key script to play after loading")
    parser.add_argument("--tick", type=float, default=0.1,
                        help="host tick length in seconds (default: %(default)s)")
    parser.add_argument("--duration", type=float, default=600.0,
                        help="maximum seconds to run after the script (default: %(default)s)")
    parser.add_argument("--soft-landing-speed", type=float, default=FlightConfig.soft_landing_speed,
                        help="touchdown speed limit in m/s (default: %(default)s)")
    parser.add_argument("--overflow-alarm", action="store_true",
                        help="enable the built-in 1202 executive overflow alarm")
    parser.add_argument("--list", action="store_true",
                        help="list built-in scenarios and exit")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="more diagnostic logging (repeatable)")
    args = parser.parse_args(argv)
    if args.tick <= 0:
        parser.error("--tick must be positive")
    return args


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    library = ScenarioLibrary.with_defaults()
    if args.list:
        for scenario in library:
            print(f"{scenario.id:20s} {scenario.name}")
        return 0

    config = KernelConfig(
        flight=FlightConfig(soft_landing_speed=args.soft_landing_speed),
        overflow_alarm=args.overflow_alarm,
    )

    with GuidanceKernel(config=config, library=library, advisor=TelemetryAdvisor()) as kernel:
        try:
            if args.scenario_file is not None:
                scenario = library.import_json(args.scenario_file.read_text(encoding="utf-8"))
                kernel.load_scenario(scenario)
            else:
                kernel.load_scenario(args.scenario)
            run_script(kernel, args.keys, tick=args.tick, duration=args.duration)
        except (ScenarioValidationError, UnknownScenarioError, OSError) as err:
            logger.error("Cannot load scenario: %s", err)
            print(f"error: cannot load scenario: {err}", file=sys.stderr)
            return 2
        except ValueError as err:
            print(f"error: {err}", file=sys.stderr)
            return 2

        for entry in kernel.mission_log():
            print(f"[{entry.timestamp}] {entry.role.value:8s} {entry.message}")

        state = kernel.command_state()
        flight = kernel.flight_state()
        print()
        print(kernel.mission_time)
        print(f"PROG {state.program}  VERB {state.verb}  NOUN {state.noun}")
        print(f"R1 {state.r1}  R2 {state.r2}  R3 {state.r3}")
        print(f"ALT {flight.altitude:.1f} m  VEL {flight.velocity:.1f} m/s  "
              f"FUEL {flight.fuel:.1f}%  THRUST {flight.thrust:.0f}%")
        lit = [name.value for name, on in kernel.indicators().items() if on]
        print("LAMPS " + (" ".join(lit) if lit else "-"))
    return 0
