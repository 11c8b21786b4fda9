#!/usr/bin/env python
"""Apollo 11 descent flown from the keypad.

This example drives the kernel the way a crew would:
1. Load the Apollo 11 scenario
2. Select P63 (V37 N63) and confirm ignition with PRO
3. Clear the 1202 alarm with RSET when it appears
4. Fly the throttle with a simple descent-rate schedule
5. Summarize the log and the flight history
"""

import numpy as np

from dsky import GuidanceKernel, Key
from dsky.computer import InterpreterMode


def target_descent_rate(altitude: float) -> float:
    """Descent rate schedule [m/s]: fast up high, 2 m/s at the surface."""
    return -float(np.clip(0.05 * altitude, 2.0, 500.0))


def main() -> None:
    """Run the Apollo 11 landing example."""

    print("=" * 60)
    print("APOLLO 11 DESCENT")
    print("=" * 60)

    with GuidanceKernel() as kernel:
        kernel.load_scenario("apollo11_landing")

        # =====================================================================
        # 1. Select the braking program and ignite
        # =====================================================================
        for key in ["VERB", 3, 7, "ENTR", "NOUN", 6, 3, "ENTR"]:
            kernel.handle_key(key)
        print(f"\n1. {kernel.mode.value}: {kernel.pending_confirmation}")
        kernel.handle_key(Key.PRO)

        # =====================================================================
        # 2. Fly it down
        # =====================================================================
        dt = 0.1
        while kernel.flight_state().active:
            if kernel.mode is InterpreterMode.PRIORITY_LOCKED:
                print(f"2. Alarm {kernel.command_state().alarm_code} at "
                      f"{kernel.flight_state().altitude:.0f} m, clearing")
                kernel.handle_key(Key.RSET)

            flight = kernel.flight_state()
            if flight.velocity < target_descent_rate(flight.altitude):
                kernel.handle_key(Key.THRUST_UP)
            elif flight.thrust > 0.0:
                kernel.handle_key(Key.THRUST_DOWN)
            kernel.advance(dt)

        # =====================================================================
        # 3. Summary
        # =====================================================================
        history = kernel.flight_history()
        flight = kernel.flight_state()
        print(f"\n3. Down after {history.time[-1]:.1f} s of powered flight")
        print(f"   Impact velocity: {flight.velocity:.2f} m/s")
        print(f"   Fuel remaining:  {flight.fuel:.1f}%")
        print(f"   {kernel.mission_time}")

        print("\nMission log:")
        for entry in kernel.mission_log():
            print(f"   [{entry.timestamp}] {entry.role.value:8s} {entry.message}")


if __name__ == "__main__":
    main()
