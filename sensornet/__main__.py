"""Run a sensor network scenario and print what the gateway collected.

Usage:
  python -m sensornet [scenario.yaml] [--until T] [--seed N] [-v]

Without a scenario file the built-in default is used: five pH sensors
reporting every 2 s from t=2 to the end of a 10 s run.
"""
import argparse
import logging
import math
import sys

from .errors import ScenarioError
from .receiver import Receiver
from .scenario import Scenario
from .transmitter import PeriodicTransmitter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sensornet", description="Run a periodic sensor network simulation")
    p.add_argument("scenario", nargs="?", help="scenario YAML file (default: built-in pH network)")
    p.add_argument("--until", type=float, default=None, help="hard stop time (default: scenario duration)")
    p.add_argument("--seed", type=int, default=None, help="override the scenario seed")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO logs, -vv for DEBUG")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        scenario = Scenario.from_yaml(args.scenario) if args.scenario else Scenario()
    except (OSError, ScenarioError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if args.seed is not None:
        scenario.seed = args.seed
    if args.until is not None and not math.isfinite(args.until):
        print(f"error: --until must be finite, got {args.until}", file=sys.stderr)
        return 2

    until = scenario.duration if args.until is None else args.until
    engine = scenario.build()
    engine.run(until=until)
    engine.destroy()

    gateway = next(app for app in engine.applications if isinstance(app, Receiver))
    sensors = [app for app in engine.applications if isinstance(app, PeriodicTransmitter)]

    print(f"Scenario {scenario.name}: stopped at t={engine.now:.3f}")
    print(f"Gateway {gateway.address}: {len(gateway.deliveries)} delivery(ies)")
    for app in sensors:
        print(f"  {app.name:>12} | sent {app.sent:>3} | received {gateway.count_from(app.address):>3} | failures {app.send_failures}")
    print("=" * 60)
    for d in gateway.deliveries:
        print(f"t={d.time:8.3f} | {str(d.source):>12} | {d.payload.decode('ascii', errors='replace')}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
