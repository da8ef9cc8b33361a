"""Example script running the pH sensor network scenario.

Run this script with:
    python simulations/PhNetwork/example.py

It loads `scenario.yaml`, shows the queue before the run, runs to the
scenario duration and prints every reading the gateway collected.
"""
from pathlib import Path
import logging

from sensornet import Scenario


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    scenario = Scenario.from_yaml(Path(__file__).resolve().parent / "scenario.yaml")
    engine = scenario.build()

    print("Queue before the run:")
    engine.print_status()
    print("=" * 60)

    engine.run(until=scenario.duration)
    engine.destroy()

    gateway = engine.applications[0]
    print("=" * 60)
    print(f"Gateway collected {len(gateway.deliveries)} reading(s)")
    for source in gateway.sources():
        print(f"  {source}: {gateway.count_from(source)}")


if __name__ == "__main__":
    main()
