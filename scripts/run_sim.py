"""Simple demo runner: one sensor, one gateway, no scenario file."""
from sensornet import SimulationEngine, PeriodicTransmitter, Receiver


def main():
    engine = SimulationEngine()
    engine.add_node("gateway")
    engine.add_node("sensor-0")
    gateway = engine.install(Receiver(engine.channel), "gateway")
    # The stop at t=10 wins the tie with the fire due at t=10: four readings.
    sensor = engine.install(PeriodicTransmitter(engine.channel, gateway.address, interval=2.0, seed=1), "sensor-0", start_time=2.0, stop_time=10.0)

    print("Running simulation...")
    engine.run(until=10.0)
    engine.destroy()

    for d in gateway.deliveries:
        print(f"Delivery at t={d.time}: {d.payload.decode()} from {d.source}")
    print(f"{sensor.name} sent {sensor.sent} reading(s)")


if __name__ == "__main__":
    main()
