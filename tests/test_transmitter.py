import math
import pytest

from sensornet.application import AppState
from sensornet.engine import SimulationEngine
from sensornet.receiver import Receiver
from sensornet.transmitter import Measurement, PeriodicTransmitter, parse_measurement


def setup_network(delay=0.0):
    engine = SimulationEngine(channel_delay=delay)
    gateway = engine.install(Receiver(engine.channel), engine.add_node("gateway"))
    return engine, gateway


def add_sensor(engine, name, start, stop=None, interval=2.0, destination="gateway", **kwargs):
    app = PeriodicTransmitter(engine.channel, destination, interval=interval, name=name, **kwargs)
    return engine.install(app, engine.add_node(name), start_time=start, stop_time=stop)


class TestMeasurement:
    def test_values_within_range(self):
        m = Measurement(low=6.0, high=8.0, seed=3)
        for _ in range(200):
            label, value = parse_measurement(m())
            assert label == "pH"
            assert 6.0 <= value <= 8.0

    def test_encoding(self):
        m = Measurement(label="pH")
        assert m.encode(7.0) == b"pH: 7"
        assert m.encode(7.123456789) == b"pH: 7.12346"

    def test_seed_is_reproducible(self):
        a = Measurement(seed=42)
        b = Measurement(seed=42)
        assert [a() for _ in range(5)] == [b() for _ in range(5)]

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            Measurement(low=8.0, high=6.0)

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_measurement(b"no separator")


class TestPeriodicTransmitter:
    def test_invalid_interval(self):
        engine = SimulationEngine()
        with pytest.raises(ValueError):
            PeriodicTransmitter(engine.channel, "gateway", interval=0.0)

    @pytest.mark.parametrize("interval", [float("nan"), float("inf"), -1.0])
    def test_non_finite_or_negative_interval(self, interval):
        engine = SimulationEngine()
        with pytest.raises(ValueError):
            PeriodicTransmitter(engine.channel, "gateway", interval=interval)

    def test_fire_times_do_not_drift(self):
        """Fire times are computed from the start time, not by repeated addition."""
        engine, gateway = setup_network()
        sensor = add_sensor(engine, "s", start=0.0, interval=0.1)
        engine.run(until=1.5)
        assert sensor.sent == 16
        assert gateway.deliveries[-1].time == 1.5

    @pytest.mark.parametrize("t0,interval,t1", [(2.0, 2.0, 10.0), (1.0, 0.5, 3.2), (0.0, 3.0, 10.0)])
    def test_send_count_up_to_horizon(self, t0, interval, t1):
        engine, gateway = setup_network()
        sensor = add_sensor(engine, "s", start=t0, interval=interval)
        engine.run(until=t1)
        expected = math.floor((t1 - t0) / interval) + 1
        assert sensor.sent == expected
        assert len(gateway.deliveries) == expected

    def test_reference_run(self):
        engine, gateway = setup_network()
        add_sensor(engine, "sensor-0", start=2.0, seed=7)
        engine.run(until=10.0)
        engine.destroy()
        assert [d.time for d in gateway.deliveries] == [2.0, 4.0, 6.0, 8.0, 10.0]
        assert all(6.0 <= v <= 8.0 for v in gateway.values())
        assert {d.source for d in gateway.deliveries} == {"sensor-0"}

    def test_stop_at_fire_time_wins_the_tie(self):
        engine, gateway = setup_network()
        sensor = add_sensor(engine, "s", start=2.0, stop=10.0)
        engine.run(until=20.0)
        assert sensor.sent == 4
        assert [d.time for d in gateway.deliveries] == [2.0, 4.0, 6.0, 8.0]
        assert sensor.state is AppState.STOPPED

    def test_stop_between_fires(self):
        engine, _ = setup_network()
        sensor = add_sensor(engine, "s", start=2.0, stop=9.0)
        engine.run()
        assert sensor.sent == 4
        assert engine.scheduler.is_empty

    def test_single_outstanding_fire(self):
        engine, _ = setup_network()
        sensor = add_sensor(engine, "s", start=0.0, interval=1.0)
        for until in (0.0, 1.5, 4.0):
            engine.run(until=until)
            pending = engine.scheduler.peek_events(category="app-work", node=sensor.node)
            assert len(pending) == 1
            assert pending[0][1] is sensor.work_handle.event

    def test_endpoint_closed_on_stop(self):
        engine, _ = setup_network()
        sensor = add_sensor(engine, "s", start=0.0, stop=1.0)
        engine.run()
        assert sensor.endpoint.closed

    def test_stop_before_start_sends_nothing(self):
        engine, gateway = setup_network()
        sensor = add_sensor(engine, "s", start=5.0, stop=1.0)
        engine.run(until=20.0)
        assert sensor.sent == 0
        assert sensor.stopped
        assert gateway.deliveries == []

    def test_payload_bytes_round_trip(self):
        engine, gateway = setup_network()
        payloads = [bytes([0, 1, 2, 255]), b"pH: 7.5", bytes(range(32))]
        it = iter(payloads)
        add_sensor(engine, "s", start=0.0, stop=5.0, payload_factory=lambda: next(it))
        engine.run()
        assert [d.payload for d in gateway.deliveries] == payloads


class TestSendFailure:
    def test_unreachable_destination_stops_sensor(self):
        engine, gateway = setup_network()
        bad = add_sensor(engine, "bad", start=2.0, destination="nowhere")
        good = add_sensor(engine, "good", start=2.0)
        engine.run(until=10.0)
        assert bad.sent == 0
        assert bad.send_failures == 1
        assert bad.stopped
        assert bad.last_error.destination == "nowhere"
        # the rest of the simulation keeps going
        assert good.sent == 5
        assert gateway.count_from("good") == 5
        assert gateway.count_from("bad") == 0

    def test_receiver_going_away_truncates_reporting(self):
        engine = SimulationEngine()
        gateway = engine.install(Receiver(engine.channel), engine.add_node("gateway"), start_time=0.0, stop_time=5.0)
        sensor = add_sensor(engine, "s", start=2.0)
        engine.run(until=20.0)
        assert [d.time for d in gateway.deliveries] == [2.0, 4.0]
        assert sensor.sent == 2
        assert sensor.send_failures == 1
        assert sensor.stopped
