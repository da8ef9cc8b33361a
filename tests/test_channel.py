import pytest

from sensornet.channel import Channel, Delivery
from sensornet.errors import SendError
from sensornet.scheduler import Scheduler


def make_channel(delay=0.0):
    s = Scheduler()
    return s, Channel(s, delay=delay)


class TestChannel:
    def test_send_is_delivered_through_the_scheduler(self):
        s, ch = make_channel()
        got = []
        ch.register_receive_handler("gw", lambda p, src, t: got.append(Delivery(p, src, t)))
        ch.send(b"hello", "gw", source="s1")
        # nothing happens until the scheduler dispatches the delivery event
        assert got == []
        assert [e.category for _, e in s.peek_events()] == ["delivery"]
        s.run()
        assert got == [Delivery(b"hello", "s1", 0.0)]
        assert (ch.sent, ch.delivered, ch.dropped) == (1, 1, 0)

    def test_delay_is_applied(self):
        s, ch = make_channel(delay=0.25)
        got = []
        ch.register_receive_handler("gw", lambda p, src, t: got.append(t))
        s.schedule(1.0, ch.send, b"x", "gw")
        s.run()
        assert got == [1.25]

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            Channel(Scheduler(), delay=-1.0)

    def test_unreachable_destination(self):
        s, ch = make_channel()
        with pytest.raises(SendError) as info:
            ch.send(b"x", "nowhere")
        assert info.value.destination == "nowhere"
        assert s.is_empty

    def test_payload_must_be_bytes(self):
        _, ch = make_channel()
        ch.register_receive_handler("gw", lambda *a: None)
        with pytest.raises(SendError):
            ch.send("text", "gw")

    def test_reregistration_replaces_handler(self):
        s, ch = make_channel()
        first, second = [], []
        ch.register_receive_handler("gw", lambda p, src, t: first.append(p))
        ch.register_receive_handler("gw", lambda p, src, t: second.append(p))
        ch.send(b"x", "gw")
        s.run()
        assert first == []
        assert second == [b"x"]

    def test_handler_removed_while_in_flight(self):
        s, ch = make_channel(delay=1.0)
        got = []
        ch.register_receive_handler("gw", lambda p, src, t: got.append(p))
        ch.send(b"x", "gw")
        ch.unregister_receive_handler("gw")
        s.run()
        assert got == []
        assert ch.dropped == 1

    def test_payload_is_copied_on_send(self):
        s, ch = make_channel()
        got = []
        ch.register_receive_handler("gw", lambda p, src, t: got.append(p))
        buf = bytearray(b"abc")
        ch.send(buf, "gw")
        buf[0] = ord("z")
        s.run()
        assert got == [b"abc"]


class TestEndpoint:
    def test_endpoint_sends_with_its_address(self):
        s, ch = make_channel()
        got = []
        ch.register_receive_handler("gw", lambda p, src, t: got.append(src))
        ep = ch.open("sensor-0")
        ep.send(b"x", "gw")
        s.run()
        assert got == ["sensor-0"]

    def test_closed_endpoint_rejects(self):
        _, ch = make_channel()
        ch.register_receive_handler("gw", lambda *a: None)
        ep = ch.open("sensor-0")
        ep.close()
        ep.close()
        assert ep.closed
        with pytest.raises(SendError):
            ep.send(b"x", "gw")


def test_unregister_only_matching_handler():
    _, ch = make_channel()
    first = lambda *a: None
    second = lambda *a: None
    ch.register_receive_handler("gw", first)
    ch.register_receive_handler("gw", second)
    assert ch.unregister_receive_handler("gw", first) is None
    assert ch.has_handler("gw")
    assert ch.unregister_receive_handler("gw", second) is second
    assert not ch.has_handler("gw")
    assert ch.unregister_receive_handler("gw") is None
