import logging

import orjson
import pytest

from knobwire import Codec, Controller, InvalidKnob, KnobUpdate, MalformedPayload, Memory, PIDGains


class FailingBus(Memory):
    def flush(self):
        raise ConnectionError("flush failed")


@pytest.fixture
def bus():
    return Memory()


@pytest.fixture
def events():
    return []


@pytest.fixture
def controller(bus, events):
    c = Controller(bus, on_update=lambda event, gains: events.append((event, gains)))
    c.start()
    yield c
    c.close()


def test_publish_knob(controller, bus):
    topic = controller.publish_knob(KnobUpdate("posxp", 1.5))
    assert topic == "pid.gains.pos.p.x"
    assert bus.messages() == [("pid.gains.pos.p.x", b"1.5")]
    assert bus.flushes == 1


def test_publish_knob_from_json(controller, bus):
    controller.publish_knob('{"knob": "attzd", "value": 0.25}')
    topic, payload = bus.messages()[-1]
    assert topic == "pid.gains.att.d.z"
    assert orjson.loads(payload) == 0.25


def test_publish_knob_from_mapping(controller, bus):
    controller.publish_knob({"knob": "ATTYI", "value": 2})
    assert bus.messages() == [("pid.gains.att.i.y", b"2.0")]


def test_publish_invalid_knob(controller, bus, caplog):
    with caplog.at_level(logging.WARNING), pytest.raises(InvalidKnob):
        controller.publish_knob(KnobUpdate("velxp", 1.0))

    assert "Invalid knob ID: velxp" in caplog.text
    assert bus.messages() == []


def test_publish_missing_knob(controller):
    with pytest.raises(InvalidKnob):
        controller.publish_knob({"value": 1.0})


def test_publish_missing_value(controller, bus):
    with pytest.raises(MalformedPayload, match="has no value"):
        controller.publish_knob({"knob": "posxp"})
    assert bus.messages() == []


def test_publish_malformed_json(controller):
    with pytest.raises(MalformedPayload):
        controller.publish_knob("not json")


def test_publish_failure_is_logged_and_raised(caplog):
    c = Controller(FailingBus())
    with caplog.at_level(logging.ERROR), pytest.raises(ConnectionError):
        c.publish_knob(KnobUpdate("posxp", 1.0))

    assert "Failed to publish to pid.gains.pos.p.x" in caplog.text


def test_publish_logs(controller, caplog):
    with caplog.at_level(logging.INFO, logger="knobwire.controller"):
        controller.publish_knob(KnobUpdate("posxd", 0.5))

    assert "Knob posxd changed to 0.5" in caplog.text
    assert "Published gain 0.5 to pid.gains.pos.d.x" in caplog.text


def test_gains_update(controller, bus, events):
    payload = orjson.dumps({"kp": [1, 2, 3], "ki": [0, 0, 0], "kd": [0.5, 0.5, 0.5]})
    bus.publish("pid.gains.pos", payload)

    expected = PIDGains(kp=(1.0, 2.0, 3.0), kd=(0.5, 0.5, 0.5))
    assert controller.gains == {"pos": expected}
    assert events == [("update:pos", expected)]


def test_gains_update_per_group(controller, bus, events):
    bus.publish("pid.gains.att", b'{"kp": [1, 1, 1]}')
    bus.publish("pid.gains.pos", b'{"ki": [2, 2, 2]}')
    bus.publish("pid.gains.att", b'{"kp": [3, 3, 3]}')

    assert controller.gains["att"].kp == (3.0, 3.0, 3.0)
    assert controller.gains["pos"].ki == (2.0, 2.0, 2.0)
    assert [e for e, _ in events] == ["update:att", "update:pos", "update:att"]


def test_malformed_gains_dropped(controller, bus, events, caplog):
    with caplog.at_level(logging.WARNING):
        bus.publish("pid.gains.pos", b"{broken")
        bus.publish("pid.gains.att", b'{"kp": [1, 2]}')

    assert controller.gains == {}
    assert events == []
    assert "Failed to decode pos gains" in caplog.text
    assert "Failed to decode att gains" in caplog.text


def test_gains_without_callback(bus):
    c = Controller(bus)
    c.start()
    bus.publish("pid.gains.pos", b"{}")
    assert c.gains["pos"] == PIDGains()
    c.close()


def test_start_twice_raises(controller):
    with pytest.raises(RuntimeError, match="already started"):
        controller.start()


def test_custom_prefix(bus):
    c = Controller(bus, topic_prefix="drone1")
    c.start()
    assert set(bus.subscriptions) == {"drone1.pos", "drone1.att"}
    assert c.publish_knob(KnobUpdate("attxp", 1.0)) == "drone1.att.p.x"
    c.close()


def test_bad_prefix_rejected(bus):
    with pytest.raises(ValueError, match="invalid topic prefix"):
        Controller(bus, topic_prefix="has space")


def test_custom_codec_is_used(bus):
    codec = Codec()
    c = Controller(bus, codec=codec)
    assert c.codec is codec


def test_close_is_idempotent(bus):
    c = Controller(bus)
    c.start()
    c.close()
    c.close()

    assert bus.closed
    assert bus.subscriptions == {}


def test_context_manager(bus):
    with Controller(bus) as c:
        c.start()
        c.publish_knob(KnobUpdate("posxp", 1.0))

    assert bus.closed


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_publish_non_finite_value(controller, bus, value):
    with pytest.raises(MalformedPayload, match="non-finite"):
        controller.publish_knob({"knob": "posxp", "value": value})

    assert bus.messages() == []
    assert bus.flushes == 0


def test_failing_callback_does_not_reach_publisher(bus, caplog):
    def broken(event, gains):
        raise RuntimeError("ui gone")

    c = Controller(bus, on_update=broken)
    c.start()

    with caplog.at_level(logging.ERROR):
        bus.publish("pid.gains.att", b'{"kd": [1, 1, 1]}')

    assert c.gains["att"].kd == (1.0, 1.0, 1.0)
    assert "on_update callback failed for att gains" in caplog.text
    c.close()
