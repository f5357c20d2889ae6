import base64

import pytest

from rpi_link.network.transport import (
    EVENT_CLOSE,
    EVENT_MESSAGE,
    EVENT_OPEN,
    LoopbackProvider,
    SocketNotOpen,
    WebSocketProvider,
)
from rpi_link.notify import DirectoryFileSink, LoggingNotificationSink, NotificationOptions
from rpi_link.protocol import encode_frame, parse_frame


def test_loopback_events_and_listener_rebinding():
    provider = LoopbackProvider()
    conn = provider.socket_for("ws://device/ws")
    events = []

    def on_open():
        events.append("open")

    def on_message(raw):
        events.append(("message", raw))

    conn.on(EVENT_OPEN, on_open)
    conn.on(EVENT_MESSAGE, on_message)
    conn.on(EVENT_CLOSE, lambda: events.append("close"))

    conn.open()
    conn.feed('{"name": "x"}')
    conn.off(EVENT_MESSAGE, on_message)
    conn.feed('{"name": "y"}')
    conn.drop()

    assert events == ["open", ("message", '{"name": "x"}'), "close"]
    assert conn.listener_count(EVENT_MESSAGE) == 0
    assert conn.listener_count() == 2


def test_loopback_rejects_writes_until_open():
    conn = LoopbackProvider().socket_for("ws://device/ws")
    with pytest.raises(SocketNotOpen):
        conn.send("{}")
    conn.open()
    conn.send("{}")
    assert conn.sent == ["{}"]


def test_unknown_event_is_rejected():
    conn = LoopbackProvider().socket_for("ws://device/ws")
    with pytest.raises(ValueError):
        conn.on("error", lambda: None)


def test_websocket_provider_caches_one_connection_per_uri():
    provider = WebSocketProvider()
    first = provider.socket_for("wss://device/ws")

    assert provider.socket_for("wss://device/ws") is first
    assert provider.socket_for("wss://other/ws") is not first
    assert not first.is_open
    with pytest.raises(SocketNotOpen):
        first.send("{}")


def test_frame_codec():
    assert encode_frame('{"already": "encoded"}') == '{"already": "encoded"}'
    assert encode_frame({"command": "getFile", "path": "/a"}) == '{"command": "getFile", "path": "/a"}'

    message = parse_frame(b'{"name": "getFile", "base64": "Zm9v", "errorMessage": "nope"}')
    assert message.name == "getFile"
    assert message.field("base64") == "Zm9v"
    assert message.error_detail() == "nope"
    assert not message.is_device_error

    for raw in ("", "null", "42", '"name"', '{"name": null}', "{broken"):
        assert parse_frame(raw) is None


def test_directory_file_sink_writes_decoded_bytes(tmp_path):
    sink = DirectoryFileSink(tmp_path / "out")

    saved = sink.save("../../config.txt", base64.b64encode(b"abc").decode())

    assert saved == tmp_path / "out" / "config.txt"
    assert saved.read_bytes() == b"abc"
    with pytest.raises(ValueError):
        sink.save("bad.bin", "not base64!")


def test_logging_sink_tracks_active_tokens(caplog):
    sink = LoggingNotificationSink()
    caplog.set_level("INFO")

    token = sink.show("hello", NotificationOptions(duration=1.0, style="error-toast"))
    assert sink.active == {token: "hello"}
    sink.cancel(token)

    assert sink.active == {}
    assert "hello" in caplog.text
