import io
import struct

import pytest

from frontpanel.protocol import (
    FINISHED_STARTUP_RESPONSE,
    START_FLAG,
    UNLOCK_RESPONSE,
    WORD_SIZE,
    ExtendedMessageType,
    MessageType,
    ModuleConnection,
    Packet,
    encode_text,
    parse_module_args,
    read_packet,
    str_equals,
)


def _packet_bytes(ptype, words=(), text=None, timestamp=0):
    body = b"".join(struct.pack("L", w) for w in words)
    if text is not None:
        raw = text.encode() + b"\0"
        raw += b"\0" * (-len(raw) % WORD_SIZE)
        body += raw
    size = 4 + len(body) // WORD_SIZE
    return struct.pack("4L", START_FLAG, ptype, size, timestamp) + body


def _config_packet(text):
    return _packet_bytes(MessageType.CONFIG_INFO, (0, 0, 0), text)


def _sent_messages(data):
    messages = []
    pos = 0
    while pos < len(data):
        window, length = struct.unpack_from("2L", data, pos)
        pos += 2 * WORD_SIZE
        text = data[pos:pos + length].decode()
        pos += length
        (keep,) = struct.unpack_from("L", data, pos)
        pos += WORD_SIZE
        messages.append((window, text, keep))
    return messages


def _connection(incoming=b""):
    out = io.BytesIO()
    return ModuleConnection(out, io.BytesIO(incoming)), out


def test_message_type_values_sent_as_masks():
    conn, out = _connection()
    conn.set_message_mask(MessageType.CONFIG_INFO)
    conn.set_message_mask(MessageType.END_CONFIG_INFO)
    conn.set_message_mask(ExtendedMessageType.VISIBLE_ICON_NAME)
    texts = [m[1] for m in _sent_messages(out.getvalue())]
    assert texts == [
        f"SET_MASK {1 << 18}",
        f"SET_MASK {1 << 19}",
        f"SET_MASK {(1 << 0) | (1 << 31)}",
    ]


def test_encode_text_layout():
    data = encode_text("Hi", 7, 1)
    assert len(data) == 3 * WORD_SIZE + 2
    assert _sent_messages(data) == [(7, "Hi", 1)]


def test_read_packet_parses_header_and_body():
    stream = io.BytesIO(_packet_bytes(MessageType.NEW_PAGE, (10, 20, 3), timestamp=5))
    packet = read_packet(stream)
    assert packet.type == MessageType.NEW_PAGE
    assert packet.type == 1
    assert packet.timestamp == 5
    assert packet.body == (10, 20, 3)
    assert packet.body_size == 3


def test_read_packet_skips_to_start_flag():
    junk = struct.pack("2L", 1, 2)
    stream = io.BytesIO(junk + _packet_bytes(MessageType.NEW_DESK, (4,)))
    packet = read_packet(stream)
    assert packet.type == MessageType.NEW_DESK
    assert packet.body == (4,)


def test_read_packet_end_of_stream():
    assert read_packet(io.BytesIO(b"")) is None
    truncated = _packet_bytes(MessageType.NEW_PAGE, (1, 2))[:-1]
    assert read_packet(io.BytesIO(truncated)) is None


def test_read_packet_too_long():
    data = struct.pack("4L", START_FLAG, 1, 1000, 0)
    with pytest.raises(ValueError):
        read_packet(io.BytesIO(data))


def test_read_packet_size_below_header():
    data = struct.pack("4L", START_FLAG, 1, 2, 0)
    with pytest.raises(ValueError):
        read_packet(io.BytesIO(data))


def test_config_text_strips_leading_space():
    packet = read_packet(io.BytesIO(_config_packet("   *panelDesktopSize 3x3")))
    assert packet.config_text == "*panelDesktopSize 3x3"


def test_send_text_and_none():
    conn, out = _connection()
    conn.send_text(None)
    assert out.getvalue() == b""
    conn.send_text("Beep", 9)
    assert out.getvalue() == encode_text("Beep", 9, 1)


def test_send_pipe_splits_on_commas():
    conn, out = _connection()
    conn.send_pipe("Raise,Focus,")
    assert [m[1] for m in _sent_messages(out.getvalue())] == ["Raise", "Focus", ""]


def test_masks():
    conn, out = _connection()
    conn.set_message_mask(MessageType.NEW_PAGE)
    conn.set_sync_mask(MessageType.NEW_PAGE)
    conn.set_no_grab_mask(MessageType.NEW_PAGE)
    texts = [m[1] for m in _sent_messages(out.getvalue())]
    assert texts == ["SET_MASK 1", "SET_SYNC_MASK 1", "SET_NOGRAB_MASK 1"]


def test_notifications_and_quit():
    conn, out = _connection()
    conn.send_finished_startup()
    conn.send_unlock()
    conn.send_quit()
    messages = _sent_messages(out.getvalue())
    assert messages == [
        (0, FINISHED_STARTUP_RESPONSE, 1),
        (0, UNLOCK_RESPONSE, 1),
        (0, UNLOCK_RESPONSE, 0),
    ]
    assert conn.keep_going is False


def test_get_config_line_first_pass_requests_config():
    incoming = (
        _packet_bytes(MessageType.NEW_PAGE, (0, 0))
        + _config_packet("DesktopSize 2 2")
        + _packet_bytes(MessageType.END_CONFIG_INFO)
    )
    conn, out = _connection(incoming)
    assert conn.get_config_line() == "DesktopSize 2 2"
    assert conn.get_config_line() is None
    assert [m[1] for m in _sent_messages(out.getvalue())] == ["Send_ConfigInfo"]


def test_init_get_config_line_and_iteration():
    incoming = (
        _config_packet("first")
        + _config_packet("second")
        + _packet_bytes(MessageType.END_CONFIG_INFO)
    )
    conn, out = _connection(incoming)
    conn.init_get_config_line("*panel")
    assert list(conn.config_lines()) == ["first", "second"]
    assert [m[1] for m in _sent_messages(out.getvalue())] == ["Send_ConfigInfo *panel"]


def test_config_lines_stop_at_end_of_stream():
    conn, _ = _connection(_config_packet("only"))
    assert list(conn.config_lines()) == ["only"]


def test_connection_read_packet():
    conn, _ = _connection(_packet_bytes(MessageType.NEW_PAGE, (1, 2)))
    packet = conn.read_packet()
    assert isinstance(packet, Packet)
    assert packet.body == (1, 2)
    assert conn.read_packet() is None


def test_parse_module_args_plain():
    args = parse_module_args(["/usr/bin/panel", "5", "6", "rc", "1f", "0", "extra"])
    assert args.name == "panel"
    assert args.namelen == len("panel")
    assert (args.to_wm, args.from_wm) == (5, 6)
    assert args.window == 31
    assert args.decoration == 0
    assert args.user_argv == ["extra"]
    assert args.user_argc == 1


def test_parse_module_args_alias():
    args = parse_module_args(["panel", "5", "6", "rc", "0", "0", "alias", "u"], True)
    assert args.name == "alias"
    assert args.user_argv == ["u"]


def test_parse_module_args_alias_absent():
    args = parse_module_args(["panel", "5", "6", "rc", "0", "0"], True)
    assert args.name == "panel"
    assert args.user_argv == []


def test_parse_module_args_too_few():
    with pytest.raises(ValueError):
        parse_module_args(["panel", "5", "6"])


def test_str_equals():
    assert str_equals(None, None) is True
    assert str_equals("DesktopSize", None) is False
    assert str_equals(None, "x") is False
    assert str_equals("DesktopSize", "desktopsize") is True
    assert str_equals("DesktopSize", "Desktop") is False