import io
import os
import struct

import pytest

from frontpanel.protocol import (
    START_FLAG,
    WORD_SIZE,
    ExtendedMessageType,
    MessageType,
    ModuleConnection,
    Packet,
)
from frontpanel.wmclient import (
    WindowManagerLink,
    desk_index_for_viewport,
    desktop_size_from_config,
)


def _packet(ptype, words=(), data=b""):
    body = b"".join(struct.pack("L", w) for w in words) + data
    if len(body) % WORD_SIZE:
        body += b"\0" * (WORD_SIZE - len(body) % WORD_SIZE)
    size = 4 + len(body) // WORD_SIZE
    return struct.pack("4L", START_FLAG, int(ptype), size, 0) + body


def _config(text):
    return _packet(MessageType.CONFIG_INFO, (0, 0, 0), text.encode() + b"\0")


def _commands(raw):
    out = []
    pos = 0
    while pos < len(raw):
        window, length = struct.unpack_from("2L", raw, pos)
        pos += 2 * WORD_SIZE
        text = raw[pos:pos + length].decode()
        pos += length
        (keep,) = struct.unpack_from("L", raw, pos)
        pos += WORD_SIZE
        out.append((window, text, keep))
    return out


def _link(incoming=b"", callback=None):
    to_wm = io.BytesIO()
    conn = ModuleConnection(to_wm, io.BytesIO(incoming))
    return WindowManagerLink(conn, 1024, 768, callback), to_wm


def test_desktop_size_default():
    assert desktop_size_from_config([]) == (3, 3)
    assert desktop_size_from_config(["Other 1 2"], (5, 6)) == (5, 6)


def test_desktop_size_reads_values_case_insensitively():
    assert desktop_size_from_config(["desktopsize 4 2"]) == (4, 2)


def test_desktop_size_partial_and_bad_values():
    assert desktop_size_from_config(["DesktopSize 7"]) == (7, 3)
    assert desktop_size_from_config(["DesktopSize x 5"]) == (3, 5)


def test_desktop_size_later_line_wins():
    lines = ["DesktopSize 2 2", "DesktopSize 4 1"]
    assert desktop_size_from_config(lines) == (4, 1)


def test_desk_index_covers_grid_in_row_order():
    columns, rows = 4, 2
    indices = [
        desk_index_for_viewport(c * 1024, r * 768, 1024, 768, columns)
        for r in range(rows)
        for c in range(columns)
    ]
    assert indices == list(range(columns * rows))


def test_desk_index_inside_page():
    assert desk_index_for_viewport(1500, 800, 1024, 768, 3) == 4


def test_desk_index_bad_screen():
    with pytest.raises(ValueError):
        desk_index_for_viewport(0, 0, 0, 768, 3)


def test_start_handshake():
    incoming = _config("DesktopSize 4 2") + _packet(MessageType.END_CONFIG_INFO)
    link, to_wm = _link(incoming)
    assert link.start() == (4, 2)
    assert link.desk_grid == (4, 2)
    mask = int(
        MessageType.CONFIGURE_WINDOW
        | MessageType.DESTROY_WINDOW
        | MessageType.NEW_PAGE
        | MessageType.NEW_DESK
        | MessageType.CONFIG_INFO
        | MessageType.END_CONFIG_INFO
    )
    xmask = int(
        ExtendedMessageType.VISIBLE_ICON_NAME | ExtendedMessageType.PROPERTY_CHANGE
    )
    texts = [text for _, text, _ in _commands(to_wm.getvalue())]
    assert texts == [
        f"SET_MASK {mask}",
        f"SET_MASK {xmask}",
        "Send_ConfigInfo *panel",
        "Style panel Sticky, WindowListSkip",
    ]


def test_start_without_desktop_size_uses_default():
    link, _ = _link(_packet(MessageType.END_CONFIG_INFO))
    assert link.start() == (3, 3)


def test_send_command_writes_text():
    link, to_wm = _link()
    link.send_command("GotoPage 1 0")
    assert _commands(to_wm.getvalue()) == [(0, "GotoPage 1 0", 1)]


def test_handle_new_page_calls_back():
    seen = []
    link, _ = _link(
        _config("DesktopSize 3 3") + _packet(MessageType.END_CONFIG_INFO),
        seen.append,
    )
    link.start()
    packet = Packet(
        MessageType.NEW_PAGE, 6, 0, struct.pack("2L", 2 * 1024, 1 * 768)
    )
    index = link.handle_packet(packet)
    assert index == desk_index_for_viewport(2048, 768, 1024, 768, 3)
    assert seen == [index]


def test_handle_other_packet_ignored():
    seen = []
    link, _ = _link(callback=seen.append)
    packet = Packet(MessageType.NEW_DESK, 5, 0, struct.pack("L", 1))
    assert link.handle_packet(packet) is None
    assert seen == []


def test_handle_short_page_packet():
    link, _ = _link()
    with pytest.raises(ValueError):
        link.handle_packet(Packet(MessageType.NEW_PAGE, 5, 0, struct.pack("L", 0)))


def test_poll_over_pipe():
    seen = []
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb", buffering=0)
    try:
        conn = ModuleConnection(io.BytesIO(), reader)
        link = WindowManagerLink(conn, 1024, 768, seen.append)
        link.columns, link.rows = 2, 2
        assert link.poll(0) is None
        os.write(write_fd, _packet(MessageType.NEW_PAGE, (1024, 768)))
        packet = link.poll(1.0)
        assert packet.type == MessageType.NEW_PAGE
        assert seen == [desk_index_for_viewport(1024, 768, 1024, 768, 2)]
        os.close(write_fd)
        write_fd = None
        with pytest.raises(EOFError):
            link.poll(1.0)
    finally:
        reader.close()
        if write_fd is not None:
            os.close(write_fd)


def test_poll_stream_without_fileno_at_end():
    link, _ = _link(b"")
    with pytest.raises(EOFError):
        link.poll()