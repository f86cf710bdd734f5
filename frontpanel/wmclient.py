"""Panel side of the window-manager link: start-up handshake and page tracking."""

from __future__ import annotations

import io
import select
import string
from typing import Callable, Iterable, Optional, Tuple

from .panelrc import APP_NAME
from .protocol import (
    ExtendedMessageType,
    MessageType,
    ModuleConnection,
    Packet,
    str_equals,
)

DEFAULT_DESKTOP_SIZE: Tuple[int, int] = (3, 3)

MESSAGE_MASK = (
    MessageType.CONFIGURE_WINDOW
    | MessageType.DESTROY_WINDOW
    | MessageType.NEW_PAGE
    | MessageType.NEW_DESK
    | MessageType.CONFIG_INFO
    | MessageType.END_CONFIG_INFO
)
EXTENDED_MESSAGE_MASK = (
    ExtendedMessageType.VISIBLE_ICON_NAME | ExtendedMessageType.PROPERTY_CHANGE
)
CONFIG_MATCH = "*" + APP_NAME
STYLE_COMMAND = f"Style {APP_NAME} Sticky, WindowListSkip"


def _scan_int(token: str) -> Optional[int]:
    """Read a leading decimal integer the way ``%d`` does; None if there is none."""
    text = token.lstrip(string.whitespace)
    sign = 1
    if text[:1] in ("+", "-") and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for ch in text:
        if ch not in string.digits:
            break
        digits += ch
    return sign * int(digits) if digits else None


def desktop_size_from_config(
    lines: Iterable[str], default: Tuple[int, int] = DEFAULT_DESKTOP_SIZE
) -> Tuple[int, int]:
    """Return the (columns, rows) page grid named by ``DesktopSize`` lines.

    A later line overrides an earlier one; a value that is missing or not a
    number leaves the previous one in place.
    """
    columns, rows = default
    for line in lines:
        tokens = line.split()
        if not tokens or not str_equals(tokens[0], "DesktopSize"):
            continue
        if len(tokens) > 1:
            value = _scan_int(tokens[1])
            if value is not None:
                columns = value
            if len(tokens) > 2:
                value = _scan_int(tokens[2])
                if value is not None:
                    rows = value
    return columns, rows


def desk_index_for_viewport(
    vx: int, vy: int, screen_width: int, screen_height: int, columns: int
) -> int:
    """Return the desk-switch index of the page whose corner is at (vx, vy)."""
    if screen_width <= 0 or screen_height <= 0:
        raise ValueError("screen dimensions must be positive")
    column = vx // screen_width
    row = vy // screen_height
    return columns * row + column


class WindowManagerLink:
    """Talks to the window manager on behalf of the panel."""

    def __init__(
        self,
        connection: ModuleConnection,
        screen_width: int,
        screen_height: int,
        on_new_page: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.connection = connection
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.on_new_page = on_new_page
        self.columns = 0
        self.rows = 0

    @property
    def desk_grid(self) -> Tuple[int, int]:
        return self.columns, self.rows

    def start(self) -> Tuple[int, int]:
        """Subscribe to messages, read the page grid and register the panel's style."""
        conn = self.connection
        conn.set_message_mask(MESSAGE_MASK)
        conn.set_message_mask(EXTENDED_MESSAGE_MASK)
        conn.init_get_config_line(CONFIG_MATCH)
        self.columns, self.rows = desktop_size_from_config(conn.config_lines())
        self.send_command(STYLE_COMMAND)
        return self.desk_grid

    def send_command(self, command: Optional[str]) -> None:
        """Send one command to the window manager."""
        self.connection.send_text(command, 0)

    def handle_packet(self, packet: Packet) -> Optional[int]:
        """React to a packet; return the selected desk index for a page change."""
        if packet.type != MessageType.NEW_PAGE:
            return None
        body = packet.body
        if len(body) < 2:
            raise ValueError("page packet carries fewer than two words")
        index = desk_index_for_viewport(
            body[0], body[1], self.screen_width, self.screen_height, self.columns
        )
        if self.on_new_page is not None:
            self.on_new_page(index)
        return index

    def _ready(self, timeout: float) -> bool:
        try:
            fileno = self.connection.from_wm.fileno()
        except (AttributeError, io.UnsupportedOperation, OSError):
            return True
        readable, _, _ = select.select([fileno], [], [], timeout)
        return bool(readable)

    def poll(self, timeout: float = 0.0) -> Optional[Packet]:
        """Handle one waiting packet, if any, and return it.

        Raises EOFError when the window manager has closed its end.
        """
        if not self._ready(timeout):
            return None
        packet = self.connection.read_packet()
        if packet is None:
            raise EOFError("window manager closed the connection")
        self.handle_packet(packet)
        return packet