"""The pipe protocol a window-manager module uses to talk to its window manager."""

from __future__ import annotations

import enum
import string
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Sequence, Tuple

_WORD = struct.Struct("L")
WORD_SIZE = _WORD.size

START_FLAG = 0xFFFFFFFF

PACKET_HEADER_SIZE = 4
PACKET_MAX_SIZE = 256
PACKET_BODY_MAX_SIZE = PACKET_MAX_SIZE - PACKET_HEADER_SIZE
PACKET_HEADER_SIZE_BYTES = PACKET_HEADER_SIZE * WORD_SIZE
PACKET_MAX_SIZE_BYTES = PACKET_MAX_SIZE * WORD_SIZE

FINISHED_STARTUP_RESPONSE = "NOP FINISHED STARTUP"
UNLOCK_RESPONSE = "NOP UNLOCK"

MAX_MESSAGES = 31
MAX_MSG_MASK = 0x7FFFFFFF
MAX_EXTENDED_MESSAGES = 4
MAX_XMSG_MASK = 0x0000000F

_WHITESPACE = string.whitespace


class MessageType(enum.IntEnum):
    """Packet types sent by the window manager; also bits of a message mask."""

    NEW_PAGE = 1
    NEW_DESK = 1 << 1
    OLD_ADD_WINDOW = 1 << 2
    RAISE_WINDOW = 1 << 3
    LOWER_WINDOW = 1 << 4
    OLD_CONFIGURE_WINDOW = 1 << 5
    FOCUS_CHANGE = 1 << 6
    DESTROY_WINDOW = 1 << 7
    ICONIFY = 1 << 8
    DEICONIFY = 1 << 9
    WINDOW_NAME = 1 << 10
    ICON_NAME = 1 << 11
    RES_CLASS = 1 << 12
    RES_NAME = 1 << 13
    END_WINDOWLIST = 1 << 14
    ICON_LOCATION = 1 << 15
    MAP = 1 << 16
    ERROR = 1 << 17
    CONFIG_INFO = 1 << 18
    END_CONFIG_INFO = 1 << 19
    ICON_FILE = 1 << 20
    DEFAULTICON = 1 << 21
    STRING = 1 << 22
    MINI_ICON = 1 << 23
    WINDOWSHADE = 1 << 24
    DEWINDOWSHADE = 1 << 25
    VISIBLE_NAME = 1 << 26
    SENDCONFIG = 1 << 27
    RESTACK = 1 << 28
    ADD_WINDOW = 1 << 29
    CONFIGURE_WINDOW = 1 << 30
    EXTENDED_MSG = 1 << 31


class ExtendedMessageType(enum.IntEnum):
    """Extended packet types; each carries the extended-message bit."""

    VISIBLE_ICON_NAME = (1 << 0) | MessageType.EXTENDED_MSG
    ENTER_WINDOW = (1 << 1) | MessageType.EXTENDED_MSG
    LEAVE_WINDOW = (1 << 2) | MessageType.EXTENDED_MSG
    PROPERTY_CHANGE = (1 << 3) | MessageType.EXTENDED_MSG


@dataclass(frozen=True)
class Packet:
    """One packet read from the window manager."""

    type: int
    size: int
    timestamp: int
    data: bytes = b""

    @property
    def body_size(self) -> int:
        """Number of words in the body."""
        return self.size - PACKET_HEADER_SIZE

    @property
    def body(self) -> Tuple[int, ...]:
        """The body as a tuple of words."""
        usable = len(self.data) - len(self.data) % WORD_SIZE
        return tuple(word for (word,) in _WORD.iter_unpack(self.data[:usable]))

    @property
    def config_text(self) -> str:
        """The text of a configuration packet, leading whitespace removed.

        Such packets start with three zero words before the text.
        """
        raw = self.data[3 * WORD_SIZE:].split(b"\0", 1)[0]
        return raw.decode("utf-8", errors="replace").lstrip(_WHITESPACE)


@dataclass
class ModuleArgs:
    """The command-line arguments a window manager hands to a module."""

    name: str
    to_wm: int
    from_wm: int
    window: int
    decoration: int
    user_argv: List[str] = field(default_factory=list)

    @property
    def namelen(self) -> int:
        return len(self.name)

    @property
    def user_argc(self) -> int:
        return len(self.user_argv)


def _read_exact(stream: BinaryIO, count: int) -> Optional[bytes]:
    chunks = []
    while count > 0:
        chunk = stream.read(count)
        if not chunk:
            return None
        chunks.append(chunk)
        count -= len(chunk)
    return b"".join(chunks)


def read_packet(stream: BinaryIO) -> Optional[Packet]:
    """Read one packet, skipping words until the start flag.

    Returns None when the stream ends. Raises ValueError for a packet
    whose declared size does not fit.
    """
    while True:
        raw = _read_exact(stream, WORD_SIZE)
        if raw is None:
            return None
        if _WORD.unpack(raw)[0] == START_FLAG:
            break
    header = _read_exact(stream, 3 * WORD_SIZE)
    if header is None:
        return None
    ptype, size, timestamp = struct.unpack("3L", header)
    if size < PACKET_HEADER_SIZE:
        raise ValueError(f"packet size {size} is smaller than its header")
    length = (size - PACKET_HEADER_SIZE) * WORD_SIZE
    if length > PACKET_MAX_SIZE_BYTES - PACKET_HEADER_SIZE_BYTES:
        raise ValueError(f"packet too long: {size} words")
    data = _read_exact(stream, length)
    if data is None:
        return None
    return Packet(ptype, size, timestamp, data)


def encode_text(message: str, window: int = 0, keep_going: int = 1) -> bytes:
    """Encode a text command for the window manager."""
    encoded = message.encode("utf-8")
    return (
        _WORD.pack(window)
        + _WORD.pack(len(encoded))
        + encoded
        + _WORD.pack(keep_going)
    )


def _atoi(text: str) -> int:
    text = text.lstrip(_WHITESPACE)
    sign = 1
    if text[:1] in "+-" and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for ch in text:
        if not ch.isdigit() or not ch.isascii():
            break
        digits += ch
    return sign * int(digits) if digits else 0


def _hex_to_int(text: str) -> int:
    text = text.lstrip(_WHITESPACE)
    negative = False
    if text[:1] in ("+", "-") and text:
        negative = text[0] == "-"
        text = text[1:]
    if text[:2].lower() == "0x" and text[2:3] and text[2] in string.hexdigits:
        text = text[2:]
    digits = ""
    for ch in text:
        if ch not in string.hexdigits:
            break
        digits += ch
    value = int(digits, 16) if digits else 0
    return -value if negative else value


def parse_module_args(
    argv: Sequence[str], use_arg6_as_alias: bool = False
) -> ModuleArgs:
    """Parse the arguments a window manager passes to a module.

    Raises ValueError when fewer than six arguments are given.
    """
    if len(argv) < 6:
        raise ValueError("a module needs at least six arguments")
    if use_arg6_as_alias and len(argv) >= 7:
        name = argv[6]
        user_argv = list(argv[7:])
    else:
        name = argv[0].rsplit("/", 1)[-1]
        user_argv = list(argv[6:])
    return ModuleArgs(
        name=name,
        to_wm=_atoi(argv[1]),
        from_wm=_atoi(argv[2]),
        window=_hex_to_int(argv[4]),
        decoration=_hex_to_int(argv[5]),
        user_argv=user_argv,
    )


def str_equals(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two strings ignoring case; two Nones are equal."""
    if first is None and second is None:
        return True
    if first is None or second is None:
        return False
    return first.lower() == second.lower()


class ModuleConnection:
    """Both ends of the pipe pair between a module and its window manager."""

    def __init__(self, to_wm: BinaryIO, from_wm: BinaryIO) -> None:
        self.to_wm = to_wm
        self.from_wm = from_wm
        self.keep_going = True
        self._first_pass = True

    def send_text(self, message: Optional[str], window: int = 0) -> None:
        """Send a text command; a None message sends nothing."""
        if message is None:
            return
        self.to_wm.write(encode_text(message, window, int(self.keep_going)))
        self.to_wm.flush()

    def send_pipe(self, message: str, window: int = 0) -> None:
        """Send each comma-separated part of ``message`` as its own command."""
        for part in message.split(","):
            self.send_text(part, window)

    def set_message_mask(self, mask: int) -> None:
        self.send_text(f"SET_MASK {int(mask)}")

    def set_sync_mask(self, mask: int) -> None:
        self.send_text(f"SET_SYNC_MASK {int(mask)}")

    def set_no_grab_mask(self, mask: int) -> None:
        self.send_text(f"SET_NOGRAB_MASK {int(mask)}")

    def send_finished_startup(self) -> None:
        self.send_text(FINISHED_STARTUP_RESPONSE)

    def send_unlock(self) -> None:
        self.send_text(UNLOCK_RESPONSE)

    def send_quit(self) -> None:
        """Tell the window manager the module is finished and may be killed."""
        self.keep_going = False
        self.send_text(UNLOCK_RESPONSE)

    def init_get_config_line(self, match: str) -> None:
        """Ask only for configuration lines matching ``match``."""
        self._first_pass = False
        self.send_text(f"Send_ConfigInfo {match}")

    def get_config_line(self) -> Optional[str]:
        """Return the next configuration line, or None when there are no more."""
        if self._first_pass:
            self.send_text("Send_ConfigInfo")
            self._first_pass = False
        while True:
            packet = self.read_packet()
            if packet is None or packet.type == MessageType.END_CONFIG_INFO:
                return None
            if packet.type == MessageType.CONFIG_INFO:
                return packet.config_text

    def config_lines(self) -> Iterator[str]:
        """Yield configuration lines until the window manager ends the list."""
        while True:
            line = self.get_config_line()
            if line is None:
                return
            yield line

    def read_packet(self) -> Optional[Packet]:
        return read_packet(self.from_wm)