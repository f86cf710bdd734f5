"""Reading and writing the panel's resource file."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .records import (
    ContainerType,
    ControlRecord,
    ControlTable,
    ControlType,
    DeskRecord,
    DeskTable,
    PanelSettings,
    SubpanelModel,
    SubpanelRecord,
    SubpanelTable,
)
from .scanner import Scanner, Token

APP_CLASS = "Panel"
APP_NAME = "panel"


class Keyword(enum.Enum):
    """Reserved words of the resource file."""

    CONTROL = 1
    SWITCH = 2
    ICON = 3
    PUSH_ACTION = 4
    DROP_ACTION = 5
    LABEL = 6
    SUBPANEL = 7
    PANEL = 8
    TYPE = 9
    CONTAINER_NAME = 10
    CONTAINER_TYPE = 11
    BOX = 12
    NUMBER_OF_ROWS = 13
    LOCK = 14
    BIFF = 15
    ALTERNATE_ICON = 16
    SUBPANEL_OFFSET = 17
    TRUE = 18
    FALSE = 19
    ANIMATED_SUBPANELS = 20
    CLOCK = 21
    BLANK = 22
    PIXMAP_PATH = 23


_KEYWORDS: Dict[str, Keyword] = {
    "CONTROL": Keyword.CONTROL,
    "CONTAINER_NAME": Keyword.CONTAINER_NAME,
    "CONTAINER_TYPE": Keyword.CONTAINER_TYPE,
    "TYPE": Keyword.TYPE,
    "ICON": Keyword.ICON,
    "PUSH_ACTION": Keyword.PUSH_ACTION,
    "DROP_ACTION": Keyword.DROP_ACTION,
    "LABEL": Keyword.LABEL,
    "SUBPANEL": Keyword.SUBPANEL,
    "BOX": Keyword.BOX,
    "True": Keyword.TRUE,
    "False": Keyword.FALSE,
    "blank": Keyword.BLANK,
    "PANEL": Keyword.PANEL,
    "NUMBER_OF_ROWS": Keyword.NUMBER_OF_ROWS,
    "clock": Keyword.CLOCK,
    "LOCK": Keyword.LOCK,
    "ANIMATED_SUBPANELS": Keyword.ANIMATED_SUBPANELS,
    "SWITCH": Keyword.SWITCH,
    "SUBPANEL_OFFSET": Keyword.SUBPANEL_OFFSET,
    "ALTERNATE_ICON": Keyword.ALTERNATE_ICON,
    "PIXMAP_PATH": Keyword.PIXMAP_PATH,
    "biff": Keyword.BIFF,
}

_CONTROL_TYPES = {
    Keyword.BIFF: ControlType.BIFF,
    Keyword.ICON: ControlType.ICON,
    Keyword.CLOCK: ControlType.CLOCK,
    Keyword.BLANK: ControlType.BLANK,
}

_CONTROL_TYPE_NAMES = {
    ControlType.ICON: "icon",
    ControlType.BLANK: "blank",
    ControlType.CLOCK: "clock",
    ControlType.BIFF: "biff",
}

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


@dataclass
class PanelConfig:
    """Everything read from a resource file."""

    settings: PanelSettings = field(default_factory=PanelSettings)
    controls: ControlTable = field(default_factory=ControlTable)
    subpanels: SubpanelTable = field(default_factory=SubpanelTable)
    desks: DeskTable = field(default_factory=DeskTable)
    errors: List[str] = field(default_factory=list)


def _atoi(text: str) -> int:
    found = _INT_PREFIX.match(text)
    return int(found.group(1)) if found else 0


class _Parser:
    def __init__(
        self,
        scanner: Scanner,
        desk_grid: Optional[Tuple[int, int]],
    ) -> None:
        self.scanner = scanner
        self.desk_grid = desk_grid
        self.config = PanelConfig(errors=scanner.errors)

    def parse(self) -> PanelConfig:
        s = self.scanner
        while True:
            token = s.next_token()
            if token is Token.EOF:
                return self.config
            if token is Keyword.PANEL:
                self._panel_attributes()
            elif token is Keyword.CONTROL:
                self.config.controls.register(self._control())
            elif token is Keyword.SWITCH:
                self._switch()
            elif token is Keyword.SUBPANEL:
                self.config.subpanels.register(self._subpanel())
            else:
                raise ValueError(
                    f"line {s.line}: unexpected {s.describe(token)} at top level"
                )

    def _panel_attributes(self) -> None:
        s = self.scanner
        settings = self.config.settings
        while True:
            token = s.next_token()
            if token is Token.RBRACE or token is Token.EOF:
                break
            if token is Keyword.PIXMAP_PATH:
                s.match(Keyword.PIXMAP_PATH)
                s.match(Token.ID)
                settings.pixmap_path = s.capture()
            elif token is Keyword.LOCK:
                s.match(Keyword.LOCK)
                s.scan_id()
                settings.lock = s.capture()
            elif token is Keyword.ANIMATED_SUBPANELS:
                s.match(Keyword.ANIMATED_SUBPANELS)
                settings.subpanel_model = (
                    SubpanelModel.POP_UP
                    if s.next_token() is Keyword.FALSE
                    else SubpanelModel.SLIDE_UP
                )
                s.match(Token.ANYTHING)
            elif token is Keyword.SUBPANEL_OFFSET:
                s.match(Keyword.SUBPANEL_OFFSET)
                s.match(Token.ANYTHING)
                settings.subpanel_x_offset = _atoi(s.capture())
                s.match(Token.COMMA)
                s.match(Token.ANYTHING)
                settings.subpanel_y_offset = _atoi(s.capture())
            else:
                s.match(Token.ANYTHING)
        s.match(Token.RBRACE)

    def _control(self) -> ControlRecord:
        s = self.scanner
        control = ControlRecord()
        s.match(Keyword.CONTROL)
        s.match(Token.ID)
        control.id = s.capture()
        s.match(Token.LBRACE)
        while True:
            token = s.next_token()
            if token is Token.RBRACE or token is Token.EOF:
                break
            if token is Keyword.TYPE:
                s.match(Keyword.TYPE)
                kind = _CONTROL_TYPES.get(s.next_token())
                if kind is not None:
                    control.control_type = kind
                s.match(Token.ANYTHING)
            elif token is Keyword.CONTAINER_NAME:
                s.match(Keyword.CONTAINER_NAME)
                s.match(Token.ID)
                control.container_name = s.capture()
            elif token is Keyword.CONTAINER_TYPE:
                s.match(Keyword.CONTAINER_TYPE)
                kind_token = s.next_token()
                if kind_token is Keyword.BOX:
                    s.match(Keyword.BOX)
                    control.container_type = ContainerType.BOX
                elif kind_token is Keyword.SUBPANEL:
                    s.match(Keyword.SUBPANEL)
                    control.container_type = ContainerType.SUBPANEL
                else:
                    s.errors.append(f"Bad container type '{s.capture()}'")
                    s.match(Token.ANYTHING)
            elif token is Keyword.LABEL:
                s.match(Keyword.LABEL)
                s.scan_id()
                control.label = s.capture()
            elif token is Keyword.ICON:
                s.match(Keyword.ICON)
                s.match(Token.ID)
                control.icon = s.capture()
            elif token is Keyword.ALTERNATE_ICON:
                s.match(Keyword.ALTERNATE_ICON)
                s.match(Token.ID)
                control.alt_icon = s.capture()
            elif token is Keyword.PUSH_ACTION:
                s.match(Keyword.PUSH_ACTION)
                s.scan_id()
                control.click_action = s.capture()
            else:
                s.errors.append(f"Error '{s.capture()}'")
                s.match(Token.ANYTHING)
        s.match(Token.RBRACE)
        return control

    def _subpanel(self) -> SubpanelRecord:
        s = self.scanner
        subpanel = SubpanelRecord()
        s.match(Keyword.SUBPANEL)
        s.match(Token.ID)
        subpanel.id = s.capture()
        s.match(Token.LBRACE)
        while True:
            token = s.next_token()
            if token is Token.RBRACE or token is Token.EOF:
                break
            if token is Keyword.LABEL:
                s.match(Keyword.LABEL)
                s.scan_id()
                subpanel.label = s.capture()
            elif token is Keyword.CONTAINER_NAME:
                s.match(Keyword.CONTAINER_NAME)
                s.match(Token.ID)
                subpanel.container_name = s.capture()
            else:
                s.match(Token.ANYTHING)
        s.match(Token.RBRACE)
        return subpanel

    def _switch(self) -> None:
        """Read the desk switch, fitted to the window manager's page grid if known."""
        s = self.scanner
        desks = self.config.desks
        grid = self.desk_grid
        wm_connected = grid is not None and grid[0] != 0 and grid[1] != 0
        columns, rows = grid if wm_connected else (0, 0)
        count = columns * rows

        s.match(Keyword.SWITCH)
        s.match(Token.LBRACE)

        rc_done = wm_done = False
        index = tx = ty = 0
        while True:
            desk = DeskRecord()
            if index < count:
                desk.x, desk.y = tx, ty
                tx += 1
                if tx >= columns:
                    tx = 0
                    ty += 1
            else:
                desk.x = desk.y = -1

            if wm_connected and not wm_done and rc_done:
                desk.label = str(index + 1)
                desks.register(desk)

            if not rc_done:
                if s.next_token() is Token.ID:
                    s.match(Token.ID)
                    text = s.capture()
                    if not wm_done:
                        desk.label = text
                    if s.next_token() is Token.COMMA:
                        s.match(Token.COMMA)
                    else:
                        rc_done = True
                    if not wm_done:
                        desks.register(desk)
                else:
                    rc_done = True

            index += 1
            if wm_connected and index >= count:
                wm_done = True
            if rc_done and (not wm_connected or wm_done):
                break

        s.match(Token.RBRACE)


def parse_panelrc(
    text: str,
    desk_grid: Optional[Tuple[int, int]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PanelConfig:
    """Parse resource-file text.

    ``desk_grid`` is the window manager's (columns, rows) page grid, or
    None when no window manager is connected.  Recoverable problems are
    collected in ``PanelConfig.errors``.
    """
    scanner = Scanner(text, _KEYWORDS, environ)
    return _Parser(scanner, desk_grid).parse()


def read_panelrc(
    path: Union[str, os.PathLike],
    desk_grid: Optional[Tuple[int, int]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PanelConfig:
    """Read and parse a resource file."""
    scanner = Scanner.from_file(path, _KEYWORDS, environ)
    return _Parser(scanner, desk_grid).parse()


def _line(attr: str, value: Optional[str]) -> str:
    return f"\t{attr} {value}\n" if value is not None else ""


def format_panelrc(config: PanelConfig) -> str:
    """Render a configuration in resource-file syntax."""
    settings = config.settings
    parts = ["PANEL {\n", _line("LOCK", settings.lock)]
    parts.append(
        f"\tSUBPANEL_OFFSET\t\t\t{settings.subpanel_x_offset}, "
        f"{settings.subpanel_y_offset}\n"
    )
    parts.append(_line("PIXMAP_PATH", settings.pixmap_path))
    parts.append(
        _line(
            "ANIMATED_SUBPANELS",
            "True" if settings.subpanel_model is SubpanelModel.SLIDE_UP else "False",
        )
    )
    parts.append("}\n\n")

    labels = [desk.label or "" for desk in config.desks]
    parts.append("SWITCH {")
    parts.extend(
        label + (" " if position == len(labels) - 1 else ",")
        for position, label in enumerate(labels)
    )
    parts.append("}\n\n")

    for subpanel in config.subpanels:
        parts.append(f"SUBPANEL {subpanel.id} {{\n")
        parts.append(_line("LABEL", subpanel.label))
        parts.append(_line("CONTAINER_NAME", subpanel.container_name))
        parts.append("}\n\n")

    for control in config.controls:
        parts.append(f"CONTROL {control.id} {{\n")
        parts.append(_line("TYPE", _CONTROL_TYPE_NAMES[control.control_type]))
        parts.append(_line("LABEL", control.label))
        parts.append(_line("CONTAINER_NAME", control.container_name))
        parts.append(
            _line(
                "CONTAINER_TYPE",
                "BOX" if control.container_type is ContainerType.BOX else "SUBPANEL",
            )
        )
        parts.append(_line("ICON", control.icon))
        parts.append(_line("PUSH_ACTION", control.click_action))
        parts.append("}\n\n")

    return "".join(parts)


def write_panelrc(config: PanelConfig, path: Union[str, os.PathLike]) -> None:
    """Write a configuration to a resource file."""
    Path(path).write_text(format_panelrc(config), encoding="utf-8")