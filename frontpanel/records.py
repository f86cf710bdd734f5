"""Records describing panel controls, subpanels and desks, and the tables that hold them."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional

MAX_CONTROLS = 50
MAX_DESKS = 10


class ContainerType(enum.Enum):
    """Where a control lives on the panel."""

    BOX = enum.auto()
    SUBPANEL = enum.auto()
    SWITCH = enum.auto()


class ControlType(enum.Enum):
    """What kind of widget a control is."""

    ICON = enum.auto()
    BIFF = enum.auto()
    CLOCK = enum.auto()
    BLANK = enum.auto()


class SubpanelModel(enum.Enum):
    """How subpanels appear when opened."""

    SLIDE_UP = enum.auto()
    POP_UP = enum.auto()


class ActionType(enum.Enum):
    """How a control's action is carried out."""

    INTERNAL = enum.auto()
    SHELL = enum.auto()


@dataclass
class SubpanelRecord:
    """A subpanel that slides or pops up above a control."""

    id: Optional[str] = None
    label: Optional[str] = None
    container_name: Optional[str] = None
    is_open: bool = False
    x: int = 0
    y: int = 0
    height: int = 0
    needs_coords: bool = True


@dataclass
class ControlRecord:
    """A single control on the panel or inside a subpanel."""

    id: Optional[str] = None
    click_action: Optional[str] = None
    drop_action: Optional[str] = None
    icon: Optional[str] = None
    alt_icon: Optional[str] = None
    label: Optional[str] = None
    container_name: Optional[str] = None
    container_type: ContainerType = ContainerType.BOX
    control_type: ControlType = ControlType.ICON
    action_type: ActionType = ActionType.SHELL
    subpanel: Optional[SubpanelRecord] = None


@dataclass
class DeskRecord:
    """One button of the desk switch and the page it selects."""

    label: Optional[str] = None
    x: int = 0
    y: int = 0


@dataclass
class PanelSettings:
    """Attributes that apply to the whole panel."""

    lock: Optional[str] = None
    pixmap_path: Optional[str] = None
    subpanel_model: SubpanelModel = SubpanelModel.POP_UP
    subpanel_x_offset: int = 0
    subpanel_y_offset: int = 0


class TableFullError(Exception):
    """Raised when a fixed-size table has no room for another record."""


class ControlTable:
    """Controls kept in the order they were registered."""

    def __init__(self) -> None:
        self._controls: List[ControlRecord] = []

    def register(self, control: ControlRecord) -> None:
        self._controls.append(control)

    def lookup(self, control_id: Optional[str]) -> Optional[ControlRecord]:
        """Return the first control with the given id, or None."""
        if control_id is None:
            return None
        return next((c for c in self._controls if c.id == control_id), None)

    def __iter__(self) -> Iterator[ControlRecord]:
        return iter(self._controls)

    def __len__(self) -> int:
        return len(self._controls)


class SubpanelTable:
    """Subpanels, the most recently registered first."""

    def __init__(self) -> None:
        self._subpanels: List[SubpanelRecord] = []

    def register(self, subpanel: SubpanelRecord) -> None:
        self._subpanels.insert(0, subpanel)

    def lookup(self, subpanel_id: Optional[str]) -> Optional[SubpanelRecord]:
        """Return the first subpanel with the given id, or None."""
        if subpanel_id is None:
            return None
        return next((s for s in self._subpanels if s.id == subpanel_id), None)

    def __iter__(self) -> Iterator[SubpanelRecord]:
        return iter(self._subpanels)

    def __len__(self) -> int:
        return len(self._subpanels)


class DeskTable:
    """The desks of the desk switch, in order, up to a fixed capacity."""

    def __init__(self, capacity: int = MAX_DESKS) -> None:
        self.capacity = capacity
        self._desks: List[DeskRecord] = []

    def register(self, desk: DeskRecord) -> None:
        if len(self._desks) >= self.capacity:
            raise TableFullError(
                f"desk table holds at most {self.capacity} desks"
            )
        self._desks.append(desk)

    def __iter__(self) -> Iterator[DeskRecord]:
        return iter(self._desks)

    def __len__(self) -> int:
        return len(self._desks)

    def __getitem__(self, index: int) -> DeskRecord:
        return self._desks[index]