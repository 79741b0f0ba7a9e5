# src/tetris3d/game/core/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Tuple, Union

import numpy as np

Coord = Tuple[int, int, int]
BlockHandle = int


class Axis(Enum):
    X = 0
    Y = 1
    Z = 2


class PlaneFamily(Enum):
    """
    Axis family of a clearable plane.

      HORIZONTAL: fixed y (XZ plane), cleared cells above fall down
      DEPTH:      fixed z (XY plane), cells behind move forward
      WIDTH:      fixed x (YZ plane), cells to the right move left
    """

    HORIZONTAL = Axis.Y
    DEPTH = Axis.Z
    WIDTH = Axis.X

    @property
    def axis(self) -> Axis:
        return self.value


# Fixed resolution order on lock.
PLANE_ORDER: tuple[PlaneFamily, ...] = (PlaneFamily.HORIZONTAL, PlaneFamily.DEPTH, PlaneFamily.WIDTH)

DOWN: Coord = (0, -1, 0)


# ---- input commands -------------------------------------------------------------


@dataclass(frozen=True)
class Move:
    delta: Coord

    def __post_init__(self) -> None:
        d = tuple(int(v) for v in self.delta)
        if len(d) != 3 or sum(abs(v) for v in d) != 1:
            raise ValueError(f"Move.delta must be an axis-aligned unit vector, got {self.delta!r}")
        object.__setattr__(self, "delta", d)


@dataclass(frozen=True)
class Rotate:
    axis: Axis
    direction: int = +1

    def __post_init__(self) -> None:
        if int(self.direction) not in (-1, 1):
            raise ValueError(f"Rotate.direction must be +1 or -1, got {self.direction!r}")


@dataclass(frozen=True)
class RotateBoard:
    direction: int = +1

    def __post_init__(self) -> None:
        if int(self.direction) not in (-1, 1):
            raise ValueError(f"RotateBoard.direction must be +1 or -1, got {self.direction!r}")


@dataclass(frozen=True)
class HardDrop:
    pass


@dataclass(frozen=True)
class SetFastFall:
    enabled: bool = True


Command = Union[Move, Rotate, RotateBoard, HardDrop, SetFastFall]


# ---- events -----------------------------------------------------------------------


class EventKind(Enum):
    SPAWN = auto()
    LOCK = auto()
    CLEAR = auto()
    LEVEL_UP = auto()
    BOARD_ROTATED = auto()
    GAME_OVER = auto()


@dataclass(frozen=True)
class GameEvent:
    kind: EventKind
    time: float
    value: int = 0


# ---- snapshot ---------------------------------------------------------------------


@dataclass(frozen=True)
class MatchState:
    """
    Render-/HUD-facing snapshot.

    - occupancy is a bool view of the LOCKED grid, shape (width, height + overflow, depth)
    - active_cells / ghost_cells are in WORLD coordinates (renderer space)
    - yaw is the logical yaw; display_yaw is interpolated during a board transition
    """

    occupancy: np.ndarray
    score: int
    planes_cleared: int
    level: int
    game_over: bool

    active_kind: str | None
    active_cells: tuple[Coord, ...]
    ghost_cells: tuple[Coord, ...]

    yaw: int
    display_yaw: float
    transitioning: bool

    fall_interval: float
    pieces_placed: int
    best_score: int = 0
    events: tuple[GameEvent, ...] = field(default_factory=tuple)


__all__ = [
    "Coord",
    "BlockHandle",
    "Axis",
    "PlaneFamily",
    "PLANE_ORDER",
    "DOWN",
    "Move",
    "Rotate",
    "RotateBoard",
    "HardDrop",
    "SetFastFall",
    "Command",
    "EventKind",
    "GameEvent",
    "MatchState",
]
