# src/tetris3d/game/core/rotation.py
from __future__ import annotations

from typing import Tuple

import numpy as np

from tetris3d.game.core.constants import YAW_STEP_DEG
from tetris3d.game.core.types import Axis

IDENTITY = np.eye(3, dtype=np.int64)


def quarter_turn(axis: Axis, direction: int = +1) -> np.ndarray:
    """
    Exact integer matrix for a right-handed 90° turn about a world axis.

    direction=+1 is counter-clockwise looking down the positive axis.
    """
    s = int(direction)
    if s not in (-1, 1):
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")

    if axis is Axis.X:
        rows = [[1, 0, 0], [0, 0, -s], [0, s, 0]]
    elif axis is Axis.Y:
        rows = [[0, 0, s], [0, 1, 0], [-s, 0, 0]]
    elif axis is Axis.Z:
        rows = [[0, -s, 0], [s, 0, 0], [0, 0, 1]]
    else:
        raise TypeError(f"axis must be an Axis, got {axis!r}")
    return np.asarray(rows, dtype=np.int64)


def apply_rotation(matrix: np.ndarray, offsets: np.ndarray) -> np.ndarray:
    """Rotate (N,3) integer offsets by a 3x3 integer matrix."""
    return np.asarray(offsets, dtype=np.int64) @ np.asarray(matrix, dtype=np.int64).T


# ---- board yaw remap ------------------------------------------------------------
#
# One quarter turn of the board footprint with extents (ex, ez):
#
#     (x, z) -> (ez - 1 - z, x)        new extents: (ez, ex)
#
# Every yaw is that step applied k = yaw / 90 times; world -> grid undoes the
# steps in reverse order. y is never touched.


def yaw_steps(yaw: int) -> int:
    y = int(yaw)
    if y % YAW_STEP_DEG != 0:
        raise ValueError(f"yaw must be a multiple of {YAW_STEP_DEG}, got {yaw!r}")
    return (y // YAW_STEP_DEG) % 4


def world_extents(width: int, depth: int, yaw: int) -> Tuple[int, int]:
    """World footprint (x-extent, z-extent) of a width x depth board at yaw."""
    if yaw_steps(yaw) % 2 == 0:
        return int(width), int(depth)
    return int(depth), int(width)


def grid_xz_to_world(x: int, z: int, *, width: int, depth: int, yaw: int) -> Tuple[int, int]:
    ex, ez = int(width), int(depth)
    for _ in range(yaw_steps(yaw)):
        x, z = ez - 1 - z, x
        ex, ez = ez, ex
    return int(x), int(z)


def world_xz_to_grid(x: int, z: int, *, width: int, depth: int, yaw: int) -> Tuple[int, int]:
    k = yaw_steps(yaw)
    # extents before step j are (width, depth) for even j, (depth, width) for odd j
    for j in range(k - 1, -1, -1):
        ez_before = int(depth) if j % 2 == 0 else int(width)
        x, z = z, ez_before - 1 - x
    return int(x), int(z)


__all__ = [
    "IDENTITY",
    "quarter_turn",
    "apply_rotation",
    "yaw_steps",
    "world_extents",
    "grid_xz_to_world",
    "world_xz_to_grid",
]
