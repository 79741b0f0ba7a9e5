# src/tetris3d/game/core/piece.py
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from tetris3d.game.core.constants import KICK_OFFSETS
from tetris3d.game.core.errors import PieceLockedError
from tetris3d.game.core.grid import VoxelGrid
from tetris3d.game.core.orientation import BoardOrientation
from tetris3d.game.core.rotation import IDENTITY, apply_rotation, quarter_turn
from tetris3d.game.core.types import DOWN, Axis, Coord


class Piece:
    """
    The falling piece.

    Contracts:
      - blocks are fixed in the piece-local frame at creation; orientation is an
        exact integer rotation matrix applied local -> world (never re-derived)
      - world cell = R @ local + anchor; the local origin is the rotation pivot
      - validity of a placement = every world cell maps (through the board
        orientation) to a FREE grid cell
      - rejected moves/rotations leave the piece untouched and return False
      - once locked, every mutating call raises PieceLockedError
    """

    def __init__(
            self,
            *,
            kind: str,
            blocks: Sequence[Coord] | np.ndarray,
            anchor: Coord,
            grid: VoxelGrid,
            orientation: Optional[BoardOrientation] = None,
            rotation: Optional[np.ndarray] = None,
    ) -> None:
        local = np.asarray(blocks, dtype=np.int64).reshape(-1, 3)
        if local.shape[0] == 0:
            raise ValueError(f"piece {kind!r} must have at least one block")

        self.kind = str(kind)
        self.grid = grid
        self.orientation = orientation
        self._local = local
        self._rot = IDENTITY.copy() if rotation is None else np.asarray(rotation, dtype=np.int64).copy()
        self._anchor = np.asarray(anchor, dtype=np.int64).reshape(3).copy()
        self._fall_timer = 0.0
        self.locked = False

    # ---- geometry ----------------------------------------------------------------

    @property
    def anchor(self) -> Coord:
        a = self._anchor
        return int(a[0]), int(a[1]), int(a[2])

    @property
    def rotation(self) -> np.ndarray:
        return self._rot.copy()

    @property
    def fall_timer(self) -> float:
        return float(self._fall_timer)

    def _world(self, rot: np.ndarray, anchor: np.ndarray) -> np.ndarray:
        return apply_rotation(rot, self._local) + anchor

    def cells(self) -> Tuple[Coord, ...]:
        """World cells, in block order."""
        w = self._world(self._rot, self._anchor)
        return tuple((int(x), int(y), int(z)) for (x, y, z) in w)

    def grid_cells(self) -> Tuple[Coord, ...]:
        return tuple(self._to_grid(c) for c in self.cells())

    def _to_grid(self, world: Coord, yaw: Optional[int] = None) -> Coord:
        if self.orientation is None:
            return world
        return self.orientation.world_to_grid(world, yaw)

    def _fits(self, world: np.ndarray, yaw: Optional[int] = None) -> bool:
        for x, y, z in world:
            if not self.grid.is_free(self._to_grid((int(x), int(y), int(z)), yaw)):
                return False
        return True

    def fits(self) -> bool:
        return self._fits(self._world(self._rot, self._anchor))

    def fits_at_yaw(self, yaw: int) -> bool:
        """Whether the current world cells would be a legal placement under another board yaw."""
        return self._fits(self._world(self._rot, self._anchor), yaw)

    # ---- commands ----------------------------------------------------------------

    def _require_active(self, op: str) -> None:
        if self.locked:
            raise PieceLockedError(f"{op}() called on locked piece {self.kind!r}")

    def move(self, delta: Coord) -> bool:
        self._require_active("move")
        d = np.asarray(delta, dtype=np.int64).reshape(3)
        if int(np.abs(d).sum()) != 1:
            raise ValueError(f"delta must be an axis-aligned unit vector, got {delta!r}")
        trial = self._anchor + d
        if not self._fits(self._world(self._rot, trial)):
            return False
        self._anchor = trial
        return True

    def rotate(self, axis: Axis, direction: int = +1) -> bool:
        """
        Turn 90° about a world axis through the anchor.

        A blocked turn tries each single-unit kick in KICK_OFFSETS order and keeps
        the first placement that fits. If none fits, rotation and anchor are unchanged.
        """
        self._require_active("rotate")
        new_rot = quarter_turn(axis, direction) @ self._rot

        if self._fits(self._world(new_rot, self._anchor)):
            self._rot = new_rot
            return True

        for off in KICK_OFFSETS:
            trial = self._anchor + np.asarray(off, dtype=np.int64)
            if self._fits(self._world(new_rot, trial)):
                self._rot = new_rot
                self._anchor = trial
                return True
        return False

    def drop_distance(self) -> int:
        """Rows the piece can still fall before it rests."""
        down = np.asarray(DOWN, dtype=np.int64)
        n = 0
        anchor = self._anchor.copy()
        while True:
            anchor = anchor + down
            if not self._fits(self._world(self._rot, anchor)):
                return n
            n += 1

    def soft_drop_projection(self) -> List[Coord]:
        """Ghost: world cells at the lowest reachable position (the piece is not moved)."""
        n = self.drop_distance()
        anchor = self._anchor + np.asarray(DOWN, dtype=np.int64) * n
        w = self._world(self._rot, anchor)
        return [(int(x), int(y), int(z)) for (x, y, z) in w]

    def step_down(self) -> bool:
        """One row down. If the row below is blocked the piece locks; returns True when locked."""
        self._require_active("step_down")
        if self.move(DOWN):
            return False
        self.locked = True
        return True

    def hard_drop(self) -> int:
        """Fall to the projection and lock. Returns the number of rows fallen."""
        self._require_active("hard_drop")
        n = self.drop_distance()
        self._anchor = self._anchor + np.asarray(DOWN, dtype=np.int64) * n
        self.locked = True
        return n

    def advance_fall_timer(self, delta_time: float, fall_interval: float) -> bool:
        """Accumulate time; True (and the timer resets) once a fall is due."""
        self._require_active("advance_fall_timer")
        self._fall_timer += max(0.0, float(delta_time))
        if self._fall_timer >= float(fall_interval):
            self._fall_timer = 0.0
            return True
        return False

    def tick_fall(self, delta_time: float, fall_interval: float) -> bool:
        if not self.advance_fall_timer(delta_time, fall_interval):
            return False
        return self.step_down()


__all__ = ["Piece"]
