# src/tetris3d/game/core/orientation.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tetris3d.game.core.constants import BOARD_ROTATION_DURATION_S, YAW_STEP_DEG
from tetris3d.game.core.rotation import grid_xz_to_world, world_extents, world_xz_to_grid
from tetris3d.game.core.types import Coord


@dataclass(frozen=True)
class Transition:
    from_yaw: int
    to_yaw: int
    direction: int
    elapsed: float
    duration: float

    @property
    def progress(self) -> float:
        if self.duration <= 0.0:
            return 1.0
        return min(1.0, max(0.0, self.elapsed / self.duration))


class BoardOrientation:
    """
    Yaw of the whole board in 90° steps, plus the world <-> grid remap.

    States:
      Idle(yaw)
      Transitioning(from_yaw, to_yaw, elapsed, duration)

    Contracts:
      - `yaw` is the LOGICAL yaw used for coordinate mapping. It switches to the
        target atomically on the tick where progress reaches 1, never in between.
      - `display_yaw` is the interpolated angle for rendering only.
      - request_rotate() while transitioning is ignored (not queued, not cancelling).
    """

    def __init__(
            self,
            *,
            width: int,
            depth: int,
            duration: float = BOARD_ROTATION_DURATION_S,
            yaw: int = 0,
    ) -> None:
        self.width = int(width)
        self.depth = int(depth)
        if self.width <= 0 or self.depth <= 0:
            raise ValueError(f"board footprint must be positive, got width={width!r} depth={depth!r}")
        self.duration = float(duration)
        if self.duration < 0.0:
            raise ValueError(f"duration must be >= 0, got {duration!r}")
        if int(yaw) % YAW_STEP_DEG != 0:
            raise ValueError(f"yaw must be a multiple of {YAW_STEP_DEG}, got {yaw!r}")

        self._yaw = int(yaw) % 360
        self._transition: Optional[Transition] = None

    # ---- state -------------------------------------------------------------------

    @property
    def yaw(self) -> int:
        return int(self._yaw)

    @property
    def transitioning(self) -> bool:
        return self._transition is not None

    @property
    def transition(self) -> Optional[Transition]:
        return self._transition

    @property
    def target_yaw(self) -> int:
        if self._transition is None:
            return int(self._yaw)
        return int(self._transition.to_yaw)

    @property
    def display_yaw(self) -> float:
        tr = self._transition
        if tr is None:
            return float(self._yaw)
        return float((tr.from_yaw + tr.direction * YAW_STEP_DEG * tr.progress) % 360)

    def reset(self, yaw: int = 0) -> None:
        self._yaw = int(yaw) % 360
        self._transition = None

    # ---- transitions -------------------------------------------------------------

    def request_rotate(self, direction: int) -> bool:
        d = int(direction)
        if d not in (-1, 1):
            raise ValueError(f"direction must be +1 or -1, got {direction!r}")
        if self._transition is not None:
            return False
        to_yaw = (self._yaw + YAW_STEP_DEG * d) % 360
        self._transition = Transition(
            from_yaw=int(self._yaw),
            to_yaw=int(to_yaw),
            direction=d,
            elapsed=0.0,
            duration=float(self.duration),
        )
        return True

    def tick(self, delta_time: float) -> bool:
        """Advance an in-flight transition. Returns True on the tick it resolves."""
        tr = self._transition
        if tr is None:
            return False
        tr = Transition(
            from_yaw=tr.from_yaw,
            to_yaw=tr.to_yaw,
            direction=tr.direction,
            elapsed=tr.elapsed + max(0.0, float(delta_time)),
            duration=tr.duration,
        )
        if tr.progress >= 1.0:
            self._yaw = int(tr.to_yaw)
            self._transition = None
            return True
        self._transition = tr
        return False

    # ---- coordinate mapping ------------------------------------------------------

    def world_extents(self, yaw: Optional[int] = None) -> tuple[int, int]:
        return world_extents(self.width, self.depth, self._yaw if yaw is None else int(yaw))

    def world_to_grid(self, world: Coord, yaw: Optional[int] = None) -> Coord:
        y_ = self._yaw if yaw is None else int(yaw)
        gx, gz = world_xz_to_grid(int(world[0]), int(world[2]), width=self.width, depth=self.depth, yaw=y_)
        return int(gx), int(world[1]), int(gz)

    def grid_to_world(self, grid: Coord, yaw: Optional[int] = None) -> Coord:
        y_ = self._yaw if yaw is None else int(yaw)
        wx, wz = grid_xz_to_world(int(grid[0]), int(grid[2]), width=self.width, depth=self.depth, yaw=y_)
        return int(wx), int(grid[1]), int(wz)


__all__ = ["Transition", "BoardOrientation"]
