# src/tetris3d/game/core/grid.py
from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, Tuple

import numpy as np

from tetris3d.game.core.constants import OVERFLOW_ROWS
from tetris3d.game.core.types import BlockHandle, Coord, PlaneFamily

# Storage sentinel (handles are non-negative ints)
EMPTY_CELL: int = -1


class GridListener(Protocol):
    """Receives notifications for locked blocks that leave or move inside the grid."""

    def block_removed(self, handle: BlockHandle) -> None: ...

    def block_moved(self, handle: BlockHandle, coord: Coord) -> None: ...


class VoxelGrid:
    """
    Dense 3D storage of LOCKED blocks.

    Layout:
      - cells[x, y, z] holds a block handle or EMPTY_CELL
      - shape is (width, height + overflow, depth)
      - rows y >= height are spawn headroom: stored, but not part of any plane check

    Plane families:
      - HORIZONTAL (fixed y): clear, then everything above falls one row
      - DEPTH (fixed z):      clear, then everything behind moves one step forward
      - WIDTH (fixed x):      clear, then everything to the right moves one step left

    Depth/width planes span the playable rows only; horizontal shifts also pull
    overflow rows down.
    """

    def __init__(
            self,
            *,
            width: int,
            height: int,
            depth: int,
            overflow: int = OVERFLOW_ROWS,
            listener: Optional[GridListener] = None,
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.depth = int(depth)
        self.overflow = int(overflow)
        if self.width <= 0:
            raise ValueError(f"width must be positive, got {width!r}")
        if self.height <= 0:
            raise ValueError(f"height must be positive, got {height!r}")
        if self.depth <= 0:
            raise ValueError(f"depth must be positive, got {depth!r}")
        if self.overflow < 0:
            raise ValueError(f"overflow must be >= 0, got {overflow!r}")

        self.listener = listener
        self._cells = np.full((self.width, self.height + self.overflow, self.depth), EMPTY_CELL, dtype=np.int64)

    # ---- queries -----------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, int, int]:
        return int(self.width), int(self.height + self.overflow), int(self.depth)

    def is_valid(self, coord: Coord) -> bool:
        x, y, z = coord
        return (
            0 <= x < self.width
            and 0 <= y < self.height + self.overflow
            and 0 <= z < self.depth
        )

    def is_free(self, coord: Coord) -> bool:
        if not self.is_valid(coord):
            return False
        x, y, z = coord
        return int(self._cells[x, y, z]) == EMPTY_CELL

    def is_occupied(self, coord: Coord) -> bool:
        if not self.is_valid(coord):
            return False
        x, y, z = coord
        return int(self._cells[x, y, z]) != EMPTY_CELL

    def handle_at(self, coord: Coord) -> Optional[BlockHandle]:
        if not self.is_occupied(coord):
            return None
        x, y, z = coord
        return int(self._cells[x, y, z])

    def occupancy(self) -> np.ndarray:
        return self._cells != EMPTY_CELL

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self._cells != EMPTY_CELL))

    def occupied_cells(self) -> List[Coord]:
        idx = np.argwhere(self._cells != EMPTY_CELL)
        return [(int(x), int(y), int(z)) for (x, y, z) in idx]

    def handles(self) -> List[BlockHandle]:
        return [int(h) for h in self._cells[self._cells != EMPTY_CELL]]

    # ---- mutation ----------------------------------------------------------------

    def store(self, coord: Coord, handle: BlockHandle) -> bool:
        """
        Write a handle if the cell is free. Occupied / out-of-range cells are left
        untouched (returns False); callers validate placements beforehand.
        """
        h = int(handle)
        if h < 0:
            raise ValueError(f"block handles must be >= 0, got {handle!r}")
        if not self.is_free(coord):
            return False
        x, y, z = coord
        self._cells[x, y, z] = h
        return True

    def clear_all(self) -> int:
        removed = self.handles()
        self._cells.fill(EMPTY_CELL)
        self._notify_removed(removed)
        return len(removed)

    # ---- planes ------------------------------------------------------------------

    def plane_count(self, family: PlaneFamily) -> int:
        """Number of clearable planes in a family (playable region only)."""
        if family is PlaneFamily.HORIZONTAL:
            return int(self.height)
        if family is PlaneFamily.DEPTH:
            return int(self.depth)
        return int(self.width)

    def _region(self, family: PlaneFamily) -> np.ndarray:
        """View with the family axis first; depth/width views stop at the playable height."""
        sub = self._cells if family is PlaneFamily.HORIZONTAL else self._cells[:, : self.height, :]
        return np.moveaxis(sub, family.axis.value, 0)

    def plane_complete(self, family: PlaneFamily, index: int) -> bool:
        i = int(index)
        if not 0 <= i < self.plane_count(family):
            return False
        return bool(np.all(self._region(family)[i] != EMPTY_CELL))

    def clear_plane(self, family: PlaneFamily, index: int) -> int:
        """Remove every handle in the plane. Returns the number of removed blocks."""
        i = int(index)
        if not 0 <= i < self.plane_count(family):
            raise IndexError(f"{family.name} plane {i} out of range [0, {self.plane_count(family)})")
        plane = self._region(family)[i]
        removed = [int(h) for h in plane[plane != EMPTY_CELL]]
        plane[...] = EMPTY_CELL
        self._notify_removed(removed)
        return len(removed)

    def shift_toward_cleared(self, family: PlaneFamily, index: int) -> int:
        """
        Move every block on the far side of an (empty) plane one step toward it.

        Returns the number of moved blocks.
        """
        i = int(index)
        view = self._region(family)
        n = int(view.shape[0])
        if not 0 <= i < n:
            raise IndexError(f"{family.name} plane {i} out of range [0, {n})")
        if np.any(view[i] != EMPTY_CELL):
            raise RuntimeError(f"shift_toward_cleared: {family.name} plane {i} is not empty")

        axis = family.axis.value
        cells = np.argwhere(self._cells != EMPTY_CELL)
        movers: List[Tuple[BlockHandle, Coord]] = []
        for c in cells:
            x, y, z = (int(c[0]), int(c[1]), int(c[2]))
            if (x, y, z)[axis] <= i:
                continue
            if family is not PlaneFamily.HORIZONTAL and y >= self.height:
                continue
            dst = [x, y, z]
            dst[axis] -= 1
            movers.append((int(self._cells[x, y, z]), (dst[0], dst[1], dst[2])))

        if i + 1 < n:
            view[i : n - 1] = view[i + 1 : n].copy()
        view[n - 1] = EMPTY_CELL

        if self.listener is not None:
            for handle, dst in movers:
                self.listener.block_moved(handle, dst)
        return len(movers)

    def resolve_complete_planes(self, family: PlaneFamily) -> int:
        """
        Clear every complete plane of a family, shifting after each clear.

        The same index is checked again after a clear: the shift may have pulled a
        complete plane into it.
        """
        cleared = 0
        i = 0
        while i < self.plane_count(family):
            if self.plane_complete(family, i):
                self.clear_plane(family, i)
                self.shift_toward_cleared(family, i)
                cleared += 1
                continue
            i += 1
        return cleared

    # ---- internals ---------------------------------------------------------------

    def _notify_removed(self, handles: Iterable[BlockHandle]) -> None:
        if self.listener is None:
            return
        for h in handles:
            self.listener.block_removed(int(h))


__all__ = ["EMPTY_CELL", "GridListener", "VoxelGrid"]
