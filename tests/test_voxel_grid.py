# tests/test_voxel_grid.py
from __future__ import annotations

import itertools

import numpy as np
import pytest

from tetris3d.game.core.grid import VoxelGrid
from tetris3d.game.core.types import PlaneFamily


class _Listener:
    def __init__(self) -> None:
        self.removed: list[int] = []
        self.moved: list[tuple[int, tuple[int, int, int]]] = []

    def block_removed(self, handle: int) -> None:
        self.removed.append(handle)

    def block_moved(self, handle: int, coord: tuple[int, int, int]) -> None:
        self.moved.append((handle, coord))


def _fill(grid: VoxelGrid, cells, start: int = 100) -> dict[tuple[int, int, int], int]:
    out = {}
    for i, c in enumerate(cells):
        assert grid.store(c, start + i)
        out[c] = start + i
    return out


def _layer(width: int, depth: int, y: int):
    return [(x, y, z) for x in range(width) for z in range(depth)]


def test_rejects_non_positive_dimensions() -> None:
    with pytest.raises(ValueError, match="width"):
        VoxelGrid(width=0, height=10, depth=3)
    with pytest.raises(ValueError, match="height"):
        VoxelGrid(width=3, height=-1, depth=3)
    with pytest.raises(ValueError, match="depth"):
        VoxelGrid(width=3, height=10, depth=0)


def test_occupancy_queries_are_consistent_with_bounds() -> None:
    grid = VoxelGrid(width=3, height=4, depth=2)
    _fill(grid, [(0, 0, 0), (2, 6, 1), (1, 3, 0)])

    xs = range(-1, grid.width + 1)
    ys = range(-1, grid.height + grid.overflow + 1)
    zs = range(-1, grid.depth + 1)
    for c in itertools.product(xs, ys, zs):
        if grid.is_occupied(c):
            assert grid.is_valid(c)
        if grid.is_free(c):
            assert grid.is_valid(c) and not grid.is_occupied(c)
        if not grid.is_valid(c):
            assert not grid.is_free(c) and not grid.is_occupied(c)


def test_store_is_a_noop_on_occupied_or_invalid_cells() -> None:
    grid = VoxelGrid(width=3, height=10, depth=3)
    assert grid.store((1, 1, 1), 7)
    assert not grid.store((1, 1, 1), 8)
    assert grid.handle_at((1, 1, 1)) == 7
    assert not grid.store((3, 0, 0), 9)
    assert not grid.store((0, 13, 0), 9)
    assert grid.occupied_count() == 1


def test_horizontal_clear_and_shift_scenario() -> None:
    listener = _Listener()
    grid = VoxelGrid(width=3, height=10, depth=3, listener=listener)
    layer = _fill(grid, _layer(3, 3, 0))
    above = _fill(grid, [(0, 1, 0), (1, 3, 2)], start=500)

    assert grid.plane_complete(PlaneFamily.HORIZONTAL, 0)
    before = grid.occupied_count()

    assert grid.clear_plane(PlaneFamily.HORIZONTAL, 0) == 9
    assert grid.occupied_count() == before - 9
    assert sorted(listener.removed) == sorted(layer.values())

    assert grid.shift_toward_cleared(PlaneFamily.HORIZONTAL, 0) == 2
    assert grid.occupied_count() == before - 9
    assert grid.handle_at((0, 0, 0)) == above[(0, 1, 0)]
    assert grid.handle_at((1, 2, 2)) == above[(1, 3, 2)]
    assert not grid.is_occupied((0, 1, 0))
    assert sorted(listener.moved) == sorted([(500, (0, 0, 0)), (501, (1, 2, 2))])


def test_clearing_an_empty_plane_leaves_grid_unchanged() -> None:
    grid = VoxelGrid(width=3, height=10, depth=3)
    _fill(grid, [(0, 0, 0), (2, 5, 1)])
    snapshot = grid.occupancy().copy()

    assert grid.clear_plane(PlaneFamily.HORIZONTAL, 4) == 0
    assert grid.clear_plane(PlaneFamily.DEPTH, 2) == 0
    assert np.array_equal(grid.occupancy(), snapshot)


def test_shift_never_duplicates_handles() -> None:
    grid = VoxelGrid(width=3, height=10, depth=3)
    _fill(grid, _layer(3, 3, 2))
    _fill(grid, [(x, y, 1) for x in range(3) for y in range(3, 9)], start=300)
    _fill(grid, [(1, 0, 0), (2, 1, 2)], start=900)

    grid.clear_plane(PlaneFamily.HORIZONTAL, 2)
    count = grid.occupied_count()
    grid.shift_toward_cleared(PlaneFamily.HORIZONTAL, 2)

    handles = grid.handles()
    assert len(handles) == len(set(handles)) == count
    # cells below the cleared plane stay put
    assert grid.handle_at((1, 0, 0)) == 900
    assert grid.handle_at((2, 1, 2)) == 901


def test_shift_requires_an_empty_plane() -> None:
    grid = VoxelGrid(width=3, height=10, depth=3)
    grid.store((0, 0, 0), 1)
    with pytest.raises(RuntimeError, match="not empty"):
        grid.shift_toward_cleared(PlaneFamily.HORIZONTAL, 0)


def test_resolve_rechecks_same_index_after_shift() -> None:
    grid = VoxelGrid(width=2, height=6, depth=2)
    _fill(grid, _layer(2, 2, 0))
    _fill(grid, _layer(2, 2, 1), start=200)
    _fill(grid, [(0, 2, 0)], start=400)

    assert grid.resolve_complete_planes(PlaneFamily.HORIZONTAL) == 2
    assert grid.occupied_cells() == [(0, 0, 0)]
    assert grid.handle_at((0, 0, 0)) == 400


def test_depth_plane_clear_moves_blocks_forward() -> None:
    grid = VoxelGrid(width=3, height=4, depth=3)
    _fill(grid, [(x, y, 0) for x in range(3) for y in range(4)])
    _fill(grid, [(1, 2, 2)], start=700)

    assert grid.plane_complete(PlaneFamily.DEPTH, 0)
    assert grid.resolve_complete_planes(PlaneFamily.DEPTH) == 1
    assert grid.occupied_cells() == [(1, 2, 1)]


def test_width_plane_clear_moves_blocks_left() -> None:
    grid = VoxelGrid(width=3, height=4, depth=2)
    _fill(grid, [(1, y, z) for y in range(4) for z in range(2)])
    _fill(grid, [(2, 0, 1), (0, 3, 0)], start=700)

    assert grid.resolve_complete_planes(PlaneFamily.WIDTH) == 1
    assert sorted(grid.occupied_cells()) == [(0, 3, 0), (1, 0, 1)]


def test_overflow_rows_are_not_part_of_plane_checks() -> None:
    grid = VoxelGrid(width=1, height=2, depth=1)
    grid.store((0, 3, 0), 5)
    assert not grid.plane_complete(PlaneFamily.HORIZONTAL, 3)
    assert not grid.plane_complete(PlaneFamily.DEPTH, 0)
    assert grid.plane_count(PlaneFamily.HORIZONTAL) == 2
