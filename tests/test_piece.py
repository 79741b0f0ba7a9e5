# tests/test_piece.py
from __future__ import annotations

import numpy as np
import pytest

from tetris3d.game.core.errors import PieceLockedError
from tetris3d.game.core.grid import VoxelGrid
from tetris3d.game.core.orientation import BoardOrientation
from tetris3d.game.core.piece import Piece
from tetris3d.game.core.rotation import IDENTITY
from tetris3d.game.core.types import Axis


def _grid(width: int = 3, height: int = 10, depth: int = 3) -> VoxelGrid:
    return VoxelGrid(width=width, height=height, depth=depth)


def test_move_is_rejected_against_walls_and_blocks() -> None:
    grid = _grid()
    grid.store((1, 0, 0), 1)
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(0, 0, 0), grid=grid)

    assert not p.move((-1, 0, 0))
    assert not p.move((1, 0, 0))
    assert p.anchor == (0, 0, 0)

    assert p.move((0, 0, 1))
    assert p.cells() == ((0, 0, 1),)


def test_move_rejects_non_unit_delta() -> None:
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(1, 5, 1), grid=_grid())
    with pytest.raises(ValueError, match="unit vector"):
        p.move((1, 1, 0))


def test_rotation_uses_first_fitting_kick() -> None:
    p = Piece(kind="domino", blocks=[(0, 0, 0), (0, 0, 1)], anchor=(0, 5, 1), grid=_grid())

    # in place the turn would put a block at x = -1
    assert p.rotate(Axis.Y, -1)
    assert p.anchor == (1, 5, 1)
    assert sorted(p.cells()) == [(0, 5, 1), (1, 5, 1)]


def test_fully_blocked_rotation_leaves_piece_unchanged() -> None:
    grid = _grid(width=1, height=10, depth=1)
    p = Piece(kind="bar", blocks=[(0, 0, 0), (0, 1, 0)], anchor=(0, 5, 0), grid=grid)
    before = p.cells()

    assert not p.rotate(Axis.Z, +1)
    assert p.cells() == before
    assert p.anchor == (0, 5, 0)
    assert np.array_equal(p.rotation, IDENTITY)


def test_four_quarter_turns_are_exactly_identity() -> None:
    p = Piece(kind="L", blocks=[(0, 0, 0), (1, 0, 0), (0, 1, 0)], anchor=(1, 5, 1), grid=_grid())
    start = p.cells()
    for _ in range(4):
        assert p.rotate(Axis.X, +1)
    assert np.array_equal(p.rotation, IDENTITY)
    assert p.cells() == start


def test_soft_drop_projection_does_not_move_piece() -> None:
    grid = _grid()
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(1, 8, 1), grid=grid)
    assert p.soft_drop_projection() == [(1, 0, 1)]

    grid.store((1, 0, 1), 3)
    assert p.soft_drop_projection() == [(1, 1, 1)]
    assert p.anchor == (1, 8, 1)
    assert p.drop_distance() == 7


def test_fall_timer_steps_then_locks() -> None:
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(1, 1, 1), grid=_grid())

    assert not p.tick_fall(0.5, 1.0)
    assert p.anchor == (1, 1, 1)
    assert not p.tick_fall(0.5, 1.0)
    assert p.anchor == (1, 0, 1)
    assert p.fall_timer == 0.0

    assert p.tick_fall(1.0, 1.0)
    assert p.locked
    assert p.anchor == (1, 0, 1)


def test_hard_drop_returns_rows_fallen_and_locks() -> None:
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(2, 9, 0), grid=_grid())
    assert p.hard_drop() == 9
    assert p.locked
    assert p.cells() == ((2, 0, 0),)


def test_locked_piece_refuses_every_operation() -> None:
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(0, 0, 0), grid=_grid())
    assert p.step_down()

    with pytest.raises(PieceLockedError):
        p.move((1, 0, 0))
    with pytest.raises(PieceLockedError):
        p.rotate(Axis.Y)
    with pytest.raises(PieceLockedError):
        p.step_down()
    with pytest.raises(PieceLockedError):
        p.hard_drop()
    with pytest.raises(PieceLockedError):
        p.advance_fall_timer(0.1, 1.0)


def test_validity_goes_through_board_yaw() -> None:
    grid = _grid(width=4, height=10, depth=2)
    o = BoardOrientation(width=4, depth=2, yaw=90)
    p = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(1, 0, 3), grid=grid, orientation=o)

    assert p.fits()
    assert p.grid_cells() == ((3, 0, 0),)
    assert not p.fits_at_yaw(0)

    grid.store((3, 1, 0), 9)
    assert p.soft_drop_projection() == [(1, 0, 3)]
    p2 = Piece(kind="dot", blocks=[(0, 0, 0)], anchor=(1, 5, 3), grid=grid, orientation=o)
    assert p2.drop_distance() == 3


def test_empty_piece_is_rejected() -> None:
    with pytest.raises(ValueError, match="at least one block"):
        Piece(kind="none", blocks=[], anchor=(0, 0, 0), grid=_grid())
