# src/tetris3d/game/core/errors.py
from __future__ import annotations


class PieceLockedError(RuntimeError):
    """Raised when a movement/rotation is issued to a piece that already locked."""


class PieceActiveError(RuntimeError):
    """Raised when a piece is placed while another piece is still falling."""


__all__ = ["PieceLockedError", "PieceActiveError"]
