# src/tetris3d/game/core/piece_rules.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import numpy as np


class PieceRule(ABC):
    """
    Piece selection rule interface.

    Lifecycle:
      - reset(rng=..., kinds=...) is called once per match
      - next_piece(...) is called whenever the engine spawns a piece

    The RNG is owned by the engine and injected; rules never create their own streams.
    """

    @abstractmethod
    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def next_piece(self, *, locked_kind: str | None) -> str:
        raise NotImplementedError


@dataclass
class UniformPieceRule(PieceRule):
    """Uniform piece selection from the available kinds."""

    _rng: np.random.Generator | None = None
    _kinds: tuple[str, ...] = ()

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        self._rng = rng
        self._kinds = tuple(str(k) for k in kinds)
        if not self._kinds:
            raise ValueError("UniformPieceRule requires non-empty kinds")

    def next_piece(self, *, locked_kind: str | None) -> str:
        if self._rng is None or not self._kinds:
            raise RuntimeError("UniformPieceRule.reset() must be called before next_piece()")
        i = int(self._rng.integers(0, len(self._kinds)))
        return self._kinds[i]


@dataclass
class SequencePieceRule(PieceRule):
    """
    Deterministic cycle through a fixed list of kinds.

    Scripted matches and tests use this to control exactly which piece comes next.
    """

    sequence: tuple[str, ...] = ()
    _pos: int = 0

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        if not self.sequence:
            raise ValueError("SequencePieceRule requires a non-empty sequence")
        known = set(str(k) for k in kinds)
        unknown = [k for k in self.sequence if k not in known]
        if unknown:
            raise KeyError(f"SequencePieceRule: unknown kinds {unknown!r} (known={sorted(known)!r})")
        self._pos = 0

    def next_piece(self, *, locked_kind: str | None) -> str:
        if not self.sequence:
            raise RuntimeError("SequencePieceRule.reset() must be called before next_piece()")
        k = self.sequence[self._pos % len(self.sequence)]
        self._pos += 1
        return str(k)


__all__ = ["PieceRule", "UniformPieceRule", "SequencePieceRule"]
