# src/tetris3d/game/core/pieceset.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import yaml

from tetris3d.game.core.types import Coord
from tetris3d.utils.paths import pieces_dir


def _parse_color(v: object) -> Optional[Tuple[int, int, int]]:
    if v is None:
        return None
    if not isinstance(v, (list, tuple)) or len(v) != 3:
        raise ValueError(f"color must be a 3-item list/tuple, got {v!r}")
    r, g, b = v
    for c in (r, g, b):
        if not isinstance(c, int) or not (0 <= c <= 255):
            raise ValueError(f"color components must be ints in [0,255], got {v!r}")
    return int(r), int(g), int(b)


def _parse_blocks(kind: str, node: object) -> np.ndarray:
    if not isinstance(node, (list, tuple)) or len(node) == 0:
        raise ValueError(f"{kind!r}: 'blocks' must be a non-empty list of [x, y, z] offsets")

    out: List[Coord] = []
    for i, b in enumerate(node):
        if not isinstance(b, (list, tuple)) or len(b) != 3:
            raise ValueError(f"{kind!r}: blocks[{i}] must be a 3-item list, got {b!r}")
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in b):
            raise ValueError(f"{kind!r}: blocks[{i}] must contain ints, got {b!r}")
        out.append((int(b[0]), int(b[1]), int(b[2])))

    if len(set(out)) != len(out):
        raise ValueError(f"{kind!r}: duplicate block offsets in {out!r}")
    return np.asarray(out, dtype=np.int64)


@dataclass(frozen=True)
class PieceDef:
    kind: str
    blocks: np.ndarray  # (N,3) int64 local offsets
    color: Optional[Tuple[int, int, int]] = None

    def cell_count(self) -> int:
        return int(self.blocks.shape[0])

    def bbox(self) -> Tuple[Coord, Coord]:
        """(min, max) corners of the local offsets, inclusive."""
        lo = self.blocks.min(axis=0)
        hi = self.blocks.max(axis=0)
        return (int(lo[0]), int(lo[1]), int(lo[2])), (int(hi[0]), int(hi[1]), int(hi[2]))


@dataclass(frozen=True)
class PieceSet:
    """
    3D piece geometry + optional colors, loaded from YAML.

    Asset layout:

      pieces:
        I:
          blocks: [[0,0,0], [1,0,0], [2,0,0]]
          color: [0, 255, 255]      # optional

    Kind order is the YAML order (stable kind indices for piece rules / snapshots).
    """

    pieces: Dict[str, PieceDef]
    kind_order: Tuple[str, ...]

    @staticmethod
    def default_path() -> Path:
        return pieces_dir() / "classic5.yaml"

    @classmethod
    def default(cls) -> "PieceSet":
        return cls.from_yaml(cls.default_path())

    @classmethod
    def from_yaml(cls, path: Path) -> "PieceSet":
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"piece YAML must be a mapping at top-level, got {type(data)!r}")
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: dict) -> "PieceSet":
        pieces_node = data.get("pieces")
        if not isinstance(pieces_node, dict) or not pieces_node:
            raise ValueError("piece YAML must contain non-empty mapping 'pieces:'")

        pieces: Dict[str, PieceDef] = {}
        kind_order: List[str] = []

        for kind, spec in pieces_node.items():
            if not isinstance(kind, str) or not kind:
                raise ValueError(f"piece key must be a non-empty string, got {kind!r}")
            if not isinstance(spec, dict):
                raise ValueError(f"piece spec for {kind!r} must be a mapping, got {type(spec)!r}")

            blocks = _parse_blocks(kind, spec.get("blocks"))
            color = _parse_color(spec.get("color"))

            pieces[kind] = PieceDef(kind=kind, blocks=blocks, color=color)
            kind_order.append(kind)

        return cls(pieces=pieces, kind_order=tuple(kind_order))

    @classmethod
    def from_blocks(cls, shapes: Dict[str, Sequence[Coord]]) -> "PieceSet":
        """Build a set in code, e.g. PieceSet.from_blocks({"dot": [(0, 0, 0)]})."""
        return cls.from_mapping({"pieces": {k: {"blocks": [list(b) for b in v]} for k, v in shapes.items()}})

    def kinds(self) -> Tuple[str, ...]:
        return self.kind_order

    def __contains__(self, kind: str) -> bool:
        return kind in self.pieces

    def __len__(self) -> int:
        return len(self.kind_order)

    def get(self, kind: str) -> PieceDef:
        try:
            return self.pieces[kind]
        except KeyError as e:
            raise KeyError(f"unknown piece kind {kind!r}. known kinds={list(self.kind_order)!r}") from e

    def kind_idx(self, kind: str) -> int:
        try:
            return int(self.kind_order.index(kind))
        except ValueError as e:
            raise KeyError(f"unknown piece kind {kind!r}") from e

    def color_of(self, kind: str) -> Optional[Tuple[int, int, int]]:
        return self.get(kind).color


__all__ = ["PieceDef", "PieceSet"]
