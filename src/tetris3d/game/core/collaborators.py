# src/tetris3d/game/core/collaborators.py
"""
Interfaces of the systems that live outside the simulation core.

The core never renders, plays audio or writes files itself. It talks to:

  Renderer
    spawn_visual(kind, cells) -> handles   once per spawned piece (one handle per block)
    move_visual(handle, pos)               after every successful piece / grid mutation
    destroy_visual(handle)                 when a block is cleared

  AudioSink
    on_lock() / on_clear(count) / on_game_over()

  BestScoreStore
    get_best_score() / save_best_score(score)   only touched at game over

Block handles are opaque ints. Whatever the renderer needs per handle lives in
the renderer's own side table (see NullRenderer), never in the grid.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Tuple, runtime_checkable

from tetris3d.game.core.types import BlockHandle, Coord
from tetris3d.utils.file_io import read_json, write_json

LOG = logging.getLogger(__name__)


@runtime_checkable
class Renderer(Protocol):
    def spawn_visual(self, kind: str, cells: Sequence[Coord]) -> List[BlockHandle]: ...

    def move_visual(self, handle: BlockHandle, pos: Coord) -> None: ...

    def destroy_visual(self, handle: BlockHandle) -> None: ...


@runtime_checkable
class AudioSink(Protocol):
    def on_lock(self) -> None: ...

    def on_clear(self, count: int) -> None: ...

    def on_game_over(self) -> None: ...


@runtime_checkable
class BestScoreStore(Protocol):
    def get_best_score(self) -> int: ...

    def save_best_score(self, score: int) -> None: ...


# ---- headless renderer --------------------------------------------------------------


class NullRenderer:
    """
    Renderer that draws nothing but keeps the handle side table.

    positions maps every live handle to its last reported world position and
    kinds maps it to the piece kind it was spawned for.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.positions: Dict[BlockHandle, Coord] = {}
        self.kinds: Dict[BlockHandle, str] = {}

    def spawn_visual(self, kind: str, cells: Sequence[Coord]) -> List[BlockHandle]:
        out: List[BlockHandle] = []
        for c in cells:
            h = int(next(self._ids))
            self.positions[h] = (int(c[0]), int(c[1]), int(c[2]))
            self.kinds[h] = str(kind)
            out.append(h)
        return out

    def move_visual(self, handle: BlockHandle, pos: Coord) -> None:
        if handle not in self.positions:
            raise KeyError(f"move_visual on unknown handle {handle!r}")
        self.positions[handle] = (int(pos[0]), int(pos[1]), int(pos[2]))

    def destroy_visual(self, handle: BlockHandle) -> None:
        if self.positions.pop(handle, None) is None:
            raise KeyError(f"destroy_visual on unknown handle {handle!r}")
        self.kinds.pop(handle, None)

    def live_handles(self) -> Tuple[BlockHandle, ...]:
        return tuple(sorted(self.positions.keys()))


class RecordingRenderer(NullRenderer):
    """NullRenderer that also keeps a call log (tests, replays)."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[Tuple[str, object]] = []

    def spawn_visual(self, kind: str, cells: Sequence[Coord]) -> List[BlockHandle]:
        handles = super().spawn_visual(kind, cells)
        self.calls.append(("spawn", (str(kind), tuple(handles))))
        return handles

    def move_visual(self, handle: BlockHandle, pos: Coord) -> None:
        super().move_visual(handle, pos)
        self.calls.append(("move", (handle, tuple(pos))))

    def destroy_visual(self, handle: BlockHandle) -> None:
        super().destroy_visual(handle)
        self.calls.append(("destroy", handle))

    def count(self, name: str) -> int:
        return sum(1 for (n, _) in self.calls if n == name)


# ---- audio --------------------------------------------------------------------------


class NullAudio:
    def on_lock(self) -> None:
        return None

    def on_clear(self, count: int) -> None:
        return None

    def on_game_over(self) -> None:
        return None


@dataclass
class RecordingAudio:
    locks: int = 0
    clears: List[int] = field(default_factory=list)
    game_overs: int = 0

    def on_lock(self) -> None:
        self.locks += 1

    def on_clear(self, count: int) -> None:
        self.clears.append(int(count))

    def on_game_over(self) -> None:
        self.game_overs += 1


# ---- best score ---------------------------------------------------------------------


@dataclass
class InMemoryBestScoreStore:
    best: int = 0

    def get_best_score(self) -> int:
        return int(self.best)

    def save_best_score(self, score: int) -> None:
        self.best = int(score)


class JsonBestScoreStore:
    """
    Best score kept in a small JSON file: {"best_score": <int>}.

    A missing file reads as 0; the file (and parent dirs) is created on first save.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get_best_score(self) -> int:
        data = read_json(self.path)
        if data is None:
            return 0
        v = data.get("best_score", 0)
        if isinstance(v, bool) or not isinstance(v, int):
            raise TypeError(f"{self.path}: best_score must be an int, got {type(v)!r}")
        return int(v)

    def save_best_score(self, score: int) -> None:
        write_json(self.path, {"best_score": int(score)})
        LOG.info("best score %d saved to %s", int(score), self.path)


__all__ = [
    "Renderer",
    "AudioSink",
    "BestScoreStore",
    "NullRenderer",
    "RecordingRenderer",
    "NullAudio",
    "RecordingAudio",
    "InMemoryBestScoreStore",
    "JsonBestScoreStore",
]
