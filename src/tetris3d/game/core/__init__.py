# src/tetris3d/game/core/__init__.py
from __future__ import annotations

from tetris3d.game.core.collaborators import (
    AudioSink,
    BestScoreStore,
    InMemoryBestScoreStore,
    JsonBestScoreStore,
    NullAudio,
    NullRenderer,
    RecordingAudio,
    RecordingRenderer,
    Renderer,
)
from tetris3d.game.core.errors import PieceActiveError, PieceLockedError
from tetris3d.game.core.game import MatchEngine
from tetris3d.game.core.grid import EMPTY_CELL, VoxelGrid
from tetris3d.game.core.orientation import BoardOrientation
from tetris3d.game.core.piece import Piece
from tetris3d.game.core.piece_rules import PieceRule, SequencePieceRule, UniformPieceRule
from tetris3d.game.core.pieceset import PieceDef, PieceSet
from tetris3d.game.core.rules import ClearAward, ScoreConfig, ScoreEngine
from tetris3d.game.core.types import (
    Axis,
    Command,
    EventKind,
    GameEvent,
    HardDrop,
    MatchState,
    Move,
    PlaneFamily,
    Rotate,
    RotateBoard,
    SetFastFall,
)

__all__ = [
    "AudioSink",
    "BestScoreStore",
    "InMemoryBestScoreStore",
    "JsonBestScoreStore",
    "NullAudio",
    "NullRenderer",
    "RecordingAudio",
    "RecordingRenderer",
    "Renderer",
    "PieceActiveError",
    "PieceLockedError",
    "MatchEngine",
    "EMPTY_CELL",
    "VoxelGrid",
    "BoardOrientation",
    "Piece",
    "PieceRule",
    "SequencePieceRule",
    "UniformPieceRule",
    "PieceDef",
    "PieceSet",
    "ClearAward",
    "ScoreConfig",
    "ScoreEngine",
    "Axis",
    "Command",
    "EventKind",
    "GameEvent",
    "HardDrop",
    "MatchState",
    "Move",
    "PlaneFamily",
    "Rotate",
    "RotateBoard",
    "SetFastFall",
]
