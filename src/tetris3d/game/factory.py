# src/tetris3d/game/factory.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

from tetris3d.game.config import GameConfig
from tetris3d.game.core.collaborators import (
    AudioSink,
    BestScoreStore,
    InMemoryBestScoreStore,
    JsonBestScoreStore,
    Renderer,
)
from tetris3d.game.core.game import MatchEngine
from tetris3d.game.core.piece_rules import PieceRule, SequencePieceRule, UniformPieceRule
from tetris3d.game.core.pieceset import PieceSet
from tetris3d.game.core.rules import ScoreConfig


def _as_game_config(cfg: Any) -> GameConfig:
    if isinstance(cfg, GameConfig):
        return cfg
    if cfg is None:
        return GameConfig()
    if isinstance(cfg, Mapping):
        # accept either the game subtree or a root mapping with a 'game' key
        node = cfg["game"] if "game" in cfg else cfg
        if node is None:
            return GameConfig()
        return GameConfig.model_validate(dict(node))
    raise TypeError(f"game config must be GameConfig|mapping|None, got {type(cfg)!r}")


def make_piece_rule(cfg: GameConfig) -> PieceRule:
    if cfg.spawn.piece_rule == "sequence":
        return SequencePieceRule(sequence=tuple(cfg.spawn.sequence))
    return UniformPieceRule()


def make_piece_set(cfg: GameConfig) -> PieceSet:
    if cfg.spawn.piece_set is None:
        return PieceSet.default()
    return PieceSet.from_yaml(Path(cfg.spawn.piece_set))


def make_best_score_store(cfg: GameConfig) -> BestScoreStore:
    if cfg.best_score_path is None:
        return InMemoryBestScoreStore()
    return JsonBestScoreStore(Path(cfg.best_score_path))


def make_match_from_cfg(
        cfg: GameConfig | Mapping[str, Any] | None = None,
        *,
        renderer: Optional[Renderer] = None,
        audio: Optional[AudioSink] = None,
        best_scores: Optional[BestScoreStore] = None,
) -> MatchEngine:
    """
    Construct a MatchEngine from config. Collaborators default to the headless
    implementations; the caller still has to reset() the engine.
    """
    gc = _as_game_config(cfg)
    return MatchEngine(
        width=gc.grid.width,
        height=gc.grid.height,
        depth=gc.grid.depth,
        piece_set=make_piece_set(gc),
        piece_rule=make_piece_rule(gc),
        renderer=renderer,
        audio=audio,
        best_scores=best_scores if best_scores is not None else make_best_score_store(gc),
        score_cfg=ScoreConfig(
            combo_window=float(gc.scoring.combo_window),
            planes_per_level=int(gc.scoring.planes_per_level),
            combo_step=float(gc.scoring.combo_step),
        ),
        base_fall_interval=gc.timing.base_fall_interval,
        min_fall_interval=gc.timing.min_fall_interval,
        fall_interval_step=gc.timing.fall_interval_step,
        quick_fall_multiplier=gc.timing.quick_fall_multiplier,
        board_rotation_duration=gc.timing.board_rotation_duration,
        random_spawn_rotation=gc.spawn.random_rotation,
        seed=gc.seed,
    )


__all__ = ["make_match_from_cfg", "make_piece_rule", "make_piece_set", "make_best_score_store"]
