# tests/test_game_config.py
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tetris3d.config.io import load_root_config, merge_overrides
from tetris3d.game.config import GameConfig, GridConfig, RootConfig, SpawnConfig, TimingConfig
from tetris3d.game.core.collaborators import InMemoryBestScoreStore, JsonBestScoreStore
from tetris3d.game.core.piece_rules import SequencePieceRule
from tetris3d.game.factory import make_best_score_store, make_match_from_cfg, make_piece_rule
from tetris3d.utils.paths import default_config_path


def test_defaults_describe_the_standard_board() -> None:
    cfg = GameConfig()
    assert (cfg.grid.width, cfg.grid.height, cfg.grid.depth) == (3, 10, 3)
    assert cfg.timing.base_fall_interval == pytest.approx(3.0)
    assert cfg.scoring.planes_per_level == 5


def test_grid_dimensions_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        GridConfig(width=0)
    with pytest.raises(ValidationError):
        GridConfig.model_validate({"height": -2})


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        GameConfig.model_validate({"grid": {"width": 3, "lenght": 4}})


def test_min_fall_interval_cannot_exceed_base() -> None:
    with pytest.raises(ValidationError, match="min_fall_interval"):
        TimingConfig(base_fall_interval=0.5, min_fall_interval=1.0)


def test_sequence_rule_requires_a_sequence() -> None:
    with pytest.raises(ValidationError, match="spawn.sequence is required"):
        SpawnConfig(piece_rule="Sequence")
    cfg = SpawnConfig(piece_rule="SEQUENCE", sequence=("I", "O"))
    assert cfg.piece_rule == "sequence"


def test_root_config_normalizes_log_level() -> None:
    assert RootConfig.model_validate({"log_level": " DEBUG "}).log_level == "debug"


def test_yaml_config_with_overrides(tmp_path: Path) -> None:
    p = tmp_path / "game.yaml"
    p.write_text(
        "log_level: warning\n"
        "game:\n"
        "  seed: 7\n"
        "  grid: {width: 4, height: 12, depth: 2}\n",
        encoding="utf-8",
    )
    root = load_root_config(p, ["game.grid.width=5", "game.spawn.random_rotation=false"])

    assert root.log_level == "warning"
    assert root.game.seed == 7
    assert (root.game.grid.width, root.game.grid.height, root.game.grid.depth) == (5, 12, 2)
    assert root.game.spawn.random_rotation is False


def test_merge_overrides_without_overrides_copies() -> None:
    data = {"game": {"seed": 1}}
    out = merge_overrides(data, [])
    assert out == data and out is not data


def test_bundled_default_config_validates() -> None:
    root = load_root_config(default_config_path())
    assert root.game.grid.height == 10


def test_factory_builds_engine_from_mapping() -> None:
    engine = make_match_from_cfg(
        {
            "game": {
                "seed": 3,
                "grid": {"width": 4, "height": 8, "depth": 2},
                "spawn": {"piece_rule": "sequence", "sequence": ["O", "I"], "random_rotation": False},
            }
        }
    )
    state = engine.reset()

    assert (engine.width, engine.height, engine.depth) == (4, 8, 2)
    assert len(engine.pieces) == 5
    assert state.active_kind == "O"


def test_factory_helpers_follow_config(tmp_path: Path) -> None:
    gc = GameConfig.model_validate(
        {"spawn": {"piece_rule": "sequence", "sequence": ["T"]}, "best_score_path": str(tmp_path / "b.json")}
    )
    assert isinstance(make_piece_rule(gc), SequencePieceRule)
    assert isinstance(make_best_score_store(gc), JsonBestScoreStore)
    assert isinstance(make_best_score_store(GameConfig()), InMemoryBestScoreStore)


def test_factory_rejects_unsupported_config_type() -> None:
    with pytest.raises(TypeError, match="game config"):
        make_match_from_cfg(42)  # type: ignore[arg-type]


def test_to_plain_dict_accepts_models_and_omegaconf() -> None:
    from omegaconf import OmegaConf

    from tetris3d.config.io import to_plain_dict

    plain = to_plain_dict(GameConfig.model_validate({"spawn": {"piece_rule": "sequence", "sequence": ["I"]}}))
    assert plain["spawn"]["sequence"] == ["I"]
    assert plain["grid"]["height"] == 10

    assert to_plain_dict(OmegaConf.create({"a": {"b": 1}})) == {"a": {"b": 1}}
    with pytest.raises(TypeError, match="unsupported config type"):
        to_plain_dict([1, 2])
