# src/tetris3d/game/config.py
from __future__ import annotations

from typing import Literal, Mapping, Optional

from pydantic import Field, field_validator, model_validator

from tetris3d.config.base import ConfigBase
from tetris3d.game.core import constants as C

PieceRuleName = Literal["uniform", "sequence"]


def _as_int(value: object, *, where: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{where} must be an int, got bool")
    if not isinstance(value, (int, float, str, bytes, bytearray)):
        raise TypeError(f"{where} must be an int-like value, got {type(value)!r}")
    try:
        return int(value)
    except Exception as e:
        raise TypeError(f"{where} must be an int-like value, got {type(value)!r}") from e


class GridConfig(ConfigBase):
    width: int = Field(default=3, gt=0)
    height: int = Field(default=10, gt=0)
    depth: int = Field(default=3, gt=0)

    @field_validator("width", "height", "depth", mode="before")
    @classmethod
    def _dims_int(cls, v: object) -> int:
        return _as_int(v, where="game.grid dimension")


class TimingConfig(ConfigBase):
    base_fall_interval: float = Field(default=C.BASE_FALL_INTERVAL, gt=0.0)
    min_fall_interval: float = Field(default=C.MIN_FALL_INTERVAL, gt=0.0)
    fall_interval_step: float = Field(default=C.FALL_INTERVAL_STEP, ge=0.0)
    quick_fall_multiplier: float = Field(default=C.QUICK_FALL_MULTIPLIER, ge=1.0)
    board_rotation_duration: float = Field(default=C.BOARD_ROTATION_DURATION_S, ge=0.0)

    @model_validator(mode="after")
    def _min_below_base(self) -> "TimingConfig":
        if self.min_fall_interval > self.base_fall_interval:
            raise ValueError(
                "timing.min_fall_interval must be <= timing.base_fall_interval "
                f"(got {self.min_fall_interval} > {self.base_fall_interval})"
            )
        return self


class ScoringConfig(ConfigBase):
    combo_window: float = Field(default=C.COMBO_WINDOW_S, gt=0.0)
    planes_per_level: int = Field(default=C.PLANES_PER_LEVEL, gt=0)
    combo_step: float = Field(default=0.1, ge=0.0)


class SpawnConfig(ConfigBase):
    piece_set: Optional[str] = None  # path to a piece YAML; None = bundled set
    piece_rule: PieceRuleName = "uniform"
    sequence: tuple[str, ...] = ()
    random_rotation: bool = True

    @field_validator("piece_rule", mode="before")
    @classmethod
    def _piece_rule_lower(cls, v: object) -> str:
        return str(v).strip().lower()

    @model_validator(mode="after")
    def _sequence_required(self) -> "SpawnConfig":
        if self.piece_rule == "sequence" and not self.sequence:
            raise ValueError("spawn.sequence is required when spawn.piece_rule == 'sequence'")
        return self


class GameConfig(ConfigBase):
    """
    Game-level config (engine-facing).

      grid:    board dimensions (overflow headroom is fixed)
      timing:  fall speed curve, quick fall, board rotation animation
      scoring: combo window and level pacing
      spawn:   piece set, selection rule, random spawn rotation
    """

    seed: Optional[int] = Field(default=None, ge=0)
    grid: GridConfig = GridConfig()
    timing: TimingConfig = TimingConfig()
    scoring: ScoringConfig = ScoringConfig()
    spawn: SpawnConfig = SpawnConfig()
    best_score_path: Optional[str] = None

    @field_validator("seed", mode="before")
    @classmethod
    def _seed_int(cls, v: object) -> Optional[int]:
        if v is None:
            return None
        return _as_int(v, where="game.seed")


class RootConfig(ConfigBase):
    log_level: str = "info"
    game: GameConfig = GameConfig()

    @model_validator(mode="before")
    @classmethod
    def _normalize_log_level(cls, data: object) -> object:
        if not isinstance(data, Mapping):
            return data
        out = dict(data)
        if "log_level" in out:
            out["log_level"] = str(out["log_level"]).strip().lower()
        return out


__all__ = ["GridConfig", "TimingConfig", "ScoringConfig", "SpawnConfig", "GameConfig", "RootConfig"]
