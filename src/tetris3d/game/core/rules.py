# src/tetris3d/game/core/rules.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from tetris3d.game.core.constants import COMBO_WINDOW_S, PLANES_PER_LEVEL, SCORE_TABLE

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreConfig:
    table: tuple[int, ...] = SCORE_TABLE
    combo_window: float = COMBO_WINDOW_S
    planes_per_level: int = PLANES_PER_LEVEL
    combo_step: float = 0.1


def base_score(planes: int, cfg: ScoreConfig) -> int:
    if planes <= 0:
        return 0
    return int(cfg.table[min(int(planes), len(cfg.table) - 1)])


@dataclass(frozen=True)
class ClearAward:
    planes: int
    awarded: int
    time_bonus: float
    combo_multiplier: float
    level: int
    level_up: bool


class ScoreEngine:
    """
    Combo / time-bonus scoring of clear batches.

    One call per placement that cleared planes:

      base        = table[min(count, 4)]
      time bonus  = max(1, 2 - elapsed / combo_window)   if elapsed < combo_window (counter += 1)
                    1                                    otherwise                 (counter = 1)
      combo       = 1 + 0.1 * counter
      awarded     = round(base * level * time_bonus * combo)

    The level goes up by one when the running plane total reaches level * 5;
    ClearAward.level_up tells the caller to recompute the fall speed.
    """

    def __init__(self, cfg: ScoreConfig | None = None) -> None:
        self.cfg = cfg or ScoreConfig()
        if float(self.cfg.combo_window) <= 0.0:
            raise ValueError(f"combo_window must be positive, got {self.cfg.combo_window!r}")
        if int(self.cfg.planes_per_level) <= 0:
            raise ValueError(f"planes_per_level must be positive, got {self.cfg.planes_per_level!r}")
        self.reset()

    def reset(self) -> None:
        self.score = 0
        self.planes_cleared_total = 0
        self.level = 1
        self.consecutive = 0
        self.last_clear_time = -math.inf

    def on_planes_cleared(self, count: int, level: int | None = None, now: float = 0.0) -> ClearAward:
        n = int(count)
        lvl = int(self.level if level is None else level)
        if n <= 0:
            return ClearAward(planes=0, awarded=0, time_bonus=1.0, combo_multiplier=1.0, level=self.level, level_up=False)

        elapsed = float(now) - float(self.last_clear_time)
        window = float(self.cfg.combo_window)
        time_bonus = 1.0
        if elapsed < window:
            self.consecutive += 1
            time_bonus = max(1.0, 2.0 - (elapsed / window))
        else:
            self.consecutive = 1

        combo = 1.0 + float(self.cfg.combo_step) * float(self.consecutive)
        awarded = int(round(base_score(n, self.cfg) * lvl * time_bonus * combo))

        self.score += awarded
        self.planes_cleared_total += n
        self.last_clear_time = float(now)

        level_up = False
        if self.planes_cleared_total >= self.level * int(self.cfg.planes_per_level):
            self.level += 1
            level_up = True
            LOG.info("level up -> %d (planes=%d)", self.level, self.planes_cleared_total)

        return ClearAward(
            planes=n,
            awarded=awarded,
            time_bonus=float(time_bonus),
            combo_multiplier=float(combo),
            level=int(self.level),
            level_up=level_up,
        )


def fall_interval_for_level(level: int, *, base: float, minimum: float, step: float) -> float:
    return float(max(float(minimum), float(base) - int(level) * float(step)))


__all__ = ["ScoreConfig", "ClearAward", "ScoreEngine", "base_score", "fall_interval_for_level"]
