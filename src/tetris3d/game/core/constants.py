# src/tetris3d/game/core/constants.py
from __future__ import annotations

# Spawn headroom above the playable height (stored, but never checked for clears / game over)
OVERFLOW_ROWS: int = 3

# Base score per clear batch, indexed by min(planes, 4)
SCORE_TABLE: tuple[int, ...] = (0, 100, 300, 700, 1500)

# Wall-kick translations tried after a blocked rotation, in order: +x, -x, +z, -z, +y, -y
KICK_OFFSETS: tuple[tuple[int, int, int], ...] = (
    (1, 0, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, 0, -1),
    (0, 1, 0),
    (0, -1, 0),
)

# Fall speed (seconds per row)
BASE_FALL_INTERVAL: float = 3.0
MIN_FALL_INTERVAL: float = 0.1
FALL_INTERVAL_STEP: float = 0.1
QUICK_FALL_MULTIPLIER: float = 5.0

# Combo / level rules
COMBO_WINDOW_S: float = 3.0
PLANES_PER_LEVEL: int = 5

# Board yaw animation
BOARD_ROTATION_DURATION_S: float = 0.5
YAW_STEP_DEG: int = 90
