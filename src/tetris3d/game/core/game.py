# src/tetris3d/game/core/game.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np

from tetris3d.game.core.collaborators import (
    AudioSink,
    BestScoreStore,
    InMemoryBestScoreStore,
    NullAudio,
    NullRenderer,
    Renderer,
)
from tetris3d.game.core.constants import (
    BASE_FALL_INTERVAL,
    BOARD_ROTATION_DURATION_S,
    FALL_INTERVAL_STEP,
    MIN_FALL_INTERVAL,
    OVERFLOW_ROWS,
    QUICK_FALL_MULTIPLIER,
)
from tetris3d.game.core.errors import PieceActiveError
from tetris3d.game.core.grid import VoxelGrid
from tetris3d.game.core.orientation import BoardOrientation
from tetris3d.game.core.piece import Piece
from tetris3d.game.core.piece_rules import PieceRule, UniformPieceRule
from tetris3d.game.core.pieceset import PieceSet
from tetris3d.game.core.rotation import quarter_turn
from tetris3d.game.core.rules import ScoreConfig, ScoreEngine, fall_interval_for_level
from tetris3d.game.core.types import (
    DOWN,
    PLANE_ORDER,
    Axis,
    BlockHandle,
    Command,
    Coord,
    EventKind,
    GameEvent,
    HardDrop,
    MatchState,
    Move,
    Rotate,
    RotateBoard,
    SetFastFall,
)

LOG = logging.getLogger(__name__)


class _GridBridge:
    """Forwards grid notifications to the renderer in world coordinates."""

    def __init__(self, engine: "MatchEngine") -> None:
        self._engine = engine

    def block_removed(self, handle: BlockHandle) -> None:
        self._engine.renderer.destroy_visual(handle)

    def block_moved(self, handle: BlockHandle, coord: Coord) -> None:
        self._engine.renderer.move_visual(handle, self._engine.orientation.grid_to_world(coord))


class MatchEngine:
    """
    One match: grid + active piece + board orientation + scoring.

    Contracts:

      - the grid holds LOCKED blocks only; the active piece is written at lock time
      - at most one active piece; placing another while one is active raises PieceActiveError
      - tick(dt) order: check transitioning -> gate piece ops -> advance transition
        -> resolve pending fall
      - while the board turns, automatic fall time keeps accumulating; a fall that
        comes due (or a "move down" command) is kept as ONE pending step and applied
        right after the transition resolves, in the same tick
      - on lock: store blocks, resolve planes (horizontal, depth, width), score,
        game-over check on the top playable row, then spawn
      - piece / block positions reported to the renderer are world coordinates at
        the logical yaw; display_yaw is for the board animation only

    reset() must be called before the first tick().
    """

    def __init__(
            self,
            *,
            width: int = 3,
            height: int = 10,
            depth: int = 3,
            overflow: int = OVERFLOW_ROWS,
            piece_set: Optional[PieceSet] = None,
            piece_rule: Optional[PieceRule] = None,
            renderer: Optional[Renderer] = None,
            audio: Optional[AudioSink] = None,
            best_scores: Optional[BestScoreStore] = None,
            score_cfg: Optional[ScoreConfig] = None,
            base_fall_interval: float = BASE_FALL_INTERVAL,
            min_fall_interval: float = MIN_FALL_INTERVAL,
            fall_interval_step: float = FALL_INTERVAL_STEP,
            quick_fall_multiplier: float = QUICK_FALL_MULTIPLIER,
            board_rotation_duration: float = BOARD_ROTATION_DURATION_S,
            random_spawn_rotation: bool = True,
            seed: Optional[int] = None,
    ) -> None:
        self.renderer: Renderer = renderer if renderer is not None else NullRenderer()
        self.audio: AudioSink = audio if audio is not None else NullAudio()
        self.best_scores: BestScoreStore = best_scores if best_scores is not None else InMemoryBestScoreStore()

        self.grid = VoxelGrid(width=width, height=height, depth=depth, overflow=overflow, listener=_GridBridge(self))
        self.orientation = BoardOrientation(width=width, depth=depth, duration=board_rotation_duration)
        self.scorer = ScoreEngine(score_cfg)

        self.pieces = piece_set or PieceSet.default()
        if len(self.pieces) == 0:
            raise ValueError("PieceSet has no kinds (empty pieceset is invalid).")
        self._piece_rule: PieceRule = piece_rule or UniformPieceRule()

        self.base_fall_interval = float(base_fall_interval)
        self.min_fall_interval = float(min_fall_interval)
        self.fall_interval_step = float(fall_interval_step)
        self.quick_fall_multiplier = float(quick_fall_multiplier)
        if self.base_fall_interval <= 0.0 or self.min_fall_interval <= 0.0:
            raise ValueError("fall intervals must be positive")
        if self.quick_fall_multiplier < 1.0:
            raise ValueError(f"quick_fall_multiplier must be >= 1, got {quick_fall_multiplier!r}")
        self.random_spawn_rotation = bool(random_spawn_rotation)

        self._rng: np.random.Generator = np.random.default_rng(seed)

        self.active: Optional[Piece] = None
        self._active_handles: List[BlockHandle] = []
        self._last_locked_kind: Optional[str] = None
        self._events: List[GameEvent] = []

        self.fall_interval = self.base_fall_interval
        self.fast_fall = False
        self.pending_fall = False
        self.game_over = False
        self.now = 0.0
        self.pieces_placed = 0
        self.best_score = 0

    # ---- lifecycle -----------------------------------------------------------------

    def set_rng(self, rng: np.random.Generator) -> None:
        self._rng = rng

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def depth(self) -> int:
        return self.grid.depth

    @property
    def score(self) -> int:
        return int(self.scorer.score)

    @property
    def level(self) -> int:
        return int(self.scorer.level)

    @property
    def planes_cleared(self) -> int:
        return int(self.scorer.planes_cleared_total)

    def reset(self, *, spawn: bool = True) -> MatchState:
        self._discard_active()
        self.grid.clear_all()
        self.orientation.reset()
        self.scorer.reset()
        self._piece_rule.reset(rng=self._rng, kinds=self.pieces.kinds())

        self._last_locked_kind = None
        self._events = []
        self.fall_interval = self.base_fall_interval
        self.fast_fall = False
        self.pending_fall = False
        self.game_over = False
        self.now = 0.0
        self.pieces_placed = 0

        if spawn:
            self.spawn()
        return self.state()

    # ---- per-frame -----------------------------------------------------------------

    def current_fall_interval(self) -> float:
        if self.fast_fall:
            return self.fall_interval / self.quick_fall_multiplier
        return self.fall_interval

    def tick(self, delta_time: float) -> MatchState:
        if self.game_over:
            return self.state()

        dt = max(0.0, float(delta_time))
        self.now += dt

        if self.orientation.transitioning:
            if self.active is not None and self.active.advance_fall_timer(dt, self.current_fall_interval()):
                self.pending_fall = True
            if self.orientation.tick(dt):
                self._on_board_rotated()
                if self.pending_fall:
                    self.pending_fall = False
                    self._fall_step()
            return self.state()

        if self.active is not None and self.active.advance_fall_timer(dt, self.current_fall_interval()):
            self._fall_step()
        return self.state()

    # ---- commands ------------------------------------------------------------------

    def apply(self, command: Command) -> bool:
        """
        Apply one input command. Returns True when it had an effect (or was queued).

        Rejected geometry is not an error: the call just returns False.
        """
        if self.game_over:
            return False

        if isinstance(command, RotateBoard):
            return self.rotate_board(command.direction)
        if isinstance(command, SetFastFall):
            self.fast_fall = bool(command.enabled)
            return True

        if self.active is None:
            return False

        if self.orientation.transitioning:
            if isinstance(command, Move) and command.delta == DOWN:
                self.pending_fall = True
                return True
            return False

        if isinstance(command, Move):
            if command.delta == DOWN:
                self._fall_step()
                return True
            if self.active.move(command.delta):
                self._publish_active()
                return True
            return False

        if isinstance(command, Rotate):
            if self.active.rotate(command.axis, command.direction):
                self._publish_active()
                return True
            return False

        if isinstance(command, HardDrop):
            self.active.hard_drop()
            self._publish_active()
            self._on_lock()
            return True

        raise TypeError(f"unsupported command {command!r}")

    def rotate_board(self, direction: int) -> bool:
        if self.orientation.transitioning:
            return False
        target = (self.orientation.yaw + 90 * int(direction)) % 360
        if self.active is not None and not self.active.fits_at_yaw(target):
            LOG.debug("board rotation to %d refused: active piece would not fit", target)
            return False
        return self.orientation.request_rotate(direction)

    # ---- pieces --------------------------------------------------------------------

    def spawn_anchor(self, kind: str, rotation: Optional[np.ndarray] = None) -> Coord:
        """
        Anchor that centres the piece over the board footprint at the first overflow
        row, shifted so every block is inside the footprint.
        """
        ex, ez = self.orientation.world_extents()
        ax, ay, az = (ex - 1) // 2, self.height, (ez - 1) // 2

        probe = Piece(kind=kind, blocks=self.pieces.get(kind).blocks, anchor=(0, 0, 0), grid=self.grid, rotation=rotation)
        cells = np.asarray(probe.cells(), dtype=np.int64)
        lo = cells.min(axis=0)
        hi = cells.max(axis=0)

        if ax + lo[0] < 0:
            ax -= int(ax + lo[0])
        elif ax + hi[0] >= ex:
            ax -= int(ax + hi[0] - (ex - 1))
        if az + lo[2] < 0:
            az -= int(az + lo[2])
        elif az + hi[2] >= ez:
            az -= int(az + hi[2] - (ez - 1))
        return int(ax), int(ay), int(az)

    def _random_rotation(self) -> Optional[np.ndarray]:
        if not self.random_spawn_rotation or float(self._rng.random()) <= 0.5:
            return None
        axis = (Axis.X, Axis.Y, Axis.Z)[int(self._rng.integers(0, 3))]
        turns = int(self._rng.integers(0, 4))
        rot = np.eye(3, dtype=np.int64)
        for _ in range(turns):
            rot = quarter_turn(axis, +1) @ rot
        return rot

    def spawn(self, kind: Optional[str] = None) -> bool:
        """
        Create the next active piece. A spawn that does not fit ends the match.
        Returns True if the piece was placed.
        """
        if self.active is not None:
            raise PieceActiveError(f"spawn() while piece {self.active.kind!r} is still active")

        k = str(kind) if kind is not None else self._piece_rule.next_piece(locked_kind=self._last_locked_kind)
        blocks = self.pieces.get(k).blocks

        rot = self._random_rotation()
        piece = Piece(
            kind=k,
            blocks=blocks,
            anchor=self.spawn_anchor(k, rot),
            grid=self.grid,
            orientation=self.orientation,
            rotation=rot,
        )
        if rot is not None and not piece.fits():
            piece = Piece(
                kind=k,
                blocks=blocks,
                anchor=self.spawn_anchor(k),
                grid=self.grid,
                orientation=self.orientation,
            )

        if not self.place_piece(piece):
            LOG.debug("spawn of %r blocked at %s", k, piece.anchor)
            self._set_game_over()
            return False
        return True

    def place_piece(self, piece: Piece) -> bool:
        """
        Make a piece the active piece. Returns False if its placement is not legal.
        """
        if self.active is not None:
            raise PieceActiveError(f"place_piece() while piece {self.active.kind!r} is still active")
        if piece.grid is not self.grid:
            raise ValueError("piece was built for a different grid")
        if piece.locked:
            raise ValueError(f"piece {piece.kind!r} is already locked")
        if piece.orientation is None:
            piece.orientation = self.orientation
        if not piece.fits():
            return False

        self.active = piece
        self._active_handles = list(self.renderer.spawn_visual(piece.kind, piece.cells()))
        if len(self._active_handles) != len(piece.cells()):
            raise RuntimeError(
                f"renderer returned {len(self._active_handles)} handles for {len(piece.cells())} blocks"
            )
        self._emit(EventKind.SPAWN)
        LOG.debug("spawned %r at %s", piece.kind, piece.anchor)
        return True

    # ---- snapshot ------------------------------------------------------------------

    def state(self) -> MatchState:
        ap = self.active
        return MatchState(
            occupancy=self.grid.occupancy(),
            score=int(self.scorer.score),
            planes_cleared=int(self.scorer.planes_cleared_total),
            level=int(self.scorer.level),
            game_over=bool(self.game_over),
            active_kind=None if ap is None else ap.kind,
            active_cells=() if ap is None else ap.cells(),
            ghost_cells=() if ap is None else tuple(ap.soft_drop_projection()),
            yaw=int(self.orientation.yaw),
            display_yaw=float(self.orientation.display_yaw),
            transitioning=bool(self.orientation.transitioning),
            fall_interval=float(self.current_fall_interval()),
            pieces_placed=int(self.pieces_placed),
            best_score=int(self.best_score),
            events=tuple(self._events),
        )

    def drain_events(self) -> Tuple[GameEvent, ...]:
        out = tuple(self._events)
        self._events = []
        return out

    # ---- internals -----------------------------------------------------------------

    def _emit(self, kind: EventKind, value: int = 0) -> None:
        self._events.append(GameEvent(kind=kind, time=float(self.now), value=int(value)))

    def _publish_active(self) -> None:
        if self.active is None:
            return
        for h, c in zip(self._active_handles, self.active.cells()):
            self.renderer.move_visual(h, c)

    def _discard_active(self) -> None:
        for h in self._active_handles:
            self.renderer.destroy_visual(h)
        self.active = None
        self._active_handles = []

    def _fall_step(self) -> None:
        if self.active is None:
            return
        if self.active.step_down():
            self._on_lock()
        else:
            self._publish_active()

    def _on_board_rotated(self) -> None:
        yaw = self.orientation.yaw
        for c in self.grid.occupied_cells():
            h = self.grid.handle_at(c)
            if h is not None:
                self.renderer.move_visual(h, self.orientation.grid_to_world(c))
        self._emit(EventKind.BOARD_ROTATED, yaw)
        LOG.debug("board yaw -> %d", yaw)

    def _on_lock(self) -> None:
        piece = self.active
        if piece is None:
            return
        handles = self._active_handles
        self.active = None
        self._active_handles = []
        self._last_locked_kind = piece.kind

        for h, c in zip(handles, piece.cells()):
            g = self.orientation.world_to_grid(c)
            if not self.grid.store(g, h):
                LOG.warning("lock: cell %s not free, dropping block %d", g, h)
                self.renderer.destroy_visual(h)

        self.pieces_placed += 1
        self.audio.on_lock()
        self._emit(EventKind.LOCK)

        planes = 0
        for family in PLANE_ORDER:
            planes += self.grid.resolve_complete_planes(family)

        if planes > 0:
            award = self.scorer.on_planes_cleared(planes, self.scorer.level, self.now)
            self.audio.on_clear(planes)
            self._emit(EventKind.CLEAR, planes)
            LOG.info("cleared %d plane(s): +%d (score=%d)", planes, award.awarded, self.scorer.score)
            if award.level_up:
                self.fall_interval = fall_interval_for_level(
                    self.scorer.level,
                    base=self.base_fall_interval,
                    minimum=self.min_fall_interval,
                    step=self.fall_interval_step,
                )
                self._emit(EventKind.LEVEL_UP, self.scorer.level)

        if self._top_row_occupied():
            self._set_game_over()
            return
        self.spawn()

    def _top_row_occupied(self) -> bool:
        top = self.grid.occupancy()[:, self.height - 1, :]
        return bool(np.any(top))

    def _set_game_over(self) -> None:
        if self.game_over:
            return
        self.game_over = True
        self.pending_fall = False
        self.audio.on_game_over()
        self._emit(EventKind.GAME_OVER, self.scorer.score)
        LOG.warning("game over: score=%d planes=%d level=%d", self.scorer.score, self.planes_cleared, self.level)

        best = int(self.best_scores.get_best_score())
        if self.scorer.score > best:
            self.best_scores.save_best_score(int(self.scorer.score))
            best = int(self.scorer.score)
        self.best_score = best


__all__ = ["MatchEngine"]
