# src/tetris3d/apps/simulate/entrypoint.py
from __future__ import annotations

import argparse
import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

# Prefer Rich progress bar if installed; fall back gracefully.
try:
    from tqdm.rich import tqdm  # type: ignore
except Exception:  # pragma: no cover
    from tqdm.auto import tqdm  # type: ignore

from tetris3d.config.io import load_root_config, to_plain_dict
from tetris3d.game.config import RootConfig
from tetris3d.game.core.collaborators import RecordingAudio
from tetris3d.game.core.game import MatchEngine
from tetris3d.game.core.types import Axis, Command, HardDrop, Move, Rotate, RotateBoard, SetFastFall
from tetris3d.game.factory import make_match_from_cfg
from tetris3d.utils.logging import setup_logger

_MOVES: tuple[tuple[int, int, int], ...] = (
    (1, 0, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, 0, -1),
    (0, -1, 0),
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Run headless 3D falling-block matches driven by random commands and report stats."
    )
    ap.add_argument("--config", type=str, default=None, help="YAML config (default: built-in defaults)")
    ap.add_argument("--set", dest="overrides", action="append", default=[], help="dotlist override, e.g. game.grid.width=4")
    ap.add_argument("--episodes", type=int, default=5)
    ap.add_argument("--max-ticks", type=int, default=20_000, help="tick cap per episode")
    ap.add_argument("--dt", type=float, default=0.05, help="seconds per tick")
    ap.add_argument("--command-prob", type=float, default=0.3, help="probability of issuing a command on a tick")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--json", action="store_true", help="print final stats as JSON only")
    ap.add_argument("--no-progress", action="store_true", help="disable progress bar")
    ap.add_argument("--log-level", type=str, default=None)
    return ap.parse_args(argv)


class RandomCommander:
    """Random command source standing in for a player."""

    def __init__(self, rng: np.random.Generator, *, prob: float) -> None:
        self.rng = rng
        self.prob = float(prob)

    def next_command(self) -> Optional[Command]:
        if float(self.rng.random()) >= self.prob:
            return None
        r = int(self.rng.integers(0, 20))
        if r < 10:
            return Move(_MOVES[int(self.rng.integers(0, len(_MOVES)))])
        if r < 15:
            axis = (Axis.X, Axis.Y, Axis.Z)[int(self.rng.integers(0, 3))]
            return Rotate(axis, +1 if int(self.rng.integers(0, 2)) else -1)
        if r < 17:
            return RotateBoard(+1 if int(self.rng.integers(0, 2)) else -1)
        if r < 19:
            return SetFastFall(bool(self.rng.integers(0, 2)))
        return HardDrop()


@dataclass
class EpisodeStats:
    score: int = 0
    planes: int = 0
    level: int = 1
    pieces: int = 0
    ticks: int = 0
    commands: int = 0
    accepted: int = 0
    game_over: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": int(self.score),
            "planes": int(self.planes),
            "level": int(self.level),
            "pieces": int(self.pieces),
            "ticks": int(self.ticks),
            "commands": int(self.commands),
            "accepted": int(self.accepted),
            "game_over": bool(self.game_over),
        }


@dataclass
class SimTotals:
    episodes: List[EpisodeStats] = field(default_factory=list)
    wall_s: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        n = max(1, len(self.episodes))
        ticks = sum(e.ticks for e in self.episodes)
        return {
            "episodes": len(self.episodes),
            "avg_score": float(sum(e.score for e in self.episodes) / n),
            "max_score": int(max((e.score for e in self.episodes), default=0)),
            "avg_planes": float(sum(e.planes for e in self.episodes) / n),
            "avg_pieces": float(sum(e.pieces for e in self.episodes) / n),
            "avg_ticks": float(ticks / n),
            "ticks_per_s": float(ticks / self.wall_s) if self.wall_s > 0 else 0.0,
            "per_episode": [e.to_dict() for e in self.episodes],
        }


def run_episode(
        engine: MatchEngine,
        commander: RandomCommander,
        *,
        max_ticks: int,
        dt: float,
) -> EpisodeStats:
    stats = EpisodeStats()
    engine.reset()
    for _ in range(max(0, int(max_ticks))):
        cmd = commander.next_command()
        if cmd is not None:
            stats.commands += 1
            if engine.apply(cmd):
                stats.accepted += 1
        engine.tick(dt)
        stats.ticks += 1
        if engine.game_over:
            break

    stats.score = engine.score
    stats.planes = engine.planes_cleared
    stats.level = engine.level
    stats.pieces = engine.pieces_placed
    stats.game_over = bool(engine.game_over)
    return stats


def _render_report_table(stats: dict[str, Any]) -> Any:
    from rich import box
    from rich.table import Table

    table = Table(title="[sim] RESULT", box=box.SIMPLE_HEAVY)
    table.add_column("episode", justify="right")
    table.add_column("score", justify="right")
    table.add_column("planes", justify="right")
    table.add_column("level", justify="right")
    table.add_column("pieces", justify="right")
    table.add_column("ticks", justify="right")
    table.add_column("game over")
    for i, e in enumerate(stats["per_episode"]):
        table.add_row(
            str(i),
            str(e["score"]),
            str(e["planes"]),
            str(e["level"]),
            str(e["pieces"]),
            str(e["ticks"]),
            "yes" if e["game_over"] else "no",
        )
    table.caption = (
        f"avg score {stats['avg_score']:.1f} | max {stats['max_score']} | "
        f"avg planes {stats['avg_planes']:.2f} | {stats['ticks_per_s']:.0f} ticks/s"
    )
    return table


def run_simulation(args: argparse.Namespace) -> int:
    if args.config is not None:
        root = load_root_config(Path(args.config), list(args.overrides))
    else:
        root = RootConfig()

    level = str(args.log_level or root.log_level)
    logger = setup_logger(name="tetris3d", use_rich=not bool(args.json), level=level)

    audio = RecordingAudio()
    engine = make_match_from_cfg(root.game, audio=audio)
    rng = np.random.default_rng(int(args.seed))
    engine.set_rng(np.random.default_rng(int(args.seed) + 1))
    commander = RandomCommander(rng, prob=float(args.command_prob))

    logger.info(
        "simulating %d episode(s) on %dx%dx%d grid (dt=%.3f, max_ticks=%d)",
        int(args.episodes),
        engine.width,
        engine.height,
        engine.depth,
        float(args.dt),
        int(args.max_ticks),
    )

    totals = SimTotals()
    t0 = time.perf_counter()
    it = range(max(0, int(args.episodes)))
    if not args.no_progress and not args.json:
        it = tqdm(it, desc="episodes", unit="ep")
    for _ in it:
        totals.episodes.append(run_episode(engine, commander, max_ticks=int(args.max_ticks), dt=float(args.dt)))
    totals.wall_s = time.perf_counter() - t0

    stats = totals.to_dict()
    if args.json:
        stats["config"] = to_plain_dict(root.game)
        print(json.dumps(stats, indent=2))
        return 0

    from rich.console import Console

    Console().print(_render_report_table(stats))
    logger.info("locks=%d clears=%d game_overs=%d", audio.locks, len(audio.clears), audio.game_overs)
    return 0


__all__ = ["parse_args", "run_simulation", "run_episode", "RandomCommander", "EpisodeStats", "SimTotals"]
