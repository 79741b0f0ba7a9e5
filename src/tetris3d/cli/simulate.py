# src/tetris3d/cli/simulate.py
from __future__ import annotations

from tetris3d.apps.simulate.entrypoint import parse_args, run_simulation


def main() -> int:
    return run_simulation(parse_args())


if __name__ == "__main__":
    raise SystemExit(main())
