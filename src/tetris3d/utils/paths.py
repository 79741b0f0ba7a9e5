# src/tetris3d/utils/paths.py
from __future__ import annotations

from pathlib import Path


def _find_repo_root(start: Path) -> Path | None:
    for p in [start, *start.parents]:
        if (p / "pyproject.toml").is_file():
            return p
    return None


def package_root() -> Path:
    return Path(__file__).resolve().parents[1]


def repo_root() -> Path:
    """
    Return the repository root by searching upwards for pyproject.toml.
    """
    here = Path(__file__).resolve()
    root = _find_repo_root(here.parent)
    if root is None:
        raise FileNotFoundError("Could not locate repo root (pyproject.toml not found).")
    return root


def assets_dir() -> Path:
    """
    Return the bundled assets directory (ships inside the package).
    """
    p = package_root() / "assets"
    if not p.is_dir():
        raise FileNotFoundError(f"Assets directory not found: {p}")
    return p


def pieces_dir() -> Path:
    p = assets_dir() / "pieces"
    if not p.is_dir():
        raise FileNotFoundError(f"Pieces directory not found: {p}")
    return p


def default_config_path() -> Path:
    """
    Return repo_root/configs/game/default.yaml (source checkouts only).
    """
    p = repo_root() / "configs" / "game" / "default.yaml"
    if not p.is_file():
        raise FileNotFoundError(f"Default game config not found: {p}")
    return p


__all__ = ["repo_root", "package_root", "assets_dir", "pieces_dir", "default_config_path"]
