# src/tetris3d/config/io.py
from __future__ import annotations

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel

from tetris3d.game.config import RootConfig


def to_plain_dict(cfg: Any) -> dict[str, Any]:
    if isinstance(cfg, BaseModel):
        return cfg.model_dump(mode="json")
    if isinstance(cfg, DictConfig):
        data = OmegaConf.to_container(cfg, resolve=True)
        if not isinstance(data, dict):
            raise TypeError("config must resolve to a mapping")
        return data
    raise TypeError(f"unsupported config type: {type(cfg).__name__}")


def load_yaml(path: Path) -> dict[str, Any]:
    cfg_path = Path(path)
    cfg = OmegaConf.load(cfg_path)
    data = OmegaConf.to_container(cfg, resolve=True)
    if not isinstance(data, dict):
        raise TypeError(f"config({path}) must be a mapping")
    return data


def merge_overrides(data: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Apply dotlist overrides (e.g. ["game.grid.width=4"]) on top of a loaded mapping.
    """
    if not overrides:
        return dict(data)
    merged = OmegaConf.merge(OmegaConf.create(data), OmegaConf.from_dotlist(list(overrides)))
    out = OmegaConf.to_container(merged, resolve=True)
    if not isinstance(out, dict):
        raise TypeError("config overrides must resolve to a mapping")
    return out


def load_root_config(path: Path, overrides: list[str] | None = None) -> RootConfig:
    return RootConfig.model_validate(merge_overrides(load_yaml(path), list(overrides or [])))


__all__ = ["to_plain_dict", "load_yaml", "merge_overrides", "load_root_config"]
