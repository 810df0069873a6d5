# config/loader.py
from __future__ import annotations
import tomllib
from pathlib import Path
from typing import Any, Dict

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "database": {"path": "data/shopping.sqlite"},
    "logging": {"level": "INFO"},
    "analytics": {"baseline_days": 7},
}


def load_config(config_path: Path | None = None) -> Dict[str, Any]:
    """
    Load config.toml from repo root by default.
    Sections missing from the file are filled from DEFAULTS.
    """
    if config_path is None:
        # repo root is parent of this file's parent
        repo = Path(__file__).resolve().parents[1]
        config_path = repo / "config.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with config_path.open("rb") as f:
        data = tomllib.load(f)

    merged: Dict[str, Any] = {}
    for section, values in DEFAULTS.items():
        merged[section] = {**values, **data.get(section, {})}
    for section, values in data.items():
        merged.setdefault(section, values)
    return merged
