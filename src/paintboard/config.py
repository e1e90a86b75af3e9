from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "data_root": "~/.local/share/paintboard",
    "window": {
        "width": 1280,
        "height": 800,
        "fullscreen": False,
    },
    "logging": {
        "level": "INFO",
    },
    "paint": {
        "brush_width": 20.0,
        "min_width": 1.0,
        "max_width": 60.0,
        "brush_color": 0xFF888888,
        "background": 0xFFFFFFFF,
        "touch_tolerance": 4.0,
        # "end" freezes the brush when the gesture ends, "next_start" when the next one begins.
        "commit": "end",
        "file_name_format": "%Y%m%d_%H%M%S",
        "palette": [
            [0, 0, 0],
            [136, 136, 136],
            [255, 255, 255],
            [220, 20, 60],
            [255, 127, 0],
            [255, 215, 0],
            [34, 139, 34],
            [0, 128, 128],
            [30, 144, 255],
            [138, 43, 226],
            [255, 105, 180],
            [210, 105, 30],
        ],
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _candidate_config_paths() -> list[Path]:
    env_path = os.environ.get("PAINTBOARD_CONFIG")
    paths = []
    if env_path:
        paths.append(Path(env_path))
    paths.extend([
        Path("config.yaml"),
        Path("~/.config/paintboard/config.yaml").expanduser(),
    ])
    return paths


def load_config() -> Dict[str, Any]:
    config = dict(DEFAULT_CONFIG)
    for path in _candidate_config_paths():
        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
            if isinstance(data, dict):
                config = _deep_merge(config, data)
            break
    return config


def coerce_float(value: object, default: float, *, minimum: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number <= minimum:
        return default
    return number


def coerce_commit_mode(value: object) -> str:
    if value in {"end", "next_start"}:
        return str(value)
    return "end"
