from __future__ import annotations

from pathlib import Path
from typing import Dict, Any


def get_data_root(config: Dict[str, Any]) -> Path:
    root = config.get("data_root", "~/.local/share/paintboard")
    return Path(root).expanduser().resolve()


def ensure_directories(data_root: Path) -> Dict[str, Path]:
    paintings_dir = data_root / "paintings"
    paintings_dir.mkdir(parents=True, exist_ok=True)
    return {
        "paintings": paintings_dir,
    }
