from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import pygame

from paintboard.board.drawing import DrawingState
from paintboard.board.strokes import ColorValue

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME_FORMAT = "%Y%m%d_%H%M%S"


def paint_file_name(now: Optional[datetime] = None, fmt: str = DEFAULT_FILE_NAME_FORMAT) -> str:
    stamp = (now or datetime.now()).strftime(fmt)
    return f"Paint{stamp}.png"


def save_surface_atomic(surface: pygame.Surface, path: Path) -> None:
    # Keep a .png suffix so pygame writes a PNG-encoded file.
    tmp_path = path.with_name(f".{path.stem}.tmp{path.suffix}")
    try:
        pygame.image.save(surface, str(tmp_path))
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def save_drawing(
    state: DrawingState,
    size: Tuple[int, int],
    out_dir: Path,
    background: ColorValue = 0xFFFFFFFF,
    *,
    now: Optional[datetime] = None,
    name_format: str = DEFAULT_FILE_NAME_FORMAT,
) -> Tuple[str, bool]:
    """Flatten the recorded strokes and write them as a PNG.

    Returns the target path and whether the write succeeded. I/O and encoder
    failures are logged and reported as ``False``.
    """
    path = Path(out_dir) / paint_file_name(now, name_format)
    image = state.flatten_to_image(size[0], size[1], background)
    try:
        save_surface_atomic(image, path)
    except (pygame.error, OSError) as exc:
        logger.warning("Could not save drawing to %s: %s", path, exc)
        return str(path), False
    logger.info("Saved drawing with %d strokes to %s", len(state.strokes), path)
    return str(path), True
