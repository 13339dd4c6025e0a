"""Preview sizing helpers for the processed image panel."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from PIL import Image
from loguru import logger

PREVIEW_BOX = (300, 300)


def contain_size(image_size: Tuple[int, int], box: Tuple[int, int] = PREVIEW_BOX) -> Tuple[int, int]:
    """Return the largest size that fits ``box`` while keeping the aspect ratio."""
    width, height = image_size
    box_width, box_height = box
    if width <= 0 or height <= 0:
        return box_width, box_height
    scale = min(box_width / width, box_height / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def load_preview_image(path: Path) -> Optional[Image.Image]:
    """Load the saved output for display. Returns None when it can no longer be read."""
    try:
        with Image.open(path) as opened:
            opened.load()
            return opened.copy()
    except (OSError, ValueError) as exc:
        logger.warning(f"プレビューを読み込めません: {path} ({exc})")
        return None
