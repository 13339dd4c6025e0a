"""
pytest設定ファイル
共通のフィクスチャを定義
"""

from pathlib import Path

import pytest
from PIL import Image
from loguru import logger


@pytest.fixture(autouse=True)
def _quiet_logger():
    """テスト中はloguruの既定出力を止める"""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def make_image(tmp_path: Path):
    """指定サイズ・形式の画像を作るファクトリ"""

    def _make(name: str, size, mode: str = "RGB", color=(200, 40, 90), image_format=None) -> Path:
        path = tmp_path / name
        img = Image.new(mode, size, color=color)
        img.save(path, format=image_format)
        return path

    return _make


@pytest.fixture
def gradient_png(tmp_path: Path) -> Path:
    """ピクセルごとに値が異なるPNG（同一性チェック用）"""
    path = tmp_path / "gradient.png"
    img = Image.new("RGB", (150, 100))
    img.putdata([((x * 7) % 256, (y * 5) % 256, (x + y) % 256) for y in range(100) for x in range(150)])
    img.save(path, "PNG")
    return path


@pytest.fixture
def corrupt_png(tmp_path: Path) -> Path:
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not a png at all")
    return path
