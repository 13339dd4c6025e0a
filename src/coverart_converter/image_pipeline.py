"""カバーアート用の画像変換パイプライン。

拡張子チェック → デコード → サイズ分類 → リサンプリング → 出力パス決定 → 保存
の順で1枚の画像を処理する。GUIとCLIの両方から利用する。
"""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError
from loguru import logger

ACCEPTED_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "bmp", "webp"})

LARGE_SIDE = 300
SMALL_SIDE = 200

FALLBACK_STEM = "image"
FALLBACK_EXTENSION = "png"
OUTPUT_SUFFIX = "_processed"

UNSUPPORTED_MESSAGE = "only images are supported"


class JobStage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    DECODING = "decoding"
    CLASSIFYING = "classifying"
    RESAMPLING = "resampling"
    SAVING = "saving"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineError(Exception):
    """パイプライン内で回復可能なエラーの基底クラス。

    ``reason`` はそのままステータス表示に使える文字列。
    """

    label = ""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    @property
    def display_text(self) -> str:
        if self.label:
            return f"{self.label}: {self.reason}"
        return self.reason


class UnsupportedExtensionError(PipelineError):
    def __init__(self, path: Path) -> None:
        super().__init__(UNSUPPORTED_MESSAGE)
        self.path = path


class DecodeError(PipelineError):
    label = "Image cannot be opened"


class EncodeError(PipelineError):
    label = "Image cannot be saved"


@dataclass(frozen=True)
class Success:
    output_path: Path

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ProcessingOutcome = Union[Success, Failure]
StageObserver = Callable[[JobStage], None]


def _readable_text(value: str) -> Optional[str]:
    """UTF-8で表現できない文字列（surrogateescape由来）ならNoneを返す。"""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return value


def path_extension(path: Union[str, Path]) -> Optional[str]:
    """先頭のドットを除いた拡張子を返す。無い場合はNone。"""
    suffix = Path(path).suffix
    if not suffix:
        return None
    return _readable_text(suffix[1:])


def is_accepted_extension(path: Union[str, Path]) -> bool:
    """拡張子が受け付け対象か判定する（大文字小文字は区別する）。"""
    return path_extension(path) in ACCEPTED_EXTENSIONS


def check_extension(path: Union[str, Path]) -> Path:
    source = Path(path)
    if not is_accepted_extension(source):
        raise UnsupportedExtensionError(source)
    return source


def decode_image(path: Union[str, Path]) -> Image.Image:
    """画像を読み込み、ピクセルデータまで展開して返す。

    Raises:
        DecodeError: 画像として解釈できない、または読み込めない場合
    """
    source = Path(path)
    try:
        with Image.open(source) as opened:
            opened.load()
            image = opened.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise DecodeError(str(e)) from e

    logger.debug(f"デコード完了: {source} ({image.width}x{image.height}, mode={image.mode})")
    return image


def classify(width: int, height: int) -> Tuple[int, int]:
    """元サイズから出力サイズを決定する。

    - どちらかが300pxを超える → 300x300
    - 両方200px以下 → そのまま
    - それ以外 → 200x200

    縦横比は保持しない。
    """
    if width > LARGE_SIDE or height > LARGE_SIDE:
        return LARGE_SIDE, LARGE_SIDE
    if width <= SMALL_SIDE and height <= SMALL_SIDE:
        return width, height
    return SMALL_SIDE, SMALL_SIDE


def resample(image: Image.Image, target: Tuple[int, int]) -> Image.Image:
    """``target`` ちょうどのサイズにLanczosで拡縮する。同サイズなら同じオブジェクトを返す。"""
    if image.size == tuple(target):
        return image

    source = image
    if source.mode in ("P", "1"):
        # パレット/2値画像はPillowがNEARESTに切り替えるため先に展開する
        has_alpha = source.mode == "P" and "transparency" in source.info
        source = source.convert("RGBA" if has_alpha else "RGB")

    return source.resize(tuple(target), Image.Resampling.LANCZOS)


def derive_output_path(path: Union[str, Path]) -> Path:
    """``<stem>_processed.<ext>`` を元ファイルと同じフォルダーに作る。"""
    source = Path(path)
    stem = _readable_text(source.stem) or FALLBACK_STEM
    extension = path_extension(source) or FALLBACK_EXTENSION
    new_name = f"{stem}{OUTPUT_SUFFIX}.{extension}"
    if not source.name:
        return source / new_name
    return source.with_name(new_name)


def _build_temp_save_path(target_path: Path) -> Path:
    """同一ディレクトリ内の一時保存パスを作る。"""
    token = f"{os.getpid()}_{time.time_ns()}_{uuid.uuid4().hex[:10]}"
    return target_path.with_name(f".{target_path.name}.{token}.tmp")


def _format_for(path: Path) -> str:
    extension = path.suffix.lower()
    registered = Image.registered_extensions()
    if extension not in registered:
        raise EncodeError(f"unsupported image format: {path.suffix or '(none)'}")
    return registered[extension]


def save_image(image: Image.Image, output_path: Union[str, Path]) -> Path:
    """拡張子に対応する形式で保存する。一時ファイル→置換で書き込む。

    Raises:
        EncodeError: 形式が非対応、または書き込みに失敗した場合
    """
    final_path = Path(output_path)
    image_format = _format_for(final_path)
    tmp_path = _build_temp_save_path(final_path)
    try:
        image.save(tmp_path, format=image_format)
        os.replace(str(tmp_path), str(final_path))
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(str(e) or type(e).__name__) from e
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                logger.warning(f"一時保存ファイルの削除に失敗: {tmp_path}")

    return final_path


def process_image(
    path: Union[str, Path],
    on_stage: Optional[StageObserver] = None,
) -> ProcessingOutcome:
    """1枚の画像を処理し、成功なら出力パス、失敗なら理由を返す。

    想定内のエラーは例外として外に出さず ``Failure`` に変換する。
    """
    source = Path(path)

    def enter(stage: JobStage) -> None:
        logger.debug(f"{source.name}: {stage.value}")
        if on_stage is not None:
            on_stage(stage)

    try:
        enter(JobStage.VALIDATING)
        check_extension(source)

        enter(JobStage.DECODING)
        image = decode_image(source)

        enter(JobStage.CLASSIFYING)
        width, height = image.size
        target = classify(width, height)

        enter(JobStage.RESAMPLING)
        processed = resample(image, target)
        if processed is not image:
            logger.info(f"リサイズ: {width}x{height} → {target[0]}x{target[1]}")

        enter(JobStage.SAVING)
        output_path = save_image(processed, derive_output_path(source))
    except PipelineError as e:
        logger.error(f"画像処理エラー ({source}): {e.display_text}")
        enter(JobStage.FAILED)
        return Failure(e.display_text)

    logger.info(f"保存完了: {output_path}")
    enter(JobStage.SUCCEEDED)
    return Success(output_path)
