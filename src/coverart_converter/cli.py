"""1枚の画像をカバーアート用に変換するコマンドラインツール。"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from coverart_converter.job_controller import ImageJobController, ProcessorState, run_inline
from coverart_converter.runtime_logging import setup_logging


def _build_arg_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI use."""
    p = argparse.ArgumentParser(
        prog="coverart-converter-cli",
        description="画像を iPod のカバーアート向けサイズに変換し、元画像と同じフォルダーに保存します",
    )
    p.add_argument("path", help="入力画像 (png / jpg / jpeg / bmp / webp)")
    p.add_argument("--verbose", "-v", action="count", default=0, help="詳細ログを増やす (重ね掛け可)")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI のエントリポイント。終了コードを返す。"""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    console_level = "WARNING"
    if args.verbose == 1:
        console_level = "INFO"
    elif args.verbose >= 2:
        console_level = "DEBUG"
    setup_logging(console_level=console_level)

    controller = ImageJobController(run_inline)
    controller.offer_path(args.path)
    state: ProcessorState = controller.state

    print(state.message)
    if state.processed_image is None:
        return 1
    print(state.processed_image)
    return 0


if __name__ == "__main__":
    sys.exit(main())
