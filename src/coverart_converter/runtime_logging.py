"""loguru のシンク設定と、実行ごとのログファイル。"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional, Union

from loguru import logger

from coverart_converter.app_dirs import user_dir

LOG_DIR_ENV = "COVERART_LOG_DIR"
RUN_LOG_NAME = "run_{time:YYYYMMDD_HHmmss}.log"
RUN_LOG_RETENTION = "30 days"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{function}</cyan>: <white>{message}</white>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {function}: {message}"


def setup_logging(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[Union[str, Path]] = None,
    retention: Optional[str] = None,
) -> None:
    """ロギングの設定を行う。``log_file`` が無ければコンソールのみ。

    ``retention`` は loguru にそのまま渡し、同じ名前パターンの古いログを消させる。
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        colorize=True,
        level=console_level,
    )
    if log_file is not None:
        logger.add(
            str(log_file),
            format=FILE_FORMAT,
            level=file_level,
            encoding="utf-8",
            retention=retention,
        )


def resolve_log_dir(env: Optional[Mapping[str, str]] = None, **dir_options) -> Path:
    """``COVERART_LOG_DIR`` を優先し、無ければOS標準の状態ディレクトリを返す。"""
    env = os.environ if env is None else env
    override = env.get(LOG_DIR_ENV)
    if override:
        return Path(override)
    return user_dir("logs", env=env, **dir_options)


def start_run_logging(verbose: bool = False) -> Optional[Path]:
    """コンソールと実行ログファイルへの出力を開始し、ログディレクトリを返す。

    ログディレクトリを作れない場合はコンソールのみで続行して None を返す。
    """
    console_level = "DEBUG" if verbose else "INFO"
    log_dir = resolve_log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        setup_logging(console_level=console_level)
        logger.warning(f"ログディレクトリを作成できません: {e}")
        return None

    setup_logging(
        console_level=console_level,
        log_file=log_dir / RUN_LOG_NAME,
        retention=RUN_LOG_RETENTION,
    )
    logger.debug(f"実行ログ: {log_dir}")
    return log_dir
