"""ウィンドウ設定の永続化ストア。"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from coverart_converter.app_dirs import user_dir

SCHEMA_VERSION = 1
_SETTINGS_FILENAME = "settings.json"

APPEARANCE_MODES = ("system", "light", "dark")


def default_settings() -> dict[str, Any]:
    """設定のデフォルト値を返す。"""
    return {
        "schema_version": SCHEMA_VERSION,
        "appearance_mode": "system",
        "window_geometry": "400x500",
        "verbose_logging": False,
        "last_input_dir": "",
    }


class SettingsStore:
    """設定のロード/保存を行う。"""

    def __init__(self, settings_path: Optional[Path] = None) -> None:
        self.settings_path = settings_path or user_dir("config") / _SETTINGS_FILENAME

    def load(self) -> dict[str, Any]:
        """設定を読み込む。読めない値はデフォルトに戻す。"""
        settings = default_settings()
        loaded = self._read_json(self.settings_path)
        if loaded is None:
            return settings

        settings.update({key: value for key, value in loaded.items() if key in settings})
        if settings["appearance_mode"] not in APPEARANCE_MODES:
            settings["appearance_mode"] = "system"
        settings["verbose_logging"] = bool(settings["verbose_logging"])
        settings["schema_version"] = SCHEMA_VERSION
        return settings

    def save(self, settings: Mapping[str, Any]) -> None:
        """設定を保存する。"""
        payload = default_settings()
        payload.update(dict(settings))
        payload["schema_version"] = SCHEMA_VERSION

        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.settings_path.with_suffix(f"{self.settings_path.suffix}.tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)
        tmp_path.replace(self.settings_path)

    @staticmethod
    def _read_json(path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"設定ファイルを読み込めません: {path} ({e})")
            return None
        if not isinstance(data, dict):
            return None
        return data

