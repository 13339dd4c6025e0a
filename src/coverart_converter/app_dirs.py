"""ログや設定を置くユーザーごとのディレクトリ。"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

APP_NAME = "CoverArtConverter"

# 種別ごとの (Windowsの環境変数, XDG環境変数, XDG未設定時のホーム配下, 末尾ディレクトリ)
_LAYOUTS = {
    "logs": (("LOCALAPPDATA", "APPDATA"), "XDG_STATE_HOME", (".local", "state"), "logs"),
    "config": (("APPDATA",), "XDG_CONFIG_HOME", (".config",), ""),
}


def user_dir(
    kind: str,
    *,
    os_name: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """``kind`` ("logs" または "config") 用のディレクトリを返す。作成はしない。"""
    win_vars, xdg_var, xdg_fallback, leaf = _LAYOUTS[kind]
    env = os.environ if env is None else env
    home = home or Path.home()

    if (os_name or os.name) == "nt":
        base = next((env[name] for name in win_vars if env.get(name)), None)
        root = Path(base) / APP_NAME if base else home / f".{APP_NAME.lower()}"
    else:
        base = env.get(xdg_var)
        root = (Path(base) if base else home.joinpath(*xdg_fallback)) / APP_NAME.lower()
    return root / leaf if leaf else root
