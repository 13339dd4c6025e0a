from __future__ import annotations

from pathlib import Path

from coverart_converter.app_dirs import user_dir


def test_logs_on_windows_use_localappdata(tmp_path: Path) -> None:
    env = {"LOCALAPPDATA": str(tmp_path / "Local"), "APPDATA": str(tmp_path / "Roaming")}
    result = user_dir("logs", os_name="nt", env=env, home=tmp_path)
    assert result == tmp_path / "Local" / "CoverArtConverter" / "logs"


def test_config_on_windows_uses_appdata(tmp_path: Path) -> None:
    env = {"LOCALAPPDATA": str(tmp_path / "Local"), "APPDATA": str(tmp_path / "Roaming")}
    assert user_dir("config", os_name="nt", env=env, home=tmp_path) == tmp_path / "Roaming" / "CoverArtConverter"


def test_windows_without_appdata_falls_back_to_home(tmp_path: Path) -> None:
    assert user_dir("logs", os_name="nt", env={}, home=tmp_path) == tmp_path / ".coverartconverter" / "logs"


def test_unix_uses_xdg_directories(tmp_path: Path) -> None:
    env = {"XDG_STATE_HOME": str(tmp_path / "state"), "XDG_CONFIG_HOME": str(tmp_path / "config")}
    assert user_dir("logs", os_name="posix", env=env, home=tmp_path) == tmp_path / "state" / "coverartconverter" / "logs"
    assert user_dir("config", os_name="posix", env=env, home=tmp_path) == tmp_path / "config" / "coverartconverter"


def test_unix_without_xdg_falls_back_to_home(tmp_path: Path) -> None:
    assert user_dir("logs", os_name="posix", env={}, home=tmp_path) == tmp_path / ".local" / "state" / "coverartconverter" / "logs"
    assert user_dir("config", os_name="posix", env={}, home=tmp_path) == tmp_path / ".config" / "coverartconverter"
