"""CoverArt Converter のデスクトップGUI。

画像をウィンドウへドロップ（またはファイル選択）すると、iPod のカバーアート向け
サイズに変換して元画像と同じフォルダーへ保存し、結果をプレビュー表示する。

Usage:
    uv run python -m coverart_converter.gui_app
"""

from __future__ import annotations

import logging
from pathlib import Path
from tkinter import TclError, filedialog
from typing import Any, Optional

import customtkinter
from loguru import logger

from coverart_converter.drop_paths import dropped_paths
from coverart_converter.job_controller import BackgroundJobRunner, ImageJobController, ProcessorState
from coverart_converter.preview import PREVIEW_BOX, contain_size, load_preview_image
from coverart_converter.runtime_logging import start_run_logging
from coverart_converter.settings_store import SettingsStore

TKDND_AVAILABLE = False
DND_FILES: Optional[str] = None
TkinterDnD: Any = None
try:
    from tkinterdnd2 import DND_FILES, TkinterDnD

    TKDND_AVAILABLE = True
except ImportError:
    logging.info("tkinterdnd2 is not installed; drag and drop is disabled")

_DnDBase: Any = TkinterDnD.DnDWrapper if TKDND_AVAILABLE else object

WINDOW_TITLE = "CoverArt Converter for iPod"
STATUS_FONT_SIZE = 24
FILE_DIALOG_TYPES = (
    ("Images", "*.png *.jpg *.jpeg *.bmp *.webp"),
    ("All files", "*.*"),
)


def setup_drag_and_drop(app: Any, targets: list[Any]) -> bool:
    """Register ``targets`` as file drop targets. Returns True when at least one succeeded."""
    if not TKDND_AVAILABLE or TkinterDnD is None:
        logging.info("Drag and drop disabled: tkinterdnd2 unavailable")
        return False

    if not hasattr(app, "drop_target_register"):
        logging.info("Drag and drop disabled: root widget does not support drop_target_register")
        return False

    try:
        app.TkdndVersion = TkinterDnD._require(app)
    except (RuntimeError, TclError) as exc:
        logging.warning("Drag and drop initialization failed: %s", exc)
        return False

    registered = 0
    for widget in targets:
        try:
            widget.drop_target_register(DND_FILES)
            widget.dnd_bind("<<Drop>>", app._on_drop_files)
            registered += 1
        except (AttributeError, TclError):
            logging.exception("Failed to register drop target: %s", widget)

    if registered:
        logging.info("Drag and drop enabled on %d widgets", registered)
    return registered > 0


class CoverArtApp(customtkinter.CTk, _DnDBase):
    def __init__(self, settings_store: Optional[SettingsStore] = None) -> None:
        super().__init__()
        self.report_callback_exception = self._report_callback_exception

        self._settings_store = settings_store or SettingsStore()
        self.settings = self._settings_store.load()

        customtkinter.set_appearance_mode(self.settings["appearance_mode"])
        customtkinter.set_default_color_theme("blue")

        self.title(WINDOW_TITLE)
        self.geometry(self.settings["window_geometry"])
        self.minsize(360, 420)

        self.controller = ImageJobController(
            BackgroundJobRunner(self.after),
            on_change=self._render_state,
        )

        # -------------------- layout --------------------
        self.main_content = customtkinter.CTkFrame(self, fg_color="transparent")
        self.main_content.pack(fill="both", expand=True, padx=20, pady=20)

        self.status_var = customtkinter.StringVar(value=self.controller.state.message)
        self.status_label = customtkinter.CTkLabel(
            self.main_content,
            textvariable=self.status_var,
            font=customtkinter.CTkFont(size=STATUS_FONT_SIZE),
            wraplength=340,
        )
        self.status_label.pack(side="top", pady=(40, 20))

        self.preview_label = customtkinter.CTkLabel(
            self.main_content,
            text="",
            width=PREVIEW_BOX[0],
            height=PREVIEW_BOX[1],
        )
        self.preview_label.pack(side="top")
        self._preview_image: Optional[customtkinter.CTkImage] = None

        self.select_button = customtkinter.CTkButton(
            self.main_content,
            text="Select image...",
            command=self._select_file,
        )
        self.select_button.pack(side="bottom", pady=(20, 0))

        self._drag_drop_enabled = setup_drag_and_drop(
            self,
            [self, self.main_content, self.status_label, self.preview_label],
        )
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    def _report_callback_exception(self, exc: Any, val: Any, tb: Any) -> None:
        logger.opt(exception=(exc, val, tb)).critical("Tkinter callback exception")
        if isinstance(val, MemoryError):
            # ワーカーがメモリ不足で落ちた場合は状態を回復できないので終了する
            self.destroy()

    # -------------------- input --------------------
    def _on_drop_files(self, event: Any) -> Any:
        paths = list(dropped_paths(getattr(event, "data", ""), self.tk.splitlist))
        if not paths:
            logging.warning("Could not interpret dropped data: %r", getattr(event, "data", ""))
        for path in paths:
            self.controller.offer_path(path)
        return getattr(event, "action", None)

    def _select_file(self) -> None:
        if self.controller.state.is_processing:
            return
        try:
            selected = filedialog.askopenfilename(
                title="Select an image",
                initialdir=self.settings.get("last_input_dir") or None,
                filetypes=FILE_DIALOG_TYPES,
            )
        except TclError:
            logger.exception("ファイル選択ダイアログを開けません")
            return
        if not selected:
            return

        path = Path(selected)
        self.settings["last_input_dir"] = str(path.parent)
        self.controller.offer_path(path)

    # -------------------- output --------------------
    def _render_state(self, state: ProcessorState) -> None:
        self.status_var.set(state.message)
        self.select_button.configure(state="disabled" if state.is_processing else "normal")

        if state.processed_image is None:
            self._clear_preview()
            return

        image = load_preview_image(state.processed_image)
        if image is None:
            self._clear_preview()
            return

        self._preview_image = customtkinter.CTkImage(
            light_image=image,
            dark_image=image,
            size=contain_size(image.size),
        )
        self.preview_label.configure(image=self._preview_image)

    def _clear_preview(self) -> None:
        self._preview_image = None
        self.preview_label.configure(image=None)

    def _on_close(self) -> None:
        self.settings["window_geometry"] = self.geometry()
        try:
            self._settings_store.save(self.settings)
        except OSError as e:
            logger.warning(f"設定を保存できません: {e}")
        self.destroy()


def main() -> None:
    """Package entry point (GUI script)."""
    settings_store = SettingsStore()
    start_run_logging(verbose=bool(settings_store.load()["verbose_logging"]))
    CoverArtApp(settings_store).mainloop()


if __name__ == "__main__":
    main()
