"""ドロップされた画像を1件ずつ処理するためのコントローラー。

表示用の状態（メッセージ・出力パス・処理中フラグ）はここだけが更新する。
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

from loguru import logger

from coverart_converter.image_pipeline import (
    UNSUPPORTED_MESSAGE,
    Failure,
    JobStage,
    ProcessingOutcome,
    StageObserver,
    is_accepted_extension,
    process_image,
)

INITIAL_MESSAGE = "Drag an image here"
PROCESSING_MESSAGE = "Processing..."
SUCCESS_MESSAGE = "Image processed and saved"

OutcomeCallback = Callable[[ProcessingOutcome], None]
JobRunner = Callable[[Path, OutcomeCallback, StageObserver], None]


def error_message(reason: str) -> str:
    return f"Error: {reason}"


@dataclass(frozen=True)
class ProcessorState:
    message: str = INITIAL_MESSAGE
    processed_image: Optional[Path] = None
    is_processing: bool = False


class ImageJobController:
    """受け付けた画像パスを処理ジョブとして実行し、結果を状態に反映する。

    同時に走るジョブは1件のみ。処理中に渡されたパスは何もせず捨てる。
    ``stage`` はランナーから届く段階通知をそのまま映す。
    """

    def __init__(
        self,
        run_job: JobRunner,
        *,
        on_change: Optional[Callable[[ProcessorState], None]] = None,
    ) -> None:
        self._run_job = run_job
        self._on_change = on_change
        self._state = ProcessorState()
        self._stage = JobStage.IDLE

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def stage(self) -> JobStage:
        return self._stage

    def offer_path(self, path: Union[str, Path]) -> bool:
        """パスを受け付ける。ジョブを開始した場合のみTrueを返す。"""
        if self._state.is_processing:
            logger.debug(f"処理中のため無視: {path}")
            return False

        source = Path(path)
        if not is_accepted_extension(source):
            logger.warning(f"対象外の拡張子: {source.name}")
            self._set_state(replace(self._state, message=error_message(UNSUPPORTED_MESSAGE)))
            return False

        logger.info(f"処理開始: {source}")
        self._stage = JobStage.VALIDATING
        self._set_state(
            ProcessorState(message=PROCESSING_MESSAGE, processed_image=None, is_processing=True)
        )
        self._run_job(source, self.finish, self.enter_stage)
        return True

    def enter_stage(self, stage: JobStage) -> None:
        """処理中ジョブの段階通知を受け取る。"""
        if self._state.is_processing:
            self._stage = stage

    def finish(self, outcome: ProcessingOutcome) -> None:
        """ジョブの結果を状態へ反映する。"""
        if isinstance(outcome, Failure):
            self._stage = JobStage.FAILED
            self._set_state(
                replace(self._state, message=error_message(outcome.reason), is_processing=False)
            )
            return

        self._stage = JobStage.SUCCEEDED
        self._set_state(
            ProcessorState(
                message=SUCCESS_MESSAGE,
                processed_image=outcome.output_path,
                is_processing=False,
            )
        )

    def _set_state(self, state: ProcessorState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)


def run_inline(path: Path, on_done: OutcomeCallback, on_stage: Optional[StageObserver] = None) -> None:
    """呼び出し元のスレッドでそのまま処理する（CLI/テスト用）。"""
    on_done(process_image(path, on_stage=on_stage))


class BackgroundJobRunner:
    """ワーカースレッドで処理し、段階通知と結果はUIスレッドのポーリングで受け取る。

    ``schedule`` には Tk の ``after`` を渡す。ワーカー内の想定外の例外は
    ``Failure`` として届け、``MemoryError`` だけはUIスレッド側で送出し直す。
    """

    def __init__(
        self,
        schedule: Callable[[int, Callable[[], None]], Any],
        *,
        poll_interval_ms: int = 50,
        process: Callable[..., ProcessingOutcome] = process_image,
    ) -> None:
        self._schedule = schedule
        self._poll_interval_ms = poll_interval_ms
        self._process = process
        self._thread: Optional[threading.Thread] = None

    def __call__(
        self,
        path: Path,
        on_done: OutcomeCallback,
        on_stage: Optional[StageObserver] = None,
    ) -> None:
        events: "queue.Queue[Tuple[str, Any]]" = queue.Queue()

        def worker() -> None:
            try:
                outcome = self._process(path, on_stage=lambda stage: events.put(("stage", stage)))
            except MemoryError as e:
                events.put(("fatal", e))
                return
            except Exception as e:
                logger.exception(f"ワーカーで予期しないエラー: {path}")
                events.put(("done", Failure(f"{type(e).__name__}: {e}")))
                return
            events.put(("done", outcome))

        def poll_queue() -> None:
            while True:
                try:
                    kind, payload = events.get_nowait()
                except queue.Empty:
                    self._schedule(self._poll_interval_ms, poll_queue)
                    return
                if kind == "stage":
                    if on_stage is not None:
                        on_stage(payload)
                    continue
                self._thread = None
                if kind == "fatal":
                    raise payload
                on_done(payload)
                return

        self._thread = threading.Thread(
            target=worker,
            daemon=True,
            name="coverart-image-job",
        )
        self._thread.start()
        self._schedule(0, poll_queue)
