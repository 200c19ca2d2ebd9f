from __future__ import annotations

import os
import threading
import time
from queue import Queue
from typing import Any, Optional, Tuple

import cv2

from ..events import Action, InputEvent
from .gestures import Blendshapes, GestureTrigger, blendshapes_from_result, detect


class FaceProvider:
    """
    カメラ映像の表情を抽象アクションに変換する。
    - まばたき     -> ACTION1
    - 口を開ける   -> ACTION2（スキップ）
    - 笑顔         -> ACTION3（正解 / 開始）

    カメラ読み取りと推論はワーカースレッドで行い、結果の取り出しとイベント発行は
    poll()（Pyxel の update スレッド）で行う。
    """

    source = "face"

    def __init__(
        self,
        camera_index: int = 0,
        blink_threshold: float = 0.5,
        mouth_threshold: float = 0.3,
        smile_threshold: float = 0.5,
        hysteresis: float = 0.05,
        frame_width: int = 80,
        frame_height: int = 60,
        fps: int | None = 15,
        delegate: str | None = None,  # 'CPU' / 'GPU'
    ) -> None:
        self._triggers: Tuple[GestureTrigger, ...] = (
            GestureTrigger(Action.ACTION1, blink_threshold, hysteresis),
            GestureTrigger(Action.ACTION2, mouth_threshold, hysteresis),
            GestureTrigger(Action.ACTION3, smile_threshold, hysteresis),
        )

        self._cap = cv2.VideoCapture(camera_index)
        if not self._cap.isOpened():
            raise RuntimeError(f"Cannot open camera index {camera_index}.")
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, frame_width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, frame_height)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        if fps is not None:
            self._cap.set(cv2.CAP_PROP_FPS, int(fps))

        self._time_base = time.monotonic()
        self._lock = threading.Lock()
        # 最新の結果（blendshape, タイムスタンプ）だけを保持
        self._latest: Optional[Tuple[Optional[Blendshapes], int]] = None
        self._last_ts = -1
        self._running = False
        self._worker: Optional[threading.Thread] = None

        self._detector: Any = None
        self._mp: Any = None

        base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
        self._model_path = os.path.join(base_dir, "assets", "models", "face_landmarker.task")
        self._delegate = delegate

    # --- ライフサイクル ---

    def start(self, _out_queue: Queue | None = None) -> None:
        if self._running:
            return
        if self._detector is None:
            self._detector = self._create_detector()
        self._running = True
        self._worker = threading.Thread(target=self._run_worker, name="FaceProviderWorker", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._running = False
        worker = self._worker
        if worker and worker.is_alive():
            worker.join(timeout=1.0)
        self._worker = None
        if self._detector is not None:
            self._detector.close()
            self._detector = None
        self._cap.release()

    def _create_detector(self) -> Any:
        # MediaPipe は重いので初回 start() まで読み込まない
        try:
            import mediapipe as mp  # type: ignore
            from mediapipe.tasks import python  # type: ignore
            from mediapipe.tasks.python import vision  # type: ignore
        except ImportError as e:
            raise RuntimeError(f"Failed to import MediaPipe: {e}") from e

        base_kwargs: dict[str, Any] = {"model_asset_path": self._model_path}
        if self._delegate and self._delegate.upper() in ("CPU", "GPU"):
            base_kwargs["delegate"] = getattr(python.BaseOptions.Delegate, self._delegate.upper())

        options = vision.FaceLandmarkerOptions(
            base_options=python.BaseOptions(**base_kwargs),
            output_face_blendshapes=True,
            num_faces=1,
            running_mode=vision.RunningMode.LIVE_STREAM,
            result_callback=self._on_result,
        )
        self._mp = mp
        return vision.FaceLandmarker.create_from_options(options)

    def _run_worker(self) -> None:
        while self._running:
            ok, frame_bgr = self._cap.read()
            if not ok or frame_bgr is None:
                time.sleep(0.01)
                continue
            rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
            ts_ms = int((time.monotonic() - self._time_base) * 1000)
            try:
                self._detector.detect_async(image, ts_ms)
            except RuntimeError:
                # タイムスタンプ逆転などは次フレームで回復する
                time.sleep(0.01)

    def _on_result(self, result: Any, _image: Any, timestamp_ms: int) -> None:
        shapes = blendshapes_from_result(result)
        with self._lock:
            self._latest = (shapes, timestamp_ms)

    # --- ポーリング ---

    def _take_latest(self) -> Optional[Tuple[Optional[Blendshapes], int]]:
        with self._lock:
            latest = self._latest
            if latest is None or latest[1] == self._last_ts:
                return None
            self._last_ts = latest[1]
        return latest

    def poll(self, px, out_queue: Queue) -> None:
        if not self._running:
            self.start()
        latest = self._take_latest()
        if latest is None:
            return
        shapes, _ = latest
        for action in detect(shapes, self._triggers):
            out_queue.put(InputEvent(action=action, source=self.source))

    def __del__(self) -> None:
        try:
            self.stop()
        except Exception:
            pass
