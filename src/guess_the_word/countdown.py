from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

TickCallback = Callable[[int], None]
FinishCallback = Callable[[], None]


class CountdownError(RuntimeError):
    pass


class Countdown(Protocol):
    def start(self, on_tick: TickCallback, on_finish: FinishCallback) -> None: ...
    def cancel(self) -> None: ...


class FrameCountdown:
    """
    フレームごとの poll() で進むカウントダウン。

    - start() 直後に on_tick(total) を一度呼ぶ
    - 以降 interval 秒ごとに on_tick(残り秒数) を呼ぶ（0 秒の tick は無し）
    - 終了時刻を過ぎた最初の poll() で on_finish() を一度だけ呼ぶ
    - 複数の tick が溜まっていた場合は最新の一つだけを届ける

    コールバックは poll() の呼び出し元スレッドで実行される。
    """

    def __init__(
        self,
        total_seconds: int,
        interval_seconds: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive.")
        self.total_seconds = int(total_seconds)
        self.interval_seconds = int(interval_seconds)
        self._clock = clock
        self._on_tick: Optional[TickCallback] = None
        self._on_finish: Optional[FinishCallback] = None
        self._started_at: Optional[float] = None
        self._ticks_sent = 0
        self._cancelled = False
        self._finished = False

    @property
    def running(self) -> bool:
        return self._started_at is not None and not (self._cancelled or self._finished)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, on_tick: TickCallback, on_finish: FinishCallback) -> None:
        if self._started_at is not None:
            raise CountdownError("Countdown has already been started.")
        self._on_tick = on_tick
        self._on_finish = on_finish
        self._started_at = self._clock()
        self._ticks_sent = 1
        on_tick(self.total_seconds)

    def cancel(self) -> None:
        # 何度呼んでもよい
        self._cancelled = True

    def poll(self) -> None:
        if not self.running:
            return
        assert self._started_at is not None
        elapsed = self._clock() - self._started_at

        if elapsed >= self.total_seconds:
            self._finished = True
            if self._on_finish is not None:
                self._on_finish()
            return

        # elapsed 秒の時点で期限が来ている tick の番号
        due = int(elapsed // self.interval_seconds)
        if due >= self._ticks_sent:
            self._ticks_sent = due + 1
            remaining = self.total_seconds - due * self.interval_seconds
            if remaining > 0 and self._on_tick is not None:
                self._on_tick(remaining)
