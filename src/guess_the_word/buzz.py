from __future__ import annotations

import time
from typing import Callable, Optional, Sequence, Tuple


class BuzzPlayer:
    """
    振動パターン（ミリ秒。待機, 振動, 待機, 振動, ...）を時間に沿って再生する。

    デスクトップには振動が無いため、ゲーム側は pulse_active() の間だけ画面を揺らし、
    pulse_started() が True を返したフレームで効果音を鳴らす。
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._segments: Tuple[Tuple[float, float], ...] = ()
        self._started_at: Optional[float] = None
        self._end = 0.0
        self._last_pulse: Optional[int] = None

    def play(self, pattern: Sequence[int]) -> None:
        # 再生中のパターンは置き換える
        segments = []
        t = 0.0
        for i, ms in enumerate(pattern):
            duration = max(0, int(ms)) / 1000.0
            if i % 2 == 1 and duration > 0:
                segments.append((t, t + duration))
            t += duration
        self._segments = tuple(segments)
        self._end = t
        self._started_at = self._clock()
        self._last_pulse = None

    def stop(self) -> None:
        self._segments = ()
        self._started_at = None
        self._last_pulse = None

    def _elapsed(self) -> Optional[float]:
        if self._started_at is None:
            return None
        return self._clock() - self._started_at

    def _current_pulse(self) -> Optional[int]:
        elapsed = self._elapsed()
        if elapsed is None:
            return None
        for idx, (begin, end) in enumerate(self._segments):
            if begin <= elapsed < end:
                return idx
        return None

    def pulse_active(self) -> bool:
        return self._current_pulse() is not None

    def pulse_started(self) -> bool:
        """新しい振動区間に入った最初の呼び出しでだけ True"""
        idx = self._current_pulse()
        if idx is None or idx == self._last_pulse:
            return False
        self._last_pulse = idx
        return True

    @property
    def finished(self) -> bool:
        elapsed = self._elapsed()
        return elapsed is None or elapsed >= self._end
