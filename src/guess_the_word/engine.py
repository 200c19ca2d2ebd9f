from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

from .countdown import Countdown

T = TypeVar("T")
R = TypeVar("R")


# 振動パターン（ミリ秒）: 待機・振動を交互に並べる
CORRECT_BUZZ_PATTERN: Tuple[int, ...] = (100, 100, 100, 100, 100, 100)
PANIC_BUZZ_PATTERN: Tuple[int, ...] = (0, 200)
GAME_OVER_BUZZ_PATTERN: Tuple[int, ...] = (0, 2000)
NO_BUZZ_PATTERN: Tuple[int, ...] = (0,)


class BuzzType(Enum):
    CORRECT = CORRECT_BUZZ_PATTERN
    GAME_OVER = GAME_OVER_BUZZ_PATTERN
    COUNTDOWN_PANIC = PANIC_BUZZ_PATTERN
    NO_BUZZ = NO_BUZZ_PATTERN

    @property
    def pattern(self) -> Tuple[int, ...]:
        return self.value


WORDS: Tuple[str, ...] = (
    "queen",
    "hospital",
    "basketball",
    "cat",
    "change",
    "snail",
    "soup",
    "calendar",
    "sad",
    "desk",
    "guitar",
    "home",
    "railway",
    "zebra",
    "jelly",
    "car",
    "crow",
    "trade",
    "bag",
    "roll",
    "bubble",
)


@dataclass(frozen=True)
class EngineConfig:
    countdown_seconds: int = 60   # 1ゲームの制限時間
    tick_seconds: int = 1         # カウントダウンの刻み
    panic_seconds: int = 10       # この秒数以下で毎秒振動させる
    words: Tuple[str, ...] = WORDS

    def __post_init__(self) -> None:
        if not self.words:
            raise ValueError("EngineConfig.words must not be empty.")

DEFAULT_CONFIG = EngineConfig()


class EngineDisposedError(RuntimeError):
    """dispose() 済みのエンジンを操作しようとした"""


def format_elapsed_time(seconds: int) -> str:
    # MM:SS 形式（1時間以上は H:MM:SS）
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


# --- 監視可能な値 ----------------------------------------------------------------
# UI 側には読み取り専用の LiveValue だけを見せ、書き換えはエンジンの操作経由に限る。


class LiveValue(Generic[T]):

    def __init__(self, value: T) -> None:
        self._value = value
        self._observers: List[Callable[[T], None]] = []
        self._dispatching = False
        self._dirty = False

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """observer を登録し、現在値ですぐに一度呼び出す。戻り値は登録解除用の関数。"""
        self._observers.append(observer)
        observer(self._value)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def map(self, fn: Callable[[T], R]) -> "LiveValue[R]":
        derived: MutableLiveValue[R] = MutableLiveValue(fn(self._value))
        self._observers.append(lambda v: derived.set(fn(v)))
        return derived

    def _emit(self) -> None:
        # 配信中に observer が値を書き換えたら、古い値の配信を打ち切り最新値で配り直す
        if self._dispatching:
            self._dirty = True
            return
        self._dispatching = True
        try:
            while True:
                self._dirty = False
                value = self._value
                for observer in list(self._observers):
                    observer(value)
                    if self._dirty:
                        break
                if not self._dirty:
                    return
        finally:
            self._dispatching = False


class MutableLiveValue(LiveValue[T]):

    def set(self, value: T) -> None:
        # 同じ値でも通知する（パニック振動は毎秒届く必要がある）
        self._value = value
        self._emit()


# --- ゲーム本体 ----------------------------------------------------------------


class GameEngine:
    """
    単語当てゲームの状態を保持する。

    - on_correct: スコア +1、次の単語、CORRECT の振動
    - on_skip: スコア -1、次の単語
    - on_tick / on_finish: カウントダウンから呼ばれる
    - on_game_finish_complete / on_buzz_complete: 一度きりのイベントを消費済みにする

    カウントダウンは外から渡す。dispose() で必ず cancel() される。
    """

    def __init__(
        self,
        countdown: Countdown,
        config: EngineConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self._rng = rng if rng is not None else random.Random()
        self._countdown = countdown
        self._disposed = False
        self._word_list: List[str] = []

        self._event_game_finish: MutableLiveValue[bool] = MutableLiveValue(False)
        self._reset_list()
        self._word: MutableLiveValue[str] = MutableLiveValue(self._word_list.pop(0))
        self._score: MutableLiveValue[int] = MutableLiveValue(0)
        self._event_buzz: MutableLiveValue[BuzzType] = MutableLiveValue(BuzzType.NO_BUZZ)
        self._current_time: MutableLiveValue[int] = MutableLiveValue(config.countdown_seconds)
        self._current_time_string = self._current_time.map(format_elapsed_time)

        self._countdown.start(self.on_tick, self.on_finish)

    # --- 読み取り専用の公開状態 ---

    @property
    def word(self) -> LiveValue[str]:
        return self._word

    @property
    def score(self) -> LiveValue[int]:
        return self._score

    @property
    def current_time(self) -> LiveValue[int]:
        return self._current_time

    @property
    def current_time_string(self) -> LiveValue[str]:
        return self._current_time_string

    @property
    def event_game_finish(self) -> LiveValue[bool]:
        return self._event_game_finish

    @property
    def event_buzz(self) -> LiveValue[BuzzType]:
        return self._event_buzz

    @property
    def remaining_words(self) -> Tuple[str, ...]:
        return tuple(self._word_list)

    @property
    def disposed(self) -> bool:
        return self._disposed

    # --- 単語リスト ---

    def _reset_list(self) -> None:
        # 語彙をコピーしてシャッフル
        self._word_list = list(self.config.words)
        self._rng.shuffle(self._word_list)

    def _next_word(self) -> None:
        # 使い切ったら語彙を再シャッフルして補充（周回後は同じ単語が再登場する）
        if not self._word_list:
            self._reset_list()
        self._word.set(self._word_list.pop(0))

    # --- ボタン操作 ---

    def on_skip(self) -> None:
        self._check_alive()
        self._score.set(self._score.value - 1)
        self._next_word()

    def on_correct(self) -> None:
        self._check_alive()
        self._score.set(self._score.value + 1)
        self._next_word()
        self._event_buzz.set(BuzzType.CORRECT)

    # --- カウントダウンからのコールバック ---

    def on_tick(self, seconds_remaining: int) -> None:
        self._check_alive()
        self._current_time.set(seconds_remaining)
        if seconds_remaining <= self.config.panic_seconds:
            self._event_buzz.set(BuzzType.COUNTDOWN_PANIC)

    def on_finish(self) -> None:
        self._check_alive()
        self._event_game_finish.set(True)
        self._current_time.set(0)
        self._event_buzz.set(BuzzType.GAME_OVER)

    # --- イベント消費（画面の再描画などで二重に反応しないように） ---

    def on_game_finish_complete(self) -> None:
        self._check_alive()
        self._event_game_finish.set(False)

    def on_buzz_complete(self) -> None:
        self._check_alive()
        self._event_buzz.set(BuzzType.NO_BUZZ)

    # --- 後始末 ---

    def dispose(self) -> None:
        self._check_alive()
        self._disposed = True
        self._countdown.cancel()

    def _check_alive(self) -> None:
        if self._disposed:
            raise EngineDisposedError("GameEngine is already disposed.")
