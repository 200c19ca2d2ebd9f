from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import pyxel
from PyxelUniversalFont import Writer as PythonUniversalFont

from ...countdown import FrameCountdown
from ...engine import DEFAULT_CONFIG, BuzzType, GameEngine
from ...events import Action, InputEvent


# --- 設定 ----------------------------------------------------------------


@dataclass(frozen=True)
class GameConfig:
    title_text: str = "Guess The Word"
    title_prompt: str = "Smile to start!"
    title_help: str = "SHIFT/smile: got it   ENTER/mouth: skip"
    restart_prompt: str = "Smile to return"
    prompt_blink: int = 30        # プロンプト点滅の間隔（フレーム）
    shake_amplitude: int = 2      # 振動中の画面揺れ（ピクセル）
    panic_color: int = 8
    time_color: int = 7
    word_color: int = 10
    score_color: int = 11

CONFIG = GameConfig()


# --- シーン基盤 -----------------------------------------------------------------
# 画面ごとに Scene を分け、SceneManager のスタックで切り替える。


class Scene:

    def __init__(self, app, manager):
        self.app = app
        self.mgr = manager

    def on_enter(self) -> None:
        pass

    def on_exit(self) -> None:
        pass

    def on_event(self, event: InputEvent) -> None:
        pass

    def update(self) -> None:
        pass

    def draw(self) -> None:
        pass


class SceneManager:

    def __init__(self):
        self.stack: list[Scene] = []

    @property
    def current(self) -> Optional[Scene]:
        return self.stack[-1] if self.stack else None

    def push(self, scene: Scene) -> None:
        self.stack.append(scene)
        scene.on_enter()

    def pop(self) -> None:
        if self.stack:
            self.stack[-1].on_exit()
            self.stack.pop()

    def replace(self, scene: Scene) -> None:
        self.pop()
        self.push(scene)

    def clear(self) -> None:
        while self.stack:
            self.pop()

    def handle_event(self, event: InputEvent) -> None:
        if self.current:
            self.current.on_event(event)


# --- 文字描画 ----------------------------------------------------------------

FONT_NAME = "IPA_Gothic.ttf"
FONT_BASE_SIZE = 16
FONT_WRITER = PythonUniversalFont(FONT_NAME)


def measure_text_width(text: str, scale: int = 1) -> int:
    # 半角文字はフォントサイズの半分幅として概算
    font_size = FONT_BASE_SIZE * max(1, scale)
    return font_size * len(text) // 2


def draw_text(text: str, x: int, y: int, color: int, scale: int = 1, outline: bool = False) -> None:
    if not text:
        return
    font_size = FONT_BASE_SIZE * max(1, scale)
    if outline:
        for ox, oy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            FONT_WRITER.draw(x + ox, y + oy, text, font_size=font_size, font_color=0, background_color=-1)
    FONT_WRITER.draw(x, y, text, font_size=font_size, font_color=color, background_color=-1)


def draw_centered_text(text: str, y: int, color: int, width: int, scale: int = 1, outline: bool = False) -> None:
    x = width // 2 - measure_text_width(text, scale) // 2
    draw_text(text, x, y, color, scale, outline)


def draw_prompt(text: str, y: int, width: int) -> None:
    if (pyxel.frame_count // CONFIG.prompt_blink) % 2 == 0:
        draw_centered_text(text, y, 7, width=width, outline=True)


# --- 各シーン ----------------------------------------------------------------
# タイトル → プレイ（60秒）→ スコア → タイトル


class TitleScene(Scene):
    def __init__(self, app, mgr):
        super().__init__(app, mgr)
        self.start_requested = False

    def on_event(self, event: InputEvent) -> None:
        if event.action == Action.ACTION3:
            self.start_requested = True
        elif event.action == Action.QUIT:
            self.app.quit_requested = True

    def update(self) -> None:
        if self.start_requested:
            self.start_requested = False
            self.mgr.replace(PlayScene(self.app, self.mgr))

    def draw(self) -> None:
        pyxel.camera()
        pyxel.cls(1)
        w, h = self.app.width, self.app.height
        for y in range(h // 2, h, 4):
            pyxel.line(0, y, w, y, 5)
        draw_centered_text(CONFIG.title_text, h // 3, 7, width=w, scale=2, outline=True)
        pyxel.text(w // 2 - len(CONFIG.title_help) * 2, h // 3 + 40, CONFIG.title_help, 6)
        draw_prompt(CONFIG.title_prompt, h - 40, w)


class PlayScene(Scene):
    """
    GameEngine を一つ持ち、単語・スコア・残り時間を表示する。

    エンジンのイベント（振動 / ゲーム終了）は購読して受け取り、受け取ったらすぐ消費済みにする。
    シーンを抜けるときにエンジンを dispose する（カウントダウンもここで止まる）。
    """

    def __init__(self, app, mgr, clock: Optional[Callable[[], float]] = None):
        super().__init__(app, mgr)
        self._clock = clock
        self.countdown: Optional[FrameCountdown] = None
        self.engine: Optional[GameEngine] = None
        self._unsubscribers: List[Callable[[], None]] = []
        self._finish_pending = False
        self._quit_requested = False

    def on_enter(self) -> None:
        cfg = DEFAULT_CONFIG
        clock = self._clock or time.monotonic
        self.countdown = FrameCountdown(cfg.countdown_seconds, cfg.tick_seconds, clock=clock)
        self.engine = GameEngine(self.countdown, cfg)
        self._unsubscribers = [
            self.engine.event_buzz.subscribe(self._on_buzz),
            self.engine.event_game_finish.subscribe(self._on_game_finish),
        ]

    def on_exit(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if self.engine is not None and not self.engine.disposed:
            self.app.score = self.engine.score.value
            self.engine.dispose()

    def _on_buzz(self, buzz: BuzzType) -> None:
        if buzz == BuzzType.NO_BUZZ:
            return
        self.app.buzzer.play(buzz.pattern)
        assert self.engine is not None
        self.engine.on_buzz_complete()

    def _on_game_finish(self, finished: bool) -> None:
        if not finished:
            return
        # シーン遷移はコールバックの外（update の最後）で行う
        self._finish_pending = True
        assert self.engine is not None
        self.engine.on_game_finish_complete()

    def on_event(self, event: InputEvent) -> None:
        # 終了・退出が決まったら次の update までの入力は捨てる
        if self.engine is None or self._finish_pending or self._quit_requested:
            return
        if event.action == Action.ACTION3:
            self.engine.on_correct()
        elif event.action == Action.ACTION2:
            self.engine.on_skip()
        elif event.action == Action.QUIT:
            self._quit_requested = True

    def update(self) -> None:
        if self.countdown is not None:
            self.countdown.poll()
        if self._finish_pending:
            self.mgr.replace(ScoreScene(self.app, self.mgr))
        elif self._quit_requested:
            self.mgr.replace(TitleScene(self.app, self.mgr))

    def draw(self) -> None:
        if self.engine is None:
            return
        w, h = self.app.width, self.app.height
        if self.app.buzzer.pulse_active():
            a = CONFIG.shake_amplitude
            pyxel.camera(random.randint(-a, a), random.randint(-a, a))
        else:
            pyxel.camera()
        pyxel.cls(0)

        seconds = self.engine.current_time.value
        time_color = CONFIG.panic_color if seconds <= self.engine.config.panic_seconds else CONFIG.time_color
        draw_text(self.engine.current_time_string.value, w - measure_text_width("00:00") - 8, 6, time_color)
        draw_text(f"Score: {self.engine.score.value}", 8, 6, CONFIG.score_color)

        draw_centered_text("The word is", h // 2 - 44, 6, width=w)
        draw_centered_text(self.engine.word.value, h // 2 - 16, CONFIG.word_color, width=w, scale=2, outline=True)

        pyxel.text(8, h - 24, "SHIFT / smile : got it (+1)", 11)
        pyxel.text(8, h - 14, "ENTER / mouth : skip (-1)", 8)


class ScoreScene(Scene):
    def on_event(self, event: InputEvent) -> None:
        if event.action in (Action.ACTION3, Action.QUIT):
            self.mgr.replace(TitleScene(self.app, self.mgr))

    def draw(self) -> None:
        pyxel.camera()
        pyxel.cls(0)
        w, h = self.app.width, self.app.height
        draw_centered_text("Your final score is", 60, 7, width=w)
        draw_centered_text(str(self.app.score), h // 2 - 8, CONFIG.score_color, width=w, scale=2, outline=True)
        draw_prompt(CONFIG.restart_prompt, h - 40, w)
