from __future__ import annotations

import pyxel

from ...buzz import BuzzPlayer
from ...events import InputEvent
from .scenes import SceneManager, TitleScene

BUZZ_SOUND = 7
BUZZ_CHANNEL = 3


class GuessWordGame:
    """
    単語当てゲーム:
    - 60秒で表示された単語をできるだけ多く当てる
    - 笑顔（Shift）で正解 +1、口を開ける（Enter）でスキップ -1
    - 残り10秒からは毎秒振動（画面揺れ + ビープ）
    """

    width = 256
    height = 224

    def __init__(self) -> None:
        self.next_game = None
        self.quit_requested = False
        self.score = 0
        self.buzzer = BuzzPlayer()
        self._sfx_ready = False
        self.mgr = SceneManager()
        self.mgr.push(TitleScene(self, self.mgr))

    def _ensure_sounds(self) -> None:
        if self._sfx_ready:
            return
        try:
            pyxel.sounds[BUZZ_SOUND].set(notes="c2", tones="s", volumes="5", effects="n", speed=8)
            self._sfx_ready = True
        except Exception:
            # Pyxel 初期化前なら次フレームで再試行
            self._sfx_ready = False

    # --- game lifecycle ---
    def on_event(self, event: InputEvent) -> None:
        self.mgr.handle_event(event)

    def update(self) -> None:
        if self.mgr.current:
            self.mgr.current.update()
        if self.buzzer.pulse_started():
            self._ensure_sounds()
            if self._sfx_ready:
                pyxel.play(BUZZ_CHANNEL, BUZZ_SOUND)

    def draw(self, _px=None) -> None:
        if self.mgr.current:
            self.mgr.current.draw()

    def close(self) -> None:
        # 何度呼ばれてもよい（プレイ中ならエンジンを dispose する）
        self.mgr.clear()
        self.buzzer.stop()


# レジストリは module.GAME_CLASS を参照する
GAME_CLASS = GuessWordGame
