from __future__ import annotations

import queue
from queue import Queue
import sys
import traceback
from typing import Any, List

from .events import InputEvent
from .input_providers import PollingProvider

WINDOW_TITLE = "Guess The Word"


class App:
    """
    Pyxel のメインループ。

    毎フレーム: プロバイダをポーリング -> 入力イベントをゲームへ転送 -> game.update()。
    ゲームは next_game で切り替え、quit_requested で終了を要求する。
    終了・切り替え時は game.close() を呼んでゲーム側の後始末（エンジンの dispose など）を行う。
    """

    def __init__(self, game: Any, providers: List[PollingProvider], scale: int = 3) -> None:
        self.game = game
        self.providers = providers
        self.scale = scale
        self.events: "Queue[InputEvent]" = Queue()
        self._px = None  # Pyxel モジュール（遅延読み込み）
        self._failed_providers: set[int] = set()

    # --- ライフサイクル ---

    def run(self) -> None:
        import pyxel  # テスト時に pyxel を必須にしないため遅延インポート

        self._px = pyxel
        for p in self.providers:
            if hasattr(p, "start"):
                try:
                    p.start(self.events)
                except Exception:
                    traceback.print_exc(file=sys.stderr)

        # Esc はゲーム側で扱うので Pyxel 標準の終了キーは無効にする
        try:
            pyxel.init(
                self.game.width,
                self.game.height,
                title=WINDOW_TITLE,
                quit_key=pyxel.KEY_NONE,
                display_scale=self.scale,
            )
        except TypeError:
            pyxel.init(self.game.width, self.game.height, title=WINDOW_TITLE)
        try:
            pyxel.run(self._update, self._draw)
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self._close_game(self.game)
        for p in self.providers:
            if hasattr(p, "stop"):
                try:
                    p.stop()
                except Exception:
                    traceback.print_exc(file=sys.stderr)
        self.providers = []

    # --- フレーム処理 ---

    def _update(self) -> None:
        self._poll_providers()
        self.pump_events()
        try:
            self.game.update()
        except Exception:
            traceback.print_exc(file=sys.stderr)
        self._switch_game()

        if getattr(self.game, "quit_requested", False):
            self.shutdown()
            if self._px is not None:
                self._px.quit()

    def _poll_providers(self) -> None:
        for p in self.providers:
            if not hasattr(p, "poll"):
                continue
            try:
                p.poll(self._px, self.events)
            except Exception:
                # 毎フレーム同じ例外が出続けるので詳細はプロバイダごとに一度だけ出す
                if id(p) not in self._failed_providers:
                    self._failed_providers.add(id(p))
                    traceback.print_exc(file=sys.stderr)

    def pump_events(self) -> None:
        # キューを空にしながらゲームへ転送
        while True:
            try:
                e = self.events.get_nowait()
            except queue.Empty:
                break
            try:
                self.game.on_event(e)
            except Exception:
                traceback.print_exc(file=sys.stderr)
            if self._switch_game():
                # 切り替え直後のイベントは新しいゲームに渡さない
                self._drain()
                break

    def _drain(self) -> None:
        while True:
            try:
                self.events.get_nowait()
            except queue.Empty:
                return

    def _switch_game(self) -> bool:
        next_game = getattr(self.game, "next_game", None)
        if next_game is None:
            return False
        self.game.next_game = None
        self._close_game(self.game)
        self.game = next_game
        return True

    def _close_game(self, game: Any) -> None:
        close = getattr(game, "close", None)
        if callable(close):
            try:
                close()
            except Exception:
                traceback.print_exc(file=sys.stderr)

    def _draw(self) -> None:
        assert self._px is not None
        try:
            self.game.draw(self._px)
        except Exception:
            # 描画で失敗しても画面をクリアして続行
            self._px.cls(0)
