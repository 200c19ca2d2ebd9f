from __future__ import annotations

from queue import Queue

from ..events import Action, InputEvent


class KeyboardProvider:
    """
    Pyxel のキー入力を抽象アクションへ変換する。
    - Space -> ACTION1
    - Enter -> ACTION2（スキップ）
    - Shift -> ACTION3（正解 / 開始）
    - Esc   -> QUIT
    """

    source = "keyboard"

    def poll(self, px, out_queue: Queue) -> None:
        if px is None:
            return
        # キーコードは Pyxel 初期化後に参照する
        bindings = (
            ((px.KEY_SPACE,), Action.ACTION1),
            ((px.KEY_RETURN,), Action.ACTION2),
            ((px.KEY_SHIFT, px.KEY_LSHIFT, px.KEY_RSHIFT), Action.ACTION3),
            ((px.KEY_ESCAPE,), Action.QUIT),
        )
        for keys, action in bindings:
            if any(px.btnp(k) for k in keys):
                out_queue.put(InputEvent(action=action, source=self.source))
