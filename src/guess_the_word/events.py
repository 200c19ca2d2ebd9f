from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional
import time


class Action(Enum):
    # 入力デバイスに依存しない抽象アクション
    ACTION1 = auto()   # Space / まばたき
    ACTION2 = auto()   # Enter / 口を開ける（スキップ）
    ACTION3 = auto()   # Shift / 笑顔（正解・開始）
    QUIT = auto()      # Esc（タイトルへ戻る / 終了）


@dataclass
class InputEvent:
    action: Action
    value: float = 1.0
    timestamp: float = field(default_factory=time.monotonic)
    source: Optional[str] = None  # 発生元プロバイダ名（"keyboard" / "face" など）
