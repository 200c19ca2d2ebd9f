from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..events import Action

Blendshapes = Dict[str, float]


@dataclass
class GestureTrigger:
    """
    二段閾値（ヒステリシス）で表情の立ち上がりを検出する。
    OFF -> ON に変わった瞬間だけ True を返す。
    """

    action: Action
    on_threshold: float
    hysteresis: float = 0.05
    active: bool = False

    @property
    def off_threshold(self) -> float:
        return max(0.0, self.on_threshold - self.hysteresis)

    def feed(self, level: Optional[float]) -> bool:
        if level is None:
            return False
        threshold = self.off_threshold if self.active else self.on_threshold
        now_active = level >= threshold
        rising = now_active and not self.active
        self.active = now_active
        return rising

    def reset(self) -> None:
        self.active = False


def blendshapes_from_result(result: Any) -> Optional[Blendshapes]:
    # FaceLandmarker の結果から先頭の顔の blendshape を {名前(小文字): スコア} に変換
    blends = getattr(result, "face_blendshapes", None)
    if not blends or not isinstance(blends, list):
        return None
    items = blends[0]
    if not isinstance(items, list):
        return None
    shapes: Blendshapes = {}
    for c in items:
        name = getattr(c, "category_name", None)
        score = getattr(c, "score", None)
        if name and score is not None:
            shapes[str(name).lower()] = float(score)
    return shapes


def _pair_mean(shapes: Blendshapes, left: str, right: str) -> Optional[float]:
    l = shapes.get(left.lower())
    r = shapes.get(right.lower())
    if l is None or r is None:
        return None
    return (l + r) / 2.0


def blink_level(shapes: Blendshapes) -> Optional[float]:
    # eyeBlink と eyeSquint の大きい方
    levels = [
        v
        for v in (
            _pair_mean(shapes, "eyeBlinkLeft", "eyeBlinkRight"),
            _pair_mean(shapes, "eyeSquintLeft", "eyeSquintRight"),
        )
        if v is not None
    ]
    return max(levels) if levels else None


def mouth_open_level(shapes: Blendshapes) -> Optional[float]:
    jaw = shapes.get("jawopen")
    if jaw is not None:
        return jaw
    close = shapes.get("mouthclose")
    return 1.0 - close if close is not None else None


def smile_level(shapes: Blendshapes) -> Optional[float]:
    smile = _pair_mean(shapes, "mouthSmileLeft", "mouthSmileRight")
    if smile is None:
        smile = _pair_mean(shapes, "mouthCornerPullLeft", "mouthCornerPullRight")
    return smile


LEVELS = {
    Action.ACTION1: blink_level,
    Action.ACTION2: mouth_open_level,
    Action.ACTION3: smile_level,
}


def detect(shapes: Optional[Blendshapes], triggers: Tuple[GestureTrigger, ...]) -> list[Action]:
    """blendshape を各トリガーに流し、立ち上がったアクションを返す。顔が無ければ全トリガーをリセット。"""
    if shapes is None:
        for t in triggers:
            t.reset()
        return []
    fired: list[Action] = []
    for t in triggers:
        if t.feed(LEVELS[t.action](shapes)):
            fired.append(t.action)
    return fired
