from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass
from importlib import metadata
from typing import Any, Dict, Optional

GAMES_PACKAGE = "guess_the_word.games"
ENTRY_POINT_GROUP = "guess_the_word.games"


@dataclass
class GameInfo:
    name: str
    cls: type
    source: str  # "local" またはゲームを提供する配布物名


def game_class_of(obj: Any) -> Optional[type]:
    # クラス本体 / GAME_CLASS を持つモジュール / クラスを返すファクトリ を受け付ける
    if isinstance(obj, type):
        return obj
    cls = getattr(obj, "GAME_CLASS", None)
    if isinstance(cls, type):
        return cls
    if callable(obj):
        try:
            produced = obj()
        except Exception:
            return None
        if isinstance(produced, type):
            return produced
    return None


def discover_local_games(base_pkg: str = GAMES_PACKAGE) -> Dict[str, GameInfo]:
    found: Dict[str, GameInfo] = {}
    try:
        pkg = importlib.import_module(base_pkg)
    except ImportError:
        return found

    for m in pkgutil.iter_modules(pkg.__path__):
        if not m.ispkg:
            continue
        # 各ゲームは <name>/game.py に GAME_CLASS を置く
        try:
            mod = importlib.import_module(f"{base_pkg}.{m.name}.game")
        except Exception:
            continue
        cls = game_class_of(mod)
        if cls:
            found[m.name] = GameInfo(name=m.name, cls=cls, source="local")
    return found


def discover_entrypoint_games(group: str = ENTRY_POINT_GROUP) -> Dict[str, GameInfo]:
    found: Dict[str, GameInfo] = {}
    for ep in metadata.entry_points(group=group):
        try:
            cls = game_class_of(ep.load())
        except Exception:
            continue
        if cls:
            dist = getattr(ep, "dist", None)
            source = dist.name if dist is not None else ep.module
            found[ep.name] = GameInfo(name=ep.name, cls=cls, source=source)
    return found


def discover_games() -> Dict[str, GameInfo]:
    # 同名の場合はエントリポイント側を優先
    games: Dict[str, GameInfo] = {}
    games.update(discover_local_games())
    games.update(discover_entrypoint_games())
    return games
