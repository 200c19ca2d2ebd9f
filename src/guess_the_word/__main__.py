from __future__ import annotations

import argparse
from typing import List, Optional

from . import __version__
from .app import App
from .registry import discover_games

DEFAULT_GAME = "guess_word"


def build_provider(spec: str):
    name, _, param = spec.partition(":")
    name = name.strip().lower()
    arg = param.strip()

    if name == "keyboard":
        from .input_providers.keyboard import KeyboardProvider

        return KeyboardProvider()
    if name == "mediapipe_face":
        from .input_providers.mediapipe_face import FaceProvider

        if arg:
            try:
                camera_index = int(arg)
            except ValueError as exc:
                raise SystemExit(f"Invalid camera index '{arg}' for mediapipe_face provider") from exc
        else:
            camera_index = 0
        return FaceProvider(camera_index=camera_index)
    raise SystemExit(f"Unknown provider: {name}")


def provider_specs(requested: Optional[List[str]], camera_indices: Optional[List[int]]) -> List[str]:
    # 指定が無ければ顔入力。キーボードは常に追加する
    specs = list(requested) if requested else ["mediapipe_face"]
    if camera_indices:
        faces = [s for s in specs if s.split(":")[0].strip().lower() == "mediapipe_face"]
        others = [s for s in specs if s not in faces]
        specs = [f"mediapipe_face:{idx}" for idx in camera_indices] + others
    if not any(s.split(":")[0].strip().lower() == "keyboard" for s in specs):
        specs.append("keyboard")
    return specs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Guess The Word (Pyxel)")
    parser.add_argument("--game", default=DEFAULT_GAME, help="Game name (discovered)")
    parser.add_argument(
        "--provider",
        action="append",
        metavar="SPEC",
        help="Input provider spec (keyboard, mediapipe_face or mediapipe_face:1). Repeatable.",
    )
    parser.add_argument(
        "--camera-indices",
        nargs="+",
        type=int,
        metavar="INDEX",
        help="Camera indices for face input (example: --camera-indices 0 1)",
    )
    parser.add_argument("--scale", type=int, default=3, help="Pyxel window scale")
    parser.add_argument("--list", action="store_true", help="List discovered games and exit")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.version:
        print(__version__)
        return

    games = discover_games()
    if args.list:
        if not games:
            print("No games found.")
            return
        for name, info in sorted(games.items()):
            print(f"- {name} ({info.source})")
        return

    if args.game not in games:
        available = ", ".join(sorted(games.keys())) or "<none>"
        raise SystemExit(f"Game '{args.game}' not found. Available: {available}")

    game = games[args.game].cls()

    providers = [build_provider(spec) for spec in provider_specs(args.provider, args.camera_indices)]

    App(game=game, providers=providers, scale=args.scale).run()


if __name__ == "__main__":
    main()
