from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .document import DocumentError, Novel, load_novel
from .document.diagnostics import find_problems, has_errors
from .engine.config_io import PlayerConfig, load_config
from .engine.presentation import FrameStatus, PresentationFrame
from .engine.renderer import DummyRenderer
from .engine.session import PlaybackSession

logger = logging.getLogger(__name__)

COMMANDS = {"run", "check"}
# a novel whose choices loop forever still ends under --auto
AUTO_STEP_LIMIT = 1000


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="novelvn", description="novelvn visual novel player")
    parser.add_argument("--log-level", type=str, default="warning", help="debug, info, warning or error")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="Play a novel JSON document")
    p_run.add_argument("novel", type=str, help="Path to the novel .json file")
    p_run.add_argument("--pygame", action="store_true", help="Open a pygame window (interactive)")
    p_run.add_argument("--auto", action="store_true", help="Headless: advance and take the first valid choice")
    p_run.add_argument("--max-steps", type=int, default=None, help="Headless: stop after N inputs")
    p_run.add_argument("--muted", action="store_true", help="Start with audio muted")
    p_run.add_argument("--config", type=str, default=None, help="Path to config.json")
    p_run.add_argument("--assets", type=str, default=None, help="Directory that relative media paths resolve against")

    p_check = sub.add_parser("check", help="Report problems in a novel document")
    p_check.add_argument("novel", type=str, help="Path to the novel .json file")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    argv_list = list(argv) if argv is not None else sys.argv[1:]
    # no subcommand: treat as 'run'
    if argv_list and argv_list[0] not in COMMANDS and not argv_list[0].startswith("-"):
        argv_list = ["run"] + argv_list
    args = parser.parse_args(argv_list)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd is None:
        parser.print_help()
        return 0

    novel = _load(Path(args.novel))
    if novel is None:
        return 2
    if args.cmd == "check":
        return _cmd_check(novel)
    return _cmd_run(novel, args)


def _load(path: Path) -> Optional[Novel]:
    if not path.exists():
        print(f"Novel not found: {path}")  # noqa: T201
        return None
    try:
        return load_novel(path)
    except DocumentError as e:
        print(f"Invalid novel: {e}")  # noqa: T201
        return None


def _cmd_check(novel: Novel) -> int:
    diags = find_problems(novel)
    for d in diags:
        where = f"{d.location}: " if d.location else ""
        print(f"{d.severity}: {where}{d.message}")  # noqa: T201
    if not diags:
        print("OK")  # noqa: T201
    return 1 if has_errors(diags) else 0


def _cmd_run(novel: Novel, args: argparse.Namespace) -> int:
    config = PlayerConfig.from_config(load_config(args.config))
    if args.muted:
        config.muted = True
    if args.pygame:
        return _run_pygame(novel, config, args.assets)
    return run_headless(novel, config, auto=args.auto, max_steps=args.max_steps)


def _run_pygame(novel: Novel, config: PlayerConfig, assets: Optional[str]) -> int:
    # local imports: a display is only needed here
    from .engine.adapters.audio import PygameAudioBackend
    from .engine.input_handler import InputAdapter
    from .engine.renderer_pygame import PygameRenderer, run_pygame

    renderer = PygameRenderer(title=novel.title or "novelvn", config=config, assets_dir=assets)
    session = PlaybackSession(novel, audio_backend=PygameAudioBackend(assets), config=config)
    run_pygame(InputAdapter(session), renderer, fps=config.fps)
    return 0


def _first_valid_choice(novel: Novel, frame: PresentationFrame) -> Optional[str]:
    for choice in frame.choices:
        if novel.scene_index(choice.target_scene_id) is not None:
            return choice.id
    return None


def run_headless(novel: Novel, config: Optional[PlayerConfig] = None, *, auto: bool = False,
                 max_steps: Optional[int] = None, renderer: Optional[DummyRenderer] = None) -> int:
    """Console playback. Enter advances, a number picks a choice, q quits."""
    config = replace(config if config is not None else PlayerConfig(), typing_interval_ms=0)
    if auto and max_steps is None:
        max_steps = AUTO_STEP_LIMIT
    renderer = renderer if renderer is not None else DummyRenderer()
    session = PlaybackSession(novel, config=config, autostart=False)
    session.events.subscribe("scene.enter", lambda e: renderer.new_scene())
    session.events.subscribe("dialogue.enter", lambda e: renderer.new_line())
    session.start()
    steps = 0
    try:
        while not session.closed:
            session.scheduler.flush()
            frame = session.frame()
            renderer.present(frame)
            if frame.status in (FrameStatus.FINISHED, FrameStatus.NO_SCENE):
                break
            if max_steps is not None and steps >= max_steps:
                logger.info("Stopping after %d steps", steps)
                break
            steps += 1
            if auto:
                if frame.show_choices:
                    choice_id = _first_valid_choice(novel, frame)
                    if choice_id is None:
                        print("(no choice leads anywhere; stopping)")  # noqa: T201
                        break
                    session.choose(choice_id)
                else:
                    session.advance()
                continue
            try:
                raw = input("> ").strip().lower()
            except EOFError:
                break
            if raw == "q":
                break
            if raw.isdigit() and frame.show_choices:
                idx = int(raw) - 1
                if 0 <= idx < len(frame.choices) and session.choose(frame.choices[idx].id):
                    continue
                print("(that choice is unavailable)")  # noqa: T201
            elif raw == "m":
                print("(muted)" if session.toggle_mute() else "(unmuted)")  # noqa: T201
            else:
                session.advance()
    finally:
        session.close()
        renderer.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
