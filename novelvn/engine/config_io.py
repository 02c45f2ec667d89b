from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from novelvn.document.model import Transition

from .transitions import DEFAULT_TIMINGS, TransitionTiming, timings_from_config
from .typewriter import DEFAULT_INTERVAL_MS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_CONFIG_PATH = Path("save") / "config.json"

DEFAULTS = {
    "playback": {
        "typing_interval_ms": DEFAULT_INTERVAL_MS,
    },
    "audio": {
        "music_volume": 0.3,
        "voice_volume": 0.8,
        "sfx_volume": 0.5,
        "muted": False,
    },
    "transitions": {
        t.value: [timing.commit_ms, timing.clear_ms] for t, timing in DEFAULT_TIMINGS.items()
    },
    "window": {
        "width": 1280,
        "height": 720,
        "fps": 60,
        "font_path": None,
    },
}


def _merged(data: dict) -> dict:
    # shallow merge per known section
    out = {}
    for section, defaults in DEFAULTS.items():
        sec = dict(defaults)
        extra = data.get(section) if isinstance(data, dict) else None
        if isinstance(extra, dict):
            sec.update(extra)
        elif extra is not None:
            logger.warning("Config section '%s' is not an object; using defaults", section)
        out[section] = sec
    return out


def default_config() -> dict:
    return _merged({})


def load_config(path: Optional[PathLike] = None) -> dict:
    p = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not p.exists():
        return default_config()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not read config %s: %s; using defaults", p, e)
        return default_config()
    if not isinstance(data, dict):
        logger.warning("Config %s is not a JSON object; using defaults", p)
        return default_config()
    return _merged(data)


def save_config(cfg: dict, path: Optional[PathLike] = None) -> bool:
    p = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        # keep only known sections
        p.write_text(json.dumps(_merged(cfg), ensure_ascii=False, indent=2), encoding="utf-8")
        return True
    except OSError as e:
        logger.warning("Could not write config %s: %s", p, e)
        return False


def _clamp01(value, default: float) -> float:
    try:
        return max(0.0, min(1.0, float(value)))
    except (TypeError, ValueError):
        logger.warning("Bad volume %r; using %.2f", value, default)
        return default


def _as_int(value, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(value))
    except (TypeError, ValueError):
        logger.warning("Bad integer %r; using %d", value, default)
        return default


@dataclass
class PlayerConfig:
    """Typed view of the config dict used by the engine."""

    typing_interval_ms: int = DEFAULT_INTERVAL_MS
    music_volume: float = 0.3
    voice_volume: float = 0.8
    sfx_volume: float = 0.5
    muted: bool = False
    transition_timings: Dict[Transition, TransitionTiming] = field(default_factory=lambda: dict(DEFAULT_TIMINGS))
    window_width: int = 1280
    window_height: int = 720
    fps: int = 60
    font_path: Optional[str] = None

    @classmethod
    def from_config(cls, cfg: Optional[dict] = None) -> "PlayerConfig":
        cfg = _merged(cfg or {})
        pb, au, win = cfg["playback"], cfg["audio"], cfg["window"]
        return cls(
            typing_interval_ms=_as_int(pb.get("typing_interval_ms"), DEFAULT_INTERVAL_MS),
            music_volume=_clamp01(au.get("music_volume"), 0.3),
            voice_volume=_clamp01(au.get("voice_volume"), 0.8),
            sfx_volume=_clamp01(au.get("sfx_volume"), 0.5),
            muted=bool(au.get("muted")),
            transition_timings=timings_from_config(cfg["transitions"]),
            window_width=_as_int(win.get("width"), 1280, 1),
            window_height=_as_int(win.get("height"), 720, 1),
            fps=_as_int(win.get("fps"), 60, 1),
            font_path=win.get("font_path") or None,
        )
