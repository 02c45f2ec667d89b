from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

from novelvn.document.model import Transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionTiming:
    """Two-phase timing: content swaps at ``commit_ms``, overlay clears ``clear_ms`` later."""

    commit_ms: int
    clear_ms: int

    @property
    def total_ms(self) -> int:
        return self.commit_ms + self.clear_ms

    @property
    def immediate(self) -> bool:
        return self.commit_ms <= 0 and self.clear_ms <= 0


DEFAULT_TIMING = TransitionTiming(500, 100)

DEFAULT_TIMINGS: Dict[Transition, TransitionTiming] = {
    Transition.FADE: DEFAULT_TIMING,
    Transition.FLASH: DEFAULT_TIMING,
    Transition.SLIDE: TransitionTiming(300, 100),
    Transition.ZOOM: TransitionTiming(300, 100),
    Transition.NONE: TransitionTiming(0, 0),
}


def timing_for(style: Optional[Transition], table: Optional[Mapping[Transition, TransitionTiming]] = None) -> TransitionTiming:
    """Timing for the entering scene's style; unset styles use the fade timing."""
    table = table if table is not None else DEFAULT_TIMINGS
    if style is None:
        return table.get(Transition.FADE, DEFAULT_TIMING)
    return table.get(style, DEFAULT_TIMING)


def timings_from_config(section: Optional[Mapping[str, Sequence[int]]]) -> Dict[Transition, TransitionTiming]:
    """Build a timing table from ``{"fade": [500, 100], ...}``; bad entries keep the default."""
    table = dict(DEFAULT_TIMINGS)
    for key, value in (section or {}).items():
        try:
            style = Transition(key)
        except ValueError:
            logger.warning("Unknown transition '%s' in config; ignored", key)
            continue
        try:
            commit_ms, clear_ms = (max(0, int(v)) for v in value)
        except (TypeError, ValueError):
            logger.warning("Bad timing for transition '%s': %r", key, value)
            continue
        table[style] = TransitionTiming(commit_ms, clear_ms)
    return table
