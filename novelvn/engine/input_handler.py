"""
Input adapter for a playback session.

Translates host input (key names, clicks, choice picks, frame ticks) into
session calls. Key names are pygame's ``pygame.key.name`` strings, so the
pygame host can pass them through unchanged and the headless host can
synthesise them.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .session import PlaybackSession

logger = logging.getLogger(__name__)


class InputAdapter:
    ADVANCE_KEYS = {"space", "return", "enter"}
    MUTE_KEY = "m"
    CLOSE_KEY = "escape"
    RESTART_KEY = "r"

    def __init__(self, session: "PlaybackSession") -> None:
        self.session = session

    @property
    def closed(self) -> bool:
        return self.session.closed

    def on_key(self, name: str) -> bool:
        """Handle a key press; returns True if the session changed."""
        if self.closed:
            return False
        key = (name or "").lower()
        if key in self.ADVANCE_KEYS:
            return self._keyboard_advance()
        if key == self.MUTE_KEY:
            self.session.toggle_mute()
            return True
        if key == self.CLOSE_KEY:
            self.close()
            return True
        if key == self.RESTART_KEY:
            return self.session.restart()
        return False

    def _keyboard_advance(self) -> bool:
        frame = self.session.frame()
        if frame.choices and frame.fully_revealed and not frame.finished:
            # a choice must be clicked
            logger.debug("Keyboard advance suppressed: choices pending")
            return False
        return self.session.advance()

    def on_click(self) -> bool:
        if self.closed:
            return False
        return self.session.advance()

    def on_choice(self, choice_id: str) -> bool:
        if self.closed:
            return False
        return self.session.choose(choice_id)

    def on_restart(self) -> bool:
        if self.closed:
            return False
        return self.session.restart()

    def update(self, now_ms: int) -> int:
        if self.closed:
            return 0
        return self.session.update(now_ms)

    def close(self) -> None:
        self.session.close()
