from __future__ import annotations

import logging
from typing import Optional

from novelvn.document.model import Novel

from .adapters.audio import IAudioBackend, NullAudioBackend
from .audio import AudioCoordinator
from .config_io import PlayerConfig
from .event_bus import EventBus
from .player import Player
from .presentation import PresentationFrame
from .timers import Scheduler

logger = logging.getLogger(__name__)


class PlaybackSession:
    """One playback of one novel: scheduler, player and audio wired together.

    The session is the unit the host creates on open and closes on exit.
    Closing cancels every pending timer and releases every audio channel;
    after that all calls are no-ops.
    """

    def __init__(
        self,
        novel: Novel,
        *,
        audio_backend: Optional[IAudioBackend] = None,
        config: Optional[PlayerConfig] = None,
        now_ms: int = 0,
        autostart: bool = True,
    ) -> None:
        self.novel = novel
        self.config = config if config is not None else PlayerConfig()
        self.scheduler = Scheduler(now_ms)
        self.events = EventBus()
        self.audio = AudioCoordinator(audio_backend or NullAudioBackend(), config=self.config)
        self.audio.bind(self.events)
        self.player = Player(novel, self.scheduler, events=self.events, config=self.config)
        self._closed = False
        if autostart:
            self.start()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def muted(self) -> bool:
        return self.audio.muted

    def start(self) -> bool:
        if self._closed:
            return False
        return self.player.start()

    def advance(self) -> bool:
        return False if self._closed else self.player.advance()

    def choose(self, choice_id: str) -> bool:
        return False if self._closed else self.player.choose(choice_id)

    def restart(self) -> bool:
        return False if self._closed else self.player.restart()

    def toggle_mute(self) -> bool:
        if self._closed:
            return self.audio.muted
        return self.audio.toggle_mute()

    def update(self, now_ms: int) -> int:
        """Run timers due by ``now_ms``; returns the number that fired."""
        if self._closed:
            return 0
        return self.scheduler.update(now_ms)

    def frame(self) -> PresentationFrame:
        return self.player.frame(muted=self.audio.muted)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.player.close()
        self.scheduler.close()
        self.audio.close()
        self.events.emit("session.close")
        logger.debug(
            "Playback session for '%s' closed after %d events",
            self.novel.title or self.novel.id, self.events.get_stats()["total_emits"],
        )
        self.events.clear()
