"""
Audio coordination for a playback session.

Three single-slot channels:
- music: follows the scene's bgm reference, loops, survives scene changes
  with the same reference, pauses (not cleared) when playback finishes
- voice / sfx: one-shot per dialogue, always stopped and restarted on every
  dialogue change

A single mute flag covers all channels. Backend failures are logged and
playback continues without sound.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from novelvn.document.model import Dialogue, Scene

from .adapters.audio import MUSIC, SFX, VOICE, IAudioBackend, IClip
from .config_io import PlayerConfig
from .event_bus import EventBus

logger = logging.getLogger(__name__)


def _short(url: str, n: int = 60) -> str:
    return url if len(url) <= n else url[:n] + "..."


class ChannelSlot:
    """Owns at most one clip; acquiring a new one releases the old one first."""

    def __init__(self, name: str, backend: IAudioBackend, volume: float = 1.0) -> None:
        self.name = name
        self.volume = volume
        self._backend = backend
        self._muted = False
        self._clip: Optional[IClip] = None

    @property
    def clip(self) -> Optional[IClip]:
        return self._clip

    @property
    def url(self) -> Optional[str]:
        return self._clip.url if self._clip is not None else None

    @property
    def active(self) -> bool:
        return self._clip is not None

    @property
    def is_paused(self) -> bool:
        return self._clip is not None and self._clip.is_paused

    @property
    def muted(self) -> bool:
        return self._muted

    def acquire(self, url: str, *, loop: bool = False) -> bool:
        """Open and start ``url``. Returns False when the clip could not start."""
        self.release()
        try:
            clip = self._backend.open(url, self.name)
        except Exception as e:
            logger.warning("%s: cannot open %s: %s", self.name, _short(url), e)
            return False
        self._clip = clip
        try:
            clip.set_volume(self.volume)
            clip.set_muted(self._muted)
            clip.play(loop)
        except Exception as e:
            # keep the clip loaded; a blocked start is not a reason to forget the track
            logger.warning("%s: playback of %s failed: %s", self.name, _short(url), e)
            return False
        return True

    def release(self) -> None:
        clip, self._clip = self._clip, None
        if clip is None:
            return
        try:
            clip.stop()
        except Exception as e:
            logger.warning("%s: stopping %s failed: %s", self.name, _short(clip.url), e)

    def pause(self) -> None:
        if self._clip is None or self._clip.is_paused:
            return
        try:
            self._clip.pause()
        except Exception as e:
            logger.warning("%s: pause failed: %s", self.name, e)

    def resume(self) -> None:
        if self._clip is None or not self._clip.is_paused:
            return
        try:
            self._clip.resume()
        except Exception as e:
            logger.warning("%s: resume failed: %s", self.name, e)

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        if self._clip is None:
            return
        try:
            self._clip.set_muted(self._muted)
        except Exception as e:
            logger.warning("%s: mute failed: %s", self.name, e)

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, float(volume)))
        if self._clip is None:
            return
        try:
            self._clip.set_volume(self.volume)
        except Exception as e:
            logger.warning("%s: volume change failed: %s", self.name, e)


class AudioCoordinator:
    def __init__(self, backend: IAudioBackend, *, config: Optional[PlayerConfig] = None) -> None:
        config = config if config is not None else PlayerConfig()
        self._backend = backend
        self.music = ChannelSlot(MUSIC, backend, config.music_volume)
        self.voice = ChannelSlot(VOICE, backend, config.voice_volume)
        self.sfx = ChannelSlot(SFX, backend, config.sfx_volume)
        self._muted = False
        self._closed = False
        self._unsubscribe: List[Callable[[], None]] = []
        if config.muted:
            self.set_muted(True)

    @property
    def slots(self) -> tuple:
        return (self.music, self.voice, self.sfx)

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def music_url(self) -> Optional[str]:
        return self.music.url

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, events: EventBus) -> None:
        """Follow a player's position changes through its event bus."""
        self._unsubscribe += [
            events.subscribe("scene.enter", lambda e: self.on_scene_enter(e.get("scene"))),
            events.subscribe("dialogue.enter", lambda e: self.on_dialogue_enter(e.get("dialogue"))),
            events.subscribe("playback.finished", lambda e: self.on_finished()),
        ]

    def on_scene_enter(self, scene: Optional[Scene]) -> None:
        if self._closed:
            return
        url = scene.bgm_url if scene is not None else None
        if scene is None or not scene.dialogues:
            self.voice.release()
            self.sfx.release()
        if not url:
            self.music.release()
            return
        if url == self.music.url:
            # same track continues; a finished session left it paused
            self.music.resume()
            return
        self.music.acquire(url, loop=True)

    def on_dialogue_enter(self, dialogue: Optional[Dialogue]) -> None:
        if self._closed:
            return
        voice_url = dialogue.voice_url if dialogue is not None else None
        sfx_url = dialogue.sfx_url if dialogue is not None else None
        for slot, url in ((self.voice, voice_url), (self.sfx, sfx_url)):
            slot.release()
            if url:
                slot.acquire(url)

    def on_finished(self) -> None:
        if self._closed:
            return
        self.music.pause()
        self.voice.release()
        self.sfx.release()

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        for slot in self.slots:
            slot.set_muted(self._muted)

    def toggle_mute(self) -> bool:
        self.set_muted(not self._muted)
        return self._muted

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for unsub in self._unsubscribe:
            unsub()
        self._unsubscribe.clear()
        for slot in self.slots:
            slot.release()
        try:
            self._backend.close()
        except Exception as e:
            logger.warning("Audio backend close failed: %s", e)
