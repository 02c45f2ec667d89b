from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import pygame

from .media import MediaError, open_media

logger = logging.getLogger(__name__)

MUSIC = "music"
VOICE = "voice"
SFX = "sfx"

# reserved mixer channels (set_reserved keeps 0..n-1 out of Sound.play)
_CHANNEL_IDS = {VOICE: 0, SFX: 1}


class AudioError(Exception):
    """Backend could not open or play a clip."""


class IClip(ABC):
    """One loaded clip bound to a channel."""

    url: str

    @abstractmethod
    def play(self, loop: bool = False) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def pause(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def resume(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_volume(self, volume: float) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set_muted(self, muted: bool) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    @abstractmethod
    def is_paused(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class IAudioBackend(ABC):
    @abstractmethod
    def open(self, url: str, channel: str = SFX) -> IClip:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:
        """Release backend-wide resources. Default: nothing to do."""


class _BaseClip(IClip):
    def __init__(self, url: str) -> None:
        self.url = url
        self._volume = 1.0
        self._muted = False
        self._paused = False

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def effective_volume(self) -> float:
        return 0.0 if self._muted else self._volume

    def set_volume(self, volume: float) -> None:
        self._volume = max(0.0, min(1.0, float(volume)))
        self._apply_volume()

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        self._apply_volume()

    def _apply_volume(self) -> None:
        pass


class NullClip(_BaseClip):
    """Tracks state, plays nothing."""

    def __init__(self, url: str) -> None:
        super().__init__(url)
        self.playing = False
        self.looping = False

    def play(self, loop: bool = False) -> None:
        self.playing, self.looping, self._paused = True, bool(loop), False

    def pause(self) -> None:
        if self.playing:
            self._paused = True

    def resume(self) -> None:
        self._paused = False

    def stop(self) -> None:
        self.playing, self._paused = False, False


class NullAudioBackend(IAudioBackend):
    def open(self, url: str, channel: str = SFX) -> IClip:
        return NullClip(url)


class _MusicClip(_BaseClip):
    """The single streamed track on pygame.mixer.music."""

    def play(self, loop: bool = False) -> None:
        try:
            pygame.mixer.music.set_volume(self.effective_volume)
            pygame.mixer.music.play(-1 if loop else 0)
        except pygame.error as e:
            raise AudioError(str(e)) from e
        self._paused = False

    def pause(self) -> None:
        pygame.mixer.music.pause()
        self._paused = True

    def resume(self) -> None:
        try:
            pygame.mixer.music.unpause()
        except pygame.error as e:
            raise AudioError(str(e)) from e
        self._paused = False

    def stop(self) -> None:
        pygame.mixer.music.stop()
        pygame.mixer.music.unload()
        self._paused = False

    def _apply_volume(self) -> None:
        pygame.mixer.music.set_volume(self.effective_volume)


class _SoundClip(_BaseClip):
    """A decoded Sound played on a dedicated mixer Channel."""

    def __init__(self, url: str, sound: pygame.mixer.Sound, channel: pygame.mixer.Channel) -> None:
        super().__init__(url)
        self._sound = sound
        self._channel = channel

    def play(self, loop: bool = False) -> None:
        self._sound.set_volume(self.effective_volume)
        self._channel.play(self._sound, loops=-1 if loop else 0)
        self._paused = False

    def pause(self) -> None:
        self._channel.pause()
        self._paused = True

    def resume(self) -> None:
        self._channel.unpause()
        self._paused = False

    def stop(self) -> None:
        self._channel.stop()
        self._paused = False

    def _apply_volume(self) -> None:
        self._sound.set_volume(self.effective_volume)


class PygameAudioBackend(IAudioBackend):
    """pygame.mixer backend; music streams, voice and SFX are decoded Sounds."""

    def __init__(self, assets_dir: Optional[Union[str, Path]] = None) -> None:
        self._assets_dir = assets_dir
        self._ready = False

    def _ensure_mixer(self) -> None:
        if self._ready:
            return
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            pygame.mixer.set_reserved(len(_CHANNEL_IDS))
        except pygame.error as e:
            raise AudioError(f"audio device unavailable: {e}") from e
        self._ready = True

    def open(self, url: str, channel: str = SFX) -> IClip:
        self._ensure_mixer()
        try:
            src = open_media(url, assets_dir=self._assets_dir)
        except MediaError as e:
            raise AudioError(str(e)) from e
        try:
            if channel == MUSIC:
                if src.data is not None:
                    pygame.mixer.music.load(src.file(), src.name_hint)
                else:
                    pygame.mixer.music.load(src.file())
                return _MusicClip(url)
            sound = pygame.mixer.Sound(file=src.file())
            return _SoundClip(url, sound, pygame.mixer.Channel(_CHANNEL_IDS.get(channel, _CHANNEL_IDS[SFX])))
        except pygame.error as e:
            raise AudioError(f"cannot load {url[:60]}: {e}") from e

    def close(self) -> None:
        if self._ready:
            try:
                pygame.mixer.stop()
                pygame.mixer.music.stop()
            except pygame.error as e:
                logger.debug("Mixer stop failed during close: %s", e)
            self._ready = False
