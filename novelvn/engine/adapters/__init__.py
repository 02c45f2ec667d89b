from __future__ import annotations

"""Adapter interfaces and default implementations for pluggable media backends.

Currently provides:
- IAudioBackend / IClip: audio playback per channel (music, voice, sfx)
- open_media: turning document media references into loadable sources
"""

from .audio import (  # noqa: F401
    MUSIC, SFX, VOICE, AudioError, IAudioBackend, IClip, NullAudioBackend, PygameAudioBackend,
)
from .media import MediaError, MediaSource, open_media  # noqa: F401
