from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from novelvn.document.loader import novel_from_dict
from novelvn.engine.adapters.audio import AudioError, IAudioBackend, IClip


class FakeClip(IClip):
    """Records every call in the owning backend's log."""

    def __init__(self, backend: "FakeBackend", url: str, channel: str) -> None:
        self.url = url
        self.channel = channel
        self._backend = backend
        self.volume = 1.0
        self.muted = False
        self.playing = False
        self.looping = False
        self._paused = False

    @property
    def is_paused(self) -> bool:
        return self._paused

    def _log(self, op: str, *extra: Any) -> None:
        self._backend.log.append((op, self.channel, self.url) + extra)

    def play(self, loop: bool = False) -> None:
        self._log("play", loop)
        if self.url in self._backend.fail_play:
            raise AudioError("autoplay blocked")
        self.playing, self.looping, self._paused = True, loop, False

    def pause(self) -> None:
        self._log("pause")
        self._paused = True

    def resume(self) -> None:
        self._log("resume")
        self._paused = False

    def stop(self) -> None:
        self._log("stop")
        self.playing, self._paused = False, False

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def set_muted(self, muted: bool) -> None:
        self._log("mute", muted)
        self.muted = muted


class FakeBackend(IAudioBackend):
    def __init__(self) -> None:
        self.log: List[Tuple[Any, ...]] = []
        self.clips: List[FakeClip] = []
        self.fail_open: Set[str] = set()
        self.fail_play: Set[str] = set()
        self.closed = False

    def open(self, url: str, channel: str = "sfx") -> IClip:
        self.log.append(("open", channel, url))
        if url in self.fail_open:
            raise AudioError(f"cannot load {url}")
        clip = FakeClip(self, url, channel)
        self.clips.append(clip)
        return clip

    def close(self) -> None:
        self.closed = True

    def ops(self, channel: Optional[str] = None) -> List[Tuple[str, str]]:
        """(op, url) pairs, optionally for one channel; mute calls left out."""
        return [(e[0], e[2]) for e in self.log if e[0] != "mute" and (channel is None or e[1] == channel)]

    def live(self, channel: str) -> List[FakeClip]:
        return [c for c in self.clips if c.channel == channel and c.playing]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


BRANCHING_DOC: Dict[str, Any] = {
    "id": "n1",
    "title": "Two Rooms",
    "characters": [
        {
            "id": "alice",
            "name": "Alice",
            "color": "#ff0066",
            "avatarUrl": "alice.png",
            "sprites": [{"id": "happy", "name": "Happy", "imageUrl": "alice_happy.png"}],
        },
    ],
    "scenes": [
        {
            "id": "s1",
            "name": "Hall",
            "bgmUrl": "hall.ogg",
            "dialogues": [
                {"id": "d1", "characterId": "alice", "text": "Hello", "voiceUrl": "v1.ogg"},
                {"id": "d2", "text": "The hall is quiet.", "sfxUrl": "door.wav"},
            ],
        },
        {
            "id": "s2",
            "name": "Garden",
            "bgmUrl": "garden.ogg",
            "dialogues": [
                {
                    "id": "d3",
                    "characterId": "alice",
                    "spriteId": "happy",
                    "text": "Where now?",
                    "choices": [
                        {"id": "back", "text": "Back inside", "targetSceneId": "s1"},
                        {"id": "stay", "text": "Stay here", "targetSceneId": "s2"},
                    ],
                },
            ],
        },
    ],
}

LINEAR_DOC: Dict[str, Any] = {
    "id": "n2",
    "title": "Straight Line",
    "scenes": [
        {"id": "a", "bgmUrl": "x.ogg", "dialogues": [{"id": "a1", "text": "one"}, {"id": "a2", "text": "two"}]},
        {"id": "b", "bgmUrl": "x.ogg", "transition": "slide", "dialogues": [{"id": "b1", "text": "three"}]},
        {"id": "c", "bgmUrl": "y.ogg", "transition": "none", "dialogues": [{"id": "c1", "text": "four"}]},
        {"id": "d", "transition": "zoom", "dialogues": [{"id": "d1", "text": "five"}]},
    ],
}


@pytest.fixture
def branching_doc() -> Dict[str, Any]:
    return copy.deepcopy(BRANCHING_DOC)


@pytest.fixture
def branching_novel():
    return novel_from_dict(copy.deepcopy(BRANCHING_DOC))


@pytest.fixture
def linear_novel():
    return novel_from_dict(copy.deepcopy(LINEAR_DOC))


@pytest.fixture
def linear_doc() -> Dict[str, Any]:
    return copy.deepcopy(LINEAR_DOC)
