"""
Novel document model.

A Novel is authored elsewhere and handed to a playback session as an
immutable snapshot: every record here is frozen and every sequence is a tuple.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Transition(str, Enum):
    """Effect played when a scene is entered."""
    FADE = "fade"
    FLASH = "flash"
    SLIDE = "slide"
    ZOOM = "zoom"
    NONE = "none"


class TextEffect(str, Enum):
    TYPEWRITER = "typewriter"
    SHAKE = "shake"
    FLASH = "flash"
    RAINBOW = "rainbow"


class FontFamily(str, Enum):
    SANS = "sans"
    SERIF = "serif"
    MONO = "mono"
    HANDWRITTEN = "handwritten"
    RETRO = "retro"
    FUTURISTIC = "futuristic"
    READABLE = "readable"


class FontSize(str, Enum):
    SM = "sm"
    MD = "md"
    LG = "lg"


class BackgroundSize(str, Enum):
    COVER = "cover"
    CONTAIN = "contain"
    STRETCH = "stretch"


class BackgroundPosition(str, Enum):
    CENTER = "center"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Theme:
    """Font settings; either field may be None in a scene override."""
    font_family: Optional[FontFamily] = None
    font_size: Optional[FontSize] = None


@dataclass(frozen=True)
class Sprite:
    id: str
    name: str
    image_url: str


@dataclass(frozen=True)
class Character:
    id: str
    name: str
    color: str = "#ffffff"
    avatar_url: Optional[str] = None
    sprites: Tuple[Sprite, ...] = ()

    def sprite(self, sprite_id: Optional[str]) -> Optional[Sprite]:
        if not sprite_id:
            return None
        for sp in self.sprites:
            if sp.id == sprite_id:
                return sp
        return None


@dataclass(frozen=True)
class Choice:
    id: str
    text: str
    target_scene_id: str


@dataclass(frozen=True)
class Dialogue:
    id: str
    text: str = ""
    character_id: Optional[str] = None  # None = narrator
    expression: Optional[str] = None
    sprite_id: Optional[str] = None
    voice_url: Optional[str] = None
    sfx_url: Optional[str] = None
    text_effect: Optional[TextEffect] = None
    choices: Tuple[Choice, ...] = ()

    @property
    def has_choices(self) -> bool:
        return bool(self.choices)

    def choice(self, choice_id: str) -> Optional[Choice]:
        for ch in self.choices:
            if ch.id == choice_id:
                return ch
        return None


@dataclass(frozen=True)
class Scene:
    id: str
    name: str = ""
    background_url: Optional[str] = None
    bgm_url: Optional[str] = None
    background_size: Optional[BackgroundSize] = None
    background_position: Optional[BackgroundPosition] = None
    transition: Optional[Transition] = None
    theme_override: Optional[Theme] = None
    notes: Optional[str] = None
    dialogues: Tuple[Dialogue, ...] = ()

    def dialogue_at(self, index: int) -> Optional[Dialogue]:
        if 0 <= index < len(self.dialogues):
            return self.dialogues[index]
        return None


@dataclass(frozen=True)
class Novel:
    id: str
    title: str = ""
    description: str = ""
    author_id: Optional[str] = None
    cover_url: Optional[str] = None
    genre: Tuple[str, ...] = ()
    scenes: Tuple[Scene, ...] = ()
    characters: Tuple[Character, ...] = ()
    likes: int = 0
    plays: int = 0
    published_at: Optional[str] = None
    theme: Optional[Theme] = None

    def scene_at(self, index: int) -> Optional[Scene]:
        if 0 <= index < len(self.scenes):
            return self.scenes[index]
        return None

    def scene_index(self, scene_id: Optional[str]) -> Optional[int]:
        if not scene_id:
            return None
        for i, sc in enumerate(self.scenes):
            if sc.id == scene_id:
                return i
        return None

    def character(self, character_id: Optional[str]) -> Optional[Character]:
        if not character_id:
            return None
        for ch in self.characters:
            if ch.id == character_id:
                return ch
        return None
