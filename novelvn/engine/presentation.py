"""
Presentation resolver.

Pure functions that turn a document position into what should be drawn:
speaker, sprite, text styling, background styling. No I/O and no mutation;
positions outside the document produce an explicit status instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from novelvn.document.model import (
    BackgroundPosition, BackgroundSize, Character, Choice, Dialogue,
    FontFamily, FontSize, Novel, Scene, TextEffect, Theme, Transition,
)

if TYPE_CHECKING:
    from .player import PlaybackState


NARRATOR_NAME = "Narrator"
NARRATOR_COLOR = "#64748b"
STRETCH_SIZE = "100% 100%"


class FrameStatus(Enum):
    READY = "ready"
    NO_SCENE = "no_scene"
    NO_DIALOGUE = "no_dialogue"
    FINISHED = "finished"


@dataclass(frozen=True)
class Speaker:
    name: str
    color: str
    character_id: Optional[str] = None

    @property
    def is_narrator(self) -> bool:
        return self.character_id is None


NARRATOR = Speaker(NARRATOR_NAME, NARRATOR_COLOR, None)


@dataclass(frozen=True)
class BackgroundStyle:
    image_url: Optional[str]
    size: str = "cover"          # "cover" | "contain" | "100% 100%"
    position: str = "center"


@dataclass(frozen=True)
class PresentationFrame:
    status: FrameStatus
    scene_index: int = 0
    dialogue_index: int = 0
    novel_title: str = ""
    scene_id: Optional[str] = None
    scene_name: str = ""
    background: Optional[BackgroundStyle] = None
    speaker: Speaker = NARRATOR
    sprite_url: Optional[str] = None
    expression: Optional[str] = None
    text: str = ""
    revealed_chars: int = 0
    text_effect: Optional[TextEffect] = None
    theme: Theme = Theme(FontFamily.SANS, FontSize.MD)
    choices: Tuple[Choice, ...] = ()
    show_choices: bool = False
    transition_visible: bool = False
    transition_style: Optional[Transition] = None
    finished: bool = False
    muted: bool = False

    @property
    def visible_text(self) -> str:
        return self.text[: max(0, self.revealed_chars)]

    @property
    def fully_revealed(self) -> bool:
        return self.revealed_chars >= len(self.text)

    @property
    def renderable(self) -> bool:
        return self.status in (FrameStatus.READY, FrameStatus.NO_DIALOGUE)


def merge_theme(novel_theme: Optional[Theme], scene_theme: Optional[Theme]) -> Theme:
    """Per-field override of the novel theme by the scene theme, then defaults."""
    family = (scene_theme and scene_theme.font_family) or (novel_theme and novel_theme.font_family) or FontFamily.SANS
    size = (scene_theme and scene_theme.font_size) or (novel_theme and novel_theme.font_size) or FontSize.MD
    return Theme(font_family=family, font_size=size)


def background_style(scene: Scene) -> BackgroundStyle:
    if scene.background_size == BackgroundSize.STRETCH:
        # no native "stretch" keyword in the rendering layer
        size = STRETCH_SIZE
    elif scene.background_size == BackgroundSize.CONTAIN:
        size = BackgroundSize.CONTAIN.value
    else:
        size = BackgroundSize.COVER.value
    position = (scene.background_position or BackgroundPosition.CENTER).value
    return BackgroundStyle(image_url=scene.background_url, size=size, position=position)


def resolve_speaker(novel: Novel, dialogue: Dialogue) -> Tuple[Speaker, Optional[Character]]:
    character = novel.character(dialogue.character_id)
    if character is None:
        # unknown speaker ids degrade to the narrator
        return NARRATOR, None
    return Speaker(character.name, character.color, character.id), character


def resolve_sprite(character: Optional[Character], dialogue: Dialogue) -> Optional[str]:
    if character is None:
        return None
    sprite = character.sprite(dialogue.sprite_id)
    if sprite is not None and sprite.image_url:
        return sprite.image_url
    return character.avatar_url or None


def resolve(novel: Novel, scene_index: int, dialogue_index: int) -> PresentationFrame:
    """Resolve the frame for a document position, text fully revealed."""
    scene = novel.scene_at(scene_index)
    if scene is None:
        return PresentationFrame(
            status=FrameStatus.NO_SCENE,
            scene_index=scene_index,
            dialogue_index=dialogue_index,
            novel_title=novel.title,
        )
    base = PresentationFrame(
        status=FrameStatus.NO_DIALOGUE,
        scene_index=scene_index,
        dialogue_index=dialogue_index,
        novel_title=novel.title,
        scene_id=scene.id,
        scene_name=scene.name,
        background=background_style(scene),
        theme=merge_theme(novel.theme, scene.theme_override),
    )
    dialogue = scene.dialogue_at(dialogue_index)
    if dialogue is None:
        return base
    speaker, character = resolve_speaker(novel, dialogue)
    return replace(
        base,
        status=FrameStatus.READY,
        speaker=speaker,
        sprite_url=resolve_sprite(character, dialogue),
        expression=dialogue.expression if character is not None else None,
        text=dialogue.text,
        revealed_chars=len(dialogue.text),
        text_effect=dialogue.text_effect,
        choices=dialogue.choices,
        show_choices=dialogue.has_choices,
    )


def compose_frame(novel: Novel, state: "PlaybackState", *, muted: bool = False) -> PresentationFrame:
    """Overlay session state (reveal progress, transition, finish) on the resolved frame."""
    frame = resolve(novel, state.scene_index, state.dialogue_index)
    if state.is_finished:
        return replace(frame, status=FrameStatus.FINISHED, finished=True, show_choices=False, muted=muted)
    revealed = max(0, min(state.revealed_chars, len(frame.text)))
    return replace(
        frame,
        revealed_chars=revealed,
        show_choices=frame.show_choices and revealed >= len(frame.text) and not state.is_transitioning,
        transition_visible=state.is_transitioning and state.transition_style != Transition.NONE,
        transition_style=state.transition_style if state.is_transitioning else None,
        muted=muted,
    )
