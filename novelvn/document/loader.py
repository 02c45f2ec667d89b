"""Build a Novel from the JSON document the editor exports."""
from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from .errors import DocumentError
from .model import (
    BackgroundPosition, BackgroundSize, Character, Choice, Dialogue,
    FontFamily, FontSize, Novel, Scene, Sprite, TextEffect, Theme, Transition,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _str(data: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    val = data.get(key)
    if val is None:
        return default
    if isinstance(val, str):
        # empty strings in exported documents mean "not set"
        return val if val.strip() else default
    return str(val)


def _int(data: Dict[str, Any], key: str) -> int:
    try:
        return int(data.get(key) or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _enum(enum_cls: Type[E], raw: Any, where: str) -> Optional[E]:
    if raw is None or raw == "":
        return None
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        logger.warning("Unknown %s '%s' at %s; ignoring", enum_cls.__name__, raw, where)
        return None


def _obj(raw: Any, where: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise DocumentError("Expected an object", where)
    return raw


def _list(data: Dict[str, Any], key: str, where: str) -> List[Any]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise DocumentError(f"'{key}' must be a list", where)
    return raw


def _theme(raw: Any, where: str) -> Optional[Theme]:
    if raw is None:
        return None
    data = _obj(raw, where)
    return Theme(
        font_family=_enum(FontFamily, data.get("fontFamily"), where),
        font_size=_enum(FontSize, data.get("fontSize"), where),
    )


def _character(raw: Any, where: str, idx: int) -> Character:
    data = _obj(raw, where)
    sprites = []
    for j, sp_raw in enumerate(_list(data, "sprites", where)):
        sp_where = f"{where}.sprites[{j}]"
        sp = _obj(sp_raw, sp_where)
        sprites.append(Sprite(
            id=_str(sp, "id", f"sprite-{idx}-{j}") or "",
            name=_str(sp, "name", "") or "",
            image_url=_str(sp, "imageUrl", "") or "",
        ))
    return Character(
        id=_str(data, "id", f"character-{idx}") or "",
        name=_str(data, "name", "") or "",
        color=_str(data, "color", "#ffffff") or "#ffffff",
        avatar_url=_str(data, "avatarUrl"),
        sprites=tuple(sprites),
    )


def _dialogue(raw: Any, where: str, scene_idx: int, idx: int) -> Dialogue:
    data = _obj(raw, where)
    choices = []
    for k, ch_raw in enumerate(_list(data, "choices", where)):
        ch_where = f"{where}.choices[{k}]"
        ch = _obj(ch_raw, ch_where)
        choices.append(Choice(
            id=_str(ch, "id", f"choice-{scene_idx}-{idx}-{k}") or "",
            text=_str(ch, "text", "") or "",
            target_scene_id=_str(ch, "targetSceneId", "") or "",
        ))
    voice = _str(data, "voiceUrl")
    if voice is None:
        # older exports carried one audio reference per line
        voice = _str(data, "audioUrl")
    text = data.get("text")
    return Dialogue(
        id=_str(data, "id", f"dialogue-{scene_idx}-{idx}") or "",
        text=text if isinstance(text, str) else ("" if text is None else str(text)),
        character_id=_str(data, "characterId"),
        expression=_str(data, "expression"),
        sprite_id=_str(data, "spriteId"),
        voice_url=voice,
        sfx_url=_str(data, "sfxUrl"),
        text_effect=_enum(TextEffect, data.get("textEffect"), where),
        choices=tuple(choices),
    )


def _scene(raw: Any, where: str, idx: int) -> Scene:
    data = _obj(raw, where)
    dialogues = tuple(
        _dialogue(d, f"{where}.dialogues[{j}]", idx, j)
        for j, d in enumerate(_list(data, "dialogues", where))
    )
    return Scene(
        id=_str(data, "id", f"scene-{idx}") or "",
        name=_str(data, "name", "") or "",
        background_url=_str(data, "backgroundUrl"),
        bgm_url=_str(data, "bgmUrl"),
        background_size=_enum(BackgroundSize, data.get("backgroundSize"), where),
        background_position=_enum(BackgroundPosition, data.get("backgroundPosition"), where),
        transition=_enum(Transition, data.get("transition"), where),
        theme_override=_theme(data.get("themeOverride"), f"{where}.themeOverride"),
        notes=_str(data, "notes"),
        dialogues=dialogues,
    )


def novel_from_dict(data: Any) -> Novel:
    """Build a Novel from a decoded JSON document.

    Missing optional fields default quietly; only structural problems (wrong
    container types) raise DocumentError.
    """
    root = _obj(data, "$")
    genre = root.get("genre") or []
    if isinstance(genre, str):
        genre = [genre]
    if not isinstance(genre, list):
        raise DocumentError("'genre' must be a list", "$")
    return Novel(
        id=_str(root, "id", "novel") or "novel",
        title=_str(root, "title", "") or "",
        description=_str(root, "description", "") or "",
        author_id=_str(root, "authorId"),
        cover_url=_str(root, "coverUrl"),
        genre=tuple(str(g) for g in genre),
        scenes=tuple(_scene(s, f"scenes[{i}]", i) for i, s in enumerate(_list(root, "scenes", "$"))),
        characters=tuple(
            _character(c, f"characters[{i}]", i) for i, c in enumerate(_list(root, "characters", "$"))
        ),
        likes=_int(root, "likes"),
        plays=_int(root, "plays"),
        published_at=_str(root, "publishedAt"),
        theme=_theme(root.get("theme"), "theme"),
    )


def load_novel(path: Path | str) -> Novel:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read novel: {e}", source=str(p)) from e
    except UnicodeDecodeError as e:
        raise DocumentError(f"Cannot decode novel: {e}", source=str(p)) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON: {e.msg}", f"line {e.lineno}", str(p)) from e
    novel = novel_from_dict(data)
    logger.debug("Loaded novel '%s' with %d scenes from %s", novel.title, len(novel.scenes), p)
    return novel
