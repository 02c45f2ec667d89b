from __future__ import annotations

from .errors import DocumentError  # noqa: F401
from .loader import load_novel, novel_from_dict  # noqa: F401
from .model import (  # noqa: F401
    BackgroundPosition, BackgroundSize, Character, Choice, Dialogue,
    FontFamily, FontSize, Novel, Scene, Sprite, TextEffect, Theme, Transition,
)
