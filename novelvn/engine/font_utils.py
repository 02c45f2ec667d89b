from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pygame

from novelvn.document.model import FontFamily, FontSize, Theme

logger = logging.getLogger(__name__)

# pixel sizes on the 1280x720 logical canvas
FONT_SIZES: Dict[FontSize, int] = {
    FontSize.SM: 24,
    FontSize.MD: 30,
    FontSize.LG: 38,
}

SYSTEM_FAMILIES: Dict[FontFamily, List[str]] = {
    FontFamily.SANS: ["Inter", "Helvetica Neue", "Arial", "DejaVu Sans", "Noto Sans"],
    FontFamily.SERIF: ["Georgia", "Times New Roman", "DejaVu Serif", "Noto Serif"],
    FontFamily.MONO: ["JetBrains Mono", "Consolas", "Menlo", "DejaVu Sans Mono"],
    FontFamily.HANDWRITTEN: ["Comic Sans MS", "Segoe Print", "Bradley Hand", "URW Chancery L"],
    FontFamily.RETRO: ["Press Start 2P", "Courier New", "Courier", "FreeMono"],
    FontFamily.FUTURISTIC: ["Orbitron", "Eurostile", "Bank Gothic", "DejaVu Sans"],
    FontFamily.READABLE: ["Atkinson Hyperlegible", "Verdana", "Tahoma", "DejaVu Sans"],
}

_cache: Dict[Tuple[Optional[str], FontFamily, int, bool], pygame.font.Font] = {}


def init_font(font_path: Optional[str], size: int, family: FontFamily = FontFamily.SANS,
              bold: bool = False) -> pygame.font.Font:
    # 1) explicit file wins over the theme family
    if font_path:
        p = Path(font_path)
        if p.exists():
            try:
                font = pygame.font.Font(str(p), size)
                font.set_bold(bold)
                return font
            except (OSError, pygame.error) as e:
                logger.warning("Cannot load font %s: %s; using system fonts", p, e)
        else:
            logger.warning("Font file %s not found; using system fonts", p)
    # 2) system fonts for the family, then pygame's default
    return pygame.font.SysFont(SYSTEM_FAMILIES.get(family, SYSTEM_FAMILIES[FontFamily.SANS]), size, bold=bold)


def theme_font(theme: Theme, font_path: Optional[str] = None, *, scale: float = 1.0,
               bold: bool = False) -> pygame.font.Font:
    family = theme.font_family or FontFamily.SANS
    size = max(8, int(FONT_SIZES.get(theme.font_size or FontSize.MD, FONT_SIZES[FontSize.MD]) * scale))
    key = (font_path, family, size, bold)
    font = _cache.get(key)
    if font is None:
        font = init_font(font_path, size, family, bold)
        _cache[key] = font
    return font


def clear_font_cache() -> None:
    _cache.clear()
