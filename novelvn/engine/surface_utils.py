from __future__ import annotations

from typing import Dict, Tuple

import pygame
from pygame import Surface

# Cache for scaled surfaces: (id(surf), size) -> scaled_surface
_scale_cache: Dict[Tuple[int, Tuple[int, int]], Surface] = {}
_SCALE_CACHE_MAX = 64


def _cached_scale(surf: Surface, size: Tuple[int, int]) -> Surface:
    if surf.get_size() == size:
        return surf
    key = (id(surf), size)
    cached = _scale_cache.get(key)
    if cached is not None:
        return cached
    scaled = pygame.transform.smoothscale(surf, size)
    if len(_scale_cache) >= _SCALE_CACHE_MAX:
        _scale_cache.pop(next(iter(_scale_cache)), None)
    _scale_cache[key] = scaled
    return scaled


def scale_to_height(surf: Surface, target_h: int) -> Surface:
    """Scale a surface to a target height, keeping the aspect ratio."""
    w, h = surf.get_size()
    if h <= 0:
        return surf
    ratio = float(target_h) / float(h)
    return _cached_scale(surf, (max(1, int(w * ratio)), max(1, int(target_h))))


def fit_size(src: Tuple[int, int], dst: Tuple[int, int], mode: str) -> Tuple[int, int]:
    """Target size for ``mode``: "cover", "contain" or "100% 100%" (stretch)."""
    sw, sh = src
    dw, dh = dst
    if sw <= 0 or sh <= 0:
        return dst
    if mode == "100% 100%":
        return dst
    scale_w, scale_h = dw / sw, dh / sh
    scale = min(scale_w, scale_h) if mode == "contain" else max(scale_w, scale_h)
    return max(1, round(sw * scale)), max(1, round(sh * scale))


def place(size: Tuple[int, int], dst: Tuple[int, int], position: str) -> Tuple[int, int]:
    """Top-left offset for a surface of ``size`` anchored at ``position`` inside ``dst``."""
    w, h = size
    dw, dh = dst
    x, y = (dw - w) // 2, (dh - h) // 2
    if position == "left":
        x = 0
    elif position == "right":
        x = dw - w
    elif position == "top":
        y = 0
    elif position == "bottom":
        y = dh - h
    return x, y


def blit_background(canvas: Surface, surf: Surface, mode: str, position: str) -> None:
    dst = canvas.get_size()
    scaled = _cached_scale(surf, fit_size(surf.get_size(), dst, mode))
    canvas.blit(scaled, place(scaled.get_size(), dst, position))


def clear_scale_cache() -> None:
    """Clear the scale cache. Call when assets are reloaded."""
    _scale_cache.clear()
