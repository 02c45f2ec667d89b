from __future__ import annotations

from typing import Tuple

import pygame


def make_bg_placeholder(logical_size: Tuple[int, int], font: pygame.font.Font,
                        bg_color: Tuple[int, int, int], fg_color: Tuple[int, int, int],
                        label: str) -> pygame.Surface:
    surf = pygame.Surface(logical_size)
    surf.fill(bg_color)
    step = 64
    for x in range(0, logical_size[0], step):
        pygame.draw.line(surf, fg_color, (x, 0), (x, logical_size[1]), 1)
    for y in range(0, logical_size[1], step):
        pygame.draw.line(surf, fg_color, (0, y), (logical_size[0], y), 1)
    if label:
        txt = font.render(label[:80], True, (255, 255, 255))
        surf.blit(txt, (16, 56))
    return surf


def make_sprite_placeholder(name: str, color: Tuple[int, int, int], font: pygame.font.Font) -> pygame.Surface:
    w, h = 400, 720
    surf = pygame.Surface((w, h), pygame.SRCALPHA)
    surf.fill((80, 80, 120, 200))
    pygame.draw.rect(surf, color, surf.get_rect(), 4)
    txt = font.render(name, True, (255, 255, 255))
    surf.blit(txt, txt.get_rect(center=(w // 2, 40)))
    return surf
