from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pygame
from pygame import Surface

from novelvn.document.model import TextEffect, Transition
from novelvn.engine.adapters.media import MediaError, open_media
from novelvn.engine.config_io import PlayerConfig
from novelvn.engine.font_utils import clear_font_cache, init_font, theme_font
from novelvn.engine.input_handler import InputAdapter
from novelvn.engine.placeholders import make_bg_placeholder, make_sprite_placeholder
from novelvn.engine.presentation import FrameStatus, PresentationFrame
from novelvn.engine.renderer import IRenderer
from novelvn.engine.surface_utils import blit_background, clear_scale_cache, scale_to_height
from novelvn.engine.transitions import timing_for
from novelvn.ui.textwrap import revealed_lines, wrap_spans

logger = logging.getLogger(__name__)

# Logical canvas size (16:9)
LOGICAL_SIZE: Tuple[int, int] = (1280, 720)

SPRITE_HEIGHT_RATIO = 0.8
TOP_BAR_H = 44
PANEL_RECT = pygame.Rect(40, LOGICAL_SIZE[1] - 210, LOGICAL_SIZE[0] - 80, 180)
TEXT_MARGIN = 28
OVERLAY_RAMP_MS = 500
BG_FALLBACK = (15, 23, 42)


def parse_color(value: Optional[str], default: Tuple[int, int, int] = (255, 255, 255)) -> Tuple[int, int, int]:
    """'#rgb' / '#rrggbb' to an RGB tuple; anything else gives ``default``."""
    s = (value or "").strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        return default
    try:
        return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)
    except ValueError:
        return default


class ImageStore:
    """Loads images by media reference; failures are logged once and cached as None."""

    def __init__(self, assets_dir: Optional[Union[str, Path]] = None) -> None:
        self._assets_dir = assets_dir
        self._cache: Dict[str, Optional[Surface]] = {}

    def get(self, url: Optional[str]) -> Optional[Surface]:
        if not url:
            return None
        if url in self._cache:
            return self._cache[url]
        surf: Optional[Surface] = None
        try:
            src = open_media(url, assets_dir=self._assets_dir)
            surf = pygame.image.load(src.file(), src.name_hint or "").convert_alpha()
        except (MediaError, pygame.error, OSError) as e:
            logger.warning("Image %s unavailable: %s", url[:60], e)
        self._cache[url] = surf
        return surf

    def clear(self) -> None:
        self._cache.clear()


class PygameRenderer(IRenderer):
    def __init__(self, title: str = "novelvn", *, config: Optional[PlayerConfig] = None,
                 assets_dir: Optional[Union[str, Path]] = None) -> None:
        self.config = config if config is not None else PlayerConfig()
        pygame.init()
        self.clock = pygame.time.Clock()
        self.screen = pygame.display.set_mode((self.config.window_width, self.config.window_height), pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.canvas = pygame.Surface(LOGICAL_SIZE).convert_alpha()
        self.images = ImageStore(assets_dir)
        self._font_path = self.config.font_path
        self.ui_font = init_font(self._font_path, 22)
        self.big_font = init_font(self._font_path, 64, bold=True)
        self._ui_rects: Dict[str, pygame.Rect] = {}
        self._last_transform: Optional[Tuple[float, int, int, int, int]] = None
        self._overlay_since: Optional[int] = None
        self._placeholders: Dict[Tuple[str, str], Surface] = {}

    # --- drawing ---
    def present(self, frame: PresentationFrame) -> None:
        now = pygame.time.get_ticks()
        self._ui_rects = {}
        self.canvas.fill(BG_FALLBACK + (255,))
        if frame.status == FrameStatus.NO_SCENE:
            self._draw_message("This novel has no scenes.")
        else:
            self._draw_background(frame)
            if not frame.finished:
                self._draw_sprite(frame)
                if frame.status == FrameStatus.READY:
                    self._draw_panel(frame, now)
                else:
                    # empty scene: a click anywhere moves on
                    self._ui_rects["panel"] = self.canvas.get_rect()
                if frame.show_choices:
                    self._draw_choices(frame)
            self._draw_transition(frame, now)
            if frame.finished:
                self._draw_end_card(frame)
        self._draw_top_bar(frame)
        self._flip()

    def _flip(self) -> None:
        win_w, win_h = self.screen.get_size()
        scale = min(win_w / LOGICAL_SIZE[0], win_h / LOGICAL_SIZE[1])
        dst_w, dst_h = int(LOGICAL_SIZE[0] * scale), int(LOGICAL_SIZE[1] * scale)
        scaled = pygame.transform.smoothscale(self.canvas, (dst_w, dst_h))
        x = (win_w - dst_w) // 2
        y = (win_h - dst_h) // 2
        self._last_transform = (scale, x, y, dst_w, dst_h)
        self.screen.fill((0, 0, 0))
        self.screen.blit(scaled, (x, y))
        pygame.display.flip()

    def _placeholder(self, kind: str, label: str, color: Tuple[int, int, int] = (200, 200, 240)) -> Surface:
        key = (kind, label)
        surf = self._placeholders.get(key)
        if surf is None:
            if kind == "bg":
                surf = make_bg_placeholder(LOGICAL_SIZE, self.ui_font, (40, 40, 40), (70, 70, 70), label)
            else:
                surf = make_sprite_placeholder(label, color, self.ui_font)
            self._placeholders[key] = surf
        return surf

    def _draw_background(self, frame: PresentationFrame) -> None:
        bg = frame.background
        if bg is None or not bg.image_url:
            return
        surf = self.images.get(bg.image_url)
        if surf is None:
            self.canvas.blit(self._placeholder("bg", frame.scene_name or bg.image_url[:40]), (0, 0))
            return
        blit_background(self.canvas, surf, bg.size, bg.position)

    def _draw_sprite(self, frame: PresentationFrame) -> None:
        if not frame.sprite_url or frame.speaker.is_narrator:
            return
        surf = self.images.get(frame.sprite_url)
        if surf is None:
            surf = self._placeholder("sprite", frame.speaker.name, parse_color(frame.speaker.color))
        surf = scale_to_height(surf, int(LOGICAL_SIZE[1] * SPRITE_HEIGHT_RATIO))
        x = (LOGICAL_SIZE[0] - surf.get_width()) // 2
        self.canvas.blit(surf, (x, LOGICAL_SIZE[1] - surf.get_height()))

    def _draw_panel(self, frame: PresentationFrame, now: int) -> None:
        panel = pygame.Surface(PANEL_RECT.size, pygame.SRCALPHA)
        panel.fill((0, 0, 0, 170))
        self.canvas.blit(panel, PANEL_RECT.topleft)
        pygame.draw.rect(self.canvas, (255, 255, 255), PANEL_RECT, 1, border_radius=8)
        self._ui_rects["panel"] = PANEL_RECT.copy()

        color = parse_color(frame.speaker.color)
        label = frame.speaker.name + (f" ({frame.expression})" if frame.expression else "")
        name_surf = self.ui_font.render(label, True, (255, 255, 255))
        tag = pygame.Rect(PANEL_RECT.x + 16, PANEL_RECT.y - 34, name_surf.get_width() + 28, 38)
        pygame.draw.rect(self.canvas, color, tag, border_radius=6)
        self.canvas.blit(name_surf, name_surf.get_rect(center=tag.center))

        font = theme_font(frame.theme, self._font_path)
        width = PANEL_RECT.width - TEXT_MARGIN * 2
        spans = wrap_spans(frame.text, lambda s: font.size(s)[0], width)
        lines = revealed_lines(frame.text, spans, frame.revealed_chars)
        effect = frame.text_effect
        dx = dy = 0
        if effect == TextEffect.SHAKE:
            dx = int(3 * math.sin(now / 25.0))
            dy = int(2 * math.cos(now / 31.0))
        alpha = 255
        if effect == TextEffect.FLASH:
            alpha = int(150 + 105 * math.sin(now / 120.0))
        x0 = PANEL_RECT.x + TEXT_MARGIN + dx
        y = PANEL_RECT.y + 30 + dy
        line_h = font.get_linesize()
        offset = 0
        for line in lines:
            if effect == TextEffect.RAINBOW:
                self._draw_rainbow_line(font, line, x0, y, now, offset)
            else:
                surf = font.render(line, True, (240, 240, 240))
                if alpha < 255:
                    surf.set_alpha(alpha)
                self.canvas.blit(surf, (x0, y))
            offset += len(line)
            last_w = font.size(line)[0]
            y += line_h
        if not lines:
            last_w, y = 0, y + line_h
        if effect == TextEffect.TYPEWRITER and not frame.fully_revealed and (now // 400) % 2 == 0:
            cursor = font.render("|", True, (240, 240, 240))
            self.canvas.blit(cursor, (x0 + last_w + 2, y - line_h))
        if frame.fully_revealed and not frame.choices:
            hint = self.ui_font.render("▼", True, (230, 230, 230))
            self.canvas.blit(hint, (PANEL_RECT.right - 36, PANEL_RECT.bottom - 34 + int(3 * math.sin(now / 200.0))))

    def _draw_rainbow_line(self, font: pygame.font.Font, line: str, x: int, y: int, now: int, offset: int) -> None:
        for i, ch in enumerate(line):
            c = pygame.Color(0, 0, 0)
            c.hsva = ((now / 8.0 + (offset + i) * 18) % 360, 70, 100, 100)
            surf = font.render(ch, True, c)
            self.canvas.blit(surf, (x, y))
            x += surf.get_width()

    def _draw_choices(self, frame: PresentationFrame) -> None:
        font = self.ui_font
        n = len(frame.choices)
        btn_w, btn_h, gap = 640, 52, 14
        total_h = n * btn_h + (n - 1) * gap
        y = max(TOP_BAR_H + 20, (PANEL_RECT.y - total_h) // 2)
        mouse = self._canvas_mouse_pos()
        for choice in frame.choices:
            rect = pygame.Rect((LOGICAL_SIZE[0] - btn_w) // 2, y, btn_w, btn_h)
            hover = mouse is not None and rect.collidepoint(mouse)
            bg = pygame.Surface(rect.size, pygame.SRCALPHA)
            bg.fill((90, 140, 220, 210) if hover else (20, 20, 30, 200))
            self.canvas.blit(bg, rect.topleft)
            pygame.draw.rect(self.canvas, (200, 220, 255), rect, 2, border_radius=8)
            txt = font.render(choice.text, True, (255, 255, 255))
            self.canvas.blit(txt, txt.get_rect(center=rect.center))
            self._ui_rects[f"choice:{choice.id}"] = rect
            y += btn_h + gap

    def _draw_transition(self, frame: PresentationFrame, now: int) -> None:
        if not frame.transition_visible:
            self._overlay_since = None
            return
        if self._overlay_since is None:
            self._overlay_since = now
        style = frame.transition_style
        ramp = timing_for(style, self.config.transition_timings).commit_ms or OVERLAY_RAMP_MS
        p = max(0.0, min(1.0, (now - self._overlay_since) / ramp))
        w, h = LOGICAL_SIZE
        if style == Transition.SLIDE:
            pygame.draw.rect(self.canvas, (0, 0, 0), pygame.Rect(0, 0, int(w * p), h))
        elif style == Transition.ZOOM:
            rect = pygame.Rect(0, 0, int(w * p), int(h * p))
            rect.center = (w // 2, h // 2)
            pygame.draw.rect(self.canvas, (0, 0, 0), rect)
        else:
            ov = pygame.Surface(LOGICAL_SIZE, pygame.SRCALPHA)
            base = (255, 255, 255) if style == Transition.FLASH else (0, 0, 0)
            ov.fill(base + (int(255 * p),))
            self.canvas.blit(ov, (0, 0))

    def _draw_end_card(self, frame: PresentationFrame) -> None:
        overlay = pygame.Surface(LOGICAL_SIZE, pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 180))
        self.canvas.blit(overlay, (0, 0))
        cx, cy = LOGICAL_SIZE[0] // 2, LOGICAL_SIZE[1] // 2
        t_surf = self.big_font.render("The End", True, (255, 235, 130))
        self.canvas.blit(t_surf, t_surf.get_rect(center=(cx, cy - 60)))
        if frame.novel_title:
            s_surf = self.ui_font.render(frame.novel_title, True, (235, 235, 235))
            self.canvas.blit(s_surf, s_surf.get_rect(center=(cx, cy)))
        for key, label, x in (("replay", "Replay", cx - 110), ("close", "Close", cx + 110)):
            rect = pygame.Rect(0, 0, 180, 48)
            rect.center = (x, cy + 80)
            pygame.draw.rect(self.canvas, (60, 70, 110), rect, border_radius=8)
            pygame.draw.rect(self.canvas, (200, 220, 255), rect, 2, border_radius=8)
            txt = self.ui_font.render(label, True, (255, 255, 255))
            self.canvas.blit(txt, txt.get_rect(center=rect.center))
            self._ui_rects[f"end:{key}"] = rect

    def _draw_message(self, message: str) -> None:
        surf = self.ui_font.render(message, True, (230, 230, 230))
        self.canvas.blit(surf, surf.get_rect(center=(LOGICAL_SIZE[0] // 2, LOGICAL_SIZE[1] // 2)))

    def _draw_top_bar(self, frame: PresentationFrame) -> None:
        bar = pygame.Surface((LOGICAL_SIZE[0], TOP_BAR_H), pygame.SRCALPHA)
        bar.fill((0, 0, 0, 140))
        self.canvas.blit(bar, (0, 0))
        title = frame.novel_title + (f"  -  {frame.scene_name}" if frame.scene_name else "")
        self.canvas.blit(self.ui_font.render(title, True, (240, 240, 240)), (14, 10))
        x = LOGICAL_SIZE[0] - 10
        for key, label in (("close", "X"), ("mute", "Unmute" if frame.muted else "Mute")):
            txt = self.ui_font.render(label, True, (255, 255, 255))
            rect = pygame.Rect(0, 6, txt.get_width() + 20, TOP_BAR_H - 12)
            rect.right = x
            pygame.draw.rect(self.canvas, (70, 70, 90), rect, border_radius=6)
            self.canvas.blit(txt, txt.get_rect(center=rect.center))
            self._ui_rects[key] = rect
            x = rect.left - 8

    # --- input mapping ---
    def _to_canvas(self, pos: Tuple[int, int]) -> Optional[Tuple[int, int]]:
        if not self._last_transform:
            return None
        scale, x, y, dst_w, dst_h = self._last_transform
        mx, my = pos
        if not (x <= mx <= x + dst_w and y <= my <= y + dst_h) or scale <= 0:
            return None
        return int((mx - x) / scale), int((my - y) / scale)

    def _canvas_mouse_pos(self) -> Optional[Tuple[int, int]]:
        return self._to_canvas(pygame.mouse.get_pos())

    def hit_test(self, pos: Tuple[int, int]) -> Optional[str]:
        """Name of the UI element under a window position from the last frame."""
        cpos = self._to_canvas(pos)
        if cpos is None:
            return None
        for key, rect in self._ui_rects.items():
            if key != "panel" and rect.collidepoint(cpos):
                return key
        panel = self._ui_rects.get("panel")
        if panel is not None and panel.collidepoint(cpos):
            return "panel"
        return None

    def close(self) -> None:
        self.images.clear()
        # cached fonts and surfaces die with the display
        clear_font_cache()
        clear_scale_cache()
        pygame.quit()


def dispatch_click(adapter: InputAdapter, target: Optional[str]) -> bool:
    if target is None:
        return False
    if target == "panel":
        return adapter.on_click()
    if target.startswith("choice:"):
        return adapter.on_choice(target.split(":", 1)[1])
    if target == "mute":
        return adapter.on_key(InputAdapter.MUTE_KEY)
    if target in ("close", "end:close"):
        adapter.close()
        return True
    if target == "end:replay":
        return adapter.on_restart()
    return False


def run_pygame(adapter: InputAdapter, renderer: PygameRenderer, fps: int = 60) -> None:
    """Window loop: input to the adapter, timers, then draw; ends when the session closes."""
    start = pygame.time.get_ticks()
    try:
        while not adapter.closed:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    adapter.close()
                elif event.type == pygame.KEYDOWN:
                    adapter.on_key(pygame.key.name(event.key))
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    dispatch_click(adapter, renderer.hit_test(event.pos))
            if adapter.closed:
                break
            adapter.update(pygame.time.get_ticks() - start)
            renderer.present(adapter.session.frame())
            renderer.clock.tick(max(10, fps))
    finally:
        adapter.close()
        renderer.close()
