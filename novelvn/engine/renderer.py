from __future__ import annotations

from typing import Callable, Optional, Tuple

from .presentation import FrameStatus, PresentationFrame


class IRenderer:
    """Host-side consumer of presentation frames.

    ``present`` is called with the current frame whenever the host wants to
    draw; renderers must not assume every call carries a change.
    """

    def present(self, frame: PresentationFrame) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class DummyRenderer(IRenderer):
    """Headless renderer that prints each new line once; useful for tests and CLI."""

    def __init__(self, out: Optional[Callable[[str], None]] = None) -> None:
        self._out = out or print
        self._last_line: Optional[Tuple[int, int]] = None
        self._last_scene: Optional[int] = None
        self._menu_shown: Optional[Tuple[int, int]] = None
        self._end_shown = False

    def _emit(self, text: str) -> None:
        self._out(text)  # noqa: T201

    def present(self, frame: PresentationFrame) -> None:
        if frame.status == FrameStatus.NO_SCENE:
            if self._last_scene is None:
                self._emit("(nothing to play)")
                self._last_scene = -1
            return
        if frame.status == FrameStatus.FINISHED:
            if not self._end_shown:
                self._emit("The End")
                self._end_shown = True
            return
        if self._end_shown:
            self.reset()
        if frame.transition_style is not None:
            # outgoing line; the entering one prints once the overlay clears
            self.new_line()
            self._last_scene = None
            return
        if frame.scene_index != self._last_scene:
            self._last_scene = frame.scene_index
            self._emit(f"== {frame.scene_name or frame.scene_id} ==")
        pos = (frame.scene_index, frame.dialogue_index)
        if frame.status == FrameStatus.READY and frame.fully_revealed and pos != self._last_line:
            self._last_line = pos
            self._emit(self._format_line(frame))
        if frame.show_choices and pos != self._menu_shown:
            self._menu_shown = pos
            for idx, choice in enumerate(frame.choices, 1):
                self._emit(f"  {idx}. {choice.text}")

    @staticmethod
    def _format_line(frame: PresentationFrame) -> str:
        tags = [t for t in (frame.expression, frame.text_effect.value if frame.text_effect else None) if t]
        suffix = f" [{' '.join(tags)}]" if tags else ""
        return f"{frame.speaker.name}{suffix}: {frame.text}"

    def new_line(self) -> None:
        """Forget the printed position so a re-entered line prints again."""
        self._last_line = None
        self._menu_shown = None

    def new_scene(self) -> None:
        """Print the scene header again, even when the scene index repeats."""
        self.new_line()
        self._last_scene = None

    def reset(self) -> None:
        self.new_scene()
        self._end_shown = False
