"""
Typewriter reveal - one character per fixed interval.

Features:
- plain state record plus small step/reveal helpers (usable without timers)
- ``Typewriter`` drives the state from a Scheduler; every run carries a
  generation number so a tick from a superseded line is dropped
- interval <= 0 reveals instantly
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 30


@dataclass
class TypewriterState:
    text: str = ""
    revealed_chars: int = 0
    is_complete: bool = True

    @property
    def total_chars(self) -> int:
        return len(self.text)

    @property
    def revealed_text(self) -> str:
        return self.text[: self.revealed_chars]


def create_typewriter(text: str) -> TypewriterState:
    return TypewriterState(text=text or "", revealed_chars=0, is_complete=not text)


def step_typewriter(state: TypewriterState, count: int = 1) -> bool:
    """Reveal ``count`` more characters. Returns True if anything changed."""
    if state.is_complete:
        return False
    state.revealed_chars = min(state.total_chars, state.revealed_chars + max(1, count))
    if state.revealed_chars >= state.total_chars:
        state.is_complete = True
    return True


def reveal_all(state: TypewriterState) -> None:
    state.revealed_chars = state.total_chars
    state.is_complete = True


class Typewriter:
    """Scheduler-driven reveal for the current line."""

    def __init__(
        self,
        scheduler: Scheduler,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        on_progress: Optional[Callable[[int], None]] = None,
        on_complete: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self.interval_ms = int(interval_ms)
        self._on_progress = on_progress
        self._on_complete = on_complete
        self.state = TypewriterState()
        self._generation = 0
        self._handle: Optional[TimerHandle] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_typing(self) -> bool:
        return not self.state.is_complete

    @property
    def revealed_chars(self) -> int:
        return self.state.revealed_chars

    def start(self, text: str) -> int:
        """Begin revealing ``text`` from zero; supersedes any running line."""
        self.cancel()
        self.state = create_typewriter(text)
        gen = self._generation
        if self.state.is_complete:
            self._complete(skipped=False)
        elif self.interval_ms <= 0:
            reveal_all(self.state)
            self._complete(skipped=False)
        else:
            self._schedule(gen)
        return gen

    def skip(self) -> bool:
        """Jump to the full line. Returns False when nothing was typing."""
        if not self.is_typing:
            return False
        self._cancel_timer()
        reveal_all(self.state)
        self._complete(skipped=True)
        return True

    def cancel(self) -> None:
        """Stop the running line; any tick already queued becomes stale."""
        self._cancel_timer()
        self._generation += 1
        self.state.is_complete = True

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, gen: int) -> None:
        self._handle = self._scheduler.call_later(self.interval_ms, lambda: self._tick(gen), label="typewriter")

    def _tick(self, gen: int) -> None:
        if gen != self._generation:
            logger.debug("Dropping stale typewriter tick (gen %d, current %d)", gen, self._generation)
            return
        self._handle = None
        step_typewriter(self.state)
        if self._on_progress:
            self._on_progress(self.state.revealed_chars)
        if self.state.is_complete:
            self._complete(skipped=False)
        else:
            self._schedule(gen)

    def _complete(self, skipped: bool) -> None:
        if self._on_complete:
            self._on_complete(skipped)
