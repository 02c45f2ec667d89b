"""
Playback state machine.

The Player owns the session position (scene/dialogue), the reveal progress of
the current line, and the transition/finished flags. Everything else observes
it through the EventBus or through composed PresentationFrames; nothing else
mutates the state.

All operations are total: a call that does not apply in the current state
(advance during a transition, choose without pending choices, restart before
the end) returns False and leaves the state untouched.

Events (keyword payloads):
- scene.enter         scene_index, scene
- dialogue.enter      scene_index, dialogue_index, dialogue
- typing.complete     scene_index, dialogue_index, skipped
- transition.start    from_index, to_index, style
- transition.commit   scene_index
- transition.end      scene_index
- choice.select       choice, target_index
- playback.finished   scene_index, dialogue_index
- playback.restart
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from novelvn.document.model import Dialogue, Novel, Scene, Transition

from .config_io import PlayerConfig
from .event_bus import EventBus
from .presentation import PresentationFrame, compose_frame
from .timers import Scheduler, TimerHandle
from .transitions import TransitionTiming, timing_for
from .typewriter import Typewriter

logger = logging.getLogger(__name__)


@dataclass
class PlaybackState:
    scene_index: int = 0
    dialogue_index: int = 0
    revealed_chars: int = 0
    is_transitioning: bool = False
    is_finished: bool = False
    transition_style: Optional[Transition] = None
    text_length: int = 0

    @property
    def is_typing(self) -> bool:
        return not self.is_finished and self.revealed_chars < self.text_length


class Player:
    def __init__(
        self,
        novel: Novel,
        scheduler: Scheduler,
        *,
        events: Optional[EventBus] = None,
        config: Optional[PlayerConfig] = None,
    ) -> None:
        self.novel = novel
        self.events = events if events is not None else EventBus()
        self.config = config if config is not None else PlayerConfig()
        self._scheduler = scheduler
        self._state = PlaybackState()
        self._typewriter = Typewriter(
            scheduler,
            self.config.typing_interval_ms,
            on_progress=self._on_reveal,
            on_complete=self._on_typed,
        )
        self._transition_gen = 0
        self._transition_handle: Optional[TimerHandle] = None
        self._started = False
        self._closed = False

    # ----- read-only views -----
    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_typing(self) -> bool:
        return self._state.is_typing

    @property
    def current_scene(self) -> Optional[Scene]:
        return self.novel.scene_at(self._state.scene_index)

    @property
    def current_dialogue(self) -> Optional[Dialogue]:
        scene = self.current_scene
        return scene.dialogue_at(self._state.dialogue_index) if scene is not None else None

    def frame(self, *, muted: bool = False) -> PresentationFrame:
        return compose_frame(self.novel, self._state, muted=muted)

    def _active(self, op: str) -> bool:
        if self._closed or not self._started:
            logger.debug("Ignoring %s: player %s", op, "closed" if self._closed else "not started")
            return False
        return True

    # ----- operations -----
    def start(self) -> bool:
        if self._closed or self._started:
            return False
        if not self.novel.scenes:
            logger.warning("Novel '%s' has no scenes; nothing to play", self.novel.title or self.novel.id)
            return False
        self._started = True
        self._enter_scene()
        return True

    def advance(self) -> bool:
        if not self._active("advance"):
            return False
        st = self._state
        if st.is_finished or st.is_transitioning:
            logger.debug("Ignoring advance: %s", "finished" if st.is_finished else "transitioning")
            return False
        if st.is_typing:
            return self.skip_typing()
        dlg = self.current_dialogue
        if dlg is not None and dlg.has_choices:
            return False
        scene = self.current_scene
        if scene is not None and st.dialogue_index + 1 < len(scene.dialogues):
            st.dialogue_index += 1
            self._enter_dialogue()
            return True
        if st.scene_index + 1 < len(self.novel.scenes):
            return self._begin_transition(st.scene_index + 1)
        self._finish()
        return True

    def choose(self, choice_id: str) -> bool:
        if not self._active("choose"):
            return False
        st = self._state
        if st.is_finished or st.is_transitioning:
            return False
        dlg = self.current_dialogue
        if dlg is None or not dlg.has_choices:
            logger.debug("Ignoring choose(%s): no pending choices", choice_id)
            return False
        choice = dlg.choice(choice_id)
        if choice is None:
            logger.debug("Ignoring choose(%s): not a choice of the current line", choice_id)
            return False
        target = self.novel.scene_index(choice.target_scene_id)
        if target is None:
            logger.debug("Ignoring choose(%s): target scene '%s' not found", choice_id, choice.target_scene_id)
            return False
        self.events.emit("choice.select", choice=choice, target_index=target)
        return self._begin_transition(target)

    def restart(self) -> bool:
        if not self._active("restart"):
            return False
        if not self._state.is_finished:
            return False
        self._typewriter.cancel()
        self._cancel_transition()
        self._state = PlaybackState()
        self.events.emit("playback.restart")
        self._enter_scene()
        return True

    def start_typing(self) -> bool:
        """(Re)start the reveal of the current line from zero."""
        if not self._active("start_typing"):
            return False
        dlg = self.current_dialogue
        if dlg is None or self._state.is_finished:
            return False
        st = self._state
        st.text_length = len(dlg.text)
        st.revealed_chars = 0
        self._typewriter.start(dlg.text)
        return True

    def skip_typing(self) -> bool:
        if not self._active("skip_typing"):
            return False
        if not self._state.is_typing:
            return False
        return self._typewriter.skip()

    def close(self) -> bool:
        if self._closed:
            return False
        self._closed = True
        self._typewriter.cancel()
        self._cancel_transition()
        return True

    # ----- internals -----
    def _enter_scene(self) -> None:
        st = self._state
        st.dialogue_index = 0
        scene = self.current_scene
        self.events.emit("scene.enter", scene_index=st.scene_index, scene=scene)
        self._enter_dialogue()

    def _enter_dialogue(self) -> None:
        st = self._state
        dlg = self.current_dialogue
        st.revealed_chars = 0
        st.text_length = len(dlg.text) if dlg is not None else 0
        if dlg is None:
            self._typewriter.cancel()
            return
        self.events.emit(
            "dialogue.enter",
            scene_index=st.scene_index,
            dialogue_index=st.dialogue_index,
            dialogue=dlg,
        )
        # a listener may have closed the session
        if not self._closed:
            self.start_typing()

    def _on_reveal(self, revealed: int) -> None:
        self._state.revealed_chars = revealed

    def _on_typed(self, skipped: bool) -> None:
        st = self._state
        st.revealed_chars = st.text_length
        self.events.emit(
            "typing.complete",
            scene_index=st.scene_index,
            dialogue_index=st.dialogue_index,
            skipped=skipped,
        )

    def _finish(self) -> None:
        st = self._state
        self._typewriter.cancel()
        st.is_finished = True
        self.events.emit("playback.finished", scene_index=st.scene_index, dialogue_index=st.dialogue_index)

    def _cancel_transition(self) -> None:
        self._transition_gen += 1
        if self._transition_handle is not None:
            self._transition_handle.cancel()
            self._transition_handle = None
        self._state.is_transitioning = False
        self._state.transition_style = None

    def _begin_transition(self, target: int) -> bool:
        st = self._state
        self._typewriter.cancel()
        st.revealed_chars = st.text_length
        self._cancel_transition()
        gen = self._transition_gen
        style = self.novel.scenes[target].transition or Transition.FADE
        timing = timing_for(style, self.config.transition_timings)
        st.is_transitioning = True
        st.transition_style = style
        self.events.emit("transition.start", from_index=st.scene_index, to_index=target, style=style)
        if timing.commit_ms <= 0:
            self._commit_transition(gen, target, timing)
        else:
            self._transition_handle = self._scheduler.call_later(
                timing.commit_ms,
                lambda: self._commit_transition(gen, target, timing),
                label="transition.commit",
            )
        return True

    def _stale(self, gen: int, phase: str) -> bool:
        if self._closed or gen != self._transition_gen:
            logger.debug("Dropping stale transition %s (gen %d, current %d)", phase, gen, self._transition_gen)
            return True
        return False

    def _commit_transition(self, gen: int, target: int, timing: TransitionTiming) -> None:
        if self._stale(gen, "commit"):
            return
        self._transition_handle = None
        st = self._state
        st.scene_index = target
        st.dialogue_index = 0
        self.events.emit("transition.commit", scene_index=target)
        self._enter_scene()
        if self._stale(gen, "clear"):
            return
        if timing.clear_ms <= 0:
            self._end_transition(gen)
        else:
            self._transition_handle = self._scheduler.call_later(
                timing.clear_ms,
                lambda: self._end_transition(gen),
                label="transition.clear",
            )

    def _end_transition(self, gen: int) -> None:
        if self._stale(gen, "clear"):
            return
        self._transition_handle = None
        st = self._state
        st.is_transitioning = False
        st.transition_style = None
        self.events.emit("transition.end", scene_index=st.scene_index)
