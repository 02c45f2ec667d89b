from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest

from novelvn.document.loader import novel_from_dict
from novelvn.document.model import Transition
from novelvn.engine.config_io import PlayerConfig
from novelvn.engine.event_bus import EventBus
from novelvn.engine.player import Player
from novelvn.engine.presentation import FrameStatus
from novelvn.engine.timers import Scheduler


def make_player(novel, interval_ms: int = 30) -> Tuple[Player, Scheduler, List[Tuple[str, Dict[str, Any]]]]:
    sched = Scheduler()
    bus = EventBus()
    seen: List[Tuple[str, Dict[str, Any]]] = []
    for name in ("scene.enter", "dialogue.enter", "typing.complete", "transition.start",
                 "transition.commit", "transition.end", "playback.finished", "playback.restart",
                 "choice.select"):
        bus.subscribe(name, lambda data, n=name: seen.append((n, data)))
    player = Player(novel, sched, events=bus, config=PlayerConfig(typing_interval_ms=interval_ms))
    return player, sched, seen


def names(seen) -> List[str]:
    return [n for n, _ in seen]


def finish_line(player: Player) -> None:
    if player.is_typing:
        player.advance()


class TestStartAndTyping:
    def test_initial_state(self, branching_novel):
        player, _, seen = make_player(branching_novel)
        st = player.state
        assert (st.scene_index, st.dialogue_index, st.revealed_chars) == (0, 0, 0)
        assert not st.is_transitioning and not st.is_finished
        assert player.start()
        assert names(seen) == ["scene.enter", "dialogue.enter"]
        frame = player.frame()
        assert frame.speaker.name == "Alice"
        assert frame.text == "Hello"
        assert player.is_typing

    def test_start_twice_is_noop(self, branching_novel):
        player, _, _ = make_player(branching_novel)
        assert player.start()
        assert not player.start()

    def test_typing_reveals_then_completes(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        sched.update(60)
        assert player.state.revealed_chars == 2
        sched.update(150)
        assert player.state.revealed_chars == 5
        assert not player.is_typing
        assert ("typing.complete", {"scene_index": 0, "dialogue_index": 0, "skipped": False}) in seen

    def test_advance_while_typing_only_completes_reveal(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        sched.update(30)
        assert player.advance()
        st = player.state
        assert st.dialogue_index == 0
        assert st.revealed_chars == len("Hello")
        assert seen[-1][1]["skipped"] is True
        # the cancelled tick does not keep revealing
        sched.update(1000)
        assert player.state.revealed_chars == 5

    def test_start_typing_restarts_reveal(self, branching_novel):
        player, sched, _ = make_player(branching_novel)
        player.start()
        sched.flush()
        assert player.start_typing()
        assert player.state.revealed_chars == 0
        assert player.is_typing
        assert player.skip_typing()
        assert not player.skip_typing()

    def test_empty_novel_never_starts(self):
        player, _, seen = make_player(novel_from_dict({"scenes": []}))
        assert not player.start()
        assert not player.advance()
        assert not player.choose("x")
        assert not player.restart()
        assert player.frame().status == FrameStatus.NO_SCENE
        assert seen == []

    def test_calls_before_start_are_noops(self, branching_novel):
        player, _, _ = make_player(branching_novel)
        assert not player.advance()
        assert not player.start_typing()
        assert not player.skip_typing()


class TestAdvance:
    def test_linear_novel_reaches_finished(self, linear_novel):
        player, sched, seen = make_player(linear_novel)
        player.start()
        for _ in range(100):
            sched.flush()
            if player.state.is_finished:
                break
            player.advance()
        st = player.state
        assert st.is_finished
        assert (st.scene_index, st.dialogue_index) == (3, 0)
        assert names(seen).count("playback.finished") == 1
        # nothing moves past the end
        assert not player.advance()
        assert player.state.scene_index == 3

    def test_next_dialogue_in_scene(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        sched.flush()
        assert player.advance()
        assert player.state.dialogue_index == 1
        assert player.is_typing
        assert seen[-1][0] == "dialogue.enter"

    def test_transition_is_two_phase(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        sched.flush()
        player.advance()
        sched.flush()
        assert player.advance()
        st = player.state
        assert st.is_transitioning
        assert st.transition_style == Transition.FADE
        assert st.scene_index == 0
        # advance is ignored mid-transition
        assert not player.advance()
        t = sched.now_ms
        sched.update(t + 499)
        assert player.state.scene_index == 0
        sched.update(t + 500)
        st = player.state
        assert (st.scene_index, st.dialogue_index) == (1, 0)
        assert st.is_transitioning
        sched.update(t + 600)
        assert not player.state.is_transitioning
        order = [n for n in names(seen) if n.startswith("transition") or n == "scene.enter"]
        assert order[-4:] == ["transition.start", "transition.commit", "scene.enter", "transition.end"]

    @pytest.mark.parametrize("style,commit_ms", [("slide", 300), ("zoom", 300), ("flash", 500)])
    def test_transition_timing_per_style(self, style, commit_ms):
        novel = novel_from_dict({"scenes": [
            {"id": "a", "dialogues": [{"text": ""}]},
            {"id": "b", "transition": style, "dialogues": [{"text": "b"}]},
        ]})
        player, sched, _ = make_player(novel)
        player.start()
        player.advance()
        sched.update(commit_ms - 1)
        assert player.state.scene_index == 0
        sched.update(commit_ms)
        assert player.state.scene_index == 1
        sched.update(commit_ms + 100)
        assert not player.state.is_transitioning

    def test_none_transition_is_synchronous(self):
        novel = novel_from_dict({"scenes": [
            {"id": "a", "dialogues": [{"text": ""}]},
            {"id": "b", "transition": "none", "dialogues": [{"text": "b"}]},
        ]})
        player, _, seen = make_player(novel)
        player.start()
        assert player.advance()
        st = player.state
        assert st.scene_index == 1
        assert not st.is_transitioning
        ordered = [n for n in names(seen) if n.startswith("transition")]
        assert ordered == ["transition.start", "transition.commit", "transition.end"]

    def test_configured_timing_overrides_default(self):
        from novelvn.engine.transitions import TransitionTiming

        novel = novel_from_dict({"scenes": [{"id": "a", "dialogues": [{}]}, {"id": "b", "dialogues": [{}]}]})
        cfg = PlayerConfig(typing_interval_ms=0)
        cfg.transition_timings[Transition.FADE] = TransitionTiming(50, 10)
        sched = Scheduler()
        player = Player(novel, sched, config=cfg)
        player.start()
        player.advance()
        sched.update(50)
        assert player.state.scene_index == 1

    def test_scene_without_dialogues_moves_on(self):
        novel = novel_from_dict({"scenes": [{"id": "empty"}, {"id": "b", "dialogues": [{"text": "hi"}]}]})
        player, sched, _ = make_player(novel, interval_ms=0)
        player.start()
        assert player.frame().status == FrameStatus.NO_DIALOGUE
        assert not player.is_typing
        assert player.advance()
        sched.flush()
        assert player.state.scene_index == 1


class TestChoices:
    def test_branching_scenario(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        finish_line(player)
        player.advance()
        finish_line(player)
        assert player.advance()
        assert player.state.is_transitioning
        sched.flush()
        st = player.state
        assert (st.scene_index, st.dialogue_index) == (1, 0)
        finish_line(player)
        # choices pending: advance does nothing, however often it is called
        for _ in range(5):
            assert not player.advance()
        assert player.state.scene_index == 1
        assert player.frame().show_choices
        assert player.choose("back")
        sched.flush()
        st = player.state
        assert (st.scene_index, st.dialogue_index) == (0, 0)
        assert not st.is_transitioning
        assert ("choice.select" in names(seen))

    def test_choice_can_loop_to_own_scene(self, branching_novel):
        player, sched, seen = make_player(branching_novel, interval_ms=0)
        player.start()
        player.advance()
        player.advance()
        sched.flush()
        assert player.choose("stay")
        sched.flush()
        assert player.state.scene_index == 1
        assert names(seen).count("scene.enter") == 3

    def test_dangling_target_leaves_state_unchanged(self, branching_doc):
        branching_doc["scenes"][1]["dialogues"][0]["choices"][0]["targetSceneId"] = "nowhere"
        player, sched, seen = make_player(novel_from_dict(branching_doc), interval_ms=0)
        player.start()
        player.advance()
        player.advance()
        sched.flush()
        before = player.state
        count = len(seen)
        assert not player.choose("back")
        assert player.state == before
        assert len(seen) == count

    def test_choose_without_pending_choices(self, branching_novel):
        player, _, _ = make_player(branching_novel)
        player.start()
        assert not player.choose("back")

    def test_unknown_choice_id(self, branching_novel):
        player, sched, _ = make_player(branching_novel, interval_ms=0)
        player.start()
        player.advance()
        player.advance()
        sched.flush()
        assert not player.choose("fly")

    def test_choice_into_empty_scene_leaves_nothing_to_skip(self):
        novel = novel_from_dict({"scenes": [
            {"id": "a", "dialogues": [{"text": "Pick one", "choices": [{"id": "c", "text": "Go", "targetSceneId": "b"}]}]},
            {"id": "b"},
        ]})
        player, sched, seen = make_player(novel)
        player.start()
        sched.update(30)
        assert player.is_typing
        assert player.choose("c")
        sched.flush()
        assert player.state.scene_index == 1
        assert not player.is_typing
        assert not player.skip_typing()
        assert [d for n, d in seen if n == "typing.complete"] == []

    def test_choose_while_typing_is_accepted(self, branching_novel):
        player, sched, _ = make_player(branching_novel)
        player.start()
        for _ in range(4):
            finish_line(player)
            player.advance()
        sched.flush()
        assert player.state.scene_index == 1
        player.start_typing()
        assert player.is_typing
        assert player.choose("back")
        assert not player.is_typing
        sched.flush()
        assert player.state.scene_index == 0


class TestRestartAndClose:
    def test_restart_only_from_finished(self, linear_novel):
        player, sched, seen = make_player(linear_novel, interval_ms=0)
        player.start()
        assert not player.restart()
        while not player.state.is_finished:
            player.advance()
            sched.flush()
        assert player.restart()
        st = player.state
        assert (st.scene_index, st.dialogue_index, st.is_finished) == (0, 0, False)
        assert "playback.restart" in names(seen)

    def test_close_cancels_pending_timers(self, branching_novel):
        player, sched, seen = make_player(branching_novel)
        player.start()
        sched.flush()
        player.advance()
        sched.flush()
        player.advance()
        assert player.state.is_transitioning
        assert player.close()
        count = len(seen)
        sched.update(10_000)
        assert len(seen) == count
        assert player.state.scene_index == 0
        assert not player.advance()
        assert not player.close()

    def test_state_snapshot_cannot_mutate_player(self, branching_novel):
        player, _, _ = make_player(branching_novel)
        player.start()
        snap = player.state
        snap.scene_index = 1
        assert player.state.scene_index == 0
