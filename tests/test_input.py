from __future__ import annotations

import logging

from novelvn.engine.config_io import PlayerConfig
from novelvn.engine.input_handler import InputAdapter
from novelvn.engine.presentation import FrameStatus
from novelvn.engine.session import PlaybackSession


def make(novel, backend=None, interval_ms=30):
    session = PlaybackSession(novel, audio_backend=backend, config=PlayerConfig(typing_interval_ms=interval_ms))
    return session, InputAdapter(session)


def to_choices(session: PlaybackSession, adapter: InputAdapter) -> None:
    for _ in range(10):
        frame = session.frame()
        if frame.show_choices:
            return
        adapter.on_click()
        session.scheduler.flush()
    raise AssertionError("never reached the choice menu")


class TestKeys:
    def test_space_and_return_advance(self, branching_novel):
        session, adapter = make(branching_novel)
        assert adapter.on_key("space")
        assert session.frame().fully_revealed
        assert adapter.on_key("return")
        assert session.frame().dialogue_index == 1
        assert adapter.on_key("Enter")

    def test_keyboard_suppressed_while_choices_pending(self, branching_novel):
        session, adapter = make(branching_novel)
        to_choices(session, adapter)
        before = session.player.state
        assert not adapter.on_key("space")
        assert not adapter.on_key("return")
        assert session.player.state == before

    def test_keyboard_skips_typing_on_choice_line(self, branching_novel):
        session, adapter = make(branching_novel)
        to_choices(session, adapter)
        session.player.start_typing()
        assert adapter.on_key("space")
        assert session.frame().show_choices

    def test_click_picks_choice(self, branching_novel):
        session, adapter = make(branching_novel)
        to_choices(session, adapter)
        assert adapter.on_choice("back")
        adapter.update(session.scheduler.now_ms + 1000)
        assert session.frame().scene_index == 0

    def test_m_toggles_mute(self, branching_novel, backend):
        session, adapter = make(branching_novel, backend)
        adapter.on_key("m")
        assert session.frame().muted
        assert all(c.muted for c in backend.clips)
        adapter.on_key("m")
        assert not session.frame().muted

    def test_r_restarts_only_when_finished(self, linear_novel):
        session, adapter = make(linear_novel, interval_ms=0)
        assert not adapter.on_key("r")
        while not session.frame().finished:
            adapter.on_key("space")
            session.scheduler.flush()
        assert adapter.on_key("r")
        assert session.frame().status == FrameStatus.READY
        assert session.frame().scene_index == 0

    def test_escape_closes(self, branching_novel, backend):
        session, adapter = make(branching_novel, backend)
        assert adapter.on_key("escape")
        assert session.closed
        assert adapter.closed
        assert backend.live("voice") == [] and backend.live("music") == []

    def test_unknown_key_ignored(self, branching_novel):
        _, adapter = make(branching_novel)
        assert not adapter.on_key("q")
        assert not adapter.on_key("")


class TestSessionLifecycle:
    def test_update_drives_typewriter(self, branching_novel):
        session, adapter = make(branching_novel)
        assert adapter.update(90) == 3
        assert session.frame().visible_text == "Hel"

    def test_nothing_fires_after_close(self, branching_novel, backend):
        session, adapter = make(branching_novel, backend)
        adapter.on_click()
        adapter.on_click()
        adapter.on_click()
        adapter.on_click()
        assert session.player.state.is_transitioning
        adapter.close()
        clips_before = len(backend.clips)
        assert adapter.update(100_000) == 0
        assert session.scheduler.pending_count() == 0
        assert len(backend.clips) == clips_before
        assert not adapter.on_click()
        assert not adapter.on_choice("back")
        assert not adapter.on_key("space")
        assert backend.closed

    def test_close_is_idempotent(self, branching_novel):
        session, _ = make(branching_novel)
        session.close()
        session.close()
        assert session.closed
        assert not session.advance()
        assert not session.restart()

    def test_session_without_autostart(self, branching_novel):
        session = PlaybackSession(branching_novel, autostart=False)
        assert not session.player.started
        assert session.start()
        assert session.frame().text == "Hello"

    def test_close_logs_event_count(self, branching_novel, caplog):
        session, _ = make(branching_novel)
        with caplog.at_level(logging.DEBUG, logger="novelvn.engine.session"):
            session.close()
        # scene.enter, dialogue.enter, session.close
        assert "'Two Rooms' closed after 3 events" in caplog.text
        assert session.events.get_stats()["total_emits"] == 0
