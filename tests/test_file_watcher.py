# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Tests for the debounced skill tree watcher."""
import threading
import time

import pytest

from skilldex.core.exceptions import RootUnreadableError
from skilldex.services.triggers.file_watcher import SkillTreeWatcher


class CallCounter:
    def __init__(self):
        self.count = 0
        self.fired = threading.Event()

    def __call__(self):
        self.count += 1
        self.fired.set()


@pytest.fixture
def watcher():
    w = SkillTreeWatcher(debounce_seconds=0.1, use_polling=True, polling_interval=0.1)
    yield w
    w.stop()


class TestShouldTrigger:
    def test_watched_event_types(self):
        w = SkillTreeWatcher()
        for event_type in ("created", "modified", "deleted", "moved"):
            assert w.should_trigger(event_type, "/tree/skills/a/SKILL.md")

    def test_ignores_other_event_types(self):
        w = SkillTreeWatcher()
        assert not w.should_trigger("opened", "/tree/skills/a/SKILL.md")
        assert not w.should_trigger("closed", "/tree/skills/a/SKILL.md")

    def test_ignores_editor_temp_files(self):
        w = SkillTreeWatcher()
        assert not w.should_trigger("modified", "/tree/skills/a/.SKILL.md.swp")
        assert not w.should_trigger("created", "/tree/skills/a/SKILL.md~")


class TestDebounce:
    def test_burst_collapses_to_one_call(self, watcher, tmp_path):
        counter = CallCounter()
        watcher.start(str(tmp_path), counter)

        for _ in range(10):
            watcher.notify("modified", str(tmp_path / "skills" / "a" / "SKILL.md"))

        assert counter.fired.wait(timeout=5)
        time.sleep(0.3)
        assert counter.count == 1
        assert watcher.get_stats()["changes_fired"] == 1

    def test_separate_bursts_fire_separately(self, watcher, tmp_path):
        counter = CallCounter()
        watcher.start(str(tmp_path), counter)

        watcher.notify("created", str(tmp_path / "a"))
        assert counter.fired.wait(timeout=5)
        counter.fired.clear()

        watcher.notify("deleted", str(tmp_path / "a"))
        assert counter.fired.wait(timeout=5)
        assert counter.count == 2

    def test_events_ignored_when_not_running(self, watcher, tmp_path):
        counter = CallCounter()
        watcher.notify("modified", str(tmp_path / "x"))
        time.sleep(0.2)
        assert counter.count == 0

    def test_callback_errors_do_not_kill_watcher(self, watcher, tmp_path):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            done.set()

        watcher.start(str(tmp_path), flaky)
        watcher.notify("modified", str(tmp_path / "x"))
        time.sleep(0.4)
        watcher.notify("modified", str(tmp_path / "x"))

        assert done.wait(timeout=5)
        assert watcher.is_running

    def test_stop_cancels_pending_reload(self, watcher, tmp_path):
        counter = CallCounter()
        watcher.start(str(tmp_path), counter)

        watcher.notify("modified", str(tmp_path / "x"))
        watcher.stop()

        time.sleep(0.3)
        assert counter.count == 0


class TestLifecycle:
    def test_stop_before_start_is_safe(self):
        SkillTreeWatcher().stop()

    def test_stop_is_idempotent(self, watcher, tmp_path):
        watcher.start(str(tmp_path), CallCounter())
        watcher.stop()
        watcher.stop()
        assert not watcher.is_running

    def test_start_twice_keeps_first(self, watcher, tmp_path):
        watcher.start(str(tmp_path), CallCounter())
        watcher.start(str(tmp_path), CallCounter())
        assert watcher.is_running

    def test_restart_after_stop(self, watcher, tmp_path):
        watcher.start(str(tmp_path), CallCounter())
        watcher.stop()
        watcher.start(str(tmp_path), CallCounter())
        assert watcher.is_running

    def test_missing_root_rejected(self, watcher, tmp_path):
        with pytest.raises(RootUnreadableError):
            watcher.start(str(tmp_path / "missing"), CallCounter())
        assert not watcher.is_running

    def test_filesystem_change_triggers_callback(self, watcher, tmp_path):
        counter = CallCounter()
        watcher.start(str(tmp_path), counter)

        (tmp_path / "skills").mkdir()
        (tmp_path / "skills" / "note.md").write_text("hello", encoding="utf-8")

        assert counter.fired.wait(timeout=10)
