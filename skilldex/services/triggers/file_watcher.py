# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skill Tree Watcher

Monitors a skill root for file changes and triggers registry reloads.
Uses the watchdog library for cross-platform file system monitoring.

Features:
- Recursive watch of agents/ and skills/ under the root
- Quiet-period debouncing (a burst of editor events -> one reload)
- Ignores editor swap/backup files
- Idempotent stop, safe before start
"""

import logging
import os
import threading
from fnmatch import fnmatch
from typing import Any, Callable, Dict, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from skilldex.core.exceptions import RootUnreadableError

logger = logging.getLogger(__name__)

WATCHED_EVENTS = frozenset({"created", "modified", "deleted", "moved"})
IGNORED_PATTERNS = [".*.swp", ".*.swx", "*~", ".#*", "4913", "*.tmp"]


class TreeChangeHandler(FileSystemEventHandler):
    """Forwards relevant watchdog events to the watcher's debouncer."""

    def __init__(self, watcher: "SkillTreeWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent):
        path = getattr(event, "dest_path", None) or event.src_path
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        self.watcher.notify(event.event_type, path)


class SkillTreeWatcher:
    """
    Watches a directory tree and calls on_change once per burst of events.

    The debounce is a restartable threading.Timer: every relevant event
    resets the quiet period, and the callback runs on the timer thread
    when no event has arrived for debounce_seconds.
    """

    def __init__(
        self,
        debounce_seconds: float = 0.5,
        use_polling: bool = False,
        polling_interval: float = 1.0,
        ignored_patterns: Optional[List[str]] = None
    ):
        self.debounce_seconds = debounce_seconds
        self.use_polling = use_polling
        self.polling_interval = polling_interval
        self.ignored_patterns = ignored_patterns if ignored_patterns is not None else IGNORED_PATTERNS

        self._observer: Optional[Any] = None
        self._timer: Optional[threading.Timer] = None
        self._on_change: Optional[Callable[[], None]] = None
        self._root_path: Optional[str] = None
        self._is_running = False
        self._lock = threading.Lock()

        self._events_seen = 0
        self._changes_fired = 0

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self, root_path: str, on_change: Callable[[], None]):
        """Start watching root_path recursively."""
        with self._lock:
            if self._is_running:
                logger.warning(f"Skill tree watcher already running on {self._root_path}")
                return

            if not os.path.isdir(root_path):
                raise RootUnreadableError(str(root_path), "cannot watch a missing directory")

            observer = PollingObserver(timeout=self.polling_interval) if self.use_polling else Observer()
            observer.schedule(TreeChangeHandler(self), str(root_path), recursive=True)
            observer.start()

            self._observer = observer
            self._on_change = on_change
            self._root_path = str(root_path)
            self._is_running = True

        logger.info(
            f"Started skill tree watcher: path={root_path}, "
            f"debounce={self.debounce_seconds}s, polling={self.use_polling}"
        )

    def stop(self):
        """Stop watching. Safe to call repeatedly or before start()."""
        with self._lock:
            if not self._is_running:
                return
            self._is_running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer = self._observer
            self._observer = None
            self._on_change = None

        try:
            observer.stop()
            observer.join(timeout=5)
        except Exception as e:
            logger.error(f"Error stopping skill tree watcher: {e}")

        logger.info("Skill tree watcher stopped")

    def should_trigger(self, event_type: str, file_path: str) -> bool:
        """Determine if this event should schedule a reload."""
        if event_type not in WATCHED_EVENTS:
            return False
        file_name = os.path.basename(file_path)
        return not any(fnmatch(file_name, pattern) for pattern in self.ignored_patterns)

    def notify(self, event_type: str, file_path: str):
        """Record a filesystem event and restart the quiet-period timer."""
        if not self.should_trigger(event_type, file_path):
            return

        with self._lock:
            if not self._is_running:
                return
            self._events_seen += 1
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

        logger.debug(f"Skill tree event: {event_type} {file_path}")

    def _fire(self):
        with self._lock:
            if self._timer is not threading.current_thread():
                # Superseded by a later event
                return
            self._timer = None
            callback = self._on_change
            if not self._is_running or callback is None:
                return
            self._changes_fired += 1

        try:
            callback()
        except Exception as e:
            logger.error(f"Skill tree change handler failed: {e}", exc_info=True)

    def get_stats(self) -> Dict[str, Any]:
        """Get watcher statistics."""
        return {
            "is_running": self._is_running,
            "root_path": self._root_path,
            "debounce_seconds": self.debounce_seconds,
            "use_polling": self.use_polling,
            "events_seen": self._events_seen,
            "changes_fired": self._changes_fired,
        }
