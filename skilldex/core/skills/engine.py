# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skill Engine - Query facade and reload lifecycle.

Wires the scanner, registry, matcher and tree watcher together:

    scan -> parse -> registry.build -> registry.replace   (startup, every change)
    query -> registry.current() -> matcher.resolve        (any thread, never blocks)

Usage:
    engine = SkillEngine("/path/to/tree")
    engine.initialize()
    engine.start_watching()

    result = engine.resolve("python", ["test-framework", "mocking"], ["pytest"])
"""

import logging
import threading
from typing import List, Optional, Sequence

from skilldex.config import Settings, settings as default_settings
from skilldex.core.exceptions import (
    EngineInitializationError,
    ResourceNotFoundError,
    RootUnreadableError,
)
from skilldex.core.skills.descriptors import (
    AgentDescriptor,
    MatchRequest,
    MatchResult,
    RegistrySnapshot,
    SkillDescriptor,
)
from skilldex.core.skills.matcher import SkillMatcher
from skilldex.core.skills.registry import SkillRegistry
from skilldex.core.skills.scanner import TreeScanner
from skilldex.services.triggers.file_watcher import SkillTreeWatcher

logger = logging.getLogger(__name__)


class SkillEngine:
    """
    Single entry point for orchestrating callers.

    Queries capture the published snapshot once at entry, so a concurrent
    reload never changes the data a query is working on.
    """

    _instance: Optional["SkillEngine"] = None

    def __init__(
        self,
        root_path: Optional[str] = None,
        settings: Optional[Settings] = None,
        registry: Optional[SkillRegistry] = None,
        matcher: Optional[SkillMatcher] = None,
        scanner: Optional[TreeScanner] = None,
        watcher: Optional[SkillTreeWatcher] = None
    ):
        self.settings = settings or default_settings
        self.root_path = root_path or self.settings.skills_root
        self.registry = registry or SkillRegistry()
        self.matcher = matcher or SkillMatcher()
        self.scanner = scanner or TreeScanner(
            max_workers=self.settings.scan_workers,
            max_file_bytes=self.settings.max_descriptor_bytes,
        )
        self.watcher = watcher or SkillTreeWatcher(
            debounce_seconds=self.settings.debounce_seconds,
            use_polling=self.settings.watch_use_polling,
            polling_interval=self.settings.polling_interval,
        )
        self._reload_lock = threading.Lock()
        self._initialized = False
        self._last_reload_error: Optional[str] = None

    @classmethod
    def get_instance(cls) -> "SkillEngine":
        """Get singleton engine instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset singleton (useful for testing)."""
        if cls._instance is not None:
            cls._instance.close()
        cls._instance = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> RegistrySnapshot:
        """
        Build and publish the first snapshot.

        Raises:
            EngineInitializationError: the root cannot be read, so no
                snapshot can be produced at all
        """
        if self._initialized:
            return self.registry.current()

        logger.info(f"Initializing skill engine from {self.root_path}")
        try:
            snapshot = self.reload()
        except RootUnreadableError as e:
            logger.error(f"Cannot start skill engine: {e.message}")
            raise EngineInitializationError(e.message, detail=e.detail) from e

        self._initialized = True
        return snapshot

    def reload(self) -> RegistrySnapshot:
        """
        Rescan the tree and publish a new snapshot.

        Reloads are serialized with each other but never block queries.

        Raises:
            RootUnreadableError: the root became unreadable; the previous
                snapshot stays published
        """
        with self._reload_lock:
            result = self.scanner.scan(self.root_path)
            snapshot = self.registry.build(result.descriptors, result.errors)
            published = self.registry.replace(snapshot)

        if published.skill_count == 0:
            logger.warning(
                f"Skill registry generation {published.generation} has no valid skills "
                f"({len(published.errors)} files rejected)"
            )
        self._last_reload_error = None
        return published

    def _on_tree_changed(self):
        """Watcher callback: reload, keeping the last good snapshot on failure."""
        try:
            self.reload()
        except Exception as e:
            self._last_reload_error = str(e)
            logger.error(
                f"Skill reload failed; still serving generation {self.registry.generation}: {e}",
                exc_info=True
            )

    def start_watching(self):
        """Start hot reload on filesystem changes."""
        self.watcher.start(self.root_path, self._on_tree_changed)

    def stop_watching(self):
        self.watcher.stop()

    def close(self):
        self.stop_watching()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self.registry.current()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def last_reload_error(self) -> Optional[str]:
        return self._last_reload_error

    def query(self, request: MatchRequest) -> MatchResult:
        """Resolve a request against one consistent snapshot."""
        snapshot = self.registry.current()
        return self.matcher.resolve(snapshot, request)

    def resolve(
        self,
        language: Optional[str],
        categories: Sequence[str],
        keywords: Sequence[str] = ()
    ) -> MatchResult:
        """resolve(language, categories, keywords) -> MatchResult"""
        return self.query(MatchRequest.create(language, categories, keywords))

    def get_skill(self, name: str) -> SkillDescriptor:
        skill = self.registry.current().by_name.get(name)
        if skill is None:
            raise ResourceNotFoundError("Skill", name)
        return skill

    def get_agent(self, name: str) -> AgentDescriptor:
        agent = self.registry.current().agents_by_name.get(name)
        if agent is None:
            raise ResourceNotFoundError("Agent", name)
        return agent

    def list_skills(
        self,
        category: Optional[str] = None,
        language: Optional[str] = None
    ) -> List[SkillDescriptor]:
        """List skills in scan order, optionally filtered by category and language."""
        snapshot = self.registry.current()
        skills = snapshot.skills
        if category:
            names = set(snapshot.by_category.get(category.strip().lower(), ()))
            skills = tuple(s for s in skills if s.name in names)
        if language:
            lang = language.strip().lower()
            skills = tuple(s for s in skills if s.supports_language(lang))
        return list(skills)


def get_skill_engine() -> SkillEngine:
    """Get the global skill engine instance."""
    return SkillEngine.get_instance()


def reset_skill_engine():
    SkillEngine.reset_instance()
