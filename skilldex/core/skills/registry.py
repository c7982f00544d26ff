# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skill Registry - Immutable in-memory snapshots of validated descriptors.

Responsible for:
- Building indexed snapshots (by name, by category, by language)
- Detecting duplicate names (first in scan order wins)
- Publishing new snapshots atomically

Readers call current() without taking a lock: the published snapshot is a
single attribute that is swapped in one assignment, and snapshots are never
mutated after build, so a reader holds either the old or the new view in full.
"""

import dataclasses
import logging
import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Sequence

from skilldex.core.skills.descriptors import (
    ANY_LANGUAGE,
    AgentDescriptor,
    Descriptor,
    DuplicateNameWarning,
    RegistrySnapshot,
    ScanError,
    SkillDescriptor,
)

logger = logging.getLogger(__name__)


def _freeze_index(index: Dict[str, List[str]]) -> MappingProxyType:
    return MappingProxyType({key: tuple(names) for key, names in sorted(index.items())})


class SkillRegistry:
    """
    Holds the currently published RegistrySnapshot.

    Usage:
        registry = SkillRegistry()
        snapshot = registry.build(scan_result.descriptors, scan_result.errors)
        registry.replace(snapshot)

        skill = registry.current().by_name.get("pytest-fixtures")
    """

    def __init__(self, initial: Optional[RegistrySnapshot] = None):
        self._snapshot: RegistrySnapshot = initial or RegistrySnapshot(
            built_at=datetime.now(timezone.utc)
        )
        self._write_lock = threading.Lock()

    def build(
        self,
        descriptors: Iterable[Descriptor],
        errors: Sequence[ScanError] = ()
    ) -> RegistrySnapshot:
        """
        Build a snapshot from descriptors in scan order.

        Duplicate names keep the first occurrence and record a
        DuplicateNameWarning for each later one. Skills and agents have
        separate namespaces.

        Returns:
            Unpublished snapshot (generation is assigned by replace())
        """
        skills: List[SkillDescriptor] = []
        agents: List[AgentDescriptor] = []
        by_name: Dict[str, SkillDescriptor] = {}
        agents_by_name: Dict[str, AgentDescriptor] = {}
        by_category: Dict[str, List[str]] = {}
        by_language: Dict[str, List[str]] = {}
        warnings: List[DuplicateNameWarning] = []

        for descriptor in descriptors:
            if isinstance(descriptor, AgentDescriptor):
                kept_agent = agents_by_name.get(descriptor.name)
                if kept_agent is not None:
                    warnings.append(self._duplicate(kept_agent, descriptor, "agent"))
                    continue
                agents_by_name[descriptor.name] = descriptor
                agents.append(descriptor)
                continue

            kept = by_name.get(descriptor.name)
            if kept is not None:
                warnings.append(self._duplicate(kept, descriptor, "skill"))
                continue

            by_name[descriptor.name] = descriptor
            skills.append(descriptor)

            for category in sorted(descriptor.categories):
                by_category.setdefault(category, []).append(descriptor.name)

            languages = sorted(descriptor.languages) or [ANY_LANGUAGE]
            for language in languages:
                by_language.setdefault(language, []).append(descriptor.name)

        return RegistrySnapshot(
            skills=tuple(skills),
            agents=tuple(agents),
            by_name=MappingProxyType(by_name),
            agents_by_name=MappingProxyType(agents_by_name),
            by_category=_freeze_index(by_category),
            by_language=_freeze_index(by_language),
            generation=self._snapshot.generation,
            warnings=tuple(warnings),
            errors=tuple(errors),
            built_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _duplicate(kept: Descriptor, duplicate: Descriptor, kind: str) -> DuplicateNameWarning:
        logger.warning(
            f"Duplicate {kind} name '{duplicate.name}' in {duplicate.source_path}; "
            f"keeping {kept.source_path}"
        )
        return DuplicateNameWarning(
            name=duplicate.name,
            kept_path=kept.source_path,
            duplicate_path=duplicate.source_path,
            kind=kind,
        )

    def current(self) -> RegistrySnapshot:
        """Currently published snapshot. Never blocks."""
        return self._snapshot

    def replace(self, snapshot: RegistrySnapshot) -> RegistrySnapshot:
        """
        Publish a snapshot, assigning the next generation number.

        Writers are serialized; the swap itself is one reference assignment.

        Returns:
            The published snapshot
        """
        with self._write_lock:
            published = dataclasses.replace(snapshot, generation=self._snapshot.generation + 1)
            self._snapshot = published

        logger.info(
            f"Published skill registry generation {published.generation} "
            f"({published.skill_count} skills, {published.agent_count} agents, "
            f"{len(published.errors)} errors, {len(published.warnings)} warnings)"
        )
        return published

    @property
    def generation(self) -> int:
        return self._snapshot.generation
