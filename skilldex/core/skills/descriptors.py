# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skill Descriptors - Typed, immutable views of parsed agent and skill files.

Everything in this module is a frozen dataclass holding tuples, frozensets or
read-only mappings. Snapshots are copy-on-build: once the registry publishes
them they are shared between threads without locking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from skilldex.core.exceptions import DescriptorError

ANY_CATEGORY = "*"
ANY_LANGUAGE = "*"


@dataclass(frozen=True)
class SkillDescriptor:
    """A validated skill parsed from <root>/skills/<name>/SKILL.md."""
    name: str
    description: str
    categories: FrozenSet[str]
    languages: FrozenSet[str]
    resource_refs: Tuple[str, ...]
    body: str
    source_path: str
    last_modified: datetime
    version: str = "1.0.0"
    author: Optional[str] = None

    @property
    def is_language_agnostic(self) -> bool:
        return not self.languages

    def supports_language(self, language: Optional[str]) -> bool:
        """Language-agnostic skills support every language."""
        if language is None or not self.languages:
            return True
        return language in self.languages

    def to_header(self) -> Dict[str, Any]:
        """Header fields in the shape written to SKILL.md frontmatter."""
        header: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "categories": sorted(self.categories),
            "languages": sorted(self.languages),
        }
        if self.resource_refs:
            header["resources"] = list(self.resource_refs)
        if self.version != "1.0.0":
            header["version"] = self.version
        if self.author:
            header["author"] = self.author
        return header


@dataclass(frozen=True)
class AgentDescriptor:
    """An orchestration role parsed from <root>/agents/<name>.agent.md. Never matched."""
    name: str
    description: str
    declared_categories: FrozenSet[str]
    body: str
    source_path: str
    last_modified: datetime

    def to_header(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "categories": sorted(self.declared_categories),
        }


Descriptor = Union[SkillDescriptor, AgentDescriptor]


@dataclass(frozen=True)
class ScanError:
    """A file that failed to parse or validate during a scan."""
    path: str
    error: DescriptorError

    @property
    def error_type(self) -> str:
        return self.error.__class__.__name__


@dataclass(frozen=True)
class DuplicateNameWarning:
    """A descriptor dropped because an earlier one (scan order) already used its name."""
    name: str
    kept_path: str
    duplicate_path: str
    kind: str = "skill"


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Immutable, fully built view of the registry at one point in time.

    by_category and by_language map a tag to skill names in scan order.
    Language-agnostic skills are listed under ANY_LANGUAGE.
    """
    skills: Tuple[SkillDescriptor, ...] = ()
    agents: Tuple[AgentDescriptor, ...] = ()
    by_name: Mapping[str, SkillDescriptor] = field(default_factory=_empty_mapping)
    agents_by_name: Mapping[str, AgentDescriptor] = field(default_factory=_empty_mapping)
    by_category: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_mapping)
    by_language: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_mapping)
    generation: int = 0
    warnings: Tuple[DuplicateNameWarning, ...] = ()
    errors: Tuple[ScanError, ...] = ()
    built_at: Optional[datetime] = None

    @property
    def skill_count(self) -> int:
        return len(self.skills)

    @property
    def agent_count(self) -> int:
        return len(self.agents)


@dataclass(frozen=True)
class MatchRequest:
    """
    A resolution request.

    categories: required categories, one result slot each. Empty means "any".
    keywords: tie-breaking signal only, never a filter.
    """
    language: Optional[str] = None
    categories: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()

    def __post_init__(self):
        # Lowercase tags and de-duplicate keywords however the request was built
        language = (self.language or "").strip().lower() or None

        categories = tuple(
            c.strip().lower() for c in (self.categories or ()) if c and c.strip()
        )

        seen = set()
        keywords = []
        for keyword in self.keywords or ():
            kw = (keyword or "").strip().lower()
            if kw and kw not in seen:
                seen.add(kw)
                keywords.append(kw)

        object.__setattr__(self, "language", language)
        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "keywords", tuple(keywords))

    @classmethod
    def create(
        cls,
        language: Optional[str] = None,
        categories=None,
        keywords=None
    ) -> "MatchRequest":
        """Build a request from loose inputs (any iterables, None for empty)."""
        return cls(
            language=language,
            categories=tuple(categories or ()),
            keywords=tuple(keywords or ()),
        )


@dataclass(frozen=True)
class NoMatchForCategory:
    """No skill survived filtering for a requested category."""
    category: str
    language: Optional[str] = None

    @property
    def message(self) -> str:
        if self.language:
            return f"No skill for category '{self.category}' supports language '{self.language}'"
        return f"No skill registered for category '{self.category}'"


@dataclass(frozen=True)
class MatchSlot:
    """One result entry per requested category. skill is None for a gap."""
    category: str
    skill: Optional[SkillDescriptor] = None
    score: Optional[int] = None
    matched_category: Optional[str] = None
    note: Optional[NoMatchForCategory] = None

    @property
    def is_empty(self) -> bool:
        return self.skill is None


@dataclass(frozen=True)
class MatchResult:
    """Ordered slots plus the generation of the snapshot that served them."""
    slots: Tuple[MatchSlot, ...]
    generation: int = 0

    @property
    def matched(self) -> Tuple[SkillDescriptor, ...]:
        return tuple(slot.skill for slot in self.slots if slot.skill is not None)

    @property
    def gaps(self) -> Tuple[str, ...]:
        return tuple(slot.category for slot in self.slots if slot.skill is None)

    @property
    def notes(self) -> Tuple[NoMatchForCategory, ...]:
        return tuple(slot.note for slot in self.slots if slot.note is not None)

    def __iter__(self):
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)
