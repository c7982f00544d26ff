# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skills System - Discovery, validation and matching of skill descriptors.

This package provides:
- parse_descriptor: Parse and validate SKILL.md / *.agent.md files
- TreeScanner: Walk agents/ and skills/ under a root
- SkillRegistry: Immutable snapshots with atomic replacement
- SkillMatcher: Deterministic category/language resolution
- SkillEngine: Query facade with hot reload
"""

from skilldex.core.skills.descriptors import (
    AgentDescriptor,
    DuplicateNameWarning,
    MatchRequest,
    MatchResult,
    MatchSlot,
    NoMatchForCategory,
    RegistrySnapshot,
    ScanError,
    SkillDescriptor,
)
from skilldex.core.skills.loader import parse_descriptor, render_descriptor
from skilldex.core.skills.scanner import TreeScanner, ScanResult
from skilldex.core.skills.registry import SkillRegistry
from skilldex.core.skills.matcher import SkillMatcher, extract_keywords, language_from_path
from skilldex.core.skills.engine import SkillEngine, get_skill_engine, reset_skill_engine

__all__ = [
    "AgentDescriptor",
    "DuplicateNameWarning",
    "MatchRequest",
    "MatchResult",
    "MatchSlot",
    "NoMatchForCategory",
    "RegistrySnapshot",
    "ScanError",
    "SkillDescriptor",
    "parse_descriptor",
    "render_descriptor",
    "TreeScanner",
    "ScanResult",
    "SkillRegistry",
    "SkillMatcher",
    "extract_keywords",
    "language_from_path",
    "SkillEngine",
    "get_skill_engine",
    "reset_skill_engine",
]
