# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skill Matcher - Deterministic category/language resolution.

Responsible for:
- Selecting one skill per requested category from a registry snapshot
- Filtering by language affinity (language-agnostic skills always pass)
- Ranking by keyword hits in the description, ties broken by name
- Reporting empty category slots instead of omitting them

Scoring:
    base 100, +10 for every request keyword found (case-insensitive) as a
    substring of the skill description.

The matcher does no I/O and keeps no state, so resolve() is reproducible
for a given snapshot and request.
"""

import logging
import re
from typing import List, Optional, Tuple

from skilldex.core.skills.descriptors import (
    ANY_CATEGORY,
    MatchRequest,
    MatchResult,
    MatchSlot,
    NoMatchForCategory,
    RegistrySnapshot,
    SkillDescriptor,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 100
KEYWORD_BONUS = 10

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#.\-]*")

_STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "for",
    "from", "how", "i", "in", "into", "is", "it", "me", "my", "of", "on",
    "or", "our", "please", "should", "that", "the", "this", "to", "up",
    "use", "using", "we", "with", "write", "you", "your", "some", "add",
    "help", "make", "need", "want", "new", "all",
})

# File extension -> language tag
_EXTENSION_LANGUAGES = {
    "py": "python",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "go": "go",
    "rs": "rust",
    "rb": "ruby",
    "java": "java",
    "kt": "kotlin",
    "kts": "kotlin",
    "cs": "csharp",
    "php": "php",
    "swift": "swift",
    "scala": "scala",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "hpp": "cpp",
}


def extract_keywords(text: Optional[str], min_length: int = 3) -> List[str]:
    """
    Extract keyword tokens from a free-text task description.

    Lowercases, drops stop words and short tokens, keeps first-seen order.
    """
    if not text:
        return []

    keywords = []
    seen = set()
    for token in _TOKEN_RE.findall(text.lower()):
        token = token.strip(".-")
        if len(token) < min_length or token in _STOP_WORDS or token in seen:
            continue
        seen.add(token)
        keywords.append(token)
    return keywords


def language_from_path(file_path: Optional[str]) -> Optional[str]:
    """Infer a language tag from a file extension."""
    if not file_path or "." not in file_path:
        return None
    ext = file_path.rsplit(".", 1)[-1].lower()
    return _EXTENSION_LANGUAGES.get(ext)


class SkillMatcher:
    """
    Match a request against a registry snapshot.

    Example usage:
        matcher = SkillMatcher()
        result = matcher.resolve(snapshot, MatchRequest.create(
            language="python",
            categories=["test-framework", "mocking"],
            keywords=["pytest"],
        ))

        for slot in result:
            print(slot.category, slot.skill.name if slot.skill else "<gap>")
    """

    def resolve(self, snapshot: RegistrySnapshot, request: MatchRequest) -> MatchResult:
        """
        Resolve a request to one slot per requested category.

        An empty category list resolves a single implicit "any" slot over
        every registered skill.
        """
        categories = request.categories or (ANY_CATEGORY,)
        slots = tuple(self._resolve_category(snapshot, request, c) for c in categories)
        return MatchResult(slots=slots, generation=snapshot.generation)

    def _resolve_category(
        self,
        snapshot: RegistrySnapshot,
        request: MatchRequest,
        category: str
    ) -> MatchSlot:
        ranked = self.rank(snapshot, request, category)
        if not ranked:
            note = NoMatchForCategory(category=category, language=request.language)
            logger.debug(note.message)
            return MatchSlot(category=category, note=note)

        skill, score = ranked[0]
        # The implicit "any" slot reports one of the skill's own categories
        matched = min(skill.categories) if category == ANY_CATEGORY else category
        return MatchSlot(
            category=category,
            skill=skill,
            score=score,
            matched_category=matched,
        )

    def rank(
        self,
        snapshot: RegistrySnapshot,
        request: MatchRequest,
        category: str
    ) -> List[Tuple[SkillDescriptor, int]]:
        """All candidates for a category, best first (score desc, name asc)."""
        if category == ANY_CATEGORY:
            names = [skill.name for skill in snapshot.skills]
        else:
            names = snapshot.by_category.get(category, ())

        scored = []
        for name in names:
            skill = snapshot.by_name[name]
            if not skill.supports_language(request.language):
                continue
            scored.append((skill, self.score(skill, request.keywords)))

        scored.sort(key=lambda pair: (-pair[1], pair[0].name))
        return scored

    @staticmethod
    def score(skill: SkillDescriptor, keywords) -> int:
        description = skill.description.lower()
        hits = sum(1 for kw in keywords if kw and kw.lower() in description)
        return BASE_SCORE + KEYWORD_BONUS * hits
