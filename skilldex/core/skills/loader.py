# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Descriptor Loader - Parses SKILL.md / *.agent.md files and validates structure.

Responsible for:
- Splitting YAML frontmatter from the markdown body
- Validating required fields and the name pattern
- Normalizing categories, languages and resource references
- Creating SkillDescriptor / AgentDescriptor instances

Parsing is a pure function: errors are returned, never raised.

SKILL.md Format:
```markdown
---
name: pytest-fixtures
description: "Structure pytest fixtures and conftest.py for a suite"
categories: [test-framework, test-data]
languages: [python]
resources:
  - resources/conftest-template.py
version: 1.2.0
---

Body content handed to the agent verbatim.
```

Agent files use the same header with `categories` listing the skill
categories the agent expects to consume; `languages` is not read.
"""

import logging
import posixpath
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

import yaml

from skilldex.core.exceptions import (
    DescriptorError,
    EmptyCategoriesError,
    InvalidNameError,
    MalformedHeaderError,
    MissingFieldError,
)
from skilldex.core.skills.descriptors import AgentDescriptor, Descriptor, SkillDescriptor

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"
AGENT_SUFFIX = ".agent.md"

NAME_PATTERN = r"^[a-z0-9][a-z0-9-]*$"
_NAME_RE = re.compile(NAME_PATTERN)
MAX_NAME_LENGTH = 64

HEADER_DELIMITER = "---"

ParseOutcome = Tuple[Optional[Descriptor], Optional[DescriptorError]]


def is_agent_path(source_path: str) -> bool:
    return source_path.endswith(AGENT_SUFFIX)


def validate_name(name: str) -> bool:
    """Check a descriptor name against the kebab-case pattern."""
    if not name or len(name) > MAX_NAME_LENGTH:
        return False
    return bool(_NAME_RE.match(name))


def parse_descriptor(
    content: bytes,
    source_path: str,
    last_modified: Optional[datetime] = None,
    resource_refs: Optional[Sequence[str]] = None
) -> ParseOutcome:
    """
    Parse a descriptor file into a typed descriptor.

    Args:
        content: Raw file bytes
        source_path: Absolute path of the file; decides skill vs agent
        last_modified: File modification time (defaults to now)
        resource_refs: Resource paths discovered next to the skill, used when
            the header does not declare `resources`

    Returns:
        (descriptor, None) on success, (None, error) on failure
    """
    try:
        return _parse(content, source_path, last_modified, resource_refs), None
    except DescriptorError as e:
        logger.debug(f"Rejected descriptor {source_path}: {e.__class__.__name__}")
        return None, e
    except Exception as e:
        logger.warning(f"Unexpected error parsing {source_path}: {e}", exc_info=True)
        return None, MalformedHeaderError(source_path, f"could not parse descriptor: {e}")


def _parse(
    content: bytes,
    source_path: str,
    last_modified: Optional[datetime],
    resource_refs: Optional[Sequence[str]]
) -> Descriptor:
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedHeaderError(source_path, f"file is not valid UTF-8: {e}")

    header, body = split_frontmatter(text, source_path)

    name = _required_string(header, "name", source_path)
    description = _required_string(header, "description", source_path)

    if not validate_name(name):
        raise InvalidNameError(source_path, name, NAME_PATTERN)

    modified = last_modified or datetime.now(timezone.utc)
    categories = _tag_set(header.get("categories"), "categories", source_path)

    if is_agent_path(source_path):
        return AgentDescriptor(
            name=name,
            description=description,
            declared_categories=categories,
            body=body,
            source_path=source_path,
            last_modified=modified,
        )

    if not categories:
        raise EmptyCategoriesError(source_path, name)

    declared_refs = header.get("resources")
    if declared_refs is not None:
        refs = _resource_refs(declared_refs, source_path)
    else:
        refs = tuple(resource_refs or ())

    version = header.get("version")
    author = header.get("author")

    return SkillDescriptor(
        name=name,
        description=description,
        categories=categories,
        languages=_tag_set(header.get("languages"), "languages", source_path),
        resource_refs=refs,
        body=body,
        source_path=source_path,
        last_modified=modified,
        version=str(version) if version is not None else "1.0.0",
        author=str(author) if author else None,
    )


def split_frontmatter(text: str, source_path: str = "<memory>") -> Tuple[Dict[str, Any], str]:
    """
    Split YAML frontmatter from markdown content.

    Frontmatter is delimited by lines consisting of --- at the start of the
    file and at the end of the header block.

    Returns:
        Tuple of (frontmatter dict, remaining body content)
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != HEADER_DELIMITER:
        raise MalformedHeaderError(source_path, "header block is missing")

    end_idx = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == HEADER_DELIMITER:
            end_idx = idx
            break

    if end_idx is None:
        raise MalformedHeaderError(source_path, "header block is not terminated")

    frontmatter_str = "".join(lines[1:end_idx])
    body = "".join(lines[end_idx + 1:]).strip()

    try:
        frontmatter = yaml.safe_load(frontmatter_str)
    except yaml.YAMLError as e:
        raise MalformedHeaderError(source_path, f"invalid YAML in header: {e}")
    except (ValueError, TypeError, RecursionError) as e:
        # Scalars that parse as YAML but fail construction, e.g. 2024-13-45
        raise MalformedHeaderError(source_path, f"unreadable value in header: {e}")

    if frontmatter is None:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        raise MalformedHeaderError(source_path, "header is not a key-value mapping")

    for key, value in frontmatter.items():
        if isinstance(value, dict):
            raise MalformedHeaderError(source_path, f"header field '{key}' is nested; headers must be flat")
        if isinstance(value, list) and any(isinstance(item, (dict, list)) for item in value):
            raise MalformedHeaderError(source_path, f"header field '{key}' must be a list of scalars")

    return {str(k): v for k, v in frontmatter.items()}, body


def _required_string(header: Dict[str, Any], field: str, source_path: str) -> str:
    value = header.get(field)
    if value is None or isinstance(value, (list, bool)):
        raise MissingFieldError(source_path, field)
    value = str(value).strip()
    if not value:
        raise MissingFieldError(source_path, field)
    return value


def _tag_set(raw: Any, field: str, source_path: str) -> FrozenSet[str]:
    """Accept a YAML list or a comma-separated string; tags are lowercased."""
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        items: List[Any] = raw.split(",")
    elif isinstance(raw, list):
        items = raw
    else:
        raise MalformedHeaderError(source_path, f"'{field}' must be a list or comma-separated string")
    return frozenset(str(item).strip().lower() for item in items if item is not None and str(item).strip())


def _resource_refs(raw: Any, source_path: str) -> Tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise MalformedHeaderError(source_path, "'resources' must be a list of relative paths")

    refs = []
    for item in raw:
        ref = str(item).strip().replace("\\", "/")
        if not ref:
            continue
        normalized = posixpath.normpath(ref)
        if posixpath.isabs(normalized) or normalized == ".." or normalized.startswith("../"):
            raise MalformedHeaderError(source_path, f"resource '{ref}' escapes the skill directory")
        refs.append(normalized)
    return tuple(refs)


def render_descriptor(descriptor: Descriptor) -> str:
    """Serialize a descriptor back to frontmatter + body."""
    header = yaml.safe_dump(descriptor.to_header(), sort_keys=False, allow_unicode=True)
    return f"{HEADER_DELIMITER}\n{header}{HEADER_DELIMITER}\n\n{descriptor.body}\n"


def expected_name_for(source_path: str) -> str:
    """The name a descriptor must declare: its skill directory or agent file stem."""
    path = Path(source_path)
    if is_agent_path(source_path):
        return path.name[:-len(AGENT_SUFFIX)]
    return path.parent.name
