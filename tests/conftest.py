# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Pytest Configuration and Fixtures for skilldex Tests.

Provides throwaway skill trees built under tmp_path.
"""

import pytest
from pathlib import Path
from typing import Iterable, Optional

from skilldex.config import Settings


def write_skill(
    root: Path,
    dir_name: str,
    name: Optional[str] = None,
    description: str = "A skill",
    categories: Optional[Iterable[str]] = ("test-framework",),
    languages: Optional[Iterable[str]] = None,
    body: str = "Skill body.",
    extra_header: str = ""
) -> Path:
    """Write <root>/skills/<dir_name>/SKILL.md and return its path."""
    skill_dir = root / "skills" / dir_name
    skill_dir.mkdir(parents=True, exist_ok=True)

    lines = ["---", f"name: {name or dir_name}", f"description: {description}"]
    if categories is not None:
        lines.append(f"categories: [{', '.join(categories)}]")
    if languages is not None:
        lines.append(f"languages: [{', '.join(languages)}]")
    if extra_header:
        lines.append(extra_header)
    lines.extend(["---", "", body, ""])

    skill_file = skill_dir / "SKILL.md"
    skill_file.write_text("\n".join(lines), encoding="utf-8")
    return skill_file


def write_agent(
    root: Path,
    name: str,
    description: str = "An agent",
    categories: Iterable[str] = ("test-framework",)
) -> Path:
    """Write <root>/agents/<name>.agent.md and return its path."""
    agents_dir = root / "agents"
    agents_dir.mkdir(parents=True, exist_ok=True)
    agent_file = agents_dir / f"{name}.agent.md"
    agent_file.write_text(
        "\n".join([
            "---",
            f"name: {name}",
            f"description: {description}",
            f"categories: [{', '.join(categories)}]",
            "---",
            "",
            "Agent instructions.",
            "",
        ]),
        encoding="utf-8"
    )
    return agent_file


@pytest.fixture
def skill_root(tmp_path: Path) -> Path:
    """A small tree with one agent and skills for several languages."""
    write_agent(tmp_path, "test-writer", categories=["test-framework", "mocking"])
    write_skill(
        tmp_path, "junit5",
        description="JUnit 5 lifecycle and parameterized tests",
        categories=["test-framework", "assertion"],
        languages=["java", "kotlin"],
    )
    write_skill(
        tmp_path, "pytest-fixtures",
        description="pytest fixtures and conftest layout",
        categories=["test-framework", "test-data"],
        languages=["python"],
    )
    write_skill(
        tmp_path, "mockito",
        description="Mockito mocks and argument captors",
        categories=["mocking"],
        languages=["java"],
    )
    write_skill(
        tmp_path, "test-data-builders",
        description="Builder pattern for test data",
        categories=["test-data"],
    )
    return tmp_path


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings tuned for fast, deterministic tests."""
    return Settings(
        skills_root=str(tmp_path),
        scan_workers=2,
        debounce_seconds=0.05,
        watch_use_polling=True,
        polling_interval=0.1,
        watch_enabled=False,
    )
