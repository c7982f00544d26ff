# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Tree Scanner - Discovers descriptor files under a skill root.

Directory convention:
    <root>/agents/<agent-name>.agent.md     one agent per file
    <root>/skills/<skill-name>/SKILL.md     one skill per directory
    <root>/skills/<skill-name>/resources/*  referenced, never scanned

Scanning is read-only. Per-file problems are recorded as ScanError entries
and the scan carries on; only an unreadable root raises.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from skilldex.core.exceptions import (
    DescriptorError,
    MissingDescriptorError,
    NameMismatchError,
    RootUnreadableError,
    UnreadableFileError,
)
from skilldex.core.skills.descriptors import Descriptor, ScanError
from skilldex.core.skills.loader import (
    AGENT_SUFFIX,
    SKILL_FILENAME,
    expected_name_for,
    parse_descriptor,
)

logger = logging.getLogger(__name__)

# Descriptor size cap (10MB)
MAX_DESCRIPTOR_BYTES = 10 * 1024 * 1024


@dataclass
class ScanResult:
    """Descriptors in lexicographic path order plus per-file errors."""
    descriptors: List[Descriptor] = field(default_factory=list)
    errors: List[ScanError] = field(default_factory=list)


@dataclass(frozen=True)
class _Candidate:
    path: str
    expected_name: str
    resource_refs: Tuple[str, ...] = ()


def _is_safe_path(path: Path, base_dir: Path) -> bool:
    """Check that path resolves inside base_dir (catches escaping symlinks)."""
    try:
        path.resolve().relative_to(base_dir.resolve())
        return True
    except ValueError:
        return False
    except (OSError, RuntimeError):
        return False


class TreeScanner:
    """
    Walk a skill root and parse every descriptor it finds.

    Files are read and parsed on a thread pool since parsing is pure;
    results are merged back in path order so output is reproducible.
    """

    AGENTS_DIR = "agents"
    SKILLS_DIR = "skills"
    RESOURCES_DIR = "resources"

    def __init__(self, max_workers: int = 4, max_file_bytes: int = MAX_DESCRIPTOR_BYTES):
        self.max_workers = max(1, max_workers)
        self.max_file_bytes = max_file_bytes

    def scan(self, root_path: str) -> ScanResult:
        """
        Scan a root directory for agent and skill descriptors.

        Args:
            root_path: Directory containing agents/ and/or skills/

        Returns:
            ScanResult with descriptors and (path, error) records

        Raises:
            RootUnreadableError: root is missing, not a directory, or unlistable
        """
        root = self._check_root(root_path)
        errors: List[ScanError] = []

        candidates = self._agent_candidates(root, errors) + self._skill_candidates(root, errors)
        candidates.sort(key=lambda c: c.path)

        if self.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="skill-scan") as pool:
                outcomes = list(pool.map(self._load, candidates))
        else:
            outcomes = [self._load(candidate) for candidate in candidates]

        result = ScanResult()
        for candidate, (descriptor, error) in zip(candidates, outcomes):
            if error is None and descriptor.name != candidate.expected_name:
                error = NameMismatchError(candidate.path, descriptor.name, candidate.expected_name)
            if error is not None:
                errors.append(ScanError(path=candidate.path, error=error))
                continue
            result.descriptors.append(descriptor)

        errors.sort(key=lambda e: e.path)
        for scan_error in errors:
            logger.warning(f"Skipping {scan_error.path}: {scan_error.error_type}: {scan_error.error.message}")

        result.errors = errors
        logger.info(
            f"Scanned {root}: {len(result.descriptors)} descriptors, {len(errors)} errors"
        )
        return result

    def _check_root(self, root_path: str) -> Path:
        root = Path(root_path).expanduser()
        try:
            root = root.resolve()
        except (OSError, RuntimeError) as e:
            raise RootUnreadableError(str(root_path), str(e))

        if not root.exists():
            raise RootUnreadableError(str(root), "does not exist")
        if not root.is_dir():
            raise RootUnreadableError(str(root), "not a directory")
        try:
            with os.scandir(root):
                pass
        except OSError as e:
            raise RootUnreadableError(str(root), str(e))
        return root

    def _list_dir(self, path: Path, errors: List[ScanError]) -> List[os.DirEntry]:
        """Sorted, non-hidden entries of path; an unlistable directory is recorded."""
        if not path.is_dir():
            return []
        try:
            with os.scandir(path) as it:
                entries = [e for e in it if not e.name.startswith(".")]
        except OSError as e:
            errors.append(ScanError(
                path=str(path),
                error=UnreadableFileError(str(path), f"cannot list directory: {e}")
            ))
            return []
        return sorted(entries, key=lambda e: e.name)

    def _agent_candidates(self, root: Path, errors: List[ScanError]) -> List[_Candidate]:
        candidates = []
        for entry in self._list_dir(root / self.AGENTS_DIR, errors):
            if not entry.name.endswith(AGENT_SUFFIX):
                continue
            path = Path(entry.path)
            if not _is_safe_path(path, root):
                logger.warning(f"Ignoring agent file outside skill root: {path}")
                continue
            if not path.is_file():
                continue
            candidates.append(_Candidate(path=str(path), expected_name=expected_name_for(str(path))))
        return candidates

    def _skill_candidates(self, root: Path, errors: List[ScanError]) -> List[_Candidate]:
        candidates = []
        for entry in self._list_dir(root / self.SKILLS_DIR, errors):
            skill_dir = Path(entry.path)
            if not skill_dir.is_dir():
                continue
            if not _is_safe_path(skill_dir, root):
                logger.warning(f"Ignoring skill directory outside skill root: {skill_dir}")
                continue

            skill_file = skill_dir / SKILL_FILENAME
            try:
                names = os.listdir(skill_dir)
            except OSError as e:
                errors.append(ScanError(
                    path=str(skill_dir),
                    error=UnreadableFileError(str(skill_dir), f"cannot list directory: {e}")
                ))
                continue

            # Compare against the listing so the filename stays case-sensitive
            # even on case-insensitive filesystems.
            if SKILL_FILENAME not in names or not skill_file.is_file():
                errors.append(ScanError(
                    path=str(skill_file),
                    error=MissingDescriptorError(str(skill_file), self._missing_reason(names))
                ))
                continue

            candidates.append(_Candidate(
                path=str(skill_file),
                expected_name=skill_dir.name,
                resource_refs=self._list_resources(skill_dir),
            ))
        return candidates

    @staticmethod
    def _missing_reason(names: List[str]) -> str:
        near = [n for n in names if n.lower() == SKILL_FILENAME.lower()]
        if near:
            return f"found '{near[0]}' but the descriptor must be named exactly '{SKILL_FILENAME}'"
        return f"no {SKILL_FILENAME} in skill directory"

    def _list_resources(self, skill_dir: Path) -> Tuple[str, ...]:
        resources_dir = skill_dir / self.RESOURCES_DIR
        if not resources_dir.is_dir():
            return ()
        refs = []
        try:
            for dirpath, dirnames, filenames in os.walk(resources_dir):
                dirnames[:] = [d for d in dirnames if not d.startswith(".")]
                for filename in filenames:
                    if filename.startswith("."):
                        continue
                    full = Path(dirpath) / filename
                    refs.append(full.relative_to(skill_dir).as_posix())
        except OSError as e:
            logger.warning(f"Could not list resources in {resources_dir}: {e}")
        return tuple(sorted(refs))

    def _load(self, candidate: _Candidate) -> Tuple[Optional[Descriptor], Optional[DescriptorError]]:
        """Read and parse one descriptor file. Runs on the worker pool."""
        try:
            file_stat = os.stat(candidate.path)
            if file_stat.st_size > self.max_file_bytes:
                return None, UnreadableFileError(
                    candidate.path,
                    f"file too large ({file_stat.st_size} bytes > {self.max_file_bytes})"
                )
            with open(candidate.path, "rb") as f:
                content = f.read()
        except OSError as e:
            return None, UnreadableFileError(candidate.path, str(e))

        # Timezone-aware for comparisons across reloads
        modified = datetime.fromtimestamp(file_stat.st_mtime).astimezone()
        return parse_descriptor(
            content,
            candidate.path,
            last_modified=modified,
            resource_refs=candidate.resource_refs,
        )
