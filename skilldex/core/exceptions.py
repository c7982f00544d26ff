# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Custom Exception Hierarchy for skilldex


Provides standardized exceptions for consistent error handling across the engine.

Usage:
    from skilldex.core.exceptions import ResourceNotFoundError, NameMismatchError

    if not skill:
        raise ResourceNotFoundError("Skill", name)

Architecture:
- Base SkillDexException for all custom exceptions
- Descriptor validation errors (per-file, collected by the scanner, never fatal)
- Engine errors (unreadable root, failed initialization)
- All exceptions include status_code and detail attributes
- Error handlers convert exceptions to standardized JSON responses
"""

from typing import Optional, Dict, Any


# =============================================================================
# Base Exception
# =============================================================================

class SkillDexException(Exception):
    """
    Base exception for all skilldex custom exceptions.

    All custom exceptions should inherit from this class to ensure
    consistent error handling across the engine.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        detail: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "detail": self.detail
        }


# =============================================================================
# HTTP Status Code Exceptions
# =============================================================================

class ResourceNotFoundError(SkillDexException):
    """404 Not Found - Resource does not exist."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any,
        detail: Optional[Dict[str, Any]] = None
    ):
        message = f"{resource_type} '{resource_id}' not found"
        detail = detail or {}
        detail["resource_type"] = resource_type
        detail["resource_id"] = resource_id
        super().__init__(message, status_code=404, detail=detail)


class ServiceUnavailableError(SkillDexException):
    """503 Service Unavailable - Engine is not ready to serve queries."""

    def __init__(
        self,
        message: str = "Service unavailable",
        detail: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code=503, detail=detail)


# =============================================================================
# Descriptor Validation Errors (per-file, non-fatal)
# =============================================================================

class DescriptorError(SkillDexException):
    """
    A single descriptor file failed to parse or validate.

    These are returned by the parser and collected by the scanner alongside
    the successfully built snapshot. They never abort a scan or reload.
    """

    def __init__(
        self,
        path: str,
        message: str,
        detail: Optional[Dict[str, Any]] = None
    ):
        self.path = path
        detail = detail or {}
        detail["path"] = path
        super().__init__(f"{path}: {message}", status_code=422, detail=detail)


class MalformedHeaderError(DescriptorError):
    """Header block is missing, unterminated, or not a flat key-value mapping."""


class MissingFieldError(DescriptorError):
    """A required header field is absent or empty."""

    def __init__(self, path: str, field: str):
        self.field = field
        super().__init__(
            path,
            f"missing required field '{field}'",
            detail={"field": field}
        )


class InvalidNameError(DescriptorError):
    """Declared name does not match the allowed pattern."""

    def __init__(self, path: str, name: str, pattern: str):
        self.name = name
        super().__init__(
            path,
            f"name '{name}' does not match {pattern}",
            detail={"name": name, "pattern": pattern}
        )


class EmptyCategoriesError(DescriptorError):
    """Skill declares no category tags and cannot be indexed."""

    def __init__(self, path: str, name: str):
        self.name = name
        super().__init__(
            path,
            f"skill '{name}' declares no categories",
            detail={"name": name}
        )


class NameMismatchError(DescriptorError):
    """Declared name differs from the directory (or file stem) that addresses it."""

    def __init__(self, path: str, declared_name: str, expected_name: str):
        self.declared_name = declared_name
        self.expected_name = expected_name
        super().__init__(
            path,
            f"declared name '{declared_name}' does not match '{expected_name}'",
            detail={"declared_name": declared_name, "expected_name": expected_name}
        )


class MissingDescriptorError(DescriptorError):
    """Skill directory has no exactly-cased SKILL.md at its top level."""


class UnreadableFileError(DescriptorError):
    """Descriptor file could not be read (permissions, size limit, I/O error)."""


# =============================================================================
# Engine Errors
# =============================================================================

class RootUnreadableError(SkillDexException):
    """The scan root is missing, not a directory, or cannot be listed."""

    def __init__(self, root_path: str, reason: str):
        self.root_path = root_path
        super().__init__(
            f"Skill root '{root_path}' is unreadable: {reason}",
            status_code=503,
            detail={"root_path": root_path, "reason": reason}
        )


class EngineInitializationError(SkillDexException):
    """Initial snapshot could not be produced; the engine cannot start."""

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Engine initialization failed: {message}",
            status_code=503,
            detail=detail
        )


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Base
    "SkillDexException",

    # HTTP
    "ResourceNotFoundError",
    "ServiceUnavailableError",

    # Descriptor validation
    "DescriptorError",
    "MalformedHeaderError",
    "MissingFieldError",
    "InvalidNameError",
    "EmptyCategoriesError",
    "NameMismatchError",
    "MissingDescriptorError",
    "UnreadableFileError",

    # Engine
    "RootUnreadableError",
    "EngineInitializationError",
]
