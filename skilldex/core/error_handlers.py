# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
FastAPI error handlers for the skills API.

Every error leaves the API as:

    {
        "error": "ResourceNotFoundError",
        "message": "Skill 'pytest-fixtures' not found",
        "status_code": 404,
        "detail": {"resource_type": "Skill", "resource_id": "pytest-fixtures"}
    }

Engine availability errors (unreadable root, engine not started) report the
generation still being served so callers can decide whether to retry.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from skilldex.core.exceptions import (
    EngineInitializationError,
    RootUnreadableError,
    ServiceUnavailableError,
    SkillDexException,
)

logger = logging.getLogger(__name__)


def error_response(exc: SkillDexException, detail: Optional[dict] = None) -> JSONResponse:
    """Render a SkillDexException, optionally with extra detail merged in."""
    content = exc.to_dict()
    if detail:
        content["detail"] = {**content["detail"], **detail}
    if not content["detail"]:
        del content["detail"]
    return JSONResponse(status_code=exc.status_code, content=content)


def _served_generation(request: Request) -> Optional[int]:
    engine = getattr(request.app.state, "engine", None)
    return engine.snapshot.generation if engine is not None else None


async def engine_unavailable_handler(request: Request, exc: SkillDexException) -> JSONResponse:
    """Unreadable root, failed startup or not-yet-initialized engine."""
    generation = _served_generation(request)
    logger.error(f"{request.method} {request.url.path} unavailable: {exc.message} (serving generation {generation})")
    return error_response(exc, {"served_generation": generation})


async def skilldex_exception_handler(request: Request, exc: SkillDexException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=True)
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.message}")
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body or query failed pydantic validation."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Invalid request to {request.url.path}: {[e['field'] for e in errors]}")
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "status_code": 422,
            "detail": {"errors": errors},
        }
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled {exc.__class__.__name__} on {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "status_code": 500,
            "detail": {"exception_type": exc.__class__.__name__},
        }
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers; more specific exception classes win over the base."""
    for exc_class in (RootUnreadableError, EngineInitializationError, ServiceUnavailableError):
        app.add_exception_handler(exc_class, engine_unavailable_handler)
    app.add_exception_handler(SkillDexException, skilldex_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)


__all__ = [
    "register_error_handlers",
    "error_response",
]
