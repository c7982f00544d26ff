# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
Skills API - Listing, resolution and reload endpoints.

Local RPC surface over the skill engine for orchestrating agent processes.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
import logging

from skilldex.core.skills.descriptors import (
    AgentDescriptor,
    MatchRequest,
    MatchResult,
    RegistrySnapshot,
    SkillDescriptor,
)
from skilldex.core.exceptions import ServiceUnavailableError
from skilldex.core.skills.engine import SkillEngine, get_skill_engine
from skilldex.core.skills.matcher import extract_keywords, language_from_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/skills", tags=["skills"])


# =============================================================================
# Pydantic Models for Request/Response
# =============================================================================

class SkillResponse(BaseModel):
    """Skill summary for API responses."""
    name: str
    description: str
    categories: List[str]
    languages: List[str]
    version: str
    source_path: str
    last_modified: datetime


class SkillDetailResponse(SkillResponse):
    """Skill with body and resource references."""
    body: str
    resource_refs: List[str]
    author: Optional[str]


class AgentResponse(BaseModel):
    name: str
    description: str
    declared_categories: List[str]
    source_path: str


class ResolveRequest(BaseModel):
    """Request to resolve skills for a task."""
    language: Optional[str] = Field(None, description="Target language tag, e.g. python")
    categories: List[str] = Field(default_factory=list, description="Required categories; empty means any")
    keywords: List[str] = Field(default_factory=list, description="Tie-breaking keywords")
    task: Optional[str] = Field(None, description="Free-text task; keywords are extracted from it")
    file_path: Optional[str] = Field(None, description="Used to infer language when none is given")


class MatchSlotResponse(BaseModel):
    category: str
    skill: Optional[SkillDetailResponse]
    score: Optional[int]
    matched_category: Optional[str]
    note: Optional[str]


class ResolveResponse(BaseModel):
    generation: int
    language: Optional[str]
    keywords: List[str]
    slots: List[MatchSlotResponse]
    gaps: List[str]


class ScanErrorResponse(BaseModel):
    path: str
    error: str
    message: str


class DuplicateWarningResponse(BaseModel):
    name: str
    kind: str
    kept_path: str
    duplicate_path: str


class StatusResponse(BaseModel):
    generation: int
    root_path: str
    skill_count: int
    agent_count: int
    built_at: Optional[datetime]
    watching: bool
    last_reload_error: Optional[str]
    errors: List[ScanErrorResponse]
    warnings: List[DuplicateWarningResponse]


# =============================================================================
# Helper Functions
# =============================================================================

def _skill_to_response(skill: SkillDescriptor) -> SkillResponse:
    return SkillResponse(
        name=skill.name,
        description=skill.description,
        categories=sorted(skill.categories),
        languages=sorted(skill.languages),
        version=skill.version,
        source_path=skill.source_path,
        last_modified=skill.last_modified
    )


def _skill_to_detail_response(skill: SkillDescriptor) -> SkillDetailResponse:
    return SkillDetailResponse(
        **_skill_to_response(skill).model_dump(),
        body=skill.body,
        resource_refs=list(skill.resource_refs),
        author=skill.author
    )


def _agent_to_response(agent: AgentDescriptor) -> AgentResponse:
    return AgentResponse(
        name=agent.name,
        description=agent.description,
        declared_categories=sorted(agent.declared_categories),
        source_path=agent.source_path
    )


def _result_to_response(request: MatchRequest, result: MatchResult) -> ResolveResponse:
    slots = [
        MatchSlotResponse(
            category=slot.category,
            skill=_skill_to_detail_response(slot.skill) if slot.skill else None,
            score=slot.score,
            matched_category=slot.matched_category,
            note=slot.note.message if slot.note else None
        )
        for slot in result.slots
    ]
    return ResolveResponse(
        generation=result.generation,
        language=request.language,
        keywords=list(request.keywords),
        slots=slots,
        gaps=list(result.gaps)
    )


def _status_response(engine: SkillEngine, snapshot: RegistrySnapshot) -> StatusResponse:
    return StatusResponse(
        generation=snapshot.generation,
        root_path=str(engine.root_path),
        skill_count=snapshot.skill_count,
        agent_count=snapshot.agent_count,
        built_at=snapshot.built_at,
        watching=engine.watcher.is_running,
        last_reload_error=engine.last_reload_error,
        errors=[
            ScanErrorResponse(path=e.path, error=e.error_type, message=e.error.message)
            for e in snapshot.errors
        ],
        warnings=[
            DuplicateWarningResponse(
                name=w.name, kind=w.kind, kept_path=w.kept_path, duplicate_path=w.duplicate_path
            )
            for w in snapshot.warnings
        ]
    )


def require_ready_engine(engine: SkillEngine = Depends(get_skill_engine)) -> SkillEngine:
    """Queries need a published snapshot; refuse them until initialize() ran."""
    if not engine.is_initialized:
        raise ServiceUnavailableError(
            "Skill engine is not initialized",
            detail={"root_path": str(engine.root_path)}
        )
    return engine


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=List[SkillResponse])
async def list_skills(
    category: Optional[str] = Query(None, description="Filter by category"),
    language: Optional[str] = Query(None, description="Filter by supported language"),
    engine: SkillEngine = Depends(require_ready_engine)
):
    """List registered skills in scan order."""
    return [_skill_to_response(s) for s in engine.list_skills(category=category, language=language)]


@router.get("/agents", response_model=List[AgentResponse])
async def list_agents(engine: SkillEngine = Depends(require_ready_engine)):
    """List agent descriptors (metadata only, never matched)."""
    return [_agent_to_response(a) for a in engine.snapshot.agents]


@router.get("/agents/{name}", response_model=AgentResponse)
async def get_agent(name: str, engine: SkillEngine = Depends(require_ready_engine)):
    return _agent_to_response(engine.get_agent(name))


@router.get("/status", response_model=StatusResponse)
async def get_status(engine: SkillEngine = Depends(get_skill_engine)):
    """Registry generation, counts, per-file errors and duplicate warnings."""
    return _status_response(engine, engine.snapshot)


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_skills(request: ResolveRequest, engine: SkillEngine = Depends(require_ready_engine)):
    """
    Resolve one skill per requested category.

    Keywords extracted from `task` are appended to explicit keywords, and
    `file_path` supplies the language when none is given.
    """
    keywords = list(request.keywords) + extract_keywords(request.task)
    language = request.language or language_from_path(request.file_path)

    match_request = MatchRequest.create(language, request.categories, keywords)
    result = engine.query(match_request)

    if result.gaps:
        logger.info(f"Resolved with gaps for categories: {', '.join(result.gaps)}")

    return _result_to_response(match_request, result)


@router.post("/reload", response_model=StatusResponse)
def reload_skills(engine: SkillEngine = Depends(get_skill_engine)):
    """Rescan the skill tree now."""
    snapshot = engine.reload()
    return _status_response(engine, snapshot)


@router.get("/by-name/{name}", response_model=SkillDetailResponse)
async def get_skill(name: str, engine: SkillEngine = Depends(require_ready_engine)):
    """Get a skill with its body and resource references."""
    return _skill_to_detail_response(engine.get_skill(name))
