# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
skilldex - FastAPI local RPC server
Main application entry point
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
import uvicorn

from skilldex.config import settings
from skilldex.core.error_handlers import register_error_handlers
from skilldex.core.skills.engine import SkillEngine, get_skill_engine
from skilldex.api.skills.routes import router as skills_router

# Configure logging based on environment
log_level = logging.DEBUG if settings.debug else logging.INFO
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(engine: Optional[SkillEngine] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        engine: Engine to serve; defaults to the process-wide instance
    """
    engine = engine or get_skill_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events"""
        logger.info(f"Starting skilldex in {settings.environment} mode (debug={settings.debug})")

        # An unreadable root is fatal: there is no snapshot to serve
        engine.initialize()

        if engine.settings.watch_enabled:
            try:
                engine.start_watching()
            except Exception as e:
                logger.error(f"Hot reload unavailable, serving static snapshot: {e}", exc_info=True)
                # Don't fail startup - queries still work without the watcher

        yield

        logger.info("Shutting down skilldex...")
        engine.close()

    app = FastAPI(
        title="skilldex",
        description="Skill discovery, validation and matching engine",
        version="0.1.0",
        lifespan=lifespan
    )

    register_error_handlers(app)
    app.include_router(skills_router)
    app.dependency_overrides[get_skill_engine] = lambda: engine
    app.state.engine = engine

    @app.get("/health")
    async def health():
        snapshot = engine.snapshot
        return {
            "status": "healthy" if engine.is_initialized else "starting",
            "generation": snapshot.generation,
            "skills": snapshot.skill_count
        }

    return app


def run():
    """Console entry point."""
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info"
    )


if __name__ == "__main__":
    run()
