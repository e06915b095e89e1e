"""FastAPI application for idscope.

Exposes the identity search engine over HTTP:

- ``POST /api/search``: run one identity search
- ``GET /api/platforms``: list the platform registry
- ``GET /health``: liveness probe
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from idscope import __version__
from idscope.core.config import get_config
from idscope.core.data_models import AgeRange, SearchQuery
from idscope.core.error_recovery import QueryValidationError
from idscope.core.logging_setup import (
    AuditLogger,
    PerformanceLogger,
    configure_comprehensive_logging,
)
from idscope.core.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

ENGINE_FAILURE_MESSAGE = "OSINT Engine Failure"

# Global logging instances
audit_logger: Optional[AuditLogger] = None
performance_logger: Optional[PerformanceLogger] = None

_orchestrator: Optional[Orchestrator] = None

config = get_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    global audit_logger, performance_logger

    log_dir = Path(config.get("logging.directory", "logs"))
    log_level_str = str(config.get("logging.level", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    use_json = config.get_bool("logging.json_format", False)

    audit_logger, performance_logger = configure_comprehensive_logging(
        log_dir=log_dir,
        level=log_level,
        use_json=use_json,
        console_output=True,
    )

    validation = config.validate()
    for missing in validation.missing_api_keys:
        logger.info(f"Optional integration disabled: {missing}")

    logger.info("idscope API starting up...")
    logger.info(f"Logging directory: {log_dir}")
    logger.info(f"Platforms loaded: {len(get_orchestrator().registry)}")

    yield

    logger.info("idscope API shutting down...")


app = FastAPI(
    title="idscope Identity Discovery API",
    description="Identity discovery and evidence scoring across public platforms",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class AgeRangeModel(BaseModel):
    """Age bracket in a search request."""

    min: Optional[int] = None
    max: Optional[int] = None


class SearchRequest(BaseModel):
    """Identity search request.

    ``query`` is optional at the schema level so a missing query gets the
    same error body as a blank one.
    """

    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = Field(None, description="Name or handle to search for")
    location: Optional[str] = Field(None, description="Free-text location")
    age_range: Optional[AgeRangeModel] = Field(None, alias="ageRange")
    min_age: Optional[int] = Field(None, alias="minAge")
    max_age: Optional[int] = Field(None, alias="maxAge")
    gender: Optional[str] = None
    platforms: Optional[List[str]] = Field(None, description="Restrict to these platform names")

    def to_query(self) -> SearchQuery:
        """Convert to a validated :class:`SearchQuery`.

        Raises:
            QueryValidationError: If the query is missing or the age range is invalid
        """
        age_range = None
        low = self.age_range.min if self.age_range else self.min_age
        high = self.age_range.max if self.age_range else self.max_age
        if low is not None or high is not None:
            age_range = AgeRange(min=low, max=high)

        return SearchQuery.build(
            self.query,
            location=self.location,
            age_range=age_range,
            gender=self.gender,
            platforms=self.platforms,
        )


def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator, built on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = Orchestrator(config, performance_logger=performance_logger)
    return _orchestrator


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the standard error body."""
    logger.info(f"Rejected malformed search request: {exc.errors()}")
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid search request")


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }


@app.get("/api/platforms")
async def list_platforms(orchestrator: Orchestrator = Depends(get_orchestrator)):
    """List every platform the engine probes."""
    platforms = [platform.to_dict() for platform in orchestrator.registry]
    return {"count": len(platforms), "platforms": platforms}


@app.post("/api/search")
async def search(
    payload: SearchRequest,
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Run an identity search."""
    client = request.client.host if request.client else "unknown"

    try:
        query = payload.to_query()
    except QueryValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))

    logger.info(f"Search request from {client}: '{query.raw_text}'")

    try:
        report = await orchestrator.search(query)
    except QueryValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except Exception:
        logger.exception(f"Search failed for '{query.raw_text}'")
        if audit_logger:
            audit_logger.log_search(client, query.raw_text, location=query.location, success=False)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, ENGINE_FAILURE_MESSAGE)

    if audit_logger:
        audit_logger.log_search(
            client,
            query.raw_text,
            location=query.location,
            platforms=report.platforms_searched,
            results_count=len(report.results),
            failed_tasks=len(report.failed_tasks),
        )

    return report.to_dict()
