"""
Movement API - Thin HTTP layer over the movement service.

============================================================
ENDPOINTS
============================================================
GET /health             liveness, cache and dedup stats
GET /movements?filter=  enriched movements, tier then recency
GET /flows?filter=&limit=  ranked flows, most interesting first
============================================================
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from api.service import MovementService, MovementsResult
from movements.config import PipelineConfig, get_config

logger = logging.getLogger(__name__)


# Cache for 5 minutes at the edge, serve stale for 10 more
CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"


# ============================================================
# Response Models
# ============================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
    uptime_seconds: float = 0
    cache: dict[str, Any] = Field(default_factory=dict)
    dedup_seen: int = 0


class DataHealth(BaseModel):
    last_fetch: str = Field(alias="lastFetch")
    counts: dict[str, int]

    model_config = ConfigDict(populate_by_name=True)


class MovementsResponse(BaseModel):
    movements: list[dict[str, Any]]
    cached: bool
    source: str
    data_health: DataHealth = Field(alias="dataHealth")

    model_config = ConfigDict(populate_by_name=True)


class FlowsResponse(BaseModel):
    flows: list[dict[str, Any]]
    total: int
    cached: bool
    source: str
    data_health: DataHealth = Field(alias="dataHealth")

    model_config = ConfigDict(populate_by_name=True)


def _data_health(result: MovementsResult) -> DataHealth:
    health = result.data_health()
    return DataHealth(last_fetch=health["last_fetch"], counts=health["counts"])


def _error_response(key: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": message, key: [], "source": "error"},
    )


# ============================================================
# FastAPI Application
# ============================================================

def create_app(
    service: Optional[MovementService] = None,
    config: Optional[PipelineConfig] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        service: Movement service; built from ``config`` when omitted
        config: Pipeline configuration; defaults to ``get_config()``
    """
    config = config or get_config()

    app = FastAPI(
        title="On-chain Movement API",
        description="Enriched, deduplicated and ranked on-chain movements",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service or MovementService(config)
    app.state.started_at = datetime.now(timezone.utc)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        svc: MovementService = request.app.state.service
        now = datetime.now(timezone.utc)
        return HealthResponse(
            status="healthy",
            timestamp=now.isoformat(),
            uptime_seconds=(now - request.app.state.started_at).total_seconds(),
            cache=svc.cache.get_stats(),
            dedup_seen=svc.pipeline.deduplicator.seen_count,
        )

    @app.get("/movements", tags=["Movements"])
    async def get_movements(
        request: Request,
        filter: Optional[str] = Query(default=None, description="exchanges, funds, whales, ..."),
    ):
        """Enriched movements for the lookback window."""
        svc: MovementService = request.app.state.service
        try:
            result = await svc.get_movements(filter)
        except Exception as e:
            logger.exception(f"[API] Failed to fetch movements: {e}")
            return _error_response("movements", "Failed to fetch movements")

        body = MovementsResponse(
            movements=[m.to_dict() for m in result.movements],
            cached=result.cached,
            source=result.source,
            data_health=_data_health(result),
        )
        return JSONResponse(
            content=body.model_dump(by_alias=True),
            headers={"Cache-Control": CACHE_CONTROL},
        )

    @app.get("/flows", tags=["Flows"])
    async def get_flows(
        request: Request,
        filter: Optional[str] = Query(default=None),
        limit: int = Query(default=50, ge=1, le=500),
    ):
        """Movements as typed flows, ranked by interestingness."""
        svc: MovementService = request.app.state.service
        try:
            flows, result = await svc.get_flows(filter, limit=limit)
        except Exception as e:
            logger.exception(f"[API] Failed to build flows: {e}")
            return _error_response("flows", "Failed to fetch flows")

        body = FlowsResponse(
            flows=[f.to_dict() for f in flows],
            total=len(flows),
            cached=result.cached,
            source=result.source,
            data_health=_data_health(result),
        )
        return JSONResponse(
            content=body.model_dump(by_alias=True),
            headers={"Cache-Control": CACHE_CONTROL},
        )

    return app
