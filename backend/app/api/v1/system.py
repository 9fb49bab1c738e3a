"""
FastAPI routes: system probes.

Provides endpoints:
    GET /api/v1/system/ping   — logs directly through the system logger
    GET /api/v1/system/fail   — simulated server-side failure
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from backend.app.api.deps import category_logger
from backend.app.api.responses import send_outcome
from backend.app.api.schemas import ErrorBody, OutcomeBody
from backend.app.core.errors import DomainError
from backend.app.observability.outcomes import ResponseEnvelope
from backend.app.observability.registry import CategoryLogger
from backend.app.observability.types import Category

router = APIRouter(prefix="/api/v1/system", tags=["system"])


@router.get("/ping", response_model=OutcomeBody)
async def ping(
    request: Request,
    system_log: CategoryLogger = Depends(category_logger(Category.SYSTEM)),
):
    # No metadata on the envelope: this call is the request's only record
    system_log.info({"code": "PING", "context": "system.ping"}, "Ping received")
    return send_outcome(request, ResponseEnvelope(200, "pong"))


@router.get("/fail", responses={500: {"model": ErrorBody}})
async def fail():
    raise DomainError.generic(
        "Simulated failure",
        logger={
            "category": Category.SYSTEM,
            "code": "SIMULATED_FAILURE",
            "context": "system.fail",
        },
    )
