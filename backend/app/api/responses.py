"""
Response helper — the success-side counterpart of the DomainError handler.

    return send_outcome(request, ResponseEnvelope(200, "User found", data=user,
                                                  logger={...}))

The envelope goes through the correlator (one category record, then the
metadata slot is cleared) and is answered as ``{"message", "data"}``.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend.app.api.deps import get_correlator
from backend.app.observability.outcomes import ResponseEnvelope


def send_outcome(request: Request, envelope: ResponseEnvelope) -> JSONResponse:
    get_correlator(request).dispatch(envelope)
    return JSONResponse(
        status_code=envelope.status_code,
        content=jsonable_encoder(envelope.to_body()),
    )
