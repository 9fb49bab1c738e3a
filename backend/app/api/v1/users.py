"""
FastAPI routes: user lookup and login.

Provides endpoints:
    GET  /api/v1/users/{user_id}   — fetch a user (usage category)
    POST /api/v1/auth/login        — check credentials (authentication category)

Handlers describe how their outcome should be logged by attaching
LoggerMetadata; the correlator writes the record.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Dict, Tuple

from fastapi import APIRouter, Request

from backend.app.api.responses import send_outcome
from backend.app.api.schemas import ErrorBody, LoginRequest, OutcomeBody, UserOut
from backend.app.core.errors import DomainError
from backend.app.observability.outcomes import ResponseEnvelope
from backend.app.observability.types import Category

router = APIRouter(prefix="/api/v1", tags=["users"])


def _digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


# In-memory directory
_USERS: Dict[str, UserOut] = {
    "u-100": UserOut(user_id="u-100", name="Ada Lovelace", email="ada@example.com"),
    "u-200": UserOut(user_id="u-200", name="Alan Turing", email="alan@example.com"),
}
_CREDENTIALS: Dict[str, Tuple[str, str]] = {
    "ada": ("u-100", _digest("correct-horse")),
    "alan": ("u-200", _digest("enigma-1912")),
}


@router.get(
    "/users/{user_id}",
    response_model=OutcomeBody,
    responses={404: {"model": ErrorBody}},
)
async def get_user(user_id: str, request: Request):
    user = _USERS.get(user_id)
    if user is None:
        raise DomainError.generic(
            "User not found",
            status_code=404,
            logger={
                "category": Category.USAGE,
                "code": "USER_NOT_FOUND",
                "context": "users.get",
                "userId": user_id,
            },
        )

    return send_outcome(request, ResponseEnvelope(
        status_code=200,
        message="User found",
        data=user.model_dump(),
        logger={
            "category": Category.USAGE,
            "code": "USER_FETCHED",
            "context": "users.get",
            "userId": user_id,
            "user": {"email": user.email},
        },
    ))


@router.post(
    "/auth/login",
    response_model=OutcomeBody,
    responses={400: {"model": ErrorBody}, 401: {"model": ErrorBody}},
)
async def login(body: LoginRequest, request: Request):
    entry = _CREDENTIALS.get(body.username)
    if entry is None or not hmac.compare_digest(entry[1], _digest(body.password)):
        raise DomainError.authentication(
            "Invalid credentials",
            logger={
                "category": Category.AUTHENTICATION,
                "code": "AUTH_FAILED",
                "context": "auth.login",
                "reason": "invalid_credentials",
                "credentials": {"username": body.username},
            },
        )

    user_id = entry[0]
    token = secrets.token_urlsafe(24)
    return send_outcome(request, ResponseEnvelope(
        status_code=200,
        message="Login successful",
        data={"user_id": user_id, "token": token},
        logger={
            "category": Category.AUTHENTICATION,
            "code": "AUTH_SUCCEEDED",
            "context": "auth.login",
            "userId": user_id,
            "token": token,
        },
    ))
