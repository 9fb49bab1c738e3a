"""
Pydantic schemas for the v1 API.

Separated from the route handlers so they are reusable across
the codebase (routers, tests).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    """Credentials for ``POST /api/v1/auth/login``."""
    username: str = Field(..., min_length=1, examples=["ada"])
    password: str = Field(..., min_length=1, examples=["correct-horse"])

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserOut(BaseModel):
    user_id: str = Field(..., examples=["u-100"])
    name: str = Field(..., examples=["Ada Lovelace"])
    email: Optional[str] = Field(None, examples=["ada@example.com"])


class OutcomeBody(BaseModel):
    """Body of every successful response."""
    message: str
    data: Any = None


class ErrorBody(BaseModel):
    """Body of every error response."""
    error: bool = True
    message: str
    data: Any = None
    stack: Optional[str] = None
