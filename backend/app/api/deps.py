"""
FastAPI dependencies — access to the startup-built logging objects.

The registry and correlator are created once in ``create_app`` and stored
on ``app.state``; routes receive them through these dependencies.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from backend.app.observability.correlator import ErrorCorrelator
from backend.app.observability.registry import CategoryLogger, LoggerRegistry
from backend.app.observability.types import Category


def get_registry(request: Request) -> LoggerRegistry:
    return request.app.state.registry


def get_correlator(request: Request) -> ErrorCorrelator:
    return request.app.state.correlator


def category_logger(category: Category) -> Callable[[Request], CategoryLogger]:
    """Dependency returning one category's logger, bound to the request id."""

    def dependency(request: Request) -> CategoryLogger:
        found = get_registry(request).lookup(category)
        if found is None:
            raise LookupError(f"No logger registered for category '{category.value}'")
        request_id = getattr(request.state, "request_id", None)
        return found.bind(request_id=request_id) if request_id else found

    return dependency
