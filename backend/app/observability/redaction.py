"""
redaction.py — Censor configured field paths before a record is written.

Path syntax:
    password              top-level key
    headers.authorization nested key
    items.0.secret        list index
    *.password            wildcard: any key / index at that level

Every path present in the payload has its value replaced by CENSOR,
whatever the original value or type. Absent paths are ignored and other
fields pass through unchanged. The caller's payload is never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence, Tuple

from backend.app.observability.types import CENSOR

WILDCARD = "*"


def parse_path(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.split(".") if part)


def _children(node: Any, segment: str) -> List[Any]:
    """Keys (or indexes) of ``node`` that ``segment`` addresses."""
    if isinstance(node, Mapping):
        if segment == WILDCARD:
            return list(node.keys())
        return [segment] if segment in node else []
    if isinstance(node, list):
        if segment == WILDCARD:
            return list(range(len(node)))
        if segment.isdigit() and int(segment) < len(node):
            return [int(segment)]
    return []


def _copy_container(node: Any) -> Any:
    if isinstance(node, Mapping):
        return dict(node)
    if isinstance(node, list):
        return list(node)
    return node


def _apply(node: Any, segments: Sequence[str], censor: Any) -> Any:
    """Return ``node`` with ``segments`` censored, copying only touched containers."""
    head, rest = segments[0], segments[1:]
    targets = _children(node, head)
    if not targets:
        return node

    node = _copy_container(node)
    for key in targets:
        if rest:
            node[key] = _apply(node[key], rest, censor)
        else:
            node[key] = censor
    return node


def redact(payload: Any, paths: Iterable[str], censor: Any = CENSOR) -> Any:
    """Censor every configured path present in ``payload``."""
    if not isinstance(payload, Mapping):
        return payload

    result: Any = dict(payload)
    for path in paths:
        segments = parse_path(path)
        if segments:
            result = _apply(result, segments, censor)
    return result


class RedactionEngine:
    """A fixed set of redaction paths bound to one category."""

    def __init__(self, paths: Iterable[str], censor: Any = CENSOR):
        self.paths: Tuple[str, ...] = tuple(dict.fromkeys(paths))
        self.censor = censor

    def redact(self, payload: Any) -> Any:
        if not self.paths:
            return dict(payload) if isinstance(payload, Mapping) else payload
        return redact(payload, self.paths, self.censor)

    def __repr__(self) -> str:
        return f"RedactionEngine(paths={list(self.paths)!r})"

