"""
Health check aggregation — probe for the logging pipeline.

Checks:
    • Category loggers registered from the Schema
    • Log directory exists / is writable, with enough free disk space

Returns a structured health report suitable for:
    - Kubernetes liveness/readiness probes
    - Load balancer health checks
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from backend.app.core.config import Settings, settings
from backend.app.observability.registry import LoggerRegistry

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = settings.APP_VERSION
    environment: str = settings.ENVIRONMENT
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


# Track application start time
_start_time = time.monotonic()


def check_category_loggers(registry: Optional[LoggerRegistry]) -> ComponentHealth:
    """Every Schema entry should have produced a category logger."""
    comp = ComponentHealth(name="category_loggers")
    start = time.monotonic()

    if registry is None:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "Logger registry not initialised"
    elif len(registry) == 0:
        comp.status = HealthStatus.DEGRADED
        comp.message = "Schema defines no category loggers"
    else:
        comp.message = f"{len(registry)} category logger(s) ready"
        comp.details = {"categories": registry.categories}

    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def check_log_directory(config: Settings) -> ComponentHealth:
    """Log directory writable and disk space available."""
    comp = ComponentHealth(name="log_directory")
    start = time.monotonic()

    if not config.LOG_FILE_ENABLED:
        comp.message = "File destinations disabled"
        comp.latency_ms = (time.monotonic() - start) * 1000
        return comp

    path = config.LOG_DIR
    try:
        if not os.path.isdir(path):
            comp.status = HealthStatus.UNHEALTHY
            comp.message = f"Log directory missing: {path}"
        elif not os.access(path, os.W_OK):
            comp.status = HealthStatus.UNHEALTHY
            comp.message = f"Log directory not writable: {path}"
        else:
            total, used, free = shutil.disk_usage(path)
            free_gb = free / (1024 ** 3)
            comp.details = {
                "path": path,
                "free_gb": round(free_gb, 1),
                "used_pct": round((used / total) * 100, 1),
            }
            if free_gb < 1.0:
                comp.status = HealthStatus.DEGRADED
                comp.message = f"Low disk space: {free_gb:.1f} GB free"
            else:
                comp.message = f"{free_gb:.1f} GB free"
    except OSError as e:
        comp.status = HealthStatus.DEGRADED
        comp.message = str(e)

    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def run_health_check(
    registry: Optional[LoggerRegistry], config: Settings = settings,
) -> HealthReport:
    """Run all health checks and aggregate into a report."""
    report = HealthReport(
        version=config.APP_VERSION,
        environment=config.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=time.monotonic() - _start_time,
    )

    report.components.append(check_category_loggers(registry))
    report.components.append(check_log_directory(config))

    # Aggregate status
    statuses = [c.status for c in report.components]
    if HealthStatus.UNHEALTHY in statuses:
        report.status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        report.status = HealthStatus.DEGRADED
    else:
        report.status = HealthStatus.HEALTHY

    return report
