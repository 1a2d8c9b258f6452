"""Health reporting for the service: system resources plus dependency probes."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Sequence
import psutil

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""
    status: HealthStatus
    message: str
    details: Dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict:
        return {
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass(frozen=True)
class Probe:
    """A named dependency check.

    Attributes:
        name: Dependency name shown in the report
        check: Coroutine function returning True when the dependency is usable
        critical: Failing critical probes make the service unhealthy; others
            only degrade it (e.g. music composition, which has a fallback)
    """
    name: str
    check: Callable[[], Awaitable[bool]]
    critical: bool = True


class HealthChecker:
    """Combines host resource usage with dependency probes.

    Example:
        checker = HealthChecker([Probe("database", db_ping)])
        result = await checker.check_health()
    """

    MEMORY_DEGRADED = 85
    MEMORY_CRITICAL = 95
    DISK_DEGRADED = 85
    DISK_CRITICAL = 95

    def __init__(self, probes: Sequence[Probe] = ()):
        self.probes: List[Probe] = list(probes)
        self.start_time = time.time()

    async def check_health(self, include_details: bool = True) -> HealthCheckResult:
        """Run every probe concurrently and inspect host resources.

        Args:
            include_details: Whether to include per-probe and resource details

        Returns:
            HealthCheckResult with the overall status
        """
        probe_results = await asyncio.gather(*(self._run_probe(p) for p in self.probes))
        dependencies = {probe.name: ok for probe, ok in zip(self.probes, probe_results)}

        issues = []
        status = HealthStatus.HEALTHY

        for probe, ok in zip(self.probes, probe_results):
            if ok:
                continue
            issues.append(f"{probe.name} unavailable")
            if probe.critical:
                status = HealthStatus.UNHEALTHY
            elif status == HealthStatus.HEALTHY:
                status = HealthStatus.DEGRADED

        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        for label, percent, degraded, critical in (
            ("memory", memory.percent, self.MEMORY_DEGRADED, self.MEMORY_CRITICAL),
            ("disk", disk.percent, self.DISK_DEGRADED, self.DISK_CRITICAL),
        ):
            if percent > critical:
                status = HealthStatus.UNHEALTHY
                issues.append(f"Critical {label} usage: {percent:.1f}%")
            elif percent > degraded:
                if status == HealthStatus.HEALTHY:
                    status = HealthStatus.DEGRADED
                issues.append(f"High {label} usage: {percent:.1f}%")

        if status == HealthStatus.HEALTHY:
            message = "All systems operational"
        else:
            message = f"System {status.value}: {', '.join(issues)}"

        details = {}
        if include_details:
            uptime_seconds = time.time() - self.start_time
            details = {
                "dependencies": dependencies,
                "uptime_seconds": round(uptime_seconds, 1),
                "uptime_human": format_uptime(uptime_seconds),
                "memory_usage_percent": round(memory.percent, 2),
                "disk_usage_percent": round(disk.percent, 2),
            }

        if status != HealthStatus.HEALTHY:
            logger.warning(message)

        return HealthCheckResult(status=status, message=message, details=details)

    @staticmethod
    async def _run_probe(probe: Probe) -> bool:
        try:
            return bool(await probe.check())
        except Exception as e:
            logger.error(f"Health probe '{probe.name}' raised: {e}")
            return False


def format_uptime(seconds: float) -> str:
    """Format uptime like ``1d 2h 5m 3s``."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)
