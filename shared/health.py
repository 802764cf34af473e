"""
Health Check Aggregation

Named health procedures run concurrently with a per-procedure timeout and are
folded into a single UP/DOWN outcome for liveness probes.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    """Outcome of a single check or of the whole report."""

    UP = "UP"
    DOWN = "DOWN"


@dataclass
class Status:
    """Status returned by a health procedure."""

    status: HealthStatus
    data: dict[str, Any] | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> "Status":
        return cls(HealthStatus.UP, data)

    @classmethod
    def ko(cls, data: dict[str, Any] | None = None) -> "Status":
        return cls(HealthStatus.DOWN, data)

    @property
    def is_up(self) -> bool:
        return self.status == HealthStatus.UP


@dataclass
class CheckResult:
    """Result of running one named procedure."""

    id: str
    status: HealthStatus
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "status": self.status.value}
        if self.data:
            result["data"] = self.data
        return result


@dataclass
class HealthReport:
    """Aggregated result of every registered procedure."""

    outcome: HealthStatus
    checks: list[CheckResult] = field(default_factory=list)

    @property
    def is_up(self) -> bool:
        return self.outcome == HealthStatus.UP

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "checks": [check.to_dict() for check in self.checks],
        }


HealthProcedure = Callable[[], Awaitable[Status | bool]]


class HealthCheckRegistry:
    """
    Registry of named health procedures.

    A procedure that raises or exceeds the timeout is reported DOWN.
    The report is UP only when every procedure is UP.
    """

    def __init__(self, timeout: float = 1.0):
        """
        Initialize registry.

        Args:
            timeout: Seconds each procedure may take before it is reported DOWN
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._procedures: dict[str, HealthProcedure] = {}

    @property
    def names(self) -> list[str]:
        return list(self._procedures)

    def register(self, name: str, procedure: HealthProcedure) -> "HealthCheckRegistry":
        """Register a procedure under a unique name."""
        if name in self._procedures:
            raise ValueError(f"Health procedure already registered: {name}")
        self._procedures[name] = procedure
        logger.debug("Health procedure registered", check=name)
        return self

    def unregister(self, name: str) -> None:
        self._procedures.pop(name, None)

    async def run_check(self, name: str) -> CheckResult:
        """
        Run a single procedure.

        Args:
            name: Registered procedure name

        Returns:
            CheckResult for the procedure

        Raises:
            KeyError: If no procedure is registered under that name
        """
        procedure = self._procedures[name]
        try:
            result = await asyncio.wait_for(procedure(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Health procedure timed out", check=name, timeout=self.timeout)
            return CheckResult(name, HealthStatus.DOWN, {"cause": "timeout"})
        except Exception as e:
            logger.warning("Health procedure failed", check=name, error=str(e))
            return CheckResult(name, HealthStatus.DOWN, {"cause": str(e)})

        if isinstance(result, bool):
            result = Status.ok() if result else Status.ko()
        return CheckResult(name, result.status, result.data)

    async def check(self) -> HealthReport:
        """Run every procedure concurrently and aggregate the outcome."""
        checks = list(await asyncio.gather(*(self.run_check(name) for name in self._procedures)))
        outcome = (
            HealthStatus.UP
            if all(check.status == HealthStatus.UP for check in checks)
            else HealthStatus.DOWN
        )
        if outcome == HealthStatus.DOWN:
            logger.warning(
                "Health check is down",
                failing=[check.id for check in checks if check.status == HealthStatus.DOWN],
            )
        return HealthReport(outcome, checks)
