"""
Operational helpers for CartSync.

Provides performance tracking for async operations and health checks for the
backend. Nothing here retries: a failed call surfaces once.
"""

import time
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional

from cartsync.core.logging import performance_logger as logger


def track_performance(operation_name: str):
    """
    Decorator to track duration and outcome of a coroutine function.

    Args:
        operation_name: Name of the operation for logging
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    "Operation failed",
                    operation=operation_name,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    status="failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logger.debug(
                "Operation completed",
                operation=operation_name,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                status="success",
            )
            return result

        return wrapper

    return decorator


class HealthChecker:
    """Health checking for external services."""

    def __init__(self):
        self.checks: Dict[str, Callable[[], Awaitable[Any]]] = {}
        self.last_results: Dict[str, Dict[str, Any]] = {}

    def register_check(self, name: str, check_func: Callable[[], Awaitable[Any]]):
        """Register an async health check function."""
        self.checks[name] = check_func

    async def check_all(self) -> Dict[str, Dict[str, Any]]:
        """Run all registered health checks."""
        results = {}

        for name, check_func in self.checks.items():
            start_time = time.perf_counter()
            try:
                check_result = await check_func()
                results[name] = {
                    "status": "healthy",
                    "response_time_ms": (time.perf_counter() - start_time) * 1000,
                    "details": check_result if isinstance(check_result, dict) else {},
                }
            except Exception as e:
                results[name] = {
                    "status": "unhealthy",
                    "response_time_ms": (time.perf_counter() - start_time) * 1000,
                    "error": getattr(e, "message", None) or str(e),
                    "error_type": type(e).__name__,
                }

        self.last_results = results
        return results

    def is_healthy(self, service_name: Optional[str] = None) -> bool:
        """Check if service(s) were healthy on the last run."""
        if service_name:
            return self.last_results.get(service_name, {}).get("status") == "healthy"

        return bool(self.last_results) and all(
            result.get("status") == "healthy" for result in self.last_results.values()
        )
