"""Usage tracking for dispatched backend calls.

Every tracked call produces exactly one record. Summaries are computed
from scratch on each request, which is fine for process-local volumes.
"""

import threading
import time
from typing import Awaitable, Callable, TypeVar

from shared.errors import error_message
from shared.logging import get_logger
from shared.models import ProviderUsageSummary, UsageRecord, UsageSummary

logger = get_logger(__name__)

T = TypeVar("T")

RECENT_ERRORS_LIMIT = 10


def _now_ms() -> int:
    return int(time.time() * 1000)


class UsageTracker:
    """
    Records success, failure and latency of every backend call.

    Responsibilities:
    - Time tracked operations and append one record each
    - Re-raise failures untouched
    - Aggregate per-provider summaries on demand
    """

    def __init__(self) -> None:
        self._records: list[UsageRecord] = []
        self._lock = threading.Lock()
        self._start_ms = _now_ms()

    def record(self, entry: UsageRecord) -> None:
        """Append a usage record."""
        with self._lock:
            self._records.append(entry)

    async def track(
        self,
        provider: str,
        model: str,
        tool: str,
        operation: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run an operation and record its outcome.

        Args:
            provider: Provider name
            model: Model the call targets
            tool: Tool that dispatched the call
            operation: Zero-argument callable returning the awaitable call

        Returns:
            The operation's result

        Raises:
            Whatever the operation raised, unchanged
        """
        start = _now_ms()
        started = time.perf_counter()
        try:
            result = await operation()
        except BaseException as e:
            self.record(UsageRecord(
                provider=provider,
                model=model,
                tool=tool,
                timestamp=start,
                duration_ms=int((time.perf_counter() - started) * 1000),
                success=False,
                error=error_message(e),
            ))
            logger.info(
                "Backend call failed",
                provider=provider,
                model=model,
                tool=tool,
                error=error_message(e)
            )
            raise

        self.record(UsageRecord(
            provider=provider,
            model=model,
            tool=tool,
            timestamp=start,
            duration_ms=int((time.perf_counter() - started) * 1000),
            success=True,
        ))
        return result

    def get_records(self) -> list[UsageRecord]:
        """Return a copy of all records in emission order."""
        with self._lock:
            return list(self._records)

    def get_summary(self) -> UsageSummary:
        """Compute uptime, totals, per-provider aggregates and recent errors."""
        records = self.get_records()

        by_provider: dict[str, list[UsageRecord]] = {}
        for r in records:
            by_provider.setdefault(r.provider, []).append(r)

        providers = []
        for name, provider_records in by_provider.items():
            models: dict[str, int] = {}
            for r in provider_records:
                models[r.model] = models.get(r.model, 0) + 1

            success_count = sum(1 for r in provider_records if r.success)
            total_duration = sum(r.duration_ms for r in provider_records)

            providers.append(ProviderUsageSummary(
                provider=name,
                total_requests=len(provider_records),
                success_count=success_count,
                error_count=len(provider_records) - success_count,
                # Half-up rounding of the mean
                avg_duration_ms=int(total_duration / len(provider_records) + 0.5),
                last_used=provider_records[-1].timestamp,
                models=models,
            ))

        recent_errors = [r for r in records if not r.success][-RECENT_ERRORS_LIMIT:]

        return UsageSummary(
            uptime_ms=_now_ms() - self._start_ms,
            total_requests=len(records),
            providers=providers,
            recent_errors=recent_errors,
        )
