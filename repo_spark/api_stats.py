"""
Call-count instrumentation for upstream API requests.

Purely observational: nothing in the analysis depends on these numbers.
"""

import threading
import time
from typing import Any, NamedTuple

RECENT_ACTIVITY_SIZE = 20


class ApiCall(NamedTuple):
    endpoint: str
    method: str
    timestamp: float  # seconds since the epoch
    from_cache: bool
    response_time: float | None  # milliseconds


class _EndpointStats:
    __slots__ = ("count", "cache_hits", "avg_response_time", "last_called")

    def __init__(self):
        self.count = 0
        self.cache_hits = 0
        self.avg_response_time = 0.0
        self.last_called = 0.0


class ApiStatsTracker:
    """Thread-safe record of the most recent API calls and per-endpoint totals."""

    def __init__(self, max_calls: int = 1000):
        self.max_calls = max_calls
        self._calls: list[ApiCall] = []
        self._endpoints: dict[str, _EndpointStats] = {}
        self._lock = threading.Lock()

    def track_call(
        self,
        endpoint: str,
        method: str = "GET",
        from_cache: bool = False,
        response_time: float | None = None,
        timestamp: float | None = None,
    ) -> None:
        """
        Record one call.

        Args:
            endpoint: Request path, e.g. ``/repos/{owner}/{repo}/commits``.
            method: HTTP method.
            from_cache: True when the response was served from MemoryCache.
            response_time: Upstream latency in milliseconds, if measured.
            timestamp: Epoch seconds of the call (defaults to now).
        """
        call = ApiCall(
            endpoint,
            method,
            time.time() if timestamp is None else timestamp,
            from_cache,
            response_time,
        )
        with self._lock:
            self._calls.append(call)
            if len(self._calls) > self.max_calls:
                self._calls = self._calls[-self.max_calls :]

            stats = self._endpoints.setdefault(endpoint, _EndpointStats())
            stats.count += 1
            stats.last_called = call.timestamp
            if from_cache:
                stats.cache_hits += 1
            if response_time is not None:
                # Running mean over calls that reached the upstream API
                upstream_calls = stats.count - stats.cache_hits
                if upstream_calls > 0:
                    stats.avg_response_time = (
                        stats.avg_response_time * (upstream_calls - 1) + response_time
                    ) / upstream_calls

    def get_stats(self, now: float | None = None) -> dict[str, Any]:
        """
        Summarise recorded calls.

        Ages (``lastCalledAgo``, ``timeAgo``) are in milliseconds relative to
        ``now`` (epoch seconds, defaults to the current time).
        """
        now = time.time() if now is None else now
        with self._lock:
            calls = list(self._calls)
            endpoints = {
                endpoint: (
                    stats.count,
                    stats.cache_hits,
                    stats.avg_response_time,
                    stats.last_called,
                )
                for endpoint, stats in self._endpoints.items()
            }

        total_calls = len(calls)
        total_cache_hits = sum(1 for call in calls if call.from_cache)
        api_calls_last_hour = sum(
            1 for call in calls if not call.from_cache and now - call.timestamp < 3600
        )
        api_calls_last_day = sum(
            1 for call in calls if not call.from_cache and now - call.timestamp < 86400
        )

        endpoint_rows = [
            {
                "endpoint": endpoint,
                "count": count,
                "cacheHits": cache_hits,
                "avgResponseTime": avg_response_time,
                "lastCalled": last_called,
                "cacheHitRate": cache_hits / count if count else 0,
                "lastCalledAgo": (now - last_called) * 1000,
            }
            for endpoint, (count, cache_hits, avg_response_time, last_called) in endpoints.items()
        ]
        endpoint_rows.sort(key=lambda row: row["count"], reverse=True)

        recent_activity = [
            {
                "endpoint": call.endpoint,
                "method": call.method,
                "timestamp": call.timestamp,
                "fromCache": call.from_cache,
                "responseTime": call.response_time,
                "timeAgo": (now - call.timestamp) * 1000,
            }
            for call in calls[-RECENT_ACTIVITY_SIZE:]
        ]

        return {
            "summary": {
                "totalCalls": total_calls,
                "totalApiCalls": total_calls - total_cache_hits,
                "totalCacheHits": total_cache_hits,
                "cacheHitRate": total_cache_hits / total_calls if total_calls else 0,
                "apiCallsLastHour": api_calls_last_hour,
                "apiCallsLastDay": api_calls_last_day,
            },
            "endpoints": endpoint_rows,
            "recentActivity": recent_activity,
        }

    def reset(self) -> None:
        with self._lock:
            self._calls = []
            self._endpoints.clear()
