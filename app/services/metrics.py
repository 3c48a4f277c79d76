"""In-process request metrics for the current server session."""

from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class Metrics:
    """Thread-safe counters for routes, cache outcomes and write-backs."""

    _lock: Lock = field(default_factory=Lock, repr=False)
    cache_hits: int = 0
    cache_misses: int = 0
    cache_skips: int = 0
    write_backs: int = 0
    write_back_failures: int = 0
    errors: int = 0
    _route_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    _route_latency_ms: dict[str, float] = field(default_factory=lambda: defaultdict(float))

    def record_request(self, route: str, latency_ms: float) -> None:
        """Record a completed request on a route."""
        with self._lock:
            self._route_counts[route] += 1
            self._route_latency_ms[route] += latency_ms

    def record_cache_hit(self) -> None:
        with self._lock:
            self.cache_hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self.cache_misses += 1

    def record_cache_skip(self) -> None:
        """Record a request that bypassed the cache (too short, unavailable, lookup error)."""
        with self._lock:
            self.cache_skips += 1

    def record_write_back(self, success: bool) -> None:
        with self._lock:
            if success:
                self.write_backs += 1
            else:
                self.write_back_failures += 1

    def record_error(self) -> None:
        """Record a request that ended in an error response."""
        with self._lock:
            self.errors += 1

    def get_stats(self) -> dict:
        """Get current statistics."""
        with self._lock:
            lookups = self.cache_hits + self.cache_misses
            hit_rate = (self.cache_hits / lookups * 100) if lookups > 0 else 0.0

            return {
                "requests": dict(self._route_counts),
                "avgLatencyMs": {
                    route: round(self._route_latency_ms[route] / count, 2)
                    for route, count in self._route_counts.items()
                    if count > 0
                },
                "cacheHits": self.cache_hits,
                "cacheMisses": self.cache_misses,
                "cacheSkips": self.cache_skips,
                "hitRatePercent": round(hit_rate, 2),
                "writeBacks": self.write_backs,
                "writeBackFailures": self.write_back_failures,
                "errors": self.errors,
            }

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.cache_hits = 0
            self.cache_misses = 0
            self.cache_skips = 0
            self.write_backs = 0
            self.write_back_failures = 0
            self.errors = 0
            self._route_counts.clear()
            self._route_latency_ms.clear()
