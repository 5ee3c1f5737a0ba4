from dataclasses import dataclass, field


@dataclass
class PerformanceMetrics:
    """Track performance metrics for chat gateway operations."""

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    upstream_calls: int = 0
    upstream_attempts: int = 0
    total_upstream_time_ms: float = 0.0
    failures: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_upstream_time_ms(self) -> float:
        """Calculate average wall time of an upstream resolution, retries included."""
        if self.upstream_calls == 0:
            return 0.0
        return self.total_upstream_time_ms / self.upstream_calls

    def record_hit(self) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        self.total_queries += 1
        self.cache_misses += 1

    def record_upstream_call(self, duration_ms: float, attempts: int) -> None:
        """Record one upstream resolution, successful or not, and the attempts it took."""
        self.upstream_calls += 1
        self.upstream_attempts += attempts
        self.total_upstream_time_ms += duration_ms

    def record_failure(self, kind: str) -> None:
        """Record a failed request by error kind."""
        self.failures[kind] = self.failures.get(kind, 0) + 1

    def to_dict(self) -> dict[str, float | int | dict[str, int]]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "upstream_calls": self.upstream_calls,
            "upstream_attempts": self.upstream_attempts,
            "avg_upstream_time_ms": self.avg_upstream_time_ms,
            "failures": dict(self.failures),
        }
