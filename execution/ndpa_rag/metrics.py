"""
Metrics Collection for the NDPA Agent

Tracks agent request latency, failures, which matcher tier answered
each search-ndpa call, and the evaluation scores of answered requests.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from collections import defaultdict
from typing import Optional
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


@dataclass
class QueryMetrics:
    """Metrics for a single agent request."""
    query_id: str
    agent_id: str
    query_text: str
    start_time: float
    end_time: float = 0
    latency_ms: float = 0
    tool_calls: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "query_id": self.query_id,
            "agent_id": self.agent_id,
            "query_text": self.query_text,
            "latency_ms": round(self.latency_ms, 2),
            "tool_calls": self.tool_calls,
            "error": self.error,
        }


@dataclass
class SystemMetrics:
    """Aggregated system metrics."""
    total_queries: int = 0
    successful_queries: int = 0
    failed_queries: int = 0

    # Latency tracking (in ms)
    total_latency_ms: float = 0
    min_latency_ms: float = float('inf')
    max_latency_ms: float = 0
    latencies: list = field(default_factory=list)

    # Matcher tiers: citation / keyword / none
    matches_by_tier: dict = field(default_factory=lambda: defaultdict(int))
    tool_calls: int = 0

    errors_by_type: dict = field(default_factory=lambda: defaultdict(int))
    queries_by_agent: dict = field(default_factory=lambda: defaultdict(int))

    # Scorer key -> count / running total of 0-1 scores
    score_counts: dict = field(default_factory=lambda: defaultdict(int))
    score_totals: dict = field(default_factory=lambda: defaultdict(float))

    def avg_score(self, scorer: str) -> float:
        count = self.score_counts.get(scorer, 0)
        if count == 0:
            return 0
        return self.score_totals[scorer] / count

    @property
    def avg_latency_ms(self) -> float:
        """Calculate average request latency."""
        if self.total_queries == 0:
            return 0
        return self.total_latency_ms / self.total_queries

    @property
    def p95_latency_ms(self) -> float:
        """Calculate 95th percentile latency."""
        if not self.latencies:
            return 0
        sorted_latencies = sorted(self.latencies)
        index = int(len(sorted_latencies) * 0.95)
        return sorted_latencies[min(index, len(sorted_latencies) - 1)]

    @property
    def no_match_rate(self) -> float:
        """Share of searches that fell through to the N/A sentinel."""
        total = sum(self.matches_by_tier.values())
        if total == 0:
            return 0
        return self.matches_by_tier.get("none", 0) / total

    @property
    def error_rate(self) -> float:
        """Calculate error rate."""
        if self.total_queries == 0:
            return 0
        return self.failed_queries / self.total_queries

    def to_dict(self) -> dict:
        """Convert to dictionary for the metrics endpoint."""
        return {
            "queries": {
                "total": self.total_queries,
                "successful": self.successful_queries,
                "failed": self.failed_queries,
                "error_rate": f"{self.error_rate:.2%}",
            },
            "latency_ms": {
                "avg": round(self.avg_latency_ms, 2),
                "min": round(self.min_latency_ms, 2) if self.min_latency_ms != float('inf') else 0,
                "max": round(self.max_latency_ms, 2),
                "p95": round(self.p95_latency_ms, 2),
            },
            "search": {
                "tool_calls": self.tool_calls,
                "by_tier": dict(self.matches_by_tier),
                "no_match_rate": f"{self.no_match_rate:.2%}",
            },
            "errors": dict(self.errors_by_type),
            "agents": dict(self.queries_by_agent),
            "scores": {
                scorer: {"count": count, "avg": round(self.avg_score(scorer), 4)}
                for scorer, count in self.score_counts.items()
            },
        }


class MetricsCollector:
    """
    Collects and aggregates agent metrics.

    Usage:
        collector = get_metrics_collector()

        with collector.track_query("ndpaAgent", question) as tracker:
            response = agent.generate(messages)
            tracker.set_tool_calls(len(response.tool_results))
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern for global metrics collection."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.metrics = SystemMetrics()
        self._query_history: list[QueryMetrics] = []
        self._max_history = 1000
        self._start_time = datetime.now()
        # Agents, tools and scorers record from threadpool workers
        self._lock = threading.Lock()
        self._initialized = True

    def reset(self):
        """Reset all metrics (for testing)."""
        with self._lock:
            self.metrics = SystemMetrics()
            self._query_history = []
            self._start_time = datetime.now()

    class QueryTracker:
        """Context manager for tracking one agent request."""

        def __init__(self, collector: 'MetricsCollector', agent_id: str, query_text: str):
            self.collector = collector
            self.query = QueryMetrics(
                query_id=f"q_{int(time.time() * 1000)}",
                agent_id=agent_id,
                query_text=query_text[:200],
                start_time=time.time(),
            )

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            self.query.end_time = time.time()
            self.query.latency_ms = (self.query.end_time - self.query.start_time) * 1000

            if exc_type:
                self.query.error = str(exc_val)
                self.collector._record_error(exc_type.__name__)

            self.collector._record_query(self.query)
            return False  # Don't suppress exceptions

        def set_tool_calls(self, count: int):
            self.query.tool_calls = count

    def track_query(self, agent_id: str, query_text: str) -> QueryTracker:
        """Create a request tracker context manager."""
        return self.QueryTracker(self, agent_id, query_text)

    def _record_query(self, query: QueryMetrics):
        """Record completed request metrics."""
        with self._lock:
            self.metrics.total_queries += 1

            if query.error:
                self.metrics.failed_queries += 1
            else:
                self.metrics.successful_queries += 1

            self.metrics.total_latency_ms += query.latency_ms
            self.metrics.min_latency_ms = min(self.metrics.min_latency_ms, query.latency_ms)
            self.metrics.max_latency_ms = max(self.metrics.max_latency_ms, query.latency_ms)
            self.metrics.latencies.append(query.latency_ms)

            if len(self.metrics.latencies) > self._max_history:
                self.metrics.latencies = self.metrics.latencies[-self._max_history:]

            self.metrics.queries_by_agent[query.agent_id] += 1

            self._query_history.append(query)
            if len(self._query_history) > self._max_history:
                self._query_history = self._query_history[-self._max_history:]

    def _record_error(self, error_type: str):
        """Record an error by type."""
        with self._lock:
            self.metrics.errors_by_type[error_type] += 1

    def record_match(self, tier):
        """Record which matcher tier answered a search-ndpa call."""
        with self._lock:
            self.metrics.tool_calls += 1
            self.metrics.matches_by_tier[getattr(tier, "value", tier)] += 1

    def record_score(self, scorer: str, score: float):
        """Record one evaluation score (0-1) under its scorer key."""
        with self._lock:
            self.metrics.score_counts[scorer] += 1
            self.metrics.score_totals[scorer] += score

    def get_metrics(self) -> SystemMetrics:
        return self.metrics

    def get_metrics_dict(self) -> dict:
        return self.metrics.to_dict()

    def get_recent_queries(self, limit: int = 10) -> list[QueryMetrics]:
        """Get most recent requests."""
        with self._lock:
            return self._query_history[-limit:]

    def get_uptime(self) -> timedelta:
        return datetime.now() - self._start_time


# Global metrics collector instance
_collector = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector
