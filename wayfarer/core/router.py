"""Hybrid decision router.

Arbitrates between the local goal ranking and an optional advisory
service. Precedence for each `route()` call:

1. a fresh cached recommendation for an equivalent context (`source=cache`)
2. the advisory service, bounded by a deadline (`source=advisory`)
3. the locally top-ranked candidate (`source=local`)

The advisory call runs on a single worker thread so `route()` never waits
past its deadline. A result that arrives late is cached for later ticks.
At most one advisory call is in flight at a time, and calls are limited
by an hourly budget.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict, deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass

from wayfarer.config.loader import AdvisoryConfig
from wayfarer.core.metrics import MetricsCollector
from wayfarer.interfaces.advisory import AdvisoryService, AdvisorySuggestion
from wayfarer.models.decisions import AIRecommendation, DecisionContext, RecommendationSource

logger = logging.getLogger(__name__)

BUDGET_WINDOW_SECONDS = 3600.0


@dataclass
class _CacheEntry:
    recommendation: AIRecommendation
    stored_at: float


def context_cache_key(context: DecisionContext) -> str:
    """Hash a context after bucketing its continuous values.

    Contexts that differ only by a few points of health or food map to the
    same key, so a recommendation stays reusable across nearby ticks.
    """
    bucketed = {
        "health": int(context.health_percent // 10),
        "food": int(context.food_percent // 10),
        "night": context.is_night,
        "threats": min(context.threat_count, 5),
        "inventory": int(context.inventory_fullness * 4),
        "tools": context.has_tools,
        "candidates": list(context.candidates),
    }
    return hashlib.sha256(json.dumps(bucketed, sort_keys=True).encode()).hexdigest()


class DecisionRouter:
    """Routes decision contexts to cached, advisory or local recommendations."""

    def __init__(
        self,
        advisory: AdvisoryService | None = None,
        config: AdvisoryConfig | None = None,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the router.

        Args:
            advisory: Optional advisory service. None means local only.
            config: Deadline, cache and budget settings.
            metrics: Optional metrics sink for routing counts.
            clock: Wall-clock source in seconds (cache TTL and budget).
        """
        self._advisory = advisory
        self._config = config or AdvisoryConfig()
        self._metrics = metrics
        self._clock = clock

        self._lock = threading.Lock()
        self._cache: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._call_times: deque[float] = deque()
        self._executor: ThreadPoolExecutor | None = None
        self._in_flight: Future[AdvisorySuggestion] | None = None

        self._cache_hits = 0
        self._advisory_successes = 0
        self._advisory_failures = 0
        self._advisory_timeouts = 0
        self._advisory_late_results = 0
        self._local_fallbacks = 0

    @property
    def has_advisory(self) -> bool:
        return self._advisory is not None

    def route(self, context: DecisionContext) -> AIRecommendation | None:
        """Recommend the next goal for a context.

        Returns:
            A recommendation, or None when the context has no candidates.
            Never raises for advisory problems.
        """
        if not context.candidates:
            return None

        key = context_cache_key(context)
        cached = self._get_cached(key)
        if cached is not None:
            return self._emit(cached.model_copy(update={"source": RecommendationSource.CACHE}))

        suggestion = self._ask_advisory(context, key)
        if suggestion is not None:
            try:
                recommendation = self._to_recommendation(suggestion)
            except (TypeError, ValueError) as e:
                logger.warning(f"[ROUTER] Discarding invalid advisory suggestion: {e}")
            else:
                self._store(key, recommendation)
                return self._emit(recommendation)

        with self._lock:
            self._local_fallbacks += 1
        return self._emit(self.local_recommendation(context))

    @staticmethod
    def local_recommendation(context: DecisionContext) -> AIRecommendation:
        """Echo the locally top-ranked candidate."""
        return AIRecommendation(
            action=context.candidates[0],
            source=RecommendationSource.LOCAL,
            confidence=1.0,
            rationale="Top-ranked local candidate",
        )

    def _emit(self, recommendation: AIRecommendation) -> AIRecommendation:
        if self._metrics is not None:
            self._metrics.record_route(recommendation.source.value)
        logger.debug(f"[ROUTER] {recommendation.source}: {recommendation.action}")
        return recommendation

    def _to_recommendation(self, suggestion: AdvisorySuggestion) -> AIRecommendation:
        return AIRecommendation(
            action=suggestion.action,
            source=RecommendationSource.ADVISORY,
            confidence=max(0.0, min(1.0, float(suggestion.confidence))),
            rationale=suggestion.rationale,
        )

    # --- cache ---

    def _get_cached(self, key: str) -> AIRecommendation | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > self._config.cache_ttl_seconds:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            self._cache_hits += 1
            return entry.recommendation

    def _store(self, key: str, recommendation: AIRecommendation) -> None:
        with self._lock:
            self._cache[key] = _CacheEntry(recommendation, self._clock())
            self._cache.move_to_end(key)
            while len(self._cache) > self._config.cache_size:
                self._cache.popitem(last=False)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # --- advisory ---

    def _budget_available(self, now: float) -> bool:
        while self._call_times and now - self._call_times[0] >= BUDGET_WINDOW_SECONDS:
            self._call_times.popleft()
        return len(self._call_times) < self._config.max_calls_per_hour

    def _ask_advisory(self, context: DecisionContext, key: str) -> AdvisorySuggestion | None:
        advisory = self._advisory
        if advisory is None:
            return None

        try:
            ready = advisory.is_ready()
        except Exception as e:
            logger.debug(f"[ROUTER] Advisory readiness check failed: {e}")
            ready = False
        if not ready:
            return None

        timeout = self._config.timeout_seconds
        with self._lock:
            if self._in_flight is not None and not self._in_flight.done():
                logger.debug("[ROUTER] Advisory call still in flight; using local")
                return None
            now = self._clock()
            if not self._budget_available(now):
                logger.debug("[ROUTER] Hourly advisory budget exhausted; using local")
                return None
            self._call_times.append(now)
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="advisory")
            future = self._executor.submit(advisory.suggest, context, timeout)
            self._in_flight = future

        try:
            suggestion = future.result(timeout=timeout)
        except FuturesTimeout:
            with self._lock:
                self._advisory_timeouts += 1
            future.add_done_callback(lambda f: self._on_late_result(f, key))
            logger.debug(f"[ROUTER] Advisory did not answer within {timeout:.1f}s; using local")
            return None
        except Exception as e:
            with self._lock:
                self._advisory_failures += 1
            logger.warning(f"[ROUTER] Advisory failed, using local: {e}")
            return None

        with self._lock:
            self._advisory_successes += 1
        return suggestion

    def _on_late_result(self, future: Future[AdvisorySuggestion], key: str) -> None:
        """Cache a result that arrived after the deadline for later ticks.

        The call was already counted as a timeout, so only `advisory_late_results`
        changes here.
        """
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.debug(f"[ROUTER] Late advisory call failed: {error}")
            return
        with self._lock:
            self._advisory_late_results += 1
        try:
            recommendation = self._to_recommendation(future.result())
        except (TypeError, ValueError) as e:
            logger.debug(f"[ROUTER] Not caching invalid advisory suggestion: {e}")
            return
        self._store(key, recommendation)
        logger.debug(f"[ROUTER] Cached late advisory result: {recommendation.action}")

    def stats(self) -> dict[str, int]:
        """Routing counters."""
        with self._lock:
            return {
                "cache_size": len(self._cache),
                "cache_hits": self._cache_hits,
                "advisory_calls_last_hour": len(self._call_times),
                "advisory_successes": self._advisory_successes,
                "advisory_failures": self._advisory_failures,
                "advisory_timeouts": self._advisory_timeouts,
                "advisory_late_results": self._advisory_late_results,
                "local_fallbacks": self._local_fallbacks,
            }

    def shutdown(self) -> None:
        """Stop the advisory worker without waiting for an in-flight call."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
