"""Counters and response time histograms of the executed actions."""

from __future__ import annotations

import math
import threading
from bisect import bisect_left
from collections import Counter

RESPONSE_TIME_METRIC = "bdindexer_action_response_time"
ACTIONS_COUNT_METRIC = "bdindexer_actions_total_count"
ERRORS_COUNT_METRIC = "bdindexer_actions_error_count"

RESPONSE_TIME_BUCKETS = (0.5, 1.0, 2.0, 3.0, 4.0, 5.0)

STATUS_OK = 200
STATUS_INTERNAL_SERVER_ERROR = 500


class ActionMetrics:
    """Thread-safe metrics of the actions, labelled by path and HTTP status."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[tuple[str, str]] = Counter()
        self._errors: Counter[tuple[str, str]] = Counter()
        self._buckets: dict[str, list[int]] = {}

    def success(self, path: str) -> None:
        """Count a successfully executed action."""
        with self._lock:
            self._counts[(path, str(STATUS_OK))] += 1

    def error(self, path: str) -> None:
        """Count an action that ended with an error."""
        with self._lock:
            self._errors[(path, str(STATUS_INTERNAL_SERVER_ERROR))] += 1

    def observe(self, path: str, seconds: float) -> None:
        """Record how long an action has taken."""
        index = bisect_left(RESPONSE_TIME_BUCKETS, seconds)
        with self._lock:
            counts = self._buckets.setdefault(path, [0] * (len(RESPONSE_TIME_BUCKETS) + 1))
            counts[index] += 1

    def count(self, path: str, status: int | str) -> int:
        """Return how many actions on path were counted with the given status."""
        with self._lock:
            return self._counts[(path, str(status))]

    def error_count(self, path: str, status: int | str) -> int:
        """Return how many errors on path were counted with the given status."""
        with self._lock:
            return self._errors[(path, str(status))]

    def bucket_counts(self, path: str) -> dict[float, int]:
        """Return the cumulative histogram of response times, keyed by upper bound."""
        with self._lock:
            counts = list(self._buckets.get(path, [0] * (len(RESPONSE_TIME_BUCKETS) + 1)))
        result: dict[float, int] = {}
        total = 0
        for bound, amount in zip((*RESPONSE_TIME_BUCKETS, math.inf), counts):
            total += amount
            result[bound] = total
        return result