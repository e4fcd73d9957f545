"""Cache instrumentation for the consolidation path.

``Configuration`` keeps one consolidated model for the workspace and one per
folder. Reads either hit those caches or rebuild them. Activating a
``CacheProfiler`` records which happened; with no active profiler the hooks
do nothing.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from time import perf_counter
from typing import Dict, Iterator, List, Optional


_ACTIVE_PROFILER: ContextVar[Optional["CacheProfiler"]] = ContextVar("_STRATA_CACHE_PROFILER", default=None)


@dataclass(frozen=True)
class BuildRecord:
    """One rebuild of a consolidated model."""

    cache: str
    folder: Optional[str]
    duration_ms: float


class CacheProfiler:
    """Counts cache hits and times cache rebuilds, keyed by cache name."""

    def __init__(self) -> None:
        self._builds: List[BuildRecord] = []
        self._hits: Dict[str, int] = {}

    @property
    def builds(self) -> List[BuildRecord]:
        return list(self._builds)

    def hits(self, cache: str) -> int:
        return self._hits.get(cache, 0)

    def build_count(self, cache: str) -> int:
        return sum(1 for record in self._builds if record.cache == cache)

    def record_hit(self, cache: str) -> None:
        self._hits[cache] = self._hits.get(cache, 0) + 1

    @contextmanager
    def build(self, cache: str, folder: Optional[str] = None) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self._builds.append(BuildRecord(cache, folder, (perf_counter() - start) * 1000.0))


@contextmanager
def profile_caches(profiler: CacheProfiler) -> Iterator[CacheProfiler]:
    token = _ACTIVE_PROFILER.set(profiler)
    try:
        yield profiler
    finally:
        _ACTIVE_PROFILER.reset(token)


@contextmanager
def cache_build(cache: str, folder: Optional[str] = None) -> Iterator[None]:
    profiler = _ACTIVE_PROFILER.get()
    if profiler is None:
        yield
        return
    with profiler.build(cache, folder):
        yield


def cache_hit(cache: str) -> None:
    profiler = _ACTIVE_PROFILER.get()
    if profiler is not None:
        profiler.record_hit(cache)


__all__ = ["CacheProfiler", "BuildRecord", "profile_caches", "cache_build", "cache_hit"]
