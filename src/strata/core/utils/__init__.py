"""Utility helpers for Strata core.

This package provides:
- merge: deep clone, deep merge and strict comparison of JSON-like trees
- emitter: synchronous event emitters
- profiling: optional hit/rebuild instrumentation for the consolidation caches
"""
from __future__ import annotations

from .emitter import Emitter, Subscription
from .merge import deep_clone, deep_equal, deep_merge, is_object, merge_into
from .profiling import CacheProfiler, cache_build, cache_hit, profile_caches

__all__ = [
    "Emitter",
    "Subscription",
    "deep_clone",
    "deep_equal",
    "deep_merge",
    "is_object",
    "merge_into",
    "CacheProfiler",
    "cache_build",
    "cache_hit",
    "profile_caches",
]
