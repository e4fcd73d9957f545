"""Canonical deep merge utilities for settings trees.

Settings trees are JSON-like: ``dict`` objects with string keys, ``list``
arrays and scalars. Merging follows settings semantics:
- Objects merge key-by-key, recursively
- Arrays and scalars from the higher priority side replace the lower one
- Values copied out of the higher priority side are deep clones, so the
  result never aliases either input
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping


def is_object(value: Any) -> bool:
    """Return True for object-valued (mapping) tree nodes."""
    return isinstance(value, dict)


def deep_clone(value: Any) -> Any:
    """Return a deep copy of a settings tree or value."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return copy.deepcopy(value)


def merge_into(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``target`` in place and return ``target``.

    Args:
        target: Lower priority tree (mutated)
        source: Higher priority tree (not mutated)

    Returns:
        The mutated ``target``

    Example:
        >>> merge_into({"a": {"x": 1}}, {"a": {"y": 2}})
        {'a': {'x': 1, 'y': 2}}
    """
    for key, value in source.items():
        if key in target and is_object(target[key]) and is_object(value):
            merge_into(target[key], value)
            continue
        target[key] = deep_clone(value)
    return target


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        New merged dictionary

    Example:
        >>> base = {"editor": {"tabSize": 4, "wordWrap": "off"}}
        >>> deep_merge(base, {"editor": {"tabSize": 2}})
        {'editor': {'tabSize': 2, 'wordWrap': 'off'}}
    """
    return merge_into(deep_clone(dict(base)), override or {})


def deep_equal(left: Any, right: Any) -> bool:
    """Compare two settings values, treating differently typed scalars as different.

    ``1``, ``1.0`` and ``True`` are distinct settings values, unlike under ``==``.

    Example:
        >>> deep_equal({"a": [1]}, {"a": [True]})
        False
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        if left.keys() != right.keys():
            return False
        return all(deep_equal(value, right[key]) for key, value in left.items())
    if isinstance(left, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    return left == right


__all__ = ["is_object", "deep_clone", "deep_equal", "merge_into", "deep_merge"]
