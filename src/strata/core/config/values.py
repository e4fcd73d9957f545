"""Settings value trees.

Raw settings documents use flat dotted keys (``{"editor.fontSize": 12}``)
while models hold nested trees (``{"editor": {"fontSize": 12}}``). The pure
functions here convert between the two shapes and read/write single keys.

Keys of the form ``[python]`` or ``[javascript][typescript]`` are override
sections; their identifiers are parsed with :func:`override_identifiers_from_key`.
"""
from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from strata.core.utils.merge import is_object

ConflictReporter = Callable[[str], None]

OVERRIDE_IDENTIFIER_PATTERN = r"\[([^\]]+)\]"
OVERRIDE_PROPERTY_PATTERN = rf"^({OVERRIDE_IDENTIFIER_PATTERN})+$"

OVERRIDE_IDENTIFIER_REGEX = re.compile(OVERRIDE_IDENTIFIER_PATTERN)
OVERRIDE_PROPERTY_REGEX = re.compile(OVERRIDE_PROPERTY_PATTERN)


def is_override_key(key: str) -> bool:
    """Return True when ``key`` names an override section such as ``[python]``."""
    return bool(OVERRIDE_PROPERTY_REGEX.match(key))


def override_identifiers_from_key(key: str) -> List[str]:
    """Return the distinct, trimmed identifiers of an override section key.

    Example:
        >>> override_identifiers_from_key("[javascript][ typescript ]")
        ['javascript', 'typescript']
        >>> override_identifiers_from_key("editor.fontSize")
        []
    """
    identifiers: List[str] = []
    if not is_override_key(key):
        return identifiers
    for match in OVERRIDE_IDENTIFIER_REGEX.finditer(key):
        identifier = match.group(1).strip()
        if identifier and identifier not in identifiers:
            identifiers.append(identifier)
    return identifiers


def key_from_override_identifiers(identifiers: Iterable[str]) -> str:
    return "".join(f"[{identifier}]" for identifier in identifiers)


def _describe(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


def add_to_value_tree(
    root: Dict[str, Any],
    key: str,
    value: Any,
    conflict_reporter: ConflictReporter,
) -> None:
    """Write ``value`` at dotted ``key`` inside ``root``.

    Intermediate objects are created as needed. When a prefix of the key
    already holds a non-object value, the write is skipped and reported;
    existing values are never replaced by an implicit object.
    """
    segments = key.split(".")
    last = segments.pop()
    current: Any = root
    for index, segment in enumerate(segments):
        node = current.get(segment)
        if node is None and segment not in current:
            node = current[segment] = {}
        elif node is None:
            conflict_reporter(f"Ignoring {key} as {'.'.join(segments[: index + 1])} is null")
            return
        elif not is_object(node):
            conflict_reporter(
                f"Ignoring {key} as {'.'.join(segments[: index + 1])} is {_describe(node)}"
            )
            return
        current = node
    current[last] = value


def to_values_tree(properties: Mapping[str, Any], conflict_reporter: ConflictReporter) -> Dict[str, Any]:
    """Fold flat dotted ``properties`` into a nested tree (last write wins)."""
    root: Dict[str, Any] = {}
    for key, value in properties.items():
        add_to_value_tree(root, key, value, conflict_reporter)
    return root


def flatten_values_tree(tree: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Inverse of :func:`to_values_tree`: map every leaf to its dotted key.

    Empty objects are kept as leaves so that the tree can be rebuilt exactly.
    Override sections are kept whole under their ``[id]`` key.
    """
    flat: Dict[str, Any] = {}
    for key, value in tree.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if is_object(value) and value and not (not prefix and is_override_key(key)):
            flat.update(flatten_values_tree(value, dotted))
        else:
            flat[dotted] = value
    return flat


def remove_from_value_tree(tree: Dict[str, Any], key: str) -> None:
    """Delete dotted ``key`` from ``tree``, pruning objects left empty."""
    _remove(tree, key.split("."))


def _remove(tree: Dict[str, Any], segments: List[str]) -> None:
    first, rest = segments[0], segments[1:]
    if not rest:
        tree.pop(first, None)
        return
    value = tree.get(first)
    if is_object(value):
        _remove(value, rest)
        if not value:
            del tree[first]


def get_configuration_value(tree: Any, section: str, default: Optional[Any] = None) -> Any:
    """Read dotted ``section`` from ``tree``; return ``default`` on a miss."""
    current = tree
    for component in section.split("."):
        if not is_object(current):
            return default
        current = current.get(component)
    return default if current is None else current


__all__ = [
    "ConflictReporter",
    "OVERRIDE_PROPERTY_PATTERN",
    "OVERRIDE_PROPERTY_REGEX",
    "is_override_key",
    "override_identifiers_from_key",
    "key_from_override_identifiers",
    "add_to_value_tree",
    "to_values_tree",
    "flatten_values_tree",
    "remove_from_value_tree",
    "get_configuration_value",
]
