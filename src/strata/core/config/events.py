"""Change notifications for consolidated configuration."""
from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Optional, Set, Tuple, Union

from strata.core.utils.merge import deep_equal

from .configuration import (
    Configuration,
    ConfigurationChange,
    ConfigurationData,
    ConfigurationOverrides,
    FolderResolver,
)

_MARKER = "\n"
_SEGMENT = "."


class ConfigurationTarget(IntEnum):
    """Layer an update originated from."""

    APPLICATION = 1
    USER = 2
    USER_LOCAL = 3
    USER_REMOTE = 4
    WORKSPACE = 5
    WORKSPACE_FOLDER = 6
    DEFAULT = 7
    MEMORY = 8


def merge_changes(*changes: ConfigurationChange) -> ConfigurationChange:
    """Union several changes, keeping first-seen order."""
    if len(changes) == 1:
        return changes[0]
    keys: Dict[str, None] = {}
    overrides: Dict[str, Dict[str, None]] = {}
    for change in changes:
        keys.update(dict.fromkeys(change.keys))
        for identifier, override_keys in change.overrides:
            overrides.setdefault(identifier, {}).update(dict.fromkeys(override_keys))
    return ConfigurationChange(
        list(keys),
        [(identifier, list(override_keys)) for identifier, override_keys in overrides.items()],
    )


class ConfigurationChangeEvent:
    """Which sections a :class:`ConfigurationChange` touched.

    ``previous`` is the ``(snapshot, folder resolver)`` taken before the update.
    The snapshot is either a :class:`Configuration` from
    :meth:`Configuration.snapshot` or a ``to_data()`` mapping; a mapping is
    only parsed back when a listener asks about a specific resource or
    language.
    """

    def __init__(
        self,
        change: ConfigurationChange,
        previous: Optional[Tuple[Union[Configuration, ConfigurationData], Optional[FolderResolver]]],
        current_configuration: Configuration,
        current_resolve_folder: Optional[FolderResolver] = None,
        source: Optional[ConfigurationTarget] = None,
    ) -> None:
        self.change = change
        self.source = source
        self._previous = previous
        self._current_configuration = current_configuration
        self._current_resolve_folder = current_resolve_folder
        self._previous_configuration: Optional[Configuration] = None

        affected: Dict[str, None] = dict.fromkeys(change.keys)
        for _, keys in change.overrides:
            affected.update(dict.fromkeys(keys))
        self.affected_keys: Set[str] = set(affected)
        # e.g. "\nfoo.bar\nabc.def\n"
        self._affects_config_str = _MARKER + "".join(key + _MARKER for key in affected)

    @property
    def previous_configuration(self) -> Optional[Configuration]:
        if self._previous_configuration is None and self._previous is not None:
            snapshot = self._previous[0]
            self._previous_configuration = (
                snapshot if isinstance(snapshot, Configuration) else Configuration.parse(snapshot)
            )
        return self._previous_configuration

    def affects_configuration(
        self, section: str, overrides: Optional[ConfigurationOverrides] = None
    ) -> bool:
        """True when ``section`` itself or a key below it changed.

        With ``overrides``, the section's resolved value before and after the
        update is compared as well, so a change masked by the resource's folder
        or language does not count.
        """
        if not self._matches(section):
            return False
        if overrides is not None:
            return not deep_equal(
                self._previous_value(section, overrides),
                self._current_configuration.get_value(section, overrides, self._current_resolve_folder),
            )
        return True

    def _matches(self, section: str) -> bool:
        needle = _MARKER + section
        haystack = self._affects_config_str
        index = haystack.find(needle)
        while index >= 0:
            position = index + len(needle)
            if position < len(haystack) and haystack[position] in (_MARKER, _SEGMENT):
                return True
            index = haystack.find(needle, index + 1)
        return False

    def _previous_value(self, section: str, overrides: ConfigurationOverrides) -> Any:
        previous = self.previous_configuration
        if previous is None or self._previous is None:
            return None
        return previous.get_value(section, overrides, self._previous[1])

    def __repr__(self) -> str:
        return f"ConfigurationChangeEvent(source={self.source!r}, keys={sorted(self.affected_keys)!r})"


__all__ = [
    "ConfigurationTarget",
    "ConfigurationChangeEvent",
    "merge_changes",
]
