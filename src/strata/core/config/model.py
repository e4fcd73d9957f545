"""Configuration models: one layer's settings tree plus its override sections.

A :class:`ConfigurationModel` is treated as immutable once built, except for
the memory and default layers which are edited through ``set_value`` and
``remove_value``. Layer precedence is realised by ``merge``: callers always
merge from lowest to highest priority.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

from strata.core.utils.merge import deep_clone, deep_equal, is_object, merge_into

from .registry import ConfigurationRegistry, ConfigurationScope
from .values import (
    ConflictReporter,
    get_configuration_value,
    add_to_value_tree,
    is_override_key,
    override_identifiers_from_key,
    remove_from_value_tree,
    to_values_tree,
)

logger = logging.getLogger(__name__)

RawSource = Union[Mapping[str, Any], "ConfigurationModel"]


def _log_conflict(message: str) -> None:
    logger.error(message)


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


@dataclass
class ConfigurationOverride:
    """Settings that apply only while one of ``identifiers`` is active."""

    identifiers: List[str]
    keys: List[str]
    contents: Dict[str, Any]

    def clone(self) -> "ConfigurationOverride":
        return ConfigurationOverride(
            identifiers=list(self.identifiers),
            keys=list(self.keys),
            contents=deep_clone(self.contents),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "identifiers": list(self.identifiers),
            "keys": list(self.keys),
            "contents": self.contents,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ConfigurationOverride":
        return cls(
            identifiers=list(data.get("identifiers") or []),
            keys=list(data.get("keys") or []),
            contents=dict(data.get("contents") or {}),
        )


@dataclass(frozen=True)
class OverrideValue:
    identifiers: List[str]
    value: Any


class InspectValue:
    """Lazy breakdown of one section in one model.

    - ``value``: the raw (unfiltered) value
    - ``override``: the value set in the override sections for the identifier
    - ``merged``: the value with the identifier's override applied
    - ``overrides``: every override section that defines the section
    """

    def __init__(self, model: "ConfigurationModel", section: Optional[str], override_identifier: Optional[str]) -> None:
        self._model = model
        self._section = section
        self._override_identifier = override_identifier

    @cached_property
    def _raw(self) -> "ConfigurationModel":
        return self._model.raw_configuration

    @cached_property
    def value(self) -> Any:
        return deep_clone(self._raw.get_value(self._section))

    @cached_property
    def override(self) -> Any:
        if not self._override_identifier:
            return None
        return deep_clone(self._raw.get_override_value(self._section, self._override_identifier))

    @cached_property
    def merged(self) -> Any:
        if self._override_identifier:
            return deep_clone(self._raw.override(self._override_identifier).get_value(self._section))
        return deep_clone(self._raw.get_value(self._section))

    @cached_property
    def overrides(self) -> Optional[List[OverrideValue]]:
        found: List[OverrideValue] = []
        for override in self._raw.overrides:
            value = ConfigurationModel(override.contents, override.keys, []).get_value(self._section)
            if value is not None:
                found.append(OverrideValue(list(override.identifiers), deep_clone(value)))
        return found or None


class ConfigurationModel:
    """Settings tree of one layer with its override sections."""

    def __init__(
        self,
        contents: Optional[Dict[str, Any]] = None,
        keys: Optional[List[str]] = None,
        overrides: Optional[List[ConfigurationOverride]] = None,
        raw: Optional[Sequence[RawSource]] = None,
        conflict_reporter: Optional[ConflictReporter] = None,
    ) -> None:
        self._contents: Dict[str, Any] = contents if contents is not None else {}
        self._keys: List[str] = keys if keys is not None else []
        self._overrides: List[ConfigurationOverride] = overrides if overrides is not None else []
        self.raw: Optional[Tuple[RawSource, ...]] = tuple(raw) if raw else None
        self._conflict_reporter = conflict_reporter or _log_conflict
        self._override_configurations: Dict[str, ConfigurationModel] = {}
        self._raw_configuration: Optional[ConfigurationModel] = None

    @classmethod
    def create_empty_model(cls) -> "ConfigurationModel":
        return cls({}, [], [], None)

    @property
    def contents(self) -> Dict[str, Any]:
        return self._contents

    @property
    def keys(self) -> List[str]:
        return self._keys

    @property
    def overrides(self) -> List[ConfigurationOverride]:
        return self._overrides

    @property
    def raw_configuration(self) -> "ConfigurationModel":
        """The model rebuilt from the unfiltered sources it was made from."""
        if self._raw_configuration is None:
            if self.raw:
                models = [
                    source if isinstance(source, ConfigurationModel) else _model_from_raw(source)
                    for source in self.raw
                ]
                result = models[0]
                for model in models[1:]:
                    result = result.merge(model)
                self._raw_configuration = result
            else:
                self._raw_configuration = self
        return self._raw_configuration

    def is_empty(self) -> bool:
        return not self._keys and not self._contents and not self._overrides

    def get_value(self, section: Optional[str] = None) -> Any:
        if not section:
            return self._contents
        return get_configuration_value(self._contents, section)

    def inspect(self, section: Optional[str], override_identifier: Optional[str] = None) -> InspectValue:
        return InspectValue(self, section, override_identifier)

    def get_override_value(self, section: Optional[str], override_identifier: str) -> Any:
        contents = self._get_contents_for_override_identifier(override_identifier)
        if contents is None:
            return None
        return get_configuration_value(contents, section) if section else contents

    def get_keys_for_override_identifier(self, identifier: str) -> List[str]:
        keys: List[str] = []
        for override in self._overrides:
            if identifier in override.identifiers:
                keys.extend(override.keys)
        return _distinct(keys)

    def get_all_override_identifiers(self) -> List[str]:
        return _distinct(
            identifier for override in self._overrides for identifier in override.identifiers
        )

    def override(self, identifier: str) -> "ConfigurationModel":
        """Return this model as seen while ``identifier`` (e.g. a language) is active."""
        model = self._override_configurations.get(identifier)
        if model is None:
            model = self._create_override_configuration_model(identifier)
            self._override_configurations[identifier] = model
        return model

    def merge(self, *others: "ConfigurationModel") -> "ConfigurationModel":
        """Return a new model with ``others`` layered on top, later ones winning."""
        contents = deep_clone(self._contents)
        overrides = [override.clone() for override in self._overrides]
        keys = list(self._keys)
        seen = set(keys)
        raws: List[RawSource] = list(self.raw) if self.raw else [self]

        for other in others:
            raws.extend(other.raw if other.raw else [other])
            if other.is_empty():
                continue
            merge_into(contents, other.contents)

            for other_override in other.overrides:
                existing = next(
                    (o for o in overrides if o.identifiers == other_override.identifiers), None
                )
                if existing is not None:
                    merge_into(existing.contents, other_override.contents)
                    existing.keys = _distinct([*existing.keys, *other_override.keys])
                else:
                    overrides.append(other_override.clone())

            for key in other.keys:
                if key not in seen:
                    seen.add(key)
                    keys.append(key)

        keep_raw = not all(isinstance(source, ConfigurationModel) for source in raws)
        return ConfigurationModel(
            contents,
            keys,
            overrides,
            raws if keep_raw else None,
            self._conflict_reporter,
        )

    def set_value(self, key: str, value: Any) -> None:
        self._invalidate()
        add_to_value_tree(self._contents, key, deep_clone(value), self._conflict_reporter)
        if key not in self._keys:
            self._keys.append(key)
        if is_override_key(key):
            section = self._contents.get(key)
            if not is_object(section):
                return
            identifiers = override_identifiers_from_key(key)
            override = ConfigurationOverride(
                identifiers=identifiers,
                keys=list(section),
                contents=to_values_tree(section, self._conflict_reporter),
            )
            for index, existing in enumerate(self._overrides):
                if existing.identifiers == identifiers:
                    self._overrides[index] = override
                    break
            else:
                self._overrides.append(override)

    def remove_value(self, key: str) -> None:
        if key not in self._keys:
            return
        self._invalidate()
        self._keys.remove(key)
        remove_from_value_tree(self._contents, key)
        if is_override_key(key):
            identifiers = override_identifiers_from_key(key)
            self._overrides = [o for o in self._overrides if o.identifiers != identifiers]

    def to_json(self) -> Dict[str, Any]:
        return {
            "contents": self._contents,
            "overrides": [override.to_json() for override in self._overrides],
            "keys": self._keys,
        }

    def _invalidate(self) -> None:
        self._override_configurations.clear()
        self._raw_configuration = None

    def _create_override_configuration_model(self, identifier: str) -> "ConfigurationModel":
        override_contents = self._get_contents_for_override_identifier(identifier)
        if not override_contents or not is_object(override_contents):
            return self

        contents: Dict[str, Any] = {}
        for key in _distinct([*self._contents, *override_contents]):
            value = self._contents.get(key)
            if key in override_contents:
                override_value = override_contents[key]
                if is_object(value) and is_object(override_value):
                    value = merge_into(deep_clone(value), override_value)
                else:
                    value = override_value
            contents[key] = value

        return ConfigurationModel(contents, self._keys, self._overrides, None, self._conflict_reporter)

    def _get_contents_for_override_identifier(self, identifier: str) -> Optional[Dict[str, Any]]:
        identifier_only: Optional[Dict[str, Any]] = None
        contents: Optional[Dict[str, Any]] = None

        def _merge(to_merge: Optional[Dict[str, Any]]) -> None:
            nonlocal contents
            if to_merge:
                if contents is not None:
                    merge_into(contents, to_merge)
                else:
                    contents = deep_clone(to_merge)

        for override in self._overrides:
            if override.identifiers == [identifier]:
                identifier_only = override.contents
            elif identifier in override.identifiers:
                _merge(override.contents)
        # The identifier's own section wins over shared multi-identifier sections.
        _merge(identifier_only)
        return contents

    def __repr__(self) -> str:
        return f"ConfigurationModel(keys={self._keys!r}, overrides={len(self._overrides)})"


@dataclass
class ConfigurationParseOptions:
    """Filters applied while parsing a layer."""

    scopes: Optional[List[ConfigurationScope]] = None
    skip_restricted: bool = False
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)

    @property
    def filters(self) -> bool:
        return self.scopes is not None or self.skip_restricted or bool(self.exclude)


@dataclass
class _FilterResult:
    raw: Dict[str, Any]
    restricted: List[str]
    has_excluded_properties: bool


class ConfigurationModelParser:
    """Turn a raw settings document into a :class:`ConfigurationModel`."""

    def __init__(self, name: str, registry: Optional[ConfigurationRegistry] = None) -> None:
        self._name = name
        self._registry = registry
        self._raw: Optional[Mapping[str, Any]] = None
        self._configuration_model: Optional[ConfigurationModel] = None
        self._restricted_configurations: List[str] = []
        self._errors: List[str] = []

    @property
    def configuration_model(self) -> ConfigurationModel:
        return self._configuration_model or ConfigurationModel.create_empty_model()

    @property
    def restricted_configurations(self) -> List[str]:
        return self._restricted_configurations

    @property
    def errors(self) -> List[str]:
        return self._errors

    def parse(self, content: Optional[str], options: Optional[ConfigurationParseOptions] = None) -> None:
        """Parse a JSON or YAML settings document."""
        if content is None:
            return
        raw = self._parse_content(content)
        self.parse_raw(raw, options)

    def reparse(self, options: Optional[ConfigurationParseOptions] = None) -> None:
        if self._raw is not None:
            self.parse_raw(self._raw, options)

    def parse_raw(self, raw: Mapping[str, Any], options: Optional[ConfigurationParseOptions] = None) -> None:
        self._raw = raw
        filtered = self._filter(raw, True, options)
        contents = to_values_tree(filtered.raw, self._report_conflict)
        keys = list(filtered.raw)
        overrides = self._to_overrides(filtered.raw)
        self._configuration_model = ConfigurationModel(
            contents,
            keys,
            overrides,
            [raw] if filtered.has_excluded_properties else None,
            self._report_conflict,
        )
        self._restricted_configurations = filtered.restricted

    def _report_conflict(self, message: str) -> None:
        logger.error("Conflict in settings file %s: %s", self._name, message)

    def _parse_content(self, content: str) -> Dict[str, Any]:
        self._errors = []
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except ValueError:
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as exc:
                self._record_error(f"Unable to parse settings: {exc}")
                return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            self._record_error(
                f"Settings must be an object, found {type(data).__name__}"
            )
            return {}
        return {str(key): value for key, value in data.items()}

    def _record_error(self, message: str) -> None:
        self._errors.append(message)
        logger.error("Error in settings file %s: %s", self._name, message)

    def _filter(
        self,
        properties: Mapping[str, Any],
        filter_overridden: bool,
        options: Optional[ConfigurationParseOptions],
    ) -> _FilterResult:
        if options is None or not options.filters:
            return _FilterResult(dict(properties), [], False)

        registered = self._registry.get_configuration_properties() if self._registry else {}
        raw: Dict[str, Any] = {}
        restricted: List[str] = []
        has_excluded = False
        for key, value in properties.items():
            if filter_overridden and is_override_key(key):
                result = self._filter(value if is_object(value) else {}, False, options)
                raw[key] = result.raw
                has_excluded = has_excluded or result.has_excluded_properties
                restricted.extend(result.restricted)
                continue

            schema = registered.get(key)
            scope: Optional[ConfigurationScope] = None
            if schema is not None:
                scope = schema.scope if schema.scope is not None else ConfigurationScope.WINDOW
                if schema.restricted:
                    restricted.append(key)

            in_scope = scope is None or options.scopes is None or scope in options.scopes
            blocked = options.skip_restricted and schema is not None and schema.restricted
            if key not in options.exclude and (key in options.include or (in_scope and not blocked)):
                raw[key] = value
            else:
                has_excluded = True
        return _FilterResult(raw, restricted, has_excluded)

    def _to_overrides(self, raw: Mapping[str, Any]) -> List[ConfigurationOverride]:
        overrides: List[ConfigurationOverride] = []
        for key, value in raw.items():
            if not is_override_key(key):
                continue
            section = dict(value) if is_object(value) else {}
            overrides.append(
                ConfigurationOverride(
                    identifiers=override_identifiers_from_key(key),
                    keys=list(section),
                    contents=to_values_tree(section, self._report_conflict),
                )
            )
        return overrides


def _model_from_raw(raw: Mapping[str, Any]) -> ConfigurationModel:
    parser = ConfigurationModelParser("")
    parser.parse_raw(raw)
    return parser.configuration_model


@dataclass(frozen=True)
class ConfigurationCompareResult:
    added: List[str]
    removed: List[str]
    updated: List[str]
    overrides: List[Tuple[str, List[str]]]

    @property
    def keys(self) -> List[str]:
        return [*self.added, *self.removed, *self.updated]


def _compare_contents(
    to: Optional[Tuple[Mapping[str, Any], List[str]]],
    from_: Optional[Tuple[Mapping[str, Any], List[str]]],
) -> Tuple[List[str], List[str], List[str]]:
    to_keys = to[1] if to else []
    from_keys = from_[1] if from_ else []
    added = [key for key in to_keys if key not in from_keys] if from_ else list(to_keys)
    removed = [key for key in from_keys if key not in to_keys] if to else list(from_keys)
    updated: List[str] = []
    if to and from_:
        for key in from_keys:
            if key in to_keys and not deep_equal(
                get_configuration_value(from_[0], key), get_configuration_value(to[0], key)
            ):
                updated.append(key)
    return added, removed, updated


def compare(
    from_model: Optional[ConfigurationModel], to_model: Optional[ConfigurationModel]
) -> ConfigurationCompareResult:
    """Diff two models of the same layer by key, including override sections."""
    from_raw = from_model.raw_configuration if from_model is not None else None
    to_raw = to_model.raw_configuration if to_model is not None else None
    added, removed, updated = _compare_contents(
        (to_raw.contents, to_raw.keys) if to_raw is not None else None,
        (from_raw.contents, from_raw.keys) if from_raw is not None else None,
    )

    overrides: List[Tuple[str, List[str]]] = []
    from_identifiers = from_model.get_all_override_identifiers() if from_model is not None else []
    to_identifiers = to_model.get_all_override_identifiers() if to_model is not None else []
    if to_model is not None:
        for identifier in to_identifiers:
            if identifier not in from_identifiers:
                overrides.append((identifier, to_model.get_keys_for_override_identifier(identifier)))
    if from_model is not None:
        for identifier in from_identifiers:
            if identifier not in to_identifiers:
                overrides.append((identifier, from_model.get_keys_for_override_identifier(identifier)))
    if from_model is not None and to_model is not None:
        for identifier in from_identifiers:
            if identifier not in to_identifiers:
                continue
            o_added, o_removed, o_updated = _compare_contents(
                (
                    to_model.get_override_value(None, identifier) or {},
                    to_model.get_keys_for_override_identifier(identifier),
                ),
                (
                    from_model.get_override_value(None, identifier) or {},
                    from_model.get_keys_for_override_identifier(identifier),
                ),
            )
            overrides.append((identifier, [*o_added, *o_removed, *o_updated]))

    return ConfigurationCompareResult(added, removed, updated, overrides)


__all__ = [
    "ConfigurationOverride",
    "OverrideValue",
    "InspectValue",
    "ConfigurationModel",
    "ConfigurationParseOptions",
    "ConfigurationModelParser",
    "ConfigurationCompareResult",
    "compare",
]
