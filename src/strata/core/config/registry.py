"""Configuration property registry.

The registry is the catalogue of known settings: their JSON schema, scope,
restricted flag, default value and who contributed them. It is constructed
explicitly and handed to the parser, the default builder and the service;
there is no process-wide instance.

Contributions are best-effort. An invalid property is dropped with a logged
message and the rest of the batch is still registered.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from strata.core.exceptions import ConfigurationScopeError
from strata.core.utils.emitter import Emitter
from strata.core.utils.merge import deep_clone, deep_equal, is_object

from .values import is_override_key, override_identifiers_from_key

logger = logging.getLogger(__name__)


class ConfigurationScope(IntEnum):
    """Where a setting may legitimately be configured."""

    # Only in local user settings.
    APPLICATION = 1
    # Local and remote user settings.
    MACHINE = 2
    # User or workspace settings.
    WINDOW = 3
    # User, workspace or folder settings.
    RESOURCE = 4
    # Resource settings that may also appear in language override sections.
    RESOURCE_LANGUAGE_OVERRIDABLE = 5
    # Machine settings that may also be set in workspace or folder settings.
    MACHINE_OVERRIDABLE = 6

    @classmethod
    def coerce(cls, value: Any) -> Optional["ConfigurationScope"]:
        """Accept a scope, its integer value or a contribution name like ``"machine-overridable"``."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ConfigurationScopeError(f"Unknown configuration scope {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as exc:
                raise ConfigurationScopeError(f"Unknown configuration scope {value!r}") from exc
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "_")
            if name == "LANGUAGE_OVERRIDABLE":
                return cls.RESOURCE_LANGUAGE_OVERRIDABLE
            if name in cls.__members__:
                return cls[name]
        raise ConfigurationScopeError(f"Unknown configuration scope {value!r}")


@dataclass(frozen=True)
class ExtensionInfo:
    """Identity of whoever contributed a setting or default."""

    id: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class LeafDefault:
    """A default override contributed as a whole value by a single source."""

    value: Any
    source: Optional[ExtensionInfo] = None


@dataclass(frozen=True)
class CompositeDefault:
    """An object-valued default assembled from several contributions.

    ``sources`` maps dotted sub-paths (``"editor.rulers.python"``) to the
    contribution that last set them.
    """

    value: Dict[str, Any]
    sources: Dict[str, ExtensionInfo] = field(default_factory=dict)


DefaultOverrideValue = Union[LeafDefault, CompositeDefault]
DefaultValueSource = Union[ExtensionInfo, Dict[str, ExtensionInfo]]


def _source_of(override: DefaultOverrideValue) -> Optional[DefaultValueSource]:
    if isinstance(override, CompositeDefault):
        return dict(override.sources) if override.sources else None
    return override.source


@dataclass
class ConfigurationNode:
    """A contributed group of setting schemas."""

    id: Optional[str] = None
    title: Optional[str] = None
    order: Optional[int] = None
    type: Optional[Union[str, List[str]]] = None
    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    all_of: List["ConfigurationNode"] = field(default_factory=list)
    scope: Optional[ConfigurationScope] = None
    extension_info: Optional[ExtensionInfo] = None
    restricted_properties: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfigurationNode":
        """Build a node from a JSON/YAML contribution (camelCase keys accepted)."""
        extension = data.get("extensionInfo") or data.get("extension_info")
        if isinstance(extension, Mapping):
            extension = ExtensionInfo(
                id=str(extension.get("id", "")),
                display_name=extension.get("displayName") or extension.get("display_name"),
            )
        all_of = data.get("allOf") or data.get("all_of") or []
        return cls(
            id=data.get("id"),
            title=data.get("title"),
            order=data.get("order"),
            type=data.get("type"),
            properties={key: dict(schema) for key, schema in (data.get("properties") or {}).items()},
            all_of=[node if isinstance(node, ConfigurationNode) else cls.from_dict(node) for node in all_of],
            scope=ConfigurationScope.coerce(data.get("scope")),
            extension_info=extension,
            restricted_properties=list(
                data.get("restrictedProperties") or data.get("restricted_properties") or []
            ),
        )


@dataclass
class ConfigurationDefaults:
    """Default values contributed for existing settings or override sections."""

    overrides: Dict[str, Any]
    source: Optional[ExtensionInfo] = None


@dataclass
class RegisteredConfigurationProperty:
    """Registry entry for one setting key."""

    key: str
    schema: Dict[str, Any]
    scope: Optional[ConfigurationScope] = None
    restricted: bool = False
    default_default_value: Any = None
    default: Any = None
    default_override: Optional[DefaultOverrideValue] = None
    source: Optional[ExtensionInfo] = None

    @property
    def type(self) -> Optional[Union[str, List[str]]]:
        return self.schema.get("type")

    @property
    def policy_name(self) -> Optional[str]:
        policy = self.schema.get("policy")
        if isinstance(policy, Mapping):
            return policy.get("name") or None
        return None

    @property
    def tags(self) -> List[str]:
        return list(self.schema.get("tags") or [])

    @property
    def disallow_configuration_default(self) -> bool:
        return bool(self.schema.get("disallowConfigurationDefault"))

    @property
    def default_value_source(self) -> Optional[DefaultValueSource]:
        """Where the effective default came from (``None`` for the schema default)."""
        if self.default_override is None:
            return None
        return _source_of(self.default_override)


@dataclass(frozen=True)
class ConfigurationRegistryUpdate:
    """Payload of :attr:`ConfigurationRegistry.on_did_update_configuration`."""

    properties: FrozenSet[str]
    defaults_overrides: bool = False


@dataclass
class _DefaultOverridesForKey:
    contributions: List[LeafDefault] = field(default_factory=list)
    value: Optional[DefaultOverrideValue] = None


def get_default_value(type_: Optional[Union[str, List[str]]]) -> Any:
    """Return the implicit default for a JSON schema ``type``."""
    t = type_[0] if isinstance(type_, list) and type_ else type_
    if t == "boolean":
        return False
    if t in ("integer", "number"):
        return 0
    if t == "string":
        return ""
    if t == "array":
        return []
    if t == "object":
        return {}
    return None


def validate_property(
    key: str, schema: Mapping[str, Any], registry: "ConfigurationRegistry"
) -> Optional[str]:
    """Return why ``key`` cannot be registered, or ``None`` when it can."""
    if not key.strip():
        return "Cannot register an empty property"
    if is_override_key(key):
        return (
            f"Cannot register '{key}'. This matches property pattern '\\\\[.*\\\\]$' for "
            "describing language specific editor settings. Use 'configurationDefaults' contribution."
        )
    if registry.get_configuration_properties().get(key) is not None:
        return f"Cannot register '{key}'. This property is already registered."
    policy = schema.get("policy")
    policy_name = policy.get("name") if isinstance(policy, Mapping) else None
    if policy_name:
        owner = registry.get_policy_configurations().get(policy_name)
        if owner is not None:
            return (
                f"Cannot register '{key}'. The associated policy {policy_name} is already "
                f"registered with {owner}."
            )
    try:
        ConfigurationScope.coerce(schema.get("scope"))
    except ConfigurationScopeError as exc:
        return f"Cannot register '{key}'. {exc}."
    try:
        validator_for(schema, default=Draft202012Validator).check_schema(schema)
    except SchemaError as exc:
        return f"Cannot register '{key}'. Invalid schema: {exc.message}"
    return None


def _plain_key(override_key: str) -> str:
    return override_key.replace("[", "").replace("]", "")


class ConfigurationRegistry:
    """Catalogue of setting schemas and their defaults."""

    def __init__(self) -> None:
        self._registered_configuration_defaults: List[ConfigurationDefaults] = []
        self._configuration_defaults_overrides: Dict[str, _DefaultOverridesForKey] = {}
        self._default_language_overrides_node = ConfigurationNode(
            id="defaultOverrides",
            title="Default Language Configuration Overrides",
        )
        self._configuration_contributors: List[ConfigurationNode] = [
            self._default_language_overrides_node
        ]
        self._configuration_properties: Dict[str, RegisteredConfigurationProperty] = {}
        self._excluded_configuration_properties: Dict[str, RegisteredConfigurationProperty] = {}
        self._policy_configurations: Dict[str, str] = {}
        self._override_identifiers: Dict[str, None] = {}

        self.on_did_schema_change: Emitter[None] = Emitter("registry.schema_change")
        self.on_did_update_configuration: Emitter[ConfigurationRegistryUpdate] = Emitter(
            "registry.update_configuration"
        )

    # ------------------------------------------------------------------
    # Configuration nodes
    # ------------------------------------------------------------------
    def register_configuration(self, configuration: ConfigurationNode, validate: bool = True) -> None:
        self.register_configurations([configuration], validate=validate)

    def register_configurations(
        self, configurations: Iterable[ConfigurationNode], validate: bool = True
    ) -> None:
        properties: Set[str] = set()
        for configuration in configurations:
            self._validate_and_register_properties(
                configuration,
                validate,
                configuration.extension_info,
                configuration.restricted_properties,
                ConfigurationScope.WINDOW,
                properties,
            )
            self._configuration_contributors.append(configuration)
        self.on_did_schema_change.fire(None)
        self.on_did_update_configuration.fire(ConfigurationRegistryUpdate(frozenset(properties)))

    def deregister_configurations(self, configurations: Iterable[ConfigurationNode]) -> None:
        properties: Set[str] = set()

        def _deregister(node: ConfigurationNode) -> None:
            for key in node.properties:
                properties.add(key)
                registered = self._configuration_properties.pop(key, None)
                if registered is not None and registered.policy_name:
                    self._policy_configurations.pop(registered.policy_name, None)
            for sub_node in node.all_of:
                _deregister(sub_node)

        for configuration in configurations:
            _deregister(configuration)
            if configuration in self._configuration_contributors:
                self._configuration_contributors.remove(configuration)
        self.on_did_schema_change.fire(None)
        self.on_did_update_configuration.fire(ConfigurationRegistryUpdate(frozenset(properties)))

    def _validate_and_register_properties(
        self,
        configuration: ConfigurationNode,
        validate: bool,
        extension_info: Optional[ExtensionInfo],
        restricted_properties: List[str],
        scope: ConfigurationScope,
        bucket: Set[str],
    ) -> None:
        if configuration.scope is not None:
            scope = configuration.scope
        for key in list(configuration.properties):
            schema = configuration.properties[key]
            if validate:
                error = validate_property(key, schema, self)
                if error:
                    logger.warning(error)
                    del configuration.properties[key]
                    continue

            registered = RegisteredConfigurationProperty(
                key=key,
                schema=schema,
                source=extension_info,
                default_default_value=schema.get("default"),
            )
            if is_override_key(key):
                registered.scope = None
            else:
                registered.scope = ConfigurationScope.coerce(schema.get("scope")) or scope
                explicit = schema.get("restricted")
                registered.restricted = (
                    key in restricted_properties if explicit is None else bool(explicit)
                )
            self._update_property_default_value(registered)

            if schema.get("included", True) is False:
                self._excluded_configuration_properties[key] = registered
                del configuration.properties[key]
                continue

            self._configuration_properties[key] = registered
            if registered.policy_name:
                self._policy_configurations[registered.policy_name] = key
            bucket.add(key)

        for sub_node in configuration.all_of:
            self._validate_and_register_properties(
                sub_node, validate, extension_info, restricted_properties, scope, bucket
            )

    # ------------------------------------------------------------------
    # Default overrides
    # ------------------------------------------------------------------
    def register_default_configurations(self, defaults: Iterable[ConfigurationDefaults]) -> None:
        properties: Set[str] = set()
        defaults = list(defaults)
        self._registered_configuration_defaults.extend(defaults)
        identifiers: List[str] = []

        for contribution in defaults:
            for key, value in contribution.overrides.items():
                properties.add(key)
                entry = self._configuration_defaults_overrides.setdefault(key, _DefaultOverridesForKey())
                entry.contributions.append(LeafDefault(value, contribution.source))

                if is_override_key(key):
                    merged = self._merge_defaults_for_override_identifier(
                        key, value, contribution.source, entry.value
                    )
                    if merged is None:
                        continue
                    entry.value = merged
                    self._update_default_override_property(key, merged, contribution.source)
                    identifiers.extend(override_identifiers_from_key(key))
                else:
                    entry.value = self._merge_defaults_for_property(
                        key, value, contribution.source, entry.value
                    )
                    registered = self._configuration_properties.get(key)
                    if registered is not None:
                        self._update_property_default_value(registered)

        self._add_override_identifiers(identifiers)
        self.on_did_schema_change.fire(None)
        self.on_did_update_configuration.fire(
            ConfigurationRegistryUpdate(frozenset(properties), defaults_overrides=True)
        )

    def deregister_default_configurations(self, defaults: Iterable[ConfigurationDefaults]) -> None:
        properties: Set[str] = set()
        defaults = list(defaults)
        for contribution in defaults:
            if contribution in self._registered_configuration_defaults:
                self._registered_configuration_defaults.remove(contribution)

        for contribution in defaults:
            source = contribution.source
            for key, value in contribution.overrides.items():
                entry = self._configuration_defaults_overrides.get(key)
                if entry is None:
                    continue
                index = next(
                    (
                        i
                        for i, existing in enumerate(entry.contributions)
                        if (
                            existing.source is not None and existing.source.id == source.id
                            if source is not None
                            else deep_equal(existing.value, value)
                        )
                    ),
                    -1,
                )
                if index == -1:
                    continue
                del entry.contributions[index]
                if not entry.contributions:
                    del self._configuration_defaults_overrides[key]

                if is_override_key(key):
                    merged: Optional[DefaultOverrideValue] = None
                    for remaining in entry.contributions:
                        merged = self._merge_defaults_for_override_identifier(
                            key, remaining.value, remaining.source, merged
                        )
                    if merged is not None and merged.value:
                        entry.value = merged
                        self._update_default_override_property(key, merged, source)
                    else:
                        self._configuration_defaults_overrides.pop(key, None)
                        self._configuration_properties.pop(key, None)
                        self._default_language_overrides_node.properties.pop(key, None)
                else:
                    recomputed: Optional[DefaultOverrideValue] = None
                    for remaining in entry.contributions:
                        recomputed = self._merge_defaults_for_property(
                            key, remaining.value, remaining.source, recomputed
                        )
                    entry.value = recomputed
                    registered = self._configuration_properties.get(key)
                    if registered is not None:
                        self._update_property_default_value(registered)
                properties.add(key)

        self.on_did_schema_change.fire(None)
        self.on_did_update_configuration.fire(
            ConfigurationRegistryUpdate(frozenset(properties), defaults_overrides=True)
        )

    def _merge_defaults_for_override_identifier(
        self,
        key: str,
        value: Any,
        source: Optional[ExtensionInfo],
        existing: Optional[DefaultOverrideValue],
    ) -> Optional[CompositeDefault]:
        if not is_object(value):
            logger.warning("Ignoring default override for '%s': value must be an object", key)
            return None
        if isinstance(existing, LeafDefault):
            logger.error("Default override for '%s' has no per-key sources", key)
            return None
        merged: Dict[str, Any] = dict(existing.value) if existing is not None else {}
        sources: Dict[str, ExtensionInfo] = dict(existing.sources) if existing is not None else {}

        for property_key, property_value in value.items():
            current = merged.get(property_key)
            if is_object(property_value) and (current is None or is_object(current)):
                merged[property_key] = {**(current or {}), **deep_clone(property_value)}
                if source is not None:
                    for object_key in property_value:
                        sources[f"{property_key}.{object_key}"] = source
            else:
                merged[property_key] = deep_clone(property_value)
                if source is not None:
                    sources[property_key] = source
                else:
                    sources.pop(property_key, None)

        return CompositeDefault(merged, sources)

    def _merge_defaults_for_property(
        self,
        key: str,
        value: Any,
        source: Optional[ExtensionInfo],
        existing: Optional[DefaultOverrideValue],
    ) -> DefaultOverrideValue:
        registered = self._configuration_properties.get(key)
        if existing is not None:
            existing_value = existing.value
        else:
            existing_value = registered.default_default_value if registered is not None else None

        if registered is not None:
            object_setting = is_object(value) and registered.type == "object"
        else:
            object_setting = is_object(value) and (existing_value is None or is_object(existing_value))

        if not object_setting:
            return LeafDefault(deep_clone(value), source)

        sources: Dict[str, ExtensionInfo] = (
            dict(existing.sources) if isinstance(existing, CompositeDefault) else {}
        )
        if source is not None:
            for object_key in value:
                sources[f"{key}.{object_key}"] = source
        base = existing_value if is_object(existing_value) else {}
        return CompositeDefault({**deep_clone(base), **deep_clone(value)}, sources)

    def _update_default_override_property(
        self, key: str, override: CompositeDefault, source: Optional[ExtensionInfo]
    ) -> None:
        schema: Dict[str, Any] = {
            "type": "object",
            "default": override.value,
            "description": f"Configure settings to be overridden for the {_plain_key(key)} language.",
        }
        registered = RegisteredConfigurationProperty(
            key=key,
            schema=schema,
            scope=None,
            default_default_value=override.value,
            default=override.value,
            default_override=override,
            source=source,
        )
        self._configuration_properties[key] = registered
        self._default_language_overrides_node.properties[key] = schema

    def _update_property_default_value(self, registered: RegisteredConfigurationProperty) -> None:
        entry = self._configuration_defaults_overrides.get(registered.key)
        override = entry.value if entry is not None else None
        default_value: Any = None
        if override is not None and (
            not registered.disallow_configuration_default or not _source_of(override)
        ):
            default_value = override.value
        else:
            override = None
        if default_value is None:
            default_value = registered.default_default_value
            override = None
        if default_value is None:
            default_value = get_default_value(registered.type)
        registered.default = default_value
        registered.default_override = override

    # ------------------------------------------------------------------
    # Override identifiers
    # ------------------------------------------------------------------
    def register_override_identifiers(self, identifiers: Iterable[str]) -> None:
        self._add_override_identifiers(identifiers)
        self.on_did_schema_change.fire(None)

    def _add_override_identifiers(self, identifiers: Iterable[str]) -> None:
        for identifier in identifiers:
            self._override_identifiers[identifier] = None

    @property
    def override_identifiers(self) -> List[str]:
        return list(self._override_identifiers)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_configuration_properties(self) -> Dict[str, RegisteredConfigurationProperty]:
        return self._configuration_properties

    def get_excluded_configuration_properties(self) -> Dict[str, RegisteredConfigurationProperty]:
        return self._excluded_configuration_properties

    def get_policy_configurations(self) -> Dict[str, str]:
        return self._policy_configurations

    def get_configuration_default_overrides(self) -> Dict[str, DefaultOverrideValue]:
        return {
            key: entry.value
            for key, entry in self._configuration_defaults_overrides.items()
            if entry.value is not None
        }

    def get_registered_default_configurations(self) -> List[ConfigurationDefaults]:
        return list(self._registered_configuration_defaults)

    def get_configurations(self) -> List[ConfigurationNode]:
        return list(self._configuration_contributors)


__all__ = [
    "ConfigurationScope",
    "ExtensionInfo",
    "LeafDefault",
    "CompositeDefault",
    "DefaultOverrideValue",
    "DefaultValueSource",
    "ConfigurationNode",
    "ConfigurationDefaults",
    "RegisteredConfigurationProperty",
    "ConfigurationRegistryUpdate",
    "ConfigurationRegistry",
    "get_default_value",
    "validate_property",
]
