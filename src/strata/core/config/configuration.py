"""The consolidator: all layers of one window and the caches over them.

Precedence, lowest to highest::

    defaults < application < user (local, then remote) < workspace
             < memory < folder < memory for the resource < policy

The merge of defaults through global memory is cached once; folder merges are
cached per folder. Both caches are dropped whenever a contributing layer is
replaced or the global memory layer is written, and rebuilt lazily.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from strata.core.exceptions import ConfigurationDataError
from strata.core.utils.merge import deep_clone, deep_equal, is_object
from strata.core.utils.profiling import cache_build, cache_hit

from .model import ConfigurationModel, ConfigurationOverride, InspectValue, compare
from .values import key_from_override_identifiers, override_identifiers_from_key

logger = logging.getLogger(__name__)

FolderResolver = Callable[[str], Optional[str]]
ConfigurationData = Dict[str, Any]


@dataclass(frozen=True)
class ConfigurationOverrides:
    """Context of a read: the resource being edited and its language."""

    resource: Optional[str] = None
    override_identifier: Optional[str] = None


@dataclass(frozen=True)
class ConfigurationUpdateOverrides:
    """Context of a memory write."""

    resource: Optional[str] = None
    override_identifiers: Tuple[str, ...] = ()


@dataclass
class ConfigurationChange:
    """Keys changed by an update, plus keys changed inside override sections."""

    keys: List[str] = field(default_factory=list)
    overrides: List[Tuple[str, List[str]]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.keys and not any(keys for _, keys in self.overrides)


@dataclass(frozen=True)
class ConfigurationKeys:
    default: List[str]
    policy: List[str]
    user: List[str]
    workspace: List[str]
    workspace_folder: List[str]


def _to_inspect_value(inspect: Optional[InspectValue]) -> Optional[InspectValue]:
    if inspect is None:
        return None
    if inspect.value is not None or inspect.override is not None or inspect.overrides is not None:
        return inspect
    return None


def _merged(inspect: Optional[InspectValue]) -> Any:
    return inspect.merged if inspect is not None else None


class ConfigurationInspectValue:
    """Per-layer answer to "why does this setting have this value"."""

    def __init__(
        self,
        key: str,
        overrides: ConfigurationOverrides,
        value: Any,
        override_identifiers: Optional[List[str]],
        default_configuration: ConfigurationModel,
        policy_configuration: Optional[ConfigurationModel],
        application_configuration: Optional[ConfigurationModel],
        user_configuration: ConfigurationModel,
        local_user_configuration: ConfigurationModel,
        remote_user_configuration: ConfigurationModel,
        workspace_configuration: Optional[ConfigurationModel],
        folder_configuration: Optional[ConfigurationModel],
        memory_configuration: ConfigurationModel,
    ) -> None:
        self.key = key
        self.overrides = overrides
        self.override_identifiers = override_identifiers
        self._value = value
        self._default_configuration = default_configuration
        self._policy_configuration = policy_configuration
        self._application_configuration = application_configuration
        self._user_configuration = user_configuration
        self._local_user_configuration = local_user_configuration
        self._remote_user_configuration = remote_user_configuration
        self._workspace_configuration = workspace_configuration
        self._folder_configuration = folder_configuration
        self._memory_configuration = memory_configuration

    def _inspect(self, model: Optional[ConfigurationModel]) -> Optional[InspectValue]:
        if model is None:
            return None
        return model.inspect(self.key, self.overrides.override_identifier)

    @property
    def value(self) -> Any:
        return deep_clone(self._value)

    @cached_property
    def _default_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._default_configuration)

    @cached_property
    def _policy_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._policy_configuration)

    @cached_property
    def _application_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._application_configuration)

    @cached_property
    def _user_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._user_configuration)

    @cached_property
    def _user_local_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._local_user_configuration)

    @cached_property
    def _user_remote_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._remote_user_configuration)

    @cached_property
    def _workspace_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._workspace_configuration)

    @cached_property
    def _workspace_folder_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._folder_configuration)

    @cached_property
    def _memory_inspect(self) -> Optional[InspectValue]:
        return self._inspect(self._memory_configuration)

    @property
    def default_value(self) -> Any:
        return _merged(self._default_inspect)

    @property
    def default(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._default_inspect)

    @property
    def policy_value(self) -> Any:
        return _merged(self._policy_inspect)

    @property
    def policy(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._policy_inspect)

    @property
    def application_value(self) -> Any:
        return _merged(self._application_inspect)

    @property
    def application(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._application_inspect)

    @property
    def user_value(self) -> Any:
        return _merged(self._user_inspect)

    @property
    def user(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._user_inspect)

    @property
    def user_local_value(self) -> Any:
        return _merged(self._user_local_inspect)

    @property
    def user_local(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._user_local_inspect)

    @property
    def user_remote_value(self) -> Any:
        return _merged(self._user_remote_inspect)

    @property
    def user_remote(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._user_remote_inspect)

    @property
    def workspace_value(self) -> Any:
        return _merged(self._workspace_inspect)

    @property
    def workspace(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._workspace_inspect)

    @property
    def workspace_folder_value(self) -> Any:
        return _merged(self._workspace_folder_inspect)

    @property
    def workspace_folder(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._workspace_folder_inspect)

    @property
    def memory_value(self) -> Any:
        return _merged(self._memory_inspect)

    @property
    def memory(self) -> Optional[InspectValue]:
        return _to_inspect_value(self._memory_inspect)


def _empty() -> ConfigurationModel:
    return ConfigurationModel.create_empty_model()


def _effective(model: Optional[ConfigurationModel]) -> Optional[ConfigurationModel]:
    if model is None or not model.raw:
        return model
    return ConfigurationModel(model.contents, model.keys, model.overrides)


def _compare_layers(
    from_model: Optional[ConfigurationModel], to_model: Optional[ConfigurationModel]
) -> ConfigurationChange:
    """Diff two versions of a layer.

    ``compare`` looks at the unfiltered sources; the filtered contents are
    diffed too so that re-filtering an unchanged document (new scopes, trust)
    still counts as a change.
    """
    raw = compare(from_model, to_model)
    effective = compare(_effective(from_model), _effective(to_model))
    keys = list(dict.fromkeys([*raw.keys, *effective.keys]))
    overrides: Dict[str, Dict[str, None]] = {}
    for identifier, override_keys in [*raw.overrides, *effective.overrides]:
        overrides.setdefault(identifier, {}).update(dict.fromkeys(override_keys))
    return ConfigurationChange(
        keys, [(identifier, list(override_keys)) for identifier, override_keys in overrides.items()]
    )


class Configuration:
    """All configuration layers plus the consolidation caches."""

    def __init__(
        self,
        default_configuration: ConfigurationModel,
        policy_configuration: Optional[ConfigurationModel] = None,
        application_configuration: Optional[ConfigurationModel] = None,
        local_user_configuration: Optional[ConfigurationModel] = None,
        remote_user_configuration: Optional[ConfigurationModel] = None,
        workspace_configuration: Optional[ConfigurationModel] = None,
        folder_configurations: Optional[Mapping[str, ConfigurationModel]] = None,
        memory_configuration: Optional[ConfigurationModel] = None,
        memory_configuration_by_resource: Optional[Mapping[str, ConfigurationModel]] = None,
    ) -> None:
        self._default_configuration = default_configuration
        self._policy_configuration = policy_configuration or _empty()
        self._application_configuration = application_configuration or _empty()
        self._local_user_configuration = local_user_configuration or _empty()
        self._remote_user_configuration = remote_user_configuration or _empty()
        self._workspace_configuration = workspace_configuration or _empty()
        self._folder_configurations: Dict[str, ConfigurationModel] = dict(folder_configurations or {})
        self._memory_configuration = memory_configuration or _empty()
        self._memory_configuration_by_resource: Dict[str, ConfigurationModel] = dict(
            memory_configuration_by_resource or {}
        )

        self._workspace_consolidated_configuration: Optional[ConfigurationModel] = None
        self._folders_consolidated_configurations: Dict[str, ConfigurationModel] = {}
        self._user_configuration: Optional[ConfigurationModel] = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_value(
        self,
        section: Optional[str] = None,
        overrides: Optional[ConfigurationOverrides] = None,
        resolve_folder: Optional[FolderResolver] = None,
    ) -> Any:
        """Resolve ``section`` (or the whole tree) for the given read context.

        Object and array values are copies; changing them does not touch the
        cached models.
        """
        model = self._get_consolidated_configuration_model(
            section, overrides or ConfigurationOverrides(), resolve_folder
        )
        return deep_clone(model.get_value(section))

    def inspect(
        self,
        key: str,
        overrides: Optional[ConfigurationOverrides] = None,
        resolve_folder: Optional[FolderResolver] = None,
    ) -> ConfigurationInspectValue:
        overrides = overrides or ConfigurationOverrides()
        consolidated = self._get_consolidated_configuration_model(key, overrides, resolve_folder)
        folder_configuration = self._get_folder_configuration_model_for_resource(
            overrides.resource, resolve_folder
        )
        memory_configuration = self._memory_configuration
        if overrides.resource:
            memory_configuration = (
                self._memory_configuration_by_resource.get(overrides.resource)
                or self._memory_configuration
            )

        override_identifiers: List[str] = []
        for override in consolidated.overrides:
            for identifier in override.identifiers:
                if identifier in override_identifiers:
                    continue
                if consolidated.get_override_value(key, identifier) is not None:
                    override_identifiers.append(identifier)

        return ConfigurationInspectValue(
            key,
            overrides,
            consolidated.get_value(key),
            override_identifiers or None,
            self._default_configuration,
            None if self._policy_configuration.is_empty() else self._policy_configuration,
            None if self._application_configuration.is_empty() else self._application_configuration,
            self.user_configuration,
            self._local_user_configuration,
            self._remote_user_configuration,
            self._workspace_configuration,
            folder_configuration,
            memory_configuration,
        )

    def keys(self, folder: Optional[str] = None) -> ConfigurationKeys:
        folder_configuration = self._folder_configurations.get(folder) if folder else None
        return ConfigurationKeys(
            default=list(self._default_configuration.keys),
            policy=list(self._policy_configuration.keys),
            user=list(self.user_configuration.keys),
            workspace=list(self._workspace_configuration.keys),
            workspace_folder=list(folder_configuration.keys) if folder_configuration else [],
        )

    def all_keys(self) -> List[str]:
        keys: Dict[str, None] = {}
        for model in self._layers_with_keys():
            keys.update(dict.fromkeys(model.keys))
        return list(keys)

    def get_all_keys_for_override_identifier(self, identifier: str) -> List[str]:
        keys: Dict[str, None] = {}
        for model in self._layers_with_keys():
            keys.update(dict.fromkeys(model.get_keys_for_override_identifier(identifier)))
        return list(keys)

    def _layers_with_keys(self) -> List[ConfigurationModel]:
        return [
            self._default_configuration,
            self.user_configuration,
            self._workspace_configuration,
            *self._folder_configurations.values(),
        ]

    # ------------------------------------------------------------------
    # Memory writes
    # ------------------------------------------------------------------
    def update_value(
        self,
        key: str,
        value: Any,
        overrides: Optional[ConfigurationUpdateOverrides] = None,
    ) -> None:
        """Write ``value`` to the memory layer; ``None`` removes the key."""
        overrides = overrides or ConfigurationUpdateOverrides()
        if overrides.resource:
            memory_configuration = self._memory_configuration_by_resource.get(overrides.resource)
            if memory_configuration is None:
                memory_configuration = _empty()
                self._memory_configuration_by_resource[overrides.resource] = memory_configuration
        else:
            memory_configuration = self._memory_configuration

        if overrides.override_identifiers:
            section_key = key_from_override_identifiers(overrides.override_identifiers)
            existing = memory_configuration.contents.get(section_key)
            section = dict(existing) if is_object(existing) else {}
            if value is None:
                section.pop(key, None)
            else:
                section[key] = value
            if section:
                memory_configuration.set_value(section_key, section)
            else:
                memory_configuration.remove_value(section_key)
        elif value is None:
            memory_configuration.remove_value(key)
        else:
            memory_configuration.set_value(key, value)

        if not overrides.resource:
            self._reset_consolidated()

    # ------------------------------------------------------------------
    # Layer replacement
    # ------------------------------------------------------------------
    def compare_and_update_default_configuration(
        self, defaults: ConfigurationModel, keys: Optional[Sequence[str]] = None
    ) -> ConfigurationChange:
        overrides: List[Tuple[str, List[str]]] = []
        if keys is None:
            keys = compare(self._default_configuration, defaults).keys
        keys = list(keys)
        for key in keys:
            for identifier in override_identifiers_from_key(key):
                from_keys = self._default_configuration.get_keys_for_override_identifier(identifier)
                to_keys = defaults.get_keys_for_override_identifier(identifier)
                changed = [
                    *[k for k in to_keys if k not in from_keys],
                    *[k for k in from_keys if k not in to_keys],
                    *[
                        k
                        for k in from_keys
                        if not deep_equal(
                            self._default_configuration.get_override_value(k, identifier),
                            defaults.get_override_value(k, identifier),
                        )
                    ],
                ]
                overrides.append((identifier, changed))
        self._default_configuration = defaults
        self._reset_consolidated()
        return ConfigurationChange(keys, overrides)

    def compare_and_update_policy_configuration(self, policy: ConfigurationModel) -> ConfigurationChange:
        change = _compare_layers(self._policy_configuration, policy)
        if change.keys:
            self._policy_configuration = policy
        return ConfigurationChange(change.keys, [])

    def compare_and_update_application_configuration(
        self, application: ConfigurationModel
    ) -> ConfigurationChange:
        change = _compare_layers(self._application_configuration, application)
        if change.keys:
            self._application_configuration = application
            self._reset_consolidated()
        return change

    def compare_and_update_local_user_configuration(self, user: ConfigurationModel) -> ConfigurationChange:
        change = _compare_layers(self._local_user_configuration, user)
        if change.keys:
            self._local_user_configuration = user
            self._user_configuration = None
            self._reset_consolidated()
        return change

    def compare_and_update_remote_user_configuration(self, user: ConfigurationModel) -> ConfigurationChange:
        change = _compare_layers(self._remote_user_configuration, user)
        if change.keys:
            self._remote_user_configuration = user
            self._user_configuration = None
            self._reset_consolidated()
        return change

    def compare_and_update_workspace_configuration(
        self, workspace: ConfigurationModel
    ) -> ConfigurationChange:
        change = _compare_layers(self._workspace_configuration, workspace)
        if change.keys:
            self._workspace_configuration = workspace
            self._reset_consolidated()
        return change

    def compare_and_update_folder_configuration(
        self, folder: str, folder_configuration: ConfigurationModel
    ) -> ConfigurationChange:
        current = self._folder_configurations.get(folder)
        change = _compare_layers(current, folder_configuration)
        if change.keys or current is None:
            self._folder_configurations[folder] = folder_configuration
            self._folders_consolidated_configurations.pop(folder, None)
        return change

    def compare_and_delete_folder_configuration(self, folder: str) -> ConfigurationChange:
        folder_configuration = self._folder_configurations.pop(folder, None)
        if folder_configuration is None:
            return ConfigurationChange()
        self._folders_consolidated_configurations.pop(folder, None)
        overrides = [
            (identifier, folder_configuration.get_keys_for_override_identifier(identifier))
            for identifier in folder_configuration.get_all_override_identifiers()
        ]
        return ConfigurationChange(list(folder_configuration.keys), overrides)

    # ------------------------------------------------------------------
    # Layer accessors
    # ------------------------------------------------------------------
    @property
    def default_configuration(self) -> ConfigurationModel:
        return self._default_configuration

    @property
    def policy_configuration(self) -> ConfigurationModel:
        return self._policy_configuration

    @property
    def application_configuration(self) -> ConfigurationModel:
        return self._application_configuration

    @property
    def user_configuration(self) -> ConfigurationModel:
        if self._user_configuration is None:
            if self._remote_user_configuration.is_empty():
                self._user_configuration = self._local_user_configuration
            else:
                self._user_configuration = self._local_user_configuration.merge(
                    self._remote_user_configuration
                )
        return self._user_configuration

    @property
    def local_user_configuration(self) -> ConfigurationModel:
        return self._local_user_configuration

    @property
    def remote_user_configuration(self) -> ConfigurationModel:
        return self._remote_user_configuration

    @property
    def workspace_configuration(self) -> ConfigurationModel:
        return self._workspace_configuration

    @property
    def folder_configurations(self) -> Dict[str, ConfigurationModel]:
        return dict(self._folder_configurations)

    @property
    def memory_configuration(self) -> ConfigurationModel:
        return self._memory_configuration

    # ------------------------------------------------------------------
    # Consolidation
    # ------------------------------------------------------------------
    def _reset_consolidated(self) -> None:
        self._workspace_consolidated_configuration = None
        self._folders_consolidated_configurations.clear()

    def _get_consolidated_configuration_model(
        self,
        section: Optional[str],
        overrides: ConfigurationOverrides,
        resolve_folder: Optional[FolderResolver],
    ) -> ConfigurationModel:
        model = self._get_consolidated_configuration_model_for_resource(overrides, resolve_folder)
        if overrides.override_identifier:
            model = model.override(overrides.override_identifier)
        if (
            not self._policy_configuration.is_empty()
            and self._policy_configuration.get_value(section) is not None
        ):
            model = model.merge(self._policy_configuration)
        return model

    def _get_consolidated_configuration_model_for_resource(
        self,
        overrides: ConfigurationOverrides,
        resolve_folder: Optional[FolderResolver],
    ) -> ConfigurationModel:
        consolidated = self._get_workspace_consolidated_configuration()
        if overrides.resource:
            folder = resolve_folder(overrides.resource) if resolve_folder else None
            if folder is not None:
                consolidated = self._get_folder_consolidated_configuration(folder)
            memory_for_resource = self._memory_configuration_by_resource.get(overrides.resource)
            if memory_for_resource is not None:
                consolidated = consolidated.merge(memory_for_resource)
        return consolidated

    def _get_workspace_consolidated_configuration(self) -> ConfigurationModel:
        if self._workspace_consolidated_configuration is None:
            with cache_build("workspace"):
                self._workspace_consolidated_configuration = self._default_configuration.merge(
                    self._application_configuration,
                    self.user_configuration,
                    self._workspace_configuration,
                    self._memory_configuration,
                )
        else:
            cache_hit("workspace")
        return self._workspace_consolidated_configuration

    def _get_folder_consolidated_configuration(self, folder: str) -> ConfigurationModel:
        consolidated = self._folders_consolidated_configurations.get(folder)
        if consolidated is not None:
            cache_hit("folder")
            return consolidated
        workspace_consolidated = self._get_workspace_consolidated_configuration()
        folder_configuration = self._folder_configurations.get(folder)
        if folder_configuration is None:
            return workspace_consolidated
        with cache_build("folder", folder):
            consolidated = workspace_consolidated.merge(folder_configuration)
        self._folders_consolidated_configurations[folder] = consolidated
        return consolidated

    def _get_folder_configuration_model_for_resource(
        self, resource: Optional[str], resolve_folder: Optional[FolderResolver]
    ) -> Optional[ConfigurationModel]:
        if resource and resolve_folder:
            folder = resolve_folder(resource)
            if folder is not None:
                return self._folder_configurations.get(folder)
        return None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self, writing: Optional[ConfigurationUpdateOverrides] = None) -> "Configuration":
        """Return a copy that later updates to this configuration leave untouched.

        Layer updates swap in new models, so the copy shares them. Memory
        models are edited in place: pass the overrides of the pending
        ``update_value`` call and the memory model it writes to is cloned.
        """
        memory_configuration = self._memory_configuration
        memory_configuration_by_resource = dict(self._memory_configuration_by_resource)
        if writing is not None:
            if not writing.resource:
                memory_configuration = memory_configuration.merge()
            elif writing.resource in memory_configuration_by_resource:
                memory_configuration_by_resource[writing.resource] = memory_configuration_by_resource[
                    writing.resource
                ].merge()
        return Configuration(
            self._default_configuration,
            self._policy_configuration,
            self._application_configuration,
            self._local_user_configuration,
            self._remote_user_configuration,
            self._workspace_configuration,
            self._folder_configurations,
            memory_configuration,
            memory_configuration_by_resource,
        )

    def to_data(self) -> ConfigurationData:
        """Deep-copied plain snapshot of every layer, keyed by layer name."""
        return {
            "defaults": _model_data(self._default_configuration),
            "policy": _model_data(self._policy_configuration),
            "application": _model_data(self._application_configuration),
            "user": _model_data(self.user_configuration),
            "workspace": _model_data(self._workspace_configuration),
            "folders": [
                [folder, _model_data(model)] for folder, model in self._folder_configurations.items()
            ],
            "memory": _model_data(self._memory_configuration),
            "memory_resources": [
                [resource, _model_data(model)]
                for resource, model in self._memory_configuration_by_resource.items()
            ],
        }

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "Configuration":
        """Restore a configuration from :meth:`to_data` output."""
        if not isinstance(data, Mapping):
            raise ConfigurationDataError(
                f"Configuration data must be a mapping, got {type(data).__name__}"
            )
        return cls(
            _parse_model(data, "defaults"),
            policy_configuration=_parse_model(data, "policy"),
            application_configuration=_parse_model(data, "application"),
            local_user_configuration=_parse_model(data, "user"),
            workspace_configuration=_parse_model(data, "workspace"),
            folder_configurations=_parse_model_pairs(data, "folders"),
            memory_configuration=_parse_model(data, "memory"),
            memory_configuration_by_resource=_parse_model_pairs(data, "memory_resources"),
        )


def _model_data(model: ConfigurationModel) -> Dict[str, Any]:
    return deep_clone(model.to_json())


def _parse_model_data(layer: str, value: Any) -> ConfigurationModel:
    if not isinstance(value, Mapping):
        raise ConfigurationDataError(f"Layer '{layer}' must be a mapping", layer=layer)
    contents = value.get("contents", {})
    keys = value.get("keys", [])
    overrides = value.get("overrides", [])
    if not isinstance(contents, Mapping) or not isinstance(keys, list) or not isinstance(overrides, list):
        raise ConfigurationDataError(
            f"Layer '{layer}' must provide contents, keys and overrides", layer=layer
        )
    try:
        parsed_overrides = [ConfigurationOverride.from_json(override) for override in overrides]
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationDataError(f"Layer '{layer}' has malformed overrides", layer=layer) from exc
    return ConfigurationModel(deep_clone(dict(contents)), list(keys), deep_clone(parsed_overrides))


def _parse_model(data: Mapping[str, Any], layer: str) -> ConfigurationModel:
    if data.get(layer) is None:
        return _empty()
    return _parse_model_data(layer, data[layer])


def _parse_model_pairs(data: Mapping[str, Any], layer: str) -> Dict[str, ConfigurationModel]:
    pairs = data.get(layer) or []
    models: Dict[str, ConfigurationModel] = {}
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConfigurationDataError(
                f"Entries of '{layer}' must be [identifier, layer] pairs", layer=layer
            )
        identifier, value = pair
        models[str(identifier)] = _parse_model_data(f"{layer}:{identifier}", value)
    return models


__all__ = [
    "FolderResolver",
    "ConfigurationData",
    "ConfigurationOverrides",
    "ConfigurationUpdateOverrides",
    "ConfigurationChange",
    "ConfigurationKeys",
    "ConfigurationInspectValue",
    "Configuration",
]
