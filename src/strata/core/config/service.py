"""Configuration service: wires every layer of one window together.

The service owns the defaults and policy builders, a :class:`Configuration`,
and the parsers of each settings document so that documents can be
re-filtered when the registry learns about new properties.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from strata.core.utils.emitter import Emitter, Subscription

from .configuration import (
    Configuration,
    ConfigurationChange,
    ConfigurationData,
    ConfigurationInspectValue,
    ConfigurationKeys,
    ConfigurationOverrides,
    ConfigurationUpdateOverrides,
    FolderResolver,
)
from .defaults import DefaultConfiguration, DefaultConfigurationChange, PolicyConfiguration
from .events import ConfigurationChangeEvent, ConfigurationTarget, merge_changes
from .model import ConfigurationModel, ConfigurationModelParser, ConfigurationParseOptions
from .registry import ConfigurationRegistry, ConfigurationScope
from .values import key_from_override_identifiers

logger = logging.getLogger(__name__)

SettingsDocument = Union[str, Mapping[str, Any]]

APPLICATION_SCOPES: List[ConfigurationScope] = [ConfigurationScope.APPLICATION]
REMOTE_USER_SCOPES: List[ConfigurationScope] = [
    ConfigurationScope.MACHINE,
    ConfigurationScope.WINDOW,
    ConfigurationScope.RESOURCE,
    ConfigurationScope.RESOURCE_LANGUAGE_OVERRIDABLE,
    ConfigurationScope.MACHINE_OVERRIDABLE,
]
WORKSPACE_SCOPES: List[ConfigurationScope] = [
    ConfigurationScope.WINDOW,
    ConfigurationScope.RESOURCE,
    ConfigurationScope.RESOURCE_LANGUAGE_OVERRIDABLE,
    ConfigurationScope.MACHINE_OVERRIDABLE,
]
FOLDER_SCOPES: List[ConfigurationScope] = [
    ConfigurationScope.RESOURCE,
    ConfigurationScope.RESOURCE_LANGUAGE_OVERRIDABLE,
    ConfigurationScope.MACHINE_OVERRIDABLE,
]


class ConfigurationService:
    """Read, write and observe the consolidated settings of one window."""

    def __init__(
        self,
        registry: ConfigurationRegistry,
        resolve_folder: Optional[FolderResolver] = None,
        workspace_trusted: bool = True,
        policy_values: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._registry = registry
        self._resolve_folder = resolve_folder
        self._workspace_trusted = workspace_trusted

        self._default_configuration = DefaultConfiguration(registry)
        self._policy_configuration = PolicyConfiguration(registry)
        self._configuration = Configuration(
            self._default_configuration.initialize(),
            self._policy_configuration.initialize(policy_values),
        )

        self._application_parser: Optional[ConfigurationModelParser] = None
        self._local_user_parser: Optional[ConfigurationModelParser] = None
        self._remote_user_parser: Optional[ConfigurationModelParser] = None
        self._workspace_parser: Optional[ConfigurationModelParser] = None
        self._folder_parsers: Dict[str, ConfigurationModelParser] = {}

        self.on_did_change_configuration: Emitter[ConfigurationChangeEvent] = Emitter(
            "configuration.change"
        )
        self._subscriptions: List[Subscription] = [
            self._default_configuration.on_did_change_configuration.subscribe(
                self._on_default_configuration_changed
            ),
            self._policy_configuration.on_did_change_configuration.subscribe(
                self._on_policy_configuration_changed
            ),
        ]

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def workspace_trusted(self) -> bool:
        return self._workspace_trusted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_value(
        self,
        section: Optional[str] = None,
        resource: Optional[str] = None,
        override_identifier: Optional[str] = None,
    ) -> Any:
        return self._configuration.get_value(
            section,
            ConfigurationOverrides(resource=resource, override_identifier=override_identifier),
            self._resolve_folder,
        )

    def inspect(
        self,
        key: str,
        resource: Optional[str] = None,
        override_identifier: Optional[str] = None,
    ) -> ConfigurationInspectValue:
        return self._configuration.inspect(
            key,
            ConfigurationOverrides(resource=resource, override_identifier=override_identifier),
            self._resolve_folder,
        )

    def keys(self, folder: Optional[str] = None) -> ConfigurationKeys:
        return self._configuration.keys(folder)

    def to_data(self) -> ConfigurationData:
        return self._configuration.to_data()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def update_value(
        self,
        key: str,
        value: Any,
        resource: Optional[str] = None,
        override_identifiers: Optional[Sequence[str]] = None,
    ) -> None:
        """Write ``value`` to the in-memory layer; ``None`` removes it."""
        identifiers = tuple(override_identifiers or ())
        overrides = ConfigurationUpdateOverrides(resource=resource, override_identifiers=identifiers)
        previous = self._snapshot(overrides)
        self._configuration.update_value(key, value, overrides)
        keys = [key_from_override_identifiers(identifiers), key] if identifiers else [key]
        self._trigger(ConfigurationChange(keys, []), previous, ConfigurationTarget.MEMORY)

    def update_application_configuration(self, document: SettingsDocument) -> ConfigurationChange:
        self._application_parser = self._parse("application", document, APPLICATION_SCOPES)
        return self._apply(
            ConfigurationTarget.APPLICATION,
            self._configuration.compare_and_update_application_configuration,
            self._application_parser.configuration_model,
        )

    def update_user_configuration(
        self, document: SettingsDocument, remote: bool = False
    ) -> ConfigurationChange:
        if remote:
            self._remote_user_parser = self._parse("remote user", document, REMOTE_USER_SCOPES)
            return self._apply(
                ConfigurationTarget.USER_REMOTE,
                self._configuration.compare_and_update_remote_user_configuration,
                self._remote_user_parser.configuration_model,
            )
        self._local_user_parser = self._parse("user", document, None)
        return self._apply(
            ConfigurationTarget.USER_LOCAL,
            self._configuration.compare_and_update_local_user_configuration,
            self._local_user_parser.configuration_model,
        )

    def update_workspace_configuration(self, document: SettingsDocument) -> ConfigurationChange:
        self._workspace_parser = self._parse("workspace", document, WORKSPACE_SCOPES, workspace=True)
        return self._apply(
            ConfigurationTarget.WORKSPACE,
            self._configuration.compare_and_update_workspace_configuration,
            self._workspace_parser.configuration_model,
        )

    def update_folder_configuration(self, folder: str, document: SettingsDocument) -> ConfigurationChange:
        parser = self._parse(f"folder {folder}", document, FOLDER_SCOPES, workspace=True)
        self._folder_parsers[folder] = parser
        previous = self._snapshot()
        change = self._configuration.compare_and_update_folder_configuration(
            folder, parser.configuration_model
        )
        self._trigger(change, previous, ConfigurationTarget.WORKSPACE_FOLDER)
        return change

    def remove_folder_configuration(self, folder: str) -> ConfigurationChange:
        self._folder_parsers.pop(folder, None)
        previous = self._snapshot()
        change = self._configuration.compare_and_delete_folder_configuration(folder)
        self._trigger(change, previous, ConfigurationTarget.WORKSPACE_FOLDER)
        return change

    def update_policy_values(self, policy_values: Mapping[str, Any]) -> ConfigurationModel:
        """Replace the enforced policy values; listeners are notified of the difference."""
        return self._policy_configuration.update(policy_values)

    def update_workspace_trust(self, trusted: bool) -> ConfigurationChange:
        """Re-filter workspace and folder documents for the new trust state."""
        if trusted == self._workspace_trusted:
            return ConfigurationChange()
        self._workspace_trusted = trusted
        previous = self._snapshot()
        change = merge_changes(ConfigurationChange(), *self._reparse_workspace_documents())
        self._trigger(change, previous, ConfigurationTarget.WORKSPACE)
        return change

    def dispose(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []
        self._default_configuration.dispose()
        self._policy_configuration.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _snapshot(self, writing: Optional[ConfigurationUpdateOverrides] = None):
        return (self._configuration.snapshot(writing), self._resolve_folder)

    def _options(
        self, scopes: Optional[List[ConfigurationScope]], workspace: bool = False
    ) -> ConfigurationParseOptions:
        return ConfigurationParseOptions(
            scopes=scopes,
            skip_restricted=workspace and not self._workspace_trusted,
        )

    def _parse(
        self,
        name: str,
        document: SettingsDocument,
        scopes: Optional[List[ConfigurationScope]],
        workspace: bool = False,
    ) -> ConfigurationModelParser:
        parser = ConfigurationModelParser(name, self._registry)
        options = self._options(scopes, workspace)
        if isinstance(document, str):
            parser.parse(document, options)
        else:
            parser.parse_raw(document, options)
        if parser.restricted_configurations and not self._workspace_trusted and workspace:
            logger.info(
                "Ignoring restricted settings in %s settings: %s",
                name,
                ", ".join(parser.restricted_configurations),
            )
        return parser

    def _apply(self, source: ConfigurationTarget, compare_and_update, model: ConfigurationModel) -> ConfigurationChange:
        previous = self._snapshot()
        change = compare_and_update(model)
        self._trigger(change, previous, source)
        return change

    def _reparse_workspace_documents(self) -> List[ConfigurationChange]:
        changes: List[ConfigurationChange] = []
        if self._workspace_parser is not None:
            self._workspace_parser.reparse(self._options(WORKSPACE_SCOPES, workspace=True))
            changes.append(
                self._configuration.compare_and_update_workspace_configuration(
                    self._workspace_parser.configuration_model
                )
            )
        for folder, parser in self._folder_parsers.items():
            parser.reparse(self._options(FOLDER_SCOPES, workspace=True))
            changes.append(
                self._configuration.compare_and_update_folder_configuration(
                    folder, parser.configuration_model
                )
            )
        return changes

    def _reparse_documents(self) -> List[ConfigurationChange]:
        changes: List[ConfigurationChange] = []
        if self._application_parser is not None:
            self._application_parser.reparse(self._options(APPLICATION_SCOPES))
            changes.append(
                self._configuration.compare_and_update_application_configuration(
                    self._application_parser.configuration_model
                )
            )
        if self._local_user_parser is not None:
            self._local_user_parser.reparse(self._options(None))
            changes.append(
                self._configuration.compare_and_update_local_user_configuration(
                    self._local_user_parser.configuration_model
                )
            )
        if self._remote_user_parser is not None:
            self._remote_user_parser.reparse(self._options(REMOTE_USER_SCOPES))
            changes.append(
                self._configuration.compare_and_update_remote_user_configuration(
                    self._remote_user_parser.configuration_model
                )
            )
        changes.extend(self._reparse_workspace_documents())
        return changes

    def _on_default_configuration_changed(self, event: DefaultConfigurationChange) -> None:
        previous = self._snapshot()
        change = self._configuration.compare_and_update_default_configuration(
            event.defaults, event.properties
        )
        # Newly registered properties may move settings in or out of a layer's scopes.
        change = merge_changes(change, *self._reparse_documents())
        self._trigger(change, previous, ConfigurationTarget.DEFAULT)

    def _on_policy_configuration_changed(self, policy: ConfigurationModel) -> None:
        previous = self._snapshot()
        change = self._configuration.compare_and_update_policy_configuration(policy)
        self._trigger(change, previous, ConfigurationTarget.DEFAULT)

    def _trigger(self, change: ConfigurationChange, previous, source: ConfigurationTarget) -> None:
        if change.is_empty():
            return
        event = ConfigurationChangeEvent(
            change, previous, self._configuration, self._resolve_folder, source
        )
        logger.debug("Configuration changed from %s: %s", source.name, sorted(event.affected_keys))
        self.on_did_change_configuration.fire(event)


__all__ = [
    "ConfigurationService",
    "SettingsDocument",
    "APPLICATION_SCOPES",
    "REMOTE_USER_SCOPES",
    "WORKSPACE_SCOPES",
    "FOLDER_SCOPES",
]
