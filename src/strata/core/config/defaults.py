"""Layers derived from the registry rather than from a settings document.

- :class:`DefaultConfiguration` holds every registered setting's effective
  default and follows registry updates incrementally.
- :class:`PolicyConfiguration` holds the values an administrator enforces
  through named policies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from strata.core.utils.emitter import Emitter, Subscription
from strata.core.utils.merge import deep_clone

from .model import ConfigurationModel
from .registry import (
    ConfigurationRegistry,
    ConfigurationRegistryUpdate,
    RegisteredConfigurationProperty,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefaultConfigurationChange:
    defaults: ConfigurationModel
    properties: List[str]


def _copy_model(model: ConfigurationModel) -> ConfigurationModel:
    return ConfigurationModel(
        deep_clone(model.contents),
        list(model.keys),
        [override.clone() for override in model.overrides],
    )


class DefaultConfiguration:
    """Builds the defaults layer from a :class:`ConfigurationRegistry`."""

    def __init__(
        self,
        registry: ConfigurationRegistry,
        default_overrides: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._registry = registry
        self._default_overrides: Dict[str, Any] = dict(default_overrides or {})
        self._configuration_model = ConfigurationModel.create_empty_model()
        self._subscription: Optional[Subscription] = None
        self.on_did_change_configuration: Emitter[DefaultConfigurationChange] = Emitter(
            "defaults.change_configuration"
        )

    @property
    def configuration_model(self) -> ConfigurationModel:
        return self._configuration_model

    def initialize(self) -> ConfigurationModel:
        """Build the model and start following registry updates."""
        self._reset_configuration_model()
        if self._subscription is None:
            self._subscription = self._registry.on_did_update_configuration.subscribe(
                self._on_did_update_configuration
            )
        return self._configuration_model

    def reload(self) -> ConfigurationModel:
        self._reset_configuration_model()
        return self._configuration_model

    def dispose(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None

    def get_configuration_default_overrides(self) -> Dict[str, Any]:
        """Defaults that take precedence over the registry's (e.g. experiments)."""
        return self._default_overrides

    def _on_did_update_configuration(self, update: ConfigurationRegistryUpdate) -> None:
        properties = sorted(update.properties)
        model = _copy_model(self._configuration_model)
        self._update_configuration_model(model, properties, self._registry.get_configuration_properties())
        self._configuration_model = model
        logger.debug("Defaults updated for %d properties", len(properties))
        self.on_did_change_configuration.fire(DefaultConfigurationChange(model, properties))

    def _reset_configuration_model(self) -> None:
        model = ConfigurationModel.create_empty_model()
        registered = self._registry.get_configuration_properties()
        self._update_configuration_model(model, list(registered), registered)
        self._configuration_model = model

    def _update_configuration_model(
        self,
        model: ConfigurationModel,
        keys: Iterable[str],
        registered: Mapping[str, RegisteredConfigurationProperty],
    ) -> None:
        default_overrides = self.get_configuration_default_overrides()
        for key in keys:
            if default_overrides.get(key) is not None:
                model.set_value(key, default_overrides[key])
            elif key in registered:
                model.set_value(key, registered[key].default)
            else:
                model.remove_value(key)


class PolicyConfiguration:
    """Builds the policy layer from ``policy name -> value`` pairs."""

    def __init__(self, registry: ConfigurationRegistry) -> None:
        self._registry = registry
        self._policy_values: Dict[str, Any] = {}
        self._configuration_model = ConfigurationModel.create_empty_model()
        self._subscription: Optional[Subscription] = None
        self.on_did_change_configuration: Emitter[ConfigurationModel] = Emitter(
            "policy.change_configuration"
        )

    @property
    def configuration_model(self) -> ConfigurationModel:
        return self._configuration_model

    def initialize(self, policy_values: Optional[Mapping[str, Any]] = None) -> ConfigurationModel:
        self._policy_values = dict(policy_values or {})
        self._configuration_model = self._build()
        if self._subscription is None:
            self._subscription = self._registry.on_did_update_configuration.subscribe(
                self._on_did_update_configuration
            )
        return self._configuration_model

    def update(self, policy_values: Mapping[str, Any]) -> ConfigurationModel:
        self._policy_values = dict(policy_values)
        self._configuration_model = self._build()
        self.on_did_change_configuration.fire(self._configuration_model)
        return self._configuration_model

    def dispose(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None

    def _on_did_update_configuration(self, update: ConfigurationRegistryUpdate) -> None:
        registered = self._registry.get_configuration_properties()
        if any(
            key in registered and registered[key].policy_name for key in update.properties
        ) or any(key in self._configuration_model.keys for key in update.properties):
            self.update(self._policy_values)

    def _build(self) -> ConfigurationModel:
        model = ConfigurationModel.create_empty_model()
        policies = self._registry.get_policy_configurations()
        for policy_name, key in sorted(policies.items(), key=lambda item: item[1]):
            value = self._policy_values.get(policy_name)
            if value is None:
                continue
            model.set_value(key, value)
        return model


__all__ = ["DefaultConfiguration", "DefaultConfigurationChange", "PolicyConfiguration"]
