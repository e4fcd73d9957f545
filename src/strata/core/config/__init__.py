"""Strata configuration engine.

Layered settings resolution: defaults contributed through a property registry,
overlaid by policy, application, user, workspace, folder and in-memory layers.

Usage:
    from strata.core.config import ConfigurationNode, ConfigurationRegistry, ConfigurationService

    registry = ConfigurationRegistry()
    registry.register_configuration(ConfigurationNode.from_dict({
        "id": "editor",
        "properties": {"editor.tabSize": {"type": "number", "default": 4}},
    }))

    service = ConfigurationService(registry, resolve_folder=my_folder_lookup)
    service.update_user_configuration('{"editor.tabSize": 2}')
    service.get_value("editor.tabSize")  # 2

    # Lower level: build models and consolidate them yourself
    from strata.core.config.configuration import Configuration
"""
from __future__ import annotations

from .registry import (
    CompositeDefault,
    ConfigurationDefaults,
    ConfigurationNode,
    ConfigurationRegistry,
    ConfigurationRegistryUpdate,
    ConfigurationScope,
    ExtensionInfo,
    LeafDefault,
    RegisteredConfigurationProperty,
)
from .model import (
    ConfigurationModel,
    ConfigurationModelParser,
    ConfigurationParseOptions,
    compare,
)
from .defaults import DefaultConfiguration, PolicyConfiguration
from .configuration import (
    Configuration,
    ConfigurationChange,
    ConfigurationInspectValue,
    ConfigurationOverrides,
    ConfigurationUpdateOverrides,
)
from .events import ConfigurationChangeEvent, ConfigurationTarget, merge_changes
from .service import ConfigurationService

__all__ = [
    # Registry
    "ConfigurationRegistry",
    "ConfigurationRegistryUpdate",
    "ConfigurationNode",
    "ConfigurationDefaults",
    "ConfigurationScope",
    "RegisteredConfigurationProperty",
    "ExtensionInfo",
    "LeafDefault",
    "CompositeDefault",
    # Models
    "ConfigurationModel",
    "ConfigurationModelParser",
    "ConfigurationParseOptions",
    "compare",
    # Layers
    "DefaultConfiguration",
    "PolicyConfiguration",
    "Configuration",
    "ConfigurationChange",
    "ConfigurationInspectValue",
    "ConfigurationOverrides",
    "ConfigurationUpdateOverrides",
    # Events
    "ConfigurationChangeEvent",
    "ConfigurationTarget",
    "merge_changes",
    # Service
    "ConfigurationService",
]
