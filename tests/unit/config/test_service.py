"""End-to-end tests for ConfigurationService.

These exercise the full path: registry -> defaults/policy layers -> parsed
documents -> consolidated reads -> change events.
"""
from __future__ import annotations

from typing import List

import pytest

from strata.core.config.configuration import Configuration, ConfigurationOverrides
from strata.core.config.events import ConfigurationChangeEvent, ConfigurationTarget
from strata.core.config.registry import (
    ConfigurationDefaults,
    ConfigurationNode,
    ConfigurationRegistry,
    ConfigurationScope,
)
from strata.core.config.service import ConfigurationService


@pytest.fixture
def service(registry: ConfigurationRegistry, resolve_folder) -> ConfigurationService:
    return ConfigurationService(registry, resolve_folder=resolve_folder)


@pytest.fixture
def events(service: ConfigurationService) -> List[ConfigurationChangeEvent]:
    received: List[ConfigurationChangeEvent] = []
    service.on_did_change_configuration.subscribe(received.append)
    return received


def test_tab_size_scenario() -> None:
    """Defaults, then a workspace value, then an in-memory value for one resource."""
    registry = ConfigurationRegistry()
    registry.register_configuration(
        ConfigurationNode.from_dict(
            {
                "id": "editor",
                "properties": {
                    "editor.tabSize": {"type": "number", "default": 4, "scope": ConfigurationScope.WINDOW}
                },
            }
        )
    )
    service = ConfigurationService(registry)
    assert service.get_value("editor.tabSize") == 4

    service.update_workspace_configuration({"editor": {"tabSize": 2}})
    assert service.get_value("editor.tabSize") == 2

    service.update_value("editor", {"tabSize": 8}, resource="/work/a/file.ts")
    assert service.get_value("editor.tabSize", resource="/work/a/file.ts") == 8
    assert service.get_value("editor.tabSize", resource="/work/a/other.ts") == 2


class TestLayerScopes:
    """Each document only contributes settings of its allowed scopes."""

    def test_application_document_keeps_application_settings_only(self, service: ConfigurationService) -> None:
        service.update_application_configuration({"update.mode": "manual", "editor.fontSize": 20})

        assert service.get_value("update.mode") == "manual"
        assert service.get_value("editor.fontSize") == 12

    def test_local_user_document_is_not_filtered(self, service: ConfigurationService) -> None:
        service.update_user_configuration('{"update.mode": "manual", "editor.fontSize": 20}')

        assert service.get_value("update.mode") == "manual"
        assert service.get_value("editor.fontSize") == 20

    def test_remote_user_document_drops_application_settings(self, service: ConfigurationService) -> None:
        service.update_user_configuration({"editor.fontSize": 14})
        service.update_user_configuration({"update.mode": "manual", "editor.fontSize": 20}, remote=True)

        assert service.get_value("update.mode") == "default"
        assert service.get_value("editor.fontSize") == 20

    def test_workspace_document_drops_application_settings(self, service: ConfigurationService) -> None:
        service.update_workspace_configuration("update.mode: manual\nwindow.zoomLevel: 2\n")

        assert service.get_value("update.mode") == "default"
        assert service.get_value("window.zoomLevel") == 2

    def test_folder_document_keeps_resource_settings_only(self, service: ConfigurationService) -> None:
        service.update_folder_configuration(
            "/work/a", {"window.zoomLevel": 3, "editor.insertSpaces": False}
        )

        assert service.get_value("window.zoomLevel", resource="/work/a/x.py") == 0
        assert service.get_value("editor.insertSpaces", resource="/work/a/x.py") is False
        assert service.get_value("editor.insertSpaces", resource="/work/b/x.py") is True

    def test_language_section_in_folder(self, service: ConfigurationService) -> None:
        service.update_folder_configuration("/work/a", {"[python]": {"editor.tabSize": 2}})

        assert service.get_value("editor.tabSize", resource="/work/a/x.py", override_identifier="python") == 2
        assert service.get_value("editor.tabSize", resource="/work/a/x.py") == 4


class TestWorkspaceTrust:
    def test_restricted_settings_are_ignored_in_untrusted_workspace(self, registry: ConfigurationRegistry) -> None:
        service = ConfigurationService(registry, workspace_trusted=False)
        service.update_user_configuration({"terminal.shell": "/bin/bash"})
        service.update_workspace_configuration({"terminal.shell": "/bin/zsh"})

        assert service.get_value("terminal.shell") == "/bin/bash"

    def test_granting_trust_reapplies_restricted_settings(self, registry: ConfigurationRegistry) -> None:
        service = ConfigurationService(registry, workspace_trusted=False)
        service.update_workspace_configuration({"terminal.shell": "/bin/zsh"})
        assert service.get_value("terminal.shell") == ""
        received: List[ConfigurationChangeEvent] = []
        service.on_did_change_configuration.subscribe(received.append)

        change = service.update_workspace_trust(True)

        assert service.get_value("terminal.shell") == "/bin/zsh"
        assert change.keys == ["terminal.shell"]
        assert [event.source for event in received] == [ConfigurationTarget.WORKSPACE]

    def test_granting_trust_reports_keys_inside_language_sections(self, registry: ConfigurationRegistry) -> None:
        service = ConfigurationService(registry, workspace_trusted=False)
        service.update_workspace_configuration({"[python]": {"terminal.shell": "/bin/zsh"}})
        received: List[ConfigurationChangeEvent] = []
        service.on_did_change_configuration.subscribe(received.append)

        change = service.update_workspace_trust(True)

        assert ("python", ["terminal.shell"]) in change.overrides
        assert received[0].affects_configuration("terminal.shell")
        assert service.get_value("terminal.shell", override_identifier="python") == "/bin/zsh"

    def test_unchanged_trust_is_a_no_op(self, service: ConfigurationService) -> None:
        assert service.update_workspace_trust(True).is_empty()


class TestPolicy:
    def test_policy_wins_over_every_other_layer(self, registry: ConfigurationRegistry, resolve_folder) -> None:
        service = ConfigurationService(
            registry, resolve_folder=resolve_folder, policy_values={"UpdateMode": "none"}
        )
        service.update_user_configuration({"update.mode": "manual"})
        service.update_value("update.mode", "start")
        service.update_value("update.mode", "start", resource="/work/a/x.py")

        assert service.get_value("update.mode") == "none"
        assert service.get_value("update.mode", resource="/work/a/x.py") == "none"
        assert service.inspect("update.mode").policy_value == "none"

    def test_removing_policy_fires_and_restores_user_value(self, registry: ConfigurationRegistry) -> None:
        service = ConfigurationService(registry, policy_values={"UpdateMode": "none"})
        service.update_user_configuration({"update.mode": "manual"})
        received: List[ConfigurationChangeEvent] = []
        service.on_did_change_configuration.subscribe(received.append)

        service.update_policy_values({})

        assert service.get_value("update.mode") == "manual"
        assert len(received) == 1
        assert received[0].affects_configuration("update.mode")


class TestEvents:
    """on_did_change_configuration delivery."""

    def test_user_update_fires_with_source(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        service.update_user_configuration({"editor.fontSize": 14})

        assert len(events) == 1
        assert events[0].source is ConfigurationTarget.USER_LOCAL
        assert events[0].affects_configuration("editor")
        assert not events[0].affects_configuration("files")

    def test_unchanged_document_does_not_fire(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        service.update_user_configuration({"editor.fontSize": 14})
        service.update_user_configuration('{"editor.fontSize": 14}')

        assert len(events) == 1

    def test_memory_update_fires(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        service.update_value("editor.tabSize", 2, override_identifiers=["python"])

        assert events[0].source is ConfigurationTarget.MEMORY
        assert events[0].change.keys == ["[python]", "editor.tabSize"]
        assert service.get_value("editor.tabSize", override_identifier="python") == 2

    def test_memory_event_compares_against_the_value_before_the_write(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        in_b = ConfigurationOverrides(resource="/work/b/x.py")

        service.update_value("editor.tabSize", 6)
        assert events[-1].affects_configuration("editor.tabSize", ConfigurationOverrides())

        service.update_value("editor.tabSize", 6, resource="/work/b/x.py")
        assert not events[-1].affects_configuration("editor.tabSize", in_b)

        service.update_value("editor.tabSize", 7, resource="/work/b/x.py")
        assert events[-1].affects_configuration("editor.tabSize", in_b)
        assert len(events) == 3

    def test_folder_removal_fires(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        service.update_folder_configuration("/work/a", {"editor.insertSpaces": False})
        service.remove_folder_configuration("/work/a")

        assert [event.source for event in events] == [
            ConfigurationTarget.WORKSPACE_FOLDER,
            ConfigurationTarget.WORKSPACE_FOLDER,
        ]
        assert service.get_value("editor.insertSpaces", resource="/work/a/x.py") is True

    def test_event_compares_resolved_values_for_a_resource(
        self, service: ConfigurationService, events: List[ConfigurationChangeEvent]
    ) -> None:
        service.update_folder_configuration("/work/a", {"editor.insertSpaces": False})
        service.update_workspace_configuration({"editor.insertSpaces": False})

        event = events[-1]
        assert event.affects_configuration("editor.insertSpaces")
        assert not event.affects_configuration(
            "editor.insertSpaces", ConfigurationOverrides(resource="/work/a/x.py")
        )
        assert event.affects_configuration(
            "editor.insertSpaces", ConfigurationOverrides(resource="/work/b/x.py")
        )

    def test_registry_defaults_fire_default_event(
        self,
        registry: ConfigurationRegistry,
        service: ConfigurationService,
        events: List[ConfigurationChangeEvent],
    ) -> None:
        registry.register_default_configurations([ConfigurationDefaults({"editor.fontSize": 16})])

        assert service.get_value("editor.fontSize") == 16
        assert events[-1].source is ConfigurationTarget.DEFAULT
        assert events[-1].affects_configuration("editor.fontSize")

    def test_new_property_refilters_parsed_documents(
        self,
        registry: ConfigurationRegistry,
        service: ConfigurationService,
        events: List[ConfigurationChangeEvent],
    ) -> None:
        service.update_workspace_configuration({"late.setting": 1})
        assert service.get_value("late.setting") == 1

        registry.register_configuration(
            ConfigurationNode.from_dict(
                {"properties": {"late.setting": {"type": "number", "default": 0, "scope": "application"}}}
            )
        )

        assert service.get_value("late.setting") == 0
        assert events[-1].affects_configuration("late.setting")

    def test_dispose_stops_following_the_registry(
        self,
        registry: ConfigurationRegistry,
        service: ConfigurationService,
        events: List[ConfigurationChangeEvent],
    ) -> None:
        service.dispose()
        registry.register_default_configurations([ConfigurationDefaults({"editor.fontSize": 16})])

        assert events == []
        assert service.get_value("editor.fontSize") == 12


class TestSnapshots:
    def test_to_data_round_trip(self, service: ConfigurationService, resolve_folder) -> None:
        service.update_user_configuration({"editor.fontSize": 14})
        service.update_folder_configuration("/work/a", {"[python]": {"editor.tabSize": 2}})
        service.update_value("editor.rulers", [80])

        restored = Configuration.parse(service.to_data())

        overrides = ConfigurationOverrides(resource="/work/a/x.py", override_identifier="python")
        assert restored.get_value("editor", overrides, resolve_folder) == service.get_value(
            "editor", resource="/work/a/x.py", override_identifier="python"
        )

    def test_keys_and_inspect(self, service: ConfigurationService) -> None:
        service.update_user_configuration({"editor.fontSize": 14})

        assert service.keys().user == ["editor.fontSize"]
        inspect = service.inspect("editor.fontSize")
        assert inspect.default_value == 12
        assert inspect.user_value == 14
        assert inspect.value == 14
