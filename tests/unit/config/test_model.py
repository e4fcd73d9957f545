from __future__ import annotations

import copy
from typing import Any, Dict, List

from strata.core.config.model import (
    ConfigurationModel,
    ConfigurationModelParser,
    ConfigurationOverride,
    OverrideValue,
    compare,
)


def _model(raw: Dict[str, Any]) -> ConfigurationModel:
    parser = ConfigurationModelParser("test")
    parser.parse_raw(raw)
    return parser.configuration_model


class TestMerge:
    """Layer merge semantics."""

    def test_objects_merge_per_leaf_and_arrays_replace(self) -> None:
        base = _model({"editor.fontSize": 12, "editor.tabSize": 4, "editor.rulers": [80, 100]})
        top = _model({"editor.tabSize": 2, "editor.rulers": [120]})

        merged = base.merge(top)

        assert merged.get_value("editor") == {"fontSize": 12, "tabSize": 2, "rulers": [120]}

    def test_keys_are_unioned_in_order(self) -> None:
        merged = _model({"a": 1, "b": 2}).merge(_model({"c": 3, "a": 4}))
        assert merged.keys == ["a", "b", "c"]

    def test_merge_does_not_mutate_inputs(self) -> None:
        base = _model({"editor.fontSize": 12, "[python]": {"editor.tabSize": 2}})
        top = _model({"editor.fontSize": 14, "[python]": {"editor.tabSize": 8}})
        before_base = copy.deepcopy(base.to_json())
        before_top = copy.deepcopy(top.to_json())

        base.merge(top)

        assert base.to_json() == before_base
        assert top.to_json() == before_top

    def test_merge_with_itself_is_idempotent(self) -> None:
        model = _model({"editor.fontSize": 12, "[python]": {"editor.tabSize": 2}})
        merged = model.merge(model)

        assert merged.contents == model.contents
        assert merged.keys == model.keys
        assert merged.override("python").get_value("editor.tabSize") == 2

    def test_override_sections_with_same_identifiers_are_merged(self) -> None:
        merged = _model({"[python]": {"editor.tabSize": 2}}).merge(
            _model({"[python]": {"editor.fontSize": 10}})
        )

        assert len(merged.overrides) == 1
        assert merged.overrides[0].keys == ["editor.tabSize", "editor.fontSize"]
        assert merged.get_override_value("editor", "python") == {"tabSize": 2, "fontSize": 10}

    def test_empty_models_are_skipped(self) -> None:
        model = _model({"a": 1})
        merged = model.merge(ConfigurationModel.create_empty_model())
        assert merged.contents == {"a": 1}
        assert ConfigurationModel.create_empty_model().is_empty()


class TestOverride:
    """Projection of a model for an override identifier."""

    def test_override_merges_objects_and_replaces_leaves(self) -> None:
        model = _model({"editor.tabSize": 4, "editor.fontSize": 12, "[python]": {"editor.tabSize": 2}})

        projected = model.override("python")

        assert projected.get_value("editor") == {"tabSize": 2, "fontSize": 12}
        assert model.get_value("editor.tabSize") == 4

    def test_falsy_override_values_apply(self) -> None:
        model = _model({"count": 5, "enabled": True, "[go]": {"count": 0, "enabled": False}})

        projected = model.override("go")

        assert projected.get_value("count") == 0
        assert projected.get_value("enabled") is False

    def test_identifier_section_wins_over_shared_section(self) -> None:
        model = _model(
            {
                "[typescript]": {"editor.tabSize": 8},
                "[javascript][typescript]": {"editor.tabSize": 3, "editor.fontSize": 9},
            }
        )

        assert model.override("typescript").get_value("editor") == {"tabSize": 8, "fontSize": 9}
        assert model.override("javascript").get_value("editor") == {"tabSize": 3, "fontSize": 9}

    def test_unknown_identifier_returns_same_model(self) -> None:
        model = _model({"a": 1})
        assert model.override("rust") is model

    def test_override_keys_and_identifiers(self) -> None:
        model = _model(
            {"[python]": {"a": 1}, "[python][go]": {"b": 2}, "[rust]": {"c": 3}}
        )

        assert model.get_keys_for_override_identifier("python") == ["a", "b"]
        assert model.get_all_override_identifiers() == ["python", "go", "rust"]


class TestSetAndRemove:
    """In-place edits used by the memory and default layers."""

    def test_set_value_adds_key_and_invalidates_projection(self) -> None:
        model = _model({"[python]": {"editor.tabSize": 2}})
        assert model.override("python").get_value("editor.tabSize") == 2

        model.set_value("[python]", {"editor.tabSize": 6})

        assert model.override("python").get_value("editor.tabSize") == 6
        assert model.keys == ["[python]"]
        assert len(model.overrides) == 1

    def test_remove_override_section_keeps_the_others(self) -> None:
        model = _model({"[python]": {"a": 1}, "[go]": {"b": 2}})

        model.remove_value("[python]")

        assert [o.identifiers for o in model.overrides] == [["go"]]
        assert model.keys == ["[go]"]

    def test_remove_value_ignores_unknown_keys(self) -> None:
        model = _model({"a.b": 1})
        model.remove_value("a")
        assert model.get_value("a.b") == 1

    def test_set_value_reports_conflicts(self) -> None:
        messages: List[str] = []
        model = ConfigurationModel({"editor": 1}, ["editor"], [], None, messages.append)

        model.set_value("editor.fontSize", 12)

        assert model.get_value("editor") == 1
        assert messages == ["Ignoring editor.fontSize as editor is 1"]


class TestInspect:
    def test_inspect_breaks_down_override_values(self) -> None:
        model = _model({"editor.tabSize": 4, "[python]": {"editor.tabSize": 2}})

        inspect = model.inspect("editor.tabSize", "python")

        assert inspect.value == 4
        assert inspect.override == 2
        assert inspect.merged == 2
        assert inspect.overrides == [OverrideValue(["python"], 2)]

    def test_inspect_without_identifier(self) -> None:
        inspect = _model({"editor.tabSize": 4}).inspect("editor.tabSize")

        assert inspect.value == 4
        assert inspect.override is None
        assert inspect.merged == 4
        assert inspect.overrides is None


class TestCompare:
    def test_compare_reports_added_removed_updated(self) -> None:
        result = compare(_model({"a": 1, "b": 2, "d": 5}), _model({"a": 1, "b": 3, "c": 4}))

        assert result.added == ["c"]
        assert result.removed == ["d"]
        assert result.updated == ["b"]
        assert result.keys == ["c", "d", "b"]

    def test_compare_reports_override_changes(self) -> None:
        result = compare(
            _model({"[python]": {"editor.tabSize": 2}, "[go]": {"x": 1}}),
            _model({"[python]": {"editor.tabSize": 3}, "[rust]": {"y": 1}}),
        )

        assert dict(result.overrides) == {
            "rust": ["y"],
            "go": ["x"],
            "python": ["editor.tabSize"],
        }

    def test_compare_distinguishes_numbers_from_booleans(self) -> None:
        """1 and True are different settings values even though they compare equal."""
        result = compare(
            _model({"foo.flag": 1, "foo.size": 1, "foo.list": [0]}),
            _model({"foo.flag": True, "foo.size": 1.0, "foo.list": [False]}),
        )

        assert result.updated == ["foo.flag", "foo.size", "foo.list"]

    def test_compare_distinguishes_types_inside_override_sections(self) -> None:
        result = compare(
            _model({"[python]": {"editor.formatOnSave": 0}}),
            _model({"[python]": {"editor.formatOnSave": False}}),
        )

        assert dict(result.overrides) == {"python": ["editor.formatOnSave"]}

    def test_compare_with_missing_side(self) -> None:
        model = _model({"a": 1})
        assert compare(None, model).added == ["a"]
        assert compare(model, None).removed == ["a"]


def test_configuration_override_json_round_trip() -> None:
    override = ConfigurationOverride(["python"], ["editor.tabSize"], {"editor": {"tabSize": 2}})
    assert ConfigurationOverride.from_json(override.to_json()) == override


def test_to_json_shape() -> None:
    model = _model({"editor.fontSize": 12})
    assert model.to_json() == {
        "contents": {"editor": {"fontSize": 12}},
        "overrides": [],
        "keys": ["editor.fontSize"],
    }
