from __future__ import annotations

from strata.core.utils.merge import deep_clone, deep_equal, deep_merge, is_object, merge_into


def test_deep_merge_merges_objects_key_by_key() -> None:
    base = {"editor": {"tabSize": 4, "wordWrap": "off"}}
    override = {"editor": {"tabSize": 2}}

    assert deep_merge(base, override) == {"editor": {"tabSize": 2, "wordWrap": "off"}}


def test_deep_merge_replaces_arrays_and_scalars() -> None:
    base = {"rulers": [80, 100], "theme": {"name": "dark"}}
    override = {"rulers": [], "theme": "light"}

    assert deep_merge(base, override) == {"rulers": [], "theme": "light"}


def test_deep_merge_does_not_mutate_inputs() -> None:
    base = {"a": {"b": [1]}}
    override = {"a": {"c": {"d": 1}}}

    merged = deep_merge(base, override)
    merged["a"]["b"].append(2)
    merged["a"]["c"]["d"] = 5

    assert base == {"a": {"b": [1]}}
    assert override == {"a": {"c": {"d": 1}}}


def test_merge_into_mutates_target_only() -> None:
    target = {"a": {"x": 1}}
    source = {"a": {"y": {"z": 2}}}

    result = merge_into(target, source)
    result["a"]["y"]["z"] = 3

    assert result is target
    assert target == {"a": {"x": 1, "y": {"z": 3}}}
    assert source == {"a": {"y": {"z": 2}}}


def test_none_overrides_object() -> None:
    assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}


def test_deep_clone_copies_containers_and_returns_scalars() -> None:
    value = {"a": [1, {"b": 2}]}
    clone = deep_clone(value)

    assert clone == value
    assert clone is not value
    assert clone["a"][1] is not value["a"][1]
    assert deep_clone("text") == "text"


def test_is_object() -> None:
    assert is_object({})
    assert not is_object([])
    assert not is_object(None)
    assert not is_object("x")


def test_deep_equal_compares_nested_trees() -> None:
    assert deep_equal({"a": {"b": [1, "x"]}}, {"a": {"b": [1, "x"]}})
    assert not deep_equal({"a": {"b": [1]}}, {"a": {"b": [1, 2]}})
    assert not deep_equal({"a": 1}, {"a": 1, "b": None})


def test_deep_equal_keeps_scalar_types_apart() -> None:
    assert not deep_equal(1, True)
    assert not deep_equal(0, False)
    assert not deep_equal(1, 1.0)
    assert not deep_equal([1], [True])
    assert not deep_equal({"a": 0}, {"a": False})
    assert deep_equal(None, None)
