"""Tests for ${path} variable substitution."""

import pytest

from advisor_agent.flows.templating import MISSING, resolve_path, substitute


class TestResolvePath:
    def test_nested_mapping(self):
        assert resolve_path({"a": {"b": 5}}, "a.b") == 5

    def test_list_index(self):
        assert resolve_path({"items": [{"x": 1}, {"x": 2}]}, "items.1.x") == 2

    def test_missing_segment(self):
        assert resolve_path({"a": {}}, "a.b") is MISSING

    def test_none_intermediate(self):
        assert resolve_path({"a": None}, "a.b") is MISSING

    def test_bad_index(self):
        assert resolve_path({"items": [1]}, "items.5") is MISSING
        assert resolve_path({"items": [1]}, "items.first") is MISSING

    def test_string_is_not_indexed(self):
        assert resolve_path({"name": "Ada"}, "name.0") is MISSING


class TestSubstitute:
    def test_nested_value(self):
        assert substitute("${a.b}", {"a": {"b": 5}}) == "5"

    def test_multiple_placeholders(self):
        variables = {"first": "Mario", "last": "Rossi"}
        assert substitute("Hello ${first} ${last}!", variables) == "Hello Mario Rossi!"

    def test_unresolved_placeholder_kept_verbatim(self):
        assert substitute("${x.y}", {"x": {}}) == "${x.y}"
        assert substitute("Hi ${nobody}", {}) == "Hi ${nobody}"

    def test_none_value_kept_verbatim(self):
        assert substitute("${a}", {"a": None}) == "${a}"

    def test_booleans_and_numbers(self):
        assert substitute("${t}/${f}/${n}", {"t": True, "f": False, "n": 2.5}) == "true/false/2.5"

    def test_whole_floats_render_without_fraction(self):
        assert substitute("${total} EUR", {"total": 215000.0}) == "215000 EUR"
        assert substitute("${x}", {"x": -3.0}) == "-3"

    def test_dict_value_renders_as_json(self):
        out = substitute("${info}", {"info": {"name": "Ada", "age": 36}})
        assert out == '{"name": "Ada", "age": 36}'

    def test_list_is_substituted_elementwise(self):
        result = substitute(["${a}", "plain", 3, "${missing}"], {"a": "x"})
        assert result == ["x", "plain", 3, "${missing}"]

    def test_dict_keeps_keys(self):
        template = {"client_name": "${name}", "limit": 5, "nested": {"q": "${name}"}}
        result = substitute(template, {"name": "Ada"})
        assert result == {"client_name": "Ada", "limit": 5, "nested": {"q": "Ada"}}

    @pytest.mark.parametrize("value", [42, 3.14, True, None, "no markers", ["a", {"b": 1}]])
    def test_values_without_markers_are_unchanged(self, value):
        assert substitute(value, {"a": 1}) == value

    def test_does_not_mutate_template(self):
        template = {"a": ["${x}"]}
        substitute(template, {"x": "1"})
        assert template == {"a": ["${x}"]}

    def test_substituted_value_is_not_reexpanded(self):
        assert substitute("${a}", {"a": "${b}", "b": "nope"}) == "${b}"
