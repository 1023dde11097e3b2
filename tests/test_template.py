"""Tests for the version template engine."""

import pytest

from mirror_upload.exceptions import InvalidEscapeError, UnknownVariableError
from mirror_upload.template import Template, TemplatePart, parse_template, render


@pytest.mark.parametrize(
    ("template", "variables", "expected"),
    [
        ("$tag", {"tag": "1.2.3"}, "1.2.3"),
        ("${ tag }", {"tag": "1.2.3"}, "1.2.3"),
        ("${tag}", {"tag": "1.2.3"}, "1.2.3"),
        ("v\\$tag", {}, "v$tag"),
        ("a\\\\b", {}, "a\\b"),
        ("${ tag }+fabric", {"tag": "1.2.3"}, "1.2.3+fabric"),
        ("$tag-$tag", {"tag": "2"}, "2-2"),
        ("plain text", {}, "plain text"),
        ("", {}, ""),
    ],
)
def test_render(template, variables, expected):
    assert render(template, variables) == expected


@pytest.mark.parametrize("template", ["cost $5", "$", "100$", "${ tag", "${}", "$-x"])
def test_dollar_without_identifier_is_literal(template):
    assert render(template, {}) == template


def test_identifier_stops_at_non_word_character():
    assert render("$tag.1", {"tag": "v1"}) == "v1.1"


def test_unknown_variable():
    with pytest.raises(UnknownVariableError) as exc_info:
        render("$missing", {})
    assert exc_info.value.name == "missing"
    assert exc_info.value.context["variable"] == "missing"


def test_escaped_dollar_never_looks_up_variable():
    # would raise UnknownVariable if "$missing" were treated as a reference
    assert render("\\$missing", {}) == "$missing"


@pytest.mark.parametrize("template", ["abc\\", "\\x", "a\\nb"])
def test_invalid_escape(template):
    with pytest.raises(InvalidEscapeError):
        render(template, {"tag": "1"})


def test_parse_splits_text_and_variables():
    assert parse_template("v${ tag }-mc$mc") == [
        TemplatePart("v"),
        TemplatePart("tag", variable=True),
        TemplatePart("-mc"),
        TemplatePart("mc", variable=True),
    ]


def test_template_variables_and_reuse():
    template = Template.parse("$tag+$loader")
    assert template.variables == ["tag", "loader"]
    assert template.render({"tag": "1", "loader": "fabric"}) == "1+fabric"
    assert template.render({"tag": "2", "loader": "forge"}) == "2+forge"


def test_render_is_deterministic():
    variables = {"tag": "1.0"}
    assert render("${ tag }", variables) == render("${ tag }", variables)
    assert variables == {"tag": "1.0"}
