"""
Tests for placeholder templates and the config helpers.
"""

import pytest

from flask_fieldset import DEFAULT_CONFIG, TemplateError, get_template_preset
from flask_fieldset.config import MULTI_FIELD_TEMPLATE, TEMPLATE_PRESETS, get_dotted
from flask_fieldset.templating import FieldTemplate, Placeholder, tokenize


class TestTokenize:
    def test_segments(self):
        assert tokenize("<td>{label}</td>{field}") == [
            "<td>",
            Placeholder("label"),
            "</td>",
            Placeholder("field"),
        ]

    def test_other_braces_are_text(self):
        assert tokenize("a { b } {1x} {ok}") == ["a { b } {1x} ", Placeholder("ok")]

    def test_empty(self):
        assert tokenize("") == []


class TestFieldTemplate:
    def test_render(self):
        template = FieldTemplate("<p>{label}: {field}</p>")

        assert template.render(label="Name", field="<input />") == (
            "<p>Name: <input /></p>"
        )

    def test_unknown_placeholders_are_kept(self):
        template = FieldTemplate("{label}{other}")

        assert template.render(label="x") == "x{other}"

    def test_none_renders_empty(self):
        assert FieldTemplate("[{description}]").render(description=None) == "[]"

    def test_empty_template(self):
        assert FieldTemplate(None).render(field="x") == ""

    def test_repeat_block(self):
        template = FieldTemplate("<ul>{fields}<li>{field}</li>{fields}</ul>", "fields")

        rows = "".join(template.render_block(field=f) for f in ("a", "b"))

        assert template.has_block
        assert template.render(fields=rows) == "<ul><li>a</li><li>b</li></ul>"

    def test_single_marker_is_plain_placeholder(self):
        template = FieldTemplate("<p>{fields}</p>", "fields")

        assert not template.has_block
        assert template.render(fields="x") == "<p>x</p>"
        with pytest.raises(TemplateError):
            template.render_block(field="x")

    def test_too_many_markers(self):
        with pytest.raises(TemplateError):
            FieldTemplate("{fields}a{fields}b{fields}", "fields")

    def test_default_multi_field_template(self):
        template = FieldTemplate(MULTI_FIELD_TEMPLATE, "fields")

        row = template.render_block(field="<input />", label="<label>A</label>")

        assert row == "\n\t\t\t\t<input /> <label>A</label><br />\n"


class TestConfig:
    def test_defaults(self):
        form = DEFAULT_CONFIG["form"]

        assert form["prep_value"] is True
        assert form["auto_id"] is False
        assert form["auto_id_prefix"] == "form_"
        assert form["form_method"] == "post"
        assert form["required_mark"] == "*"

    @pytest.mark.parametrize("name", sorted(TEMPLATE_PRESETS))
    def test_presets_are_copies(self, name):
        preset = get_template_preset(name)
        preset["field_template"] = "changed"

        assert TEMPLATE_PRESETS[name]["field_template"] != "changed"
        assert "{field}" in get_template_preset(name)["field_template"]

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            get_template_preset("unknown")

    def test_get_dotted(self):
        config = {"form": {"auto_id": True}, "form.flat": 1}

        assert get_dotted(config, "form.auto_id") is True
        assert get_dotted(config, "form.flat") == 1
        assert get_dotted(config, "form.missing", "d") == "d"
        assert get_dotted(config, "form.auto_id.deeper", "d") == "d"
