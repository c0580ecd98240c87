"""
HTML tag factory for fieldsets.

:class:`FormRenderer` turns attribute mappings into markup. It keeps no
field data of its own: configuration is read through its fieldset, and the
current URL, CSRF token and translations come from the fieldset's
providers.
"""

import functools
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from markupsafe import Markup, escape
from wtforms.widgets import html_params

from .exceptions import InvalidInputType, MissingOptions


log = logging.getLogger(__name__)


VALID_INPUTS = (
    "button",
    "checkbox",
    "color",
    "date",
    "datetime",
    "datetime-local",
    "email",
    "file",
    "hidden",
    "image",
    "month",
    "number",
    "password",
    "radio",
    "range",
    "reset",
    "search",
    "submit",
    "tel",
    "text",
    "time",
    "url",
    "week",
)

# metadata keys that are never emitted as HTML attributes
_META_KEYS = ("label", "tag", "dont_prep")


def to_text(value: Any) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


def _escape(value: Any) -> str:
    if value is None or isinstance(value, bool):
        value = to_text(value)
    return str(escape(value))


def attr_to_string(attributes: Mapping) -> str:
    """Serialize attributes, skipping metadata keys and unset values."""
    attrs = {
        str(key): value
        for key, value in attributes.items()
        if key not in _META_KEYS and value is not None
    }
    return html_params(**attrs)


def _tag(tag: str, attributes=None, content: Optional[str] = None) -> str:
    if isinstance(attributes, Mapping):
        attributes = attr_to_string(attributes)
    html = "<" + tag
    if attributes:
        html += " " + attributes
    if content is None:
        return html + " />"
    return "%s>%s</%s>" % (html, content, tag)


def html_tag(tag: str, attributes=None, content: Optional[str] = None) -> Markup:
    """
    Render a single element. Without ``content`` the element is
    self-closing; ``content`` is inserted as given.
    """
    return Markup(_tag(tag, attributes, content))


class FormRenderer(object):
    """
    Renders form controls for a :class:`~flask_fieldset.fieldset.Fieldset`.

    Every primitive accepts either a field name followed by value and
    attributes, or a single attribute mapping holding everything, and
    returns :class:`~markupsafe.Markup`.
    """

    valid_inputs = VALID_INPUTS

    def __init__(self, fieldset, config: Optional[Mapping] = None):
        self._fieldset = fieldset
        fieldset.renderer = self
        for key, value in (config or {}).items():
            self.set_config(key, value)
        self.wrappers = {
            "form": (self.open, self.close),
            "fieldset": (self.fieldset_open, self.fieldset_close),
        }

    def __repr__(self):
        return "<FormRenderer for %r>" % self._fieldset

    @property
    def providers(self):
        return self._fieldset.providers

    # configuration

    def get_config(self, key=None, default: Any = None) -> Any:
        """
        Read a config value from the fieldset, falling back to the config
        defaults provider under ``form.<key>``.
        """
        if key is None:
            return self._fieldset.get_config()
        if isinstance(key, (list, tuple)):
            return {k: self.get_config(k, default) for k in key}
        value = self._fieldset.get_config(key)
        if value is not None:
            return value
        return self.providers.config.get("form." + key, default)

    def set_config(self, key, value: Any = None) -> "FormRenderer":
        self._fieldset.set_config(key, value)
        return self

    def set_attribute(self, key: str, value: Any) -> "FormRenderer":
        """Set an attribute of the form tag."""
        attributes = dict(self.get_config("form_attributes") or {})
        attributes[key] = value
        self.set_config("form_attributes", attributes)
        return self

    def get_attribute(self, key: str, default: Any = None) -> Any:
        attributes = self.get_config("form_attributes") or {}
        return attributes.get(key, default)

    def prep_value(self, value: Any) -> Any:
        """
        Prepare a value for display. Override to transform values before
        they are written into the markup.
        """
        return value

    def _prep(self, attributes: Dict) -> bool:
        return bool(self.get_config("prep_value", True)) and not attributes.pop(
            "dont_prep", False
        )

    def _auto_id(self, attributes: Dict) -> None:
        if not attributes.get("id") and self.get_config("auto_id", False):
            attributes["id"] = self.get_config("auto_id_prefix", "form_") + to_text(
                attributes.get("name")
            )

    @staticmethod
    def _field_attributes(field, value, attributes) -> Dict:
        if isinstance(field, Mapping):
            return dict(field)
        attributes = dict(attributes or {})
        attributes["name"] = to_text(field)
        attributes["value"] = to_text(value)
        return attributes

    # wrapper tags

    def open(self, attributes=None, hidden: Optional[Mapping] = None) -> Markup:
        """
        Open a form. ``action`` defaults to the current URL, ``method`` to
        the configured ``form_method``; ``hidden`` name/value pairs become
        hidden inputs and the CSRF token field is always appended.
        """
        if attributes is None:
            attributes = {}
        elif isinstance(attributes, Mapping):
            attributes = dict(attributes)
        else:
            attributes = {"action": attributes}

        if not attributes.get("action"):
            attributes["action"] = self.providers.base_url.current_base_url()
        if not attributes.get("accept-charset"):
            attributes["accept-charset"] = "utf-8"
        if not attributes.get("method"):
            attributes["method"] = self.get_config("form_method", "post")

        parts = ["<form %s>" % attr_to_string(attributes)]
        for name, value in (hidden or {}).items():
            parts.append(str(self.hidden(name, value)))
        token = self.providers.csrf.token_field()
        if token:
            parts.append(str(token))
        return Markup("\n".join(parts))

    def close(self, attributes=None) -> Markup:
        return Markup("</form>")

    def fieldset_open(self, attributes=None, legend: Optional[str] = None) -> Markup:
        attributes = dict(attributes or {})
        if legend is not None:
            attributes["legend"] = legend
        legend = attributes.pop("legend", None)
        params = attr_to_string(attributes)
        html = "<fieldset%s>" % (" " + params if params else "")
        if legend:
            html += "\n" + _tag("legend", None, _escape(legend))
        return Markup(html)

    def fieldset_close(self, attributes=None) -> Markup:
        return Markup("</fieldset>")

    def tag_open(self, tag: str, attributes=None) -> Markup:
        params = attr_to_string(attributes or {})
        return Markup("<%s%s>" % (tag, " " + params if params else ""))

    def tag_close(self, tag: str, attributes=None) -> Markup:
        return Markup("</%s>" % tag)

    def wrapper(self, tag: Optional[str]):
        """Return the ``(open, close)`` handlers for a wrapper tag."""
        tag = tag or "form"
        if tag in self.wrappers:
            return self.wrappers[tag]
        return (
            functools.partial(self.tag_open, tag),
            functools.partial(self.tag_close, tag),
        )

    # controls

    def input(self, field, value: Any = None, attributes=None) -> Markup:
        if isinstance(field, Mapping):
            attributes = dict(field)
            attributes.setdefault("value", "")
        else:
            attributes = self._field_attributes(field, value, attributes)

        input_type = attributes.get("type") or "text"
        attributes["type"] = input_type
        if input_type not in self.valid_inputs:
            raise InvalidInputType(input_type, attributes.get("name"))

        if self._prep(attributes):
            attributes["value"] = self.prep_value(attributes["value"])
        self._auto_id(attributes)

        tag = attributes.pop("tag", None) or "input"
        return html_tag(tag, attributes)

    def hidden(self, field, value: Any = None, attributes=None) -> Markup:
        attributes = self._field_attributes(field, value, attributes)
        attributes["type"] = "hidden"
        return self.input(attributes)

    def password(self, field, value: Any = None, attributes=None) -> Markup:
        attributes = self._field_attributes(field, value, attributes)
        attributes["type"] = "password"
        return self.input(attributes)

    def file(self, field, attributes=None) -> Markup:
        if isinstance(field, Mapping):
            attributes = dict(field)
        else:
            attributes = dict(attributes or {})
            attributes["name"] = to_text(field)
        attributes["type"] = "file"
        return self.input(attributes)

    def reset(self, field="reset", value: Any = "Reset", attributes=None) -> Markup:
        attributes = self._field_attributes(field, value, attributes)
        attributes["type"] = "reset"
        return self.input(attributes)

    def submit(self, field="submit", value: Any = "Submit", attributes=None) -> Markup:
        attributes = self._field_attributes(field, value, attributes)
        attributes["type"] = "submit"
        return self.input(attributes)

    def _checkable(self, input_type, field, value, checked, attributes) -> Markup:
        if isinstance(field, Mapping):
            attributes = dict(field)
        else:
            if isinstance(checked, Mapping):
                attributes, checked = checked, None
            attributes = self._field_attributes(field, value, attributes)
            if isinstance(checked, bool):
                if checked:
                    attributes["checked"] = "checked"
            elif checked is not None and to_text(checked) == attributes["value"]:
                attributes["checked"] = "checked"
        attributes["type"] = input_type
        return self.input(attributes)

    def radio(self, field, value: Any = None, checked: Any = None, attributes=None) -> Markup:
        """
        Render a radio button. ``checked`` may be a boolean, or a value
        that checks the button when it equals ``value``.
        """
        return self._checkable("radio", field, value, checked, attributes)

    def checkbox(self, field, value: Any = None, checked: Any = None, attributes=None) -> Markup:
        """Render a checkbox, ``checked`` works as for :meth:`radio`."""
        return self._checkable("checkbox", field, value, checked, attributes)

    def button(self, field, value: Any = None, attributes=None) -> Markup:
        if isinstance(field, Mapping):
            attributes = dict(field)
            value = attributes.get("value", value)
        else:
            attributes = dict(attributes or {})
            attributes["name"] = to_text(field)
            if value is None:
                value = attributes["name"]
        return html_tag("button", attributes, _escape(value))

    def textarea(self, field, value: Any = None, attributes=None) -> Markup:
        if isinstance(field, Mapping):
            attributes = dict(field)
        else:
            attributes = dict(attributes or {})
            attributes["name"] = to_text(field)
            attributes["value"] = value

        value = attributes.pop("value", None)
        if not isinstance(value, (str, int, float)):
            value = ""
        if self._prep(attributes):
            value = self.prep_value(value)
        self._auto_id(attributes)
        return html_tag("textarea", attributes, _escape(value))

    @staticmethod
    def _selected_values(selected: Any) -> List[str]:
        if selected is None:
            return []
        if isinstance(selected, Mapping):
            items = selected.values()
        elif isinstance(selected, (list, tuple, set, frozenset)):
            items = selected
        else:
            items = [selected]
        return list(dict.fromkeys(to_text(item) for item in items))

    def _list_options(self, options: Mapping, selected: List[str], prep: bool, level: int = 1) -> str:
        output = "\n"
        indent = "\t" * level
        for key, label in options.items():
            if isinstance(label, Mapping):
                group = self._list_options(label, selected, prep, level + 1) + indent
                attributes = {
                    "label": key,
                    "style": "text-indent: %dpx;" % (20 + 10 * (level - 1)),
                }
                # optgroup needs its label attribute, which attr_to_string drops
                params = html_params(**attributes)
                output += indent + _tag("optgroup", params, group) + "\n"
                continue

            attributes = {"value": key}
            if level > 1:
                attributes["style"] = "text-indent: %dpx;" % (10 * (level - 1))
            if to_text(key) in selected:
                attributes["selected"] = "selected"
            if prep:
                attributes["value"] = self.prep_value(attributes["value"])
                label = self.prep_value(label)
            output += indent + _tag("option", attributes, _escape(label)) + "\n"
        return output

    def select(self, field, values: Any = None, options: Optional[Mapping] = None, attributes=None) -> Markup:
        """
        Render a select. Nested mappings in ``options`` become optgroups;
        options whose value is in the selection are marked selected.
        """
        if isinstance(field, Mapping):
            attributes = dict(field)
            if attributes.get("selected") is None:
                if attributes.get("value") is not None:
                    attributes["selected"] = attributes["value"]
                else:
                    attributes["selected"] = attributes.get("default")
        else:
            attributes = dict(attributes or {})
            attributes["name"] = to_text(field)
            if values is None or values == []:
                default = attributes.get("default")
                attributes["selected"] = values if default is None else default
            else:
                attributes["selected"] = values
            attributes["options"] = options
        attributes.pop("value", None)
        attributes.pop("default", None)

        options = attributes.pop("options", None)
        if not isinstance(options, Mapping):
            name = attributes.get("name")
            raise MissingOptions(
                'Select element "%s" is either missing the "options" or '
                '"options" is not a mapping.' % name,
                name,
            )

        selected = self._selected_values(attributes.pop("selected", None))
        body = self._list_options(options, selected, self._prep(attributes))

        self._auto_id(attributes)
        if attributes.get("multiple") not in (None, False):
            name = to_text(attributes.get("name"))
            if not name.endswith("[]"):
                attributes["name"] = name + "[]"
        return html_tag("select", attributes, body)

    def label(self, label, id: Optional[str] = None, attributes=None) -> Markup:
        """
        Render a label. ``for`` is derived from ``id`` when not given;
        the text is translated when the translator knows it.
        """
        if isinstance(label, Mapping):
            attributes = dict(label)
            label = attributes.get("label", "")
            if attributes.get("id") is not None:
                id = attributes["id"]
        else:
            attributes = dict(attributes or {})

        if not attributes.get("for") and id:
            if self.get_config("auto_id", False):
                attributes["for"] = self.get_config("auto_id_prefix", "form_") + id
            else:
                attributes["for"] = id
        attributes.pop("label", None)

        text = None
        if label:
            text = self.providers.translator.translate(str(label))
        if text is None:
            text = label
        return html_tag("label", attributes, _escape(text))

    # fieldset aliases

    def fieldset(self):
        return self._fieldset

    def add(self, name, label="", attributes=None):
        return self._fieldset.add(name, label, attributes)

    def field(self, name=None):
        return self._fieldset.field(name)

    def add_model(self, model, instance=None) -> "FormRenderer":
        self._fieldset.add_model(model, instance)
        return self

    def populate(self, input, repopulate: bool = False) -> "FormRenderer":
        self._fieldset.populate(input, repopulate)
        return self

    def repopulate(self) -> "FormRenderer":
        self._fieldset.repopulate()
        return self

    def build(self, action: Optional[str] = None) -> Markup:
        return self._fieldset.build(action)

    def build_field(self, field) -> Markup:
        """Build a single field, given by instance or by name."""
        if isinstance(field, str):
            field = self._fieldset.field(field)
        return field.build()
