"""
A single form control: its name, type, label, value, attributes and
options, and the logic to render itself through its fieldset's renderer.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from markupsafe import Markup, escape

from .config import FIELD_TEMPLATE, MULTI_FIELD_TEMPLATE
from .exceptions import FieldsetException, InvalidField
from .renderer import to_text
from .templating import FieldTemplate


log = logging.getLogger(__name__)


def _merge_options(options: Dict, new: Mapping) -> None:
    for key, value in new.items():
        if isinstance(options.get(key), Mapping) and isinstance(value, Mapping):
            nested = dict(options[key])
            _merge_options(nested, value)
            options[key] = nested
        else:
            options[key] = value


class Field(object):
    """
    A field of a :class:`~flask_fieldset.fieldset.Fieldset`.

    Fields are normally created with ``Fieldset.add``. The name is fixed
    for the lifetime of the field; everything else is changed through the
    chainable ``set_*`` methods, which keep ``attributes`` in sync::

        fieldset.add("email", "E-mail").set_type("email").set_attribute(
            "required", True
        )

    :param name: field name, may contain array indices like ``addr[city]``
    :param label: label text, overrides a ``label`` in ``attributes``
    :param attributes: HTML attributes; ``type``, ``value``, ``label``,
        ``description``, ``template`` and ``options`` go through their setters
    :param fieldset: the owning fieldset
    """

    default_type = "text"

    def __init__(
        self,
        name,
        label: str = "",
        attributes: Optional[Mapping] = None,
        fieldset=None,
    ):
        self._name = "" if name is None else str(name)
        if not self._name:
            raise InvalidField("Fieldset field name may not be empty.")

        self._base_name = self.derive_base_name(self._name)
        self._fieldset = fieldset
        self._type: Union[str, bool] = self.default_type
        self._label = ""
        self._value: Any = None
        self._description = ""
        self._attributes: Dict[str, Any] = {}
        self._options: Dict[Any, Any] = {}
        self._template: Optional[str] = None
        self._setters = {
            "type": self.set_type,
            "label": self.set_label,
            "value": self.set_value,
            "description": self.set_description,
            "template": self.set_template,
            "options": self.set_options,
        }

        attributes = dict(attributes or {})
        attributes.pop("name", None)
        for key in list(attributes):
            setter = self._setters.get(key)
            if setter is not None:
                setter(attributes.pop(key))

        if "type" not in self._attributes:
            self.set_type(self._type)
        if label:
            self.set_label(label)
        self.set_attribute(attributes)

    @staticmethod
    def derive_base_name(name: str) -> str:
        """``addr[city]`` -> ``city``, ``email`` -> ``email``."""
        if "[" not in name:
            return name
        return name[name.rfind("[") + 1:].rstrip("]")

    def __repr__(self):
        return "<Field %r type=%r>" % (self._name, self._type)

    # read-only state

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_name(self) -> str:
        return self._base_name

    @property
    def type(self):
        return self._type

    @property
    def label(self) -> str:
        return self._label

    @property
    def value(self) -> Any:
        return self._value

    @property
    def description(self) -> str:
        return self._description

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    @property
    def options(self) -> Dict[Any, Any]:
        return dict(self._options)

    @property
    def template(self) -> Optional[str]:
        return self._template

    @property
    def fieldset(self):
        return self._fieldset

    # setters

    def set_type(self, type) -> "Field":
        """Change the render type, ``False`` keeps the field from rendering."""
        self._type = type
        self.set_attribute("type", type)
        return self

    def set_attribute(self, attr, value: Any = None) -> "Field":
        """
        Set one attribute, or several from a mapping. A ``None`` value
        removes the attribute.
        """
        items = attr if isinstance(attr, Mapping) else {attr: value}
        for key, val in items.items():
            if val is None:
                self._attributes.pop(key, None)
            else:
                self._attributes[key] = val
        return self

    def set_label(self, label) -> "Field":
        self._label = label
        self.set_attribute("label", label)
        return self

    def set_value(self, value: Any, repopulate: bool = False) -> "Field":
        """
        Change the current or default value.

        When repopulating a radio or checkbox without options the stored
        value is kept: the control is checked if ``value`` equals it.
        """
        if repopulate and self._type in ("radio", "checkbox") and not self._options:
            if to_text(self._value) == to_text(value):
                self.set_attribute("checked", "checked")
            return self

        self._value = value
        self.set_attribute("value", value)
        return self

    def set_description(self, description) -> "Field":
        if description is None:
            description = ""
        self._description = description if isinstance(description, str) else str(description)
        return self

    def set_template(self, template: Optional[str] = None) -> "Field":
        self._template = template
        return self

    def set_options(self, value, label: Any = None, replace: bool = False) -> "Field":
        """
        Add one option, or several value/label pairs from a mapping.

        A mapping replaces the options when ``replace`` is set or none exist
        yet, otherwise it is merged in, recursing into option groups.
        """
        if not isinstance(value, Mapping):
            self._options[value] = label
            return self

        if replace or not self._options:
            self._options = dict(value)
        else:
            _merge_options(self._options, value)
        return self

    def set_fieldset(self, fieldset) -> "Field":
        """
        Move this field into ``fieldset``. The field is detached from its
        current fieldset before it is attached to the new one.
        """
        if fieldset is self._fieldset:
            return self

        existing = fieldset.field(self._name)
        if existing is not None and existing is not self:
            raise InvalidField(
                'Fieldname already exists in Fieldset "%s": "%s".'
                % (fieldset.name, self._name),
                self._name,
            )

        if self._fieldset is not None:
            log.debug(
                "Moving field %s from %s to %s", self._name, self._fieldset, fieldset
            )
            self.clear_fieldset()
        fieldset.attach(self)
        self._fieldset = fieldset
        return self

    def clear_fieldset(self) -> "Field":
        """Remove this field from its fieldset, leaving it without an owner."""
        fieldset, self._fieldset = self._fieldset, None
        if fieldset is not None:
            fieldset.detach(self)
        return self

    def get_attribute(self, key=None, default: Any = None) -> Any:
        """
        Get one attribute, several as a dict when ``key`` is a list, or all
        of them when ``key`` is ``None``.
        """
        if key is None:
            return dict(self._attributes)
        if isinstance(key, (list, tuple)):
            return {k: self._attributes.get(k, default) for k in key}
        return self._attributes.get(key, default)

    def add(self, name, label: str = "", attributes: Optional[Mapping] = None) -> "Field":
        """Add a sibling field, to allow chaining."""
        return self._require_fieldset().add(name, label, attributes)

    # building

    def _require_fieldset(self):
        if self._fieldset is None:
            raise InvalidField(
                'Field "%s" does not belong to a Fieldset.' % self._name, self._name
            )
        return self._fieldset

    def _is_checked(self, option_value: Any) -> bool:
        if isinstance(self._value, (list, tuple, set, frozenset)):
            return to_text(option_value) in [to_text(v) for v in self._value]
        return self._value is not None and to_text(option_value) == to_text(self._value)

    def _build_hidden(self, renderer):
        return renderer.hidden(self._name, self._value, self._attributes)

    def _build_choice(self, renderer):
        if not self._options:
            if self._type == "radio":
                return renderer.radio(self._name, self._value, attributes=self._attributes)
            return renderer.checkbox(self._name, self._value, attributes=self._attributes)

        controls = {}
        for index, (value, label) in enumerate(self._options.items()):
            attributes = dict(self._attributes)
            attributes["name"] = self._name
            if self._type == "checkbox":
                attributes["name"] += "[%d]" % index
            attributes["value"] = value
            attributes["label"] = label
            if self._is_checked(value):
                attributes["checked"] = "checked"
            if attributes.get("id"):
                attributes["id"] = "%s_%d" % (attributes["id"], index)
            else:
                attributes["id"] = None

            label_html = renderer.label(label, None, {"for": attributes["id"]})
            if self._type == "radio":
                control = renderer.radio(attributes)
            else:
                control = renderer.checkbox(attributes)
            controls[str(label_html)] = str(control)
        return controls

    def _build_select(self, renderer):
        attributes = dict(self._attributes)
        attributes.pop("type", None)
        name = self._name
        if "multiple" in attributes and not name.endswith("[]"):
            name += "[]"
        return renderer.select(name, self._value, self._options, attributes)

    def _build_textarea(self, renderer):
        attributes = dict(self._attributes)
        attributes.pop("type", None)
        return renderer.textarea(self._name, self._value, attributes)

    def _build_button(self, renderer):
        return renderer.button(self._name, self._value, self._attributes)

    def _build_input(self, renderer):
        return renderer.input(self._name, self._value, self._attributes)

    _builders = {
        "hidden": _build_hidden,
        "radio": _build_choice,
        "checkbox": _build_choice,
        "select": _build_select,
        "textarea": _build_textarea,
        "button": _build_button,
    }

    def build(self) -> Markup:
        """Render the field, wrapped in its field template."""
        renderer = self._require_fieldset().renderer

        if renderer.get_config("auto_id", False) and not self.get_attribute("id"):
            auto_id = renderer.get_config("auto_id_prefix", "form_") + self._name.replace(
                "[", "-"
            ).replace("]", "")
            self.set_attribute("id", auto_id)

        kind = self._attributes.get("tag") or self._type
        if not kind:
            build_field = ""
        else:
            builder = self._builders.get(kind, Field._build_input)
            build_field = builder(self, renderer)

        if not build_field or self._type == "hidden":
            return Markup(build_field)
        return self._apply_template(renderer, build_field)

    def _apply_template(self, renderer, build_field) -> Markup:
        required = ""
        if self.get_attribute("required"):
            required = renderer.get_config("required_mark", "")
        description = str(escape(self._description))

        if isinstance(build_field, dict):
            group_label = ""
            if self._label:
                group_label = FieldTemplate(
                    renderer.get_config("group_label", "<span>{label}</span>")
                ).render(label=escape(self._label))
            template = FieldTemplate(
                self._template
                or renderer.get_config("multi_field_template", MULTI_FIELD_TEMPLATE),
                block="fields",
            )
            if template.has_block:
                rows = "".join(
                    template.render_block(label=label, required=required, field=control)
                    for label, control in build_field.items()
                )
                return Markup(
                    template.render(
                        group_label=group_label,
                        required=required,
                        fields=rows,
                        description=description,
                    )
                )
            # no repeat block, render the controls as one
            build_field = " ".join(build_field.values())

        label = ""
        if self._label:
            label = renderer.label(
                self._label,
                None,
                {
                    "id": "label_" + self._name,
                    "for": self.get_attribute("id"),
                    "class": renderer.get_config("label_class"),
                },
            )
        template = FieldTemplate(
            self._template or renderer.get_config("field_template", FIELD_TEMPLATE)
        )
        return Markup(
            template.render(
                label=label,
                required=required,
                field=build_field,
                description=description,
                field_id="col_" + self._name,
            )
        )

    def __html__(self):
        try:
            return self.build()
        except FieldsetException as e:
            log.warning("Could not build field %s: %s", self._name, e)
            return escape(e.message)

    def __str__(self):
        return str(self.__html__())
