"""
Fieldsets: named, ordered collections of fields.

A :class:`Fieldset` owns its :class:`~flask_fieldset.field.Field` objects,
carries the rendering configuration, and builds the complete form (or a
nested ``<fieldset>``) through its :class:`~flask_fieldset.renderer.FormRenderer`.
:class:`FieldsetRegistry` hands out shared fieldsets by name.
"""

import logging
from collections import deque
from collections.abc import Mapping, Sequence, Set
from typing import Any, Dict, Iterator, List, Optional, Protocol, runtime_checkable

from markupsafe import Markup, escape

from .config import FORM_TEMPLATE, get_dotted
from .exceptions import FieldsetException, HierarchyError, InvalidField, UnknownField
from .field import Field
from .providers import Providers
from .renderer import FormRenderer
from .templating import FieldTemplate


log = logging.getLogger(__name__)


DEFAULT_NAME = "__default__"


def _is_record(value) -> bool:
    """Objects whose attributes can hold field values; not strings or containers."""
    return value is not None and not isinstance(value, (str, bytes, Sequence, Set))


@runtime_checkable
class FormFieldsProvider(Protocol):
    """
    A model that describes its own form. ``form_fields`` returns a
    fieldset holding the model's fields, populated from ``instance`` when
    one is given.
    """

    def form_fields(self, instance: Any = None) -> "Fieldset":
        ...


class Fieldset(object):
    """
    An ordered set of fields plus the configuration used to render them.

    :param name: identifier, ``""`` names the default fieldset
    :param config: rendering options, see :data:`flask_fieldset.config.DEFAULT_CONFIG`
    :param renderer: a renderer to use instead of a lazily created one
    :param providers: request, URL, CSRF, translation and config collaborators
    """

    def __init__(
        self,
        name: str = "",
        config: Optional[Mapping] = None,
        renderer: Optional[FormRenderer] = None,
        providers: Optional[Providers] = None,
    ):
        if isinstance(name, Mapping):
            name, config = "", name
        self._name = str(name) or DEFAULT_NAME
        self._config: Dict[str, Any] = dict(config or {})
        self._fields: Dict[str, Field] = {}
        self._disabled = set()
        self._wrapper_tag: Optional[str] = None
        self._parent: Optional["Fieldset"] = None
        self._children: List["Fieldset"] = []
        self._renderer: Optional[FormRenderer] = None
        self.providers = providers or Providers()
        if renderer is not None:
            self.renderer = renderer

    def __repr__(self):
        return "<Fieldset %r>" % self._name

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        return self._name

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def disabled(self) -> frozenset:
        return frozenset(self._disabled)

    @property
    def renderer(self) -> FormRenderer:
        if self._renderer is None:
            FormRenderer(self)
        return self._renderer

    @renderer.setter
    def renderer(self, renderer: FormRenderer) -> None:
        self._renderer = renderer

    # nesting

    @property
    def wrapper_tag(self) -> Optional[str]:
        return self._wrapper_tag

    def set_fieldset_tag(self, tag: Optional[str]) -> "Fieldset":
        """Set the tag wrapping this fieldset; ``None`` renders a form."""
        self._wrapper_tag = tag
        return self

    @property
    def parent(self) -> Optional["Fieldset"]:
        return self._parent

    def children(self) -> List["Fieldset"]:
        return list(self._children)

    def _descendants(self) -> Iterator["Fieldset"]:
        queue = deque(self._children)
        while queue:
            child = queue.popleft()
            yield child
            queue.extend(child._children)

    def set_parent(self, parent: "Fieldset") -> "Fieldset":
        """
        Nest this fieldset inside ``parent``. A fieldset has at most one
        parent and may not end up inside itself.
        """
        if self._parent is not None:
            raise HierarchyError(
                'Fieldset already has a parent, belongs to "%s".' % self._parent.name,
                self._name,
            )
        if parent is self or any(f is parent for f in self._descendants()):
            raise HierarchyError(
                "Circular reference detected, adding a Fieldset that's already "
                "a child as a parent.",
                self._name,
            )
        if any(f is self for f in parent._descendants()):
            raise HierarchyError(
                'Fieldset "%s" is already nested in "%s".' % (self._name, parent.name),
                self._name,
            )

        self._parent = parent
        parent._add_child(self)
        log.debug("Fieldset %s nested in %s", self._name, parent.name)
        return self

    def _add_child(self, fieldset: "Fieldset") -> None:
        if fieldset._wrapper_tag is None:
            fieldset._wrapper_tag = "fieldset"
        self._children.append(fieldset)

    # fields

    def add(self, name, label: str = "", attributes: Optional[Mapping] = None):
        """
        Add a field and return it.

        ``name`` may be a field name, a mapping holding ``name`` (and
        optionally ``label``) plus attributes, or an existing
        :class:`~flask_fieldset.field.Field` to move here. Adding a name
        that already exists returns the existing field. Fieldsets are
        nested with :meth:`set_parent`, passing one returns ``False``.
        """
        if isinstance(name, Field):
            field = name
            if not field.name or field.name in self._fields:
                raise InvalidField(
                    'Fieldname empty or already exists in this Fieldset: "%s".'
                    % field.name,
                    field.name,
                )
            field.set_fieldset(self)
            self.attach(field)
            return field

        if isinstance(name, Fieldset):
            return False

        if isinstance(name, Mapping):
            attributes = dict(name)
            label = attributes.get("label") or ""
            name = attributes.get("name")

        if not name:
            raise InvalidField("Cannot create field without name.")
        name = str(name)

        existing = self._fields.get(name)
        if existing is not None:
            log.debug("Field %s already exists in %s", name, self._name)
            return existing

        field = Field(name, label, attributes, self)
        self._fields[name] = field
        return field

    def attach(self, field: Field) -> None:
        """Register ``field`` under its name; the field must not clash."""
        existing = self._fields.get(field.name)
        if existing is not None and existing is not field:
            raise InvalidField(
                'Fieldname already exists in this Fieldset: "%s".' % field.name,
                field.name,
            )
        self._fields[field.name] = field

    def detach(self, field: Field) -> None:
        """Unregister ``field`` if it is the field held under its name."""
        if self._fields.get(field.name) is field:
            del self._fields[field.name]
            self._disabled.discard(field.name)

    def field(self, name: Optional[str] = None):
        """
        Return the named field, ``None`` if it does not exist, or all
        fields in order when no name is given.
        """
        if name is None:
            return dict(self._fields)
        return self._fields.get(name)

    def delete(self, name: str) -> "Fieldset":
        """Remove the named field, which is left without a fieldset."""
        field = self._fields.get(name)
        if field is not None:
            field.clear_fieldset()
        self._disabled.discard(name)
        return self

    def __contains__(self, name) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(list(self._fields.values()))

    def __len__(self) -> int:
        return len(self._fields)

    def add_model(self, model, instance: Any = None) -> "Fieldset":
        """
        Add the fields a model describes through ``form_fields``. Fields
        are moved here, replacing fields of the same name.
        """
        if not isinstance(model, FormFieldsProvider):
            raise TypeError(
                "%r does not provide form fields, it needs a form_fields method."
                % (model,)
            )
        source = model.form_fields(instance)
        for field in source:
            if field.name in self._fields and self._fields[field.name] is not field:
                self.delete(field.name)
            field.set_fieldset(self)
        return self

    def enable(self, name: str) -> "Fieldset":
        """Render a previously disabled field again."""
        if name not in self._fields:
            raise UnknownField(
                'Field "%s" does not exist in this Fieldset.' % name, name
            )
        self._disabled.discard(name)
        return self

    def disable(self, name: str) -> "Fieldset":
        """Keep a field from being rendered without removing it."""
        if name not in self._fields:
            raise UnknownField(
                'Field "%s" does not exist in this Fieldset.' % name, name
            )
        self._disabled.add(name)
        return self

    # values

    def populate(self, input, repopulate: bool = False) -> "Fieldset":
        """
        Set field values from a mapping or an object.

        Mappings are searched by the field name in dotted notation
        (``addr[city]`` -> ``addr.city``), then by the field's base name;
        objects by an attribute named after the base name. Strings and
        sequences are not searched. Fields without a value in ``input`` are
        left alone.
        """
        for field in self:
            if isinstance(input, Mapping):
                key = field.name.replace("[", ".").replace("]", "")
                value = input.get(key)
                if value is None:
                    value = input.get(field.base_name)
                if value is not None:
                    field.set_value(value, True)
            elif _is_record(input) and hasattr(input, field.base_name):
                field.set_value(getattr(input, field.base_name), True)

        if repopulate:
            self.repopulate()
        return self

    def repopulate(self) -> "Fieldset":
        """Set field values from the submitted request input."""
        protected = {"_token", self.providers.csrf.field_name}
        for field in self:
            if field.name in protected:
                continue
            value = self.providers.request_input.get(field.name)
            if value is not None:
                field.set_value(value, True)
        return self

    # configuration

    def get_config(self, key=None, default: Any = None) -> Any:
        """
        Get a config value by flat or dotted key, several as a dict when
        ``key`` is a list, or the whole config when ``key`` is ``None``.
        """
        if key is None:
            return self._config
        if isinstance(key, (list, tuple)):
            return {k: self.get_config(k, default) for k in key}
        return get_dotted(self._config, key, default)

    def set_config(self, config, value: Any = None) -> "Fieldset":
        """Set one config key, or merge a mapping of them."""
        items = config if isinstance(config, Mapping) else {config: value}
        for key, val in items.items():
            self._config[key] = val
        return self

    # building

    def build(self, action: Optional[str] = None) -> Markup:
        """
        Render the fieldset: the wrapper open tag, every enabled field,
        nested fieldsets, and the close tag, placed in the structural
        template for the wrapper tag.
        """
        renderer = self.renderer
        attributes = dict(renderer.get_config("form_attributes") or {})
        is_form = self._wrapper_tag in (None, "", "form")
        if action and is_form:
            attributes["action"] = action

        open_tag, close_tag = renderer.wrapper(self._wrapper_tag)
        open_html = str(open_tag(attributes))
        close_html = str(close_tag(attributes))
        if is_form:
            open_html += "\n"
            close_html += "\n"

        fields_output = "".join(
            str(field.build()) + "\n"
            for field in self
            if field.name not in self._disabled
        )
        fields_output += "".join(str(child.build()) for child in self._children)

        kind = "form" if is_form else self._wrapper_tag
        template = FieldTemplate(
            renderer.get_config(kind + "_template", FORM_TEMPLATE)
        )
        return Markup(
            template.render(
                form_open=open_html,
                open=open_html,
                fields=fields_output,
                form_close=close_html,
                close=close_html,
            )
        )

    def __html__(self):
        try:
            return self.build()
        except FieldsetException as e:
            log.warning("Could not build fieldset %s: %s", self._name, e)
            return escape(e.message)

    def __str__(self):
        return str(self.__html__())


class FieldsetRegistry(object):
    """
    Shared fieldsets by name, with one distinguished default instance.

    The registry is owned by the application (see
    :class:`~flask_fieldset.manager.FieldsetManager`) and keeps every
    fieldset it forged until :meth:`drop` is called.
    """

    DEFAULT_NAME = DEFAULT_NAME

    def __init__(self, providers: Optional[Providers] = None):
        self.providers = providers or Providers()
        self._instances: Dict[str, Fieldset] = {}
        self._default: Optional[Fieldset] = None

    def forge(self, name: str = DEFAULT_NAME, config: Optional[Mapping] = None) -> Fieldset:
        """Return the fieldset called ``name``, creating it if needed."""
        name = str(name) or DEFAULT_NAME
        existing = self._instances.get(name)
        if existing is not None:
            return existing

        fieldset = Fieldset(name, config, providers=self.providers)
        self._instances[name] = fieldset
        if name == DEFAULT_NAME:
            self._default = fieldset
        log.debug("Forged fieldset %s", name)
        return fieldset

    def instance(self, name: Optional[str] = None) -> Optional[Fieldset]:
        """
        Return the named fieldset or ``None``; without a name, return the
        default fieldset, creating it on first use.
        """
        if name is not None:
            return self._instances.get(str(name) or DEFAULT_NAME)
        if self._default is None:
            self._default = self.forge()
        return self._default

    def drop(self, name: str) -> None:
        fieldset = self._instances.pop(str(name) or DEFAULT_NAME, None)
        if fieldset is not None and fieldset is self._default:
            self._default = None

    def __contains__(self, name) -> bool:
        return (str(name) or DEFAULT_NAME) in self._instances

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._instances))

    def __len__(self) -> int:
        return len(self._instances)
