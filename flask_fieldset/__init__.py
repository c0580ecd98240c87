__author__ = "Flask-Fieldset contributors"
__version__ = "1.0.0"

from .config import DEFAULT_CONFIG, get_template_preset  # noqa: F401
from .exceptions import (  # noqa: F401
    FieldsetException,
    HierarchyError,
    InvalidField,
    InvalidInputType,
    MissingOptions,
    TemplateError,
    UnknownField,
)
from .field import Field  # noqa: F401
from .fieldset import Fieldset, FieldsetRegistry, FormFieldsProvider  # noqa: F401
from .manager import FieldsetManager, current_registry  # noqa: F401
from .providers import Providers  # noqa: F401
from .renderer import FormRenderer, html_tag  # noqa: F401

__all__ = [
    "DEFAULT_CONFIG",
    "get_template_preset",
    "FieldsetException",
    "HierarchyError",
    "InvalidField",
    "InvalidInputType",
    "MissingOptions",
    "TemplateError",
    "UnknownField",
    "Field",
    "Fieldset",
    "FieldsetRegistry",
    "FormFieldsProvider",
    "FieldsetManager",
    "current_registry",
    "Providers",
    "FormRenderer",
    "html_tag",
]
