"""
Exceptions raised by Flask-Fieldset.

Every error is raised synchronously where the violation happens and
derives from :class:`FieldsetException`, so callers rendering a form can
catch a single type.
"""

from typing import Optional


class FieldsetException(Exception):
    """Base exception for field and fieldset errors."""

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.name = name


class InvalidField(FieldsetException):
    """Raised when a field name is empty or clashes with an existing field."""
    pass


class HierarchyError(FieldsetException):
    """Raised when linking fieldsets would re-parent or create a cycle."""
    pass


class UnknownField(FieldsetException):
    """Raised when enabling or disabling a field that was never added."""
    pass


class MissingOptions(FieldsetException):
    """Raised when a select is rendered without an options mapping."""
    pass


class InvalidInputType(FieldsetException):
    """Raised when an input is rendered with a type outside the allow-list."""

    def __init__(self, input_type, name: Optional[str] = None):
        super().__init__('"%s" is not a valid input type.' % input_type, name)
        self.input_type = input_type


class TemplateError(FieldsetException):
    """Raised when a template has an unbalanced repeat block."""
    pass
