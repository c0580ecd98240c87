"""
Collaborators consulted while populating and rendering fieldsets.

The core never touches Flask directly: it asks these providers for
request input, the current URL, the CSRF token field, translations and
config defaults. The Flask-backed implementations below are the defaults,
and degrade to empty or absent values outside of an app or request
context.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from flask import current_app, has_app_context, has_request_context, request
from flask_babel import gettext
from flask_wtf.csrf import generate_csrf
from markupsafe import Markup
from wtforms.widgets import html_params

from .config import DEFAULT_CONFIG, get_dotted


class RequestInput(Protocol):
    def get(self, name: str) -> Any:
        ...


class BaseUrl(Protocol):
    def current_base_url(self) -> str:
        ...


class CsrfProvider(Protocol):
    field_name: str

    def token_field(self) -> str:
        ...


class Translator(Protocol):
    def translate(self, key: str) -> Optional[str]:
        ...


class ConfigDefaults(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...


class FlaskRequestInput:
    """
    Reads submitted values from the current request.

    With ``method`` set to ``get`` only the query string is read, with any
    other method only the form body; without it both are searched. Keys
    submitted more than once, or names ending in ``[]``, come back as a
    list.

    Multi-valued controls are folded back under their field name: a
    multiple select posts ``tags[]`` and a checkbox group posts
    ``colors[0]``, ``colors[1]``; ``get("tags")`` and ``get("colors")``
    return those values as lists, indexed keys in index order.
    """

    def __init__(self, method: Optional[str] = None):
        self.method = method

    def _source(self):
        if self.method is None:
            return request.values
        if self.method.lower() == "get":
            return request.args
        return request.form

    def get(self, name: str) -> Any:
        if not has_request_context():
            return None
        source = self._source()
        values = source.getlist(name)
        if values:
            if len(values) > 1 or name.endswith("[]"):
                return values
            return values[0]

        if not name.endswith("[]"):
            values = source.getlist(name + "[]")
            if values:
                return values

        pattern = re.compile(re.escape(name) + r"\[(\d+)\]$")
        indexed = []
        for key, value in source.items(multi=True):
            match = pattern.match(key)
            if match:
                indexed.append((int(match.group(1)), value))
        if not indexed:
            return None
        indexed.sort(key=lambda item: item[0])
        return [value for _, value in indexed]


class FlaskBaseUrl:
    """The URL of the current request, without the query string."""

    def current_base_url(self) -> str:
        if not has_request_context():
            return ""
        return request.base_url


class FlaskWTFCsrf:
    """Hidden CSRF token input generated by Flask-WTF."""

    default_field_name = "csrf_token"

    @property
    def field_name(self) -> str:
        if has_app_context():
            return current_app.config.get(
                "WTF_CSRF_FIELD_NAME", self.default_field_name
            )
        return self.default_field_name

    def token_field(self) -> Markup:
        if not has_request_context():
            return Markup("")
        if not current_app.config.get("WTF_CSRF_ENABLED", True):
            return Markup("")
        name = self.field_name
        return Markup(
            "<input %s />"
            % html_params(id=name, name=name, type="hidden", value=generate_csrf())
        )


class FlaskBabelTranslator:
    """
    Translates labels through Flask-Babel.

    The catalog and locale are whatever Flask-Babel resolves for the
    current request, so a ``locale_selector`` switches label language per
    request. Without an app context, or before ``Babel`` is initialized on
    the app, nothing is translated.
    """

    def translate(self, key: str) -> Optional[str]:
        if not has_app_context() or "babel" not in current_app.extensions:
            return None
        text = gettext(key)
        return text if text != key else None


class FlaskConfigDefaults:
    """
    Config fallback: ``form.auto_id`` is read from the Flask config key
    ``FORM_AUTO_ID``, then from ``defaults``.
    """

    def __init__(self, defaults=None):
        self.defaults = DEFAULT_CONFIG if defaults is None else defaults

    def get(self, key: str, default: Any = None) -> Any:
        if has_app_context():
            config_key = key.upper().replace(".", "_")
            value = current_app.config.get(config_key)
            if value is not None:
                return value
        value = get_dotted(self.defaults, key)
        return default if value is None else value


@dataclass
class Providers:
    """The collaborators a fieldset and its renderer rely on."""

    request_input: RequestInput = field(default_factory=FlaskRequestInput)
    base_url: BaseUrl = field(default_factory=FlaskBaseUrl)
    csrf: CsrfProvider = field(default_factory=FlaskWTFCsrf)
    translator: Translator = field(default_factory=FlaskBabelTranslator)
    config: ConfigDefaults = field(default_factory=FlaskConfigDefaults)
