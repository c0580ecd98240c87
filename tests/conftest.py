"""
Pytest configuration and fixtures for fieldset tests.

Most tests run without a Flask context against stub providers; the Flask
backed providers and the extension get their own app fixture.
"""

import pytest
from flask import Flask
from markupsafe import Markup

from flask_fieldset import Fieldset, FieldsetRegistry, Providers
from flask_fieldset.providers import FlaskConfigDefaults


class StubRequestInput:
    """Request input backed by a plain dict."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, name):
        return self.data.get(name)


class StubBaseUrl:
    def current_base_url(self):
        return "http://localhost/form"


class StubCsrf:
    field_name = "csrf_token"

    def token_field(self):
        return Markup('<input name="csrf_token" type="hidden" value="token" />')


class StubTranslator:
    def __init__(self, catalog=None):
        self.catalog = dict(catalog or {})

    def translate(self, key):
        return self.catalog.get(key)


@pytest.fixture
def request_input():
    return StubRequestInput()


@pytest.fixture
def translator():
    return StubTranslator()


@pytest.fixture
def providers(request_input, translator):
    return Providers(
        request_input=request_input,
        base_url=StubBaseUrl(),
        csrf=StubCsrf(),
        translator=translator,
        config=FlaskConfigDefaults(),
    )


@pytest.fixture
def fieldset(providers):
    return Fieldset("test", providers=providers)


@pytest.fixture
def renderer(fieldset):
    return fieldset.renderer


@pytest.fixture
def registry(providers):
    return FieldsetRegistry(providers)


@pytest.fixture
def app():
    """Create Flask application for testing."""
    app = Flask(__name__)
    app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-fieldsets",
        }
    )
    return app
