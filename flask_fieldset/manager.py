"""
Flask integration for fieldsets.

Initialize the extension once per app; the fieldset registry then lives in
``app.extensions["fieldset"]`` and is available in Jinja templates::

    fieldsets = FieldsetManager(app)

    {{ fieldset("login").build() }}
"""

import logging
from typing import Optional

from flask import current_app

from .fieldset import FieldsetRegistry
from .providers import Providers


log = logging.getLogger(__name__)


EXTENSION_NAME = "fieldset"


class FieldsetManager(object):
    """
    Owns the fieldset registry of a Flask application.

    :param app: the Flask app, or ``None`` to call :meth:`init_app` later
    :param providers: collaborators shared by every forged fieldset
    """

    def __init__(self, app=None, providers: Optional[Providers] = None):
        self.providers = providers
        self.registry: Optional[FieldsetRegistry] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Create the registry and expose it to the app and its templates."""
        self.registry = FieldsetRegistry(self.providers)
        app.extensions[EXTENSION_NAME] = self.registry
        app.jinja_env.globals["fieldset"] = self.registry.forge
        log.info("Fieldset registry initialized for %s", app.name)

    def forge(self, name: str = FieldsetRegistry.DEFAULT_NAME, config=None):
        return self.registry.forge(name, config)

    def instance(self, name: Optional[str] = None):
        return self.registry.instance(name)


def current_registry() -> FieldsetRegistry:
    """The fieldset registry of the current application."""
    try:
        return current_app.extensions[EXTENSION_NAME]
    except KeyError:
        raise RuntimeError(
            "FieldsetManager is not initialized for this app, call init_app first."
        )
