"""WSGI entrypoint exposing the translation service application."""

from tinylocalize.backend.app import create_app

# WSGI servers expect a module-level variable named ``application``.
application = create_app()
