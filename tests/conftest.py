"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from tinylocalize.backend.app import create_app  # noqa: E402
from tinylocalize.backend.app.services import InMemoryStorage  # noqa: E402
from tinylocalize.backend.config.settings import (  # noqa: E402
    SETTINGS_FILE,
    StoreSettings,
    load_settings,
)


@pytest.fixture()
def settings() -> StoreSettings:
    """Return the shipped settings without any environment overrides."""

    return load_settings(SETTINGS_FILE, environ={})


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def app(settings: StoreSettings, storage: InMemoryStorage) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(settings, storage=storage)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
