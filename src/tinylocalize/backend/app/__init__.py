"""Application factory for the tinylocalize translation service."""

from __future__ import annotations

import os
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from tinylocalize.backend.config.settings import StoreSettings, default_settings
from tinylocalize.backend.version import get_project_version

from .http import problem_response
from .routes import register_routes
from .routes.translations import EXTENSION_KEY, get_service
from .services import BaseSource, KeyValueStorage, TranslationService


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app(
    settings: StoreSettings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    base_source: BaseSource | None = None,
) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(os.getenv("TINYLOCALIZE_ALLOWED_ORIGINS"))
    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={
            r"/api/*": {"origins": sorted(allowed_origins)},
            r"/locales/*": {"origins": sorted(allowed_origins)},
        },
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    resolved_settings = settings or default_settings()
    service = TranslationService(
        resolved_settings, storage=storage, base_source=base_source
    )
    app.extensions[EXTENSION_KEY] = service

    if resolved_settings.sync_on_startup:
        service.reconcile_blocking()

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        current = get_service()
        payload = {
            "status": "ok",
            "version": get_project_version(),
            "active_language": current.get_active_language(),
            "languages": current.list_languages(),
            "overrides_enabled": current.store.overrides_enabled,
        }
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app
