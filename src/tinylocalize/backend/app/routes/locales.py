"""Serve the shipped per-language documents at their conventional location."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from tinylocalize.backend.app.http import problem_response
from tinylocalize.backend.app.services import BaseSourceError, PackageBaseSource
from tinylocalize.backend.config.schema import normalise_language_code

blueprint = Blueprint("locales", __name__, url_prefix="/locales")

_SHIPPED = PackageBaseSource()


@blueprint.get("/<code>.json")
def get_locale_document(code: str):
    """Return the shipped document for ``code`` as the base source expects it."""

    normalized = normalise_language_code(code)
    try:
        payload = _SHIPPED.read(normalized)
    except BaseSourceError as exc:
        return problem_response(
            "not_found", status=HTTPStatus.NOT_FOUND, message=str(exc)
        ).to_response()
    return jsonify(payload), HTTPStatus.OK
