"""Translation store operations exposed to presentation collaborators."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from pydantic import BaseModel, ValidationError

from tinylocalize.backend.app.http import json_body, problem_response
from tinylocalize.backend.app.models import (
    EditRequest,
    LanguageRequest,
    ResolveRequest,
    format_validation_error,
    variables_from_args,
)
from tinylocalize.backend.app.services import (
    LastLanguageError,
    TranslationService,
)
from tinylocalize.backend.app.services.progress import group_keys

blueprint = Blueprint("translations", __name__, url_prefix="/api/v1/translations")

EXTENSION_KEY = "tinylocalize"


def get_service() -> TranslationService:
    return current_app.extensions[EXTENSION_KEY]


def _parse(model: type[BaseModel], payload: dict[str, Any]) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as error:
        raise ValueError(format_validation_error(error)) from error


def _languages_payload(service: TranslationService) -> dict[str, Any]:
    return {
        "active": service.get_active_language(),
        "languages": [
            {
                "code": descriptor.code,
                "name": descriptor.display_name,
                "country_code": descriptor.country_code,
            }
            for descriptor in service.describe_languages()
        ],
    }


@blueprint.route("/resolve", methods=["GET", "POST"])
def resolve_key():
    """Resolve a key in the active language, applying interpolation variables."""

    if request.method == "POST":
        payload = json_body(request)
    else:
        payload = {"key": request.args.get("key", ""), "vars": variables_from_args(request.args)}

    parsed: ResolveRequest = _parse(ResolveRequest, payload)
    resolution = get_service().resolve_detailed(parsed.key, parsed.vars)
    return (
        jsonify(
            {
                "key": resolution.key,
                "language": resolution.language,
                "value": resolution.text,
                "outcome": resolution.outcome.value,
            }
        ),
        HTTPStatus.OK,
    )


@blueprint.get("/languages")
def list_languages():
    """Return the active language and a descriptor for every language."""

    return jsonify(_languages_payload(get_service())), HTTPStatus.OK


@blueprint.post("/languages")
def add_language():
    """Add an empty language, keeping any content it already has."""

    parsed: LanguageRequest = _parse(LanguageRequest, json_body(request))
    service = get_service()
    existed = parsed.code in service.list_languages()
    if not service.add_language(parsed.code):
        raise ValueError("Language code must be non-empty")
    payload = _languages_payload(service)
    return jsonify(payload), HTTPStatus.OK if existed else HTTPStatus.CREATED


@blueprint.delete("/languages/<code>")
def remove_language(code: str):
    """Remove a language unless it is the last one left."""

    service = get_service()
    try:
        removed = service.remove_language(code)
    except LastLanguageError as exc:
        return problem_response(
            "last_language", status=HTTPStatus.CONFLICT, message=str(exc)
        ).to_response()

    if not removed:
        return problem_response(
            "not_found", status=HTTPStatus.NOT_FOUND, message=f"Unknown language: {code}"
        ).to_response()
    return jsonify(_languages_payload(service)), HTTPStatus.OK


@blueprint.put("/languages/active")
def set_active_language():
    """Switch the active language and report the reconcile that follows."""

    parsed: LanguageRequest = _parse(LanguageRequest, json_body(request))
    if not parsed.code:
        raise ValueError("Language code must be non-empty")

    service = get_service()
    report = service.set_active_language_blocking(parsed.code)
    payload = _languages_payload(service)
    payload["sync"] = report.as_dict() if report is not None else None
    return jsonify(payload), HTTPStatus.OK


@blueprint.put("/entries")
def edit_entry():
    """Store replacement text for a key and return its fresh metadata."""

    parsed: EditRequest = _parse(EditRequest, json_body(request))
    service = get_service()
    metadata = service.edit(parsed.key, parsed.value, language=parsed.language)
    return (
        jsonify(
            {
                "key": parsed.key,
                "language": parsed.language or service.get_active_language(),
                "value": parsed.value,
                "metadata": metadata.as_dict(),
            }
        ),
        HTTPStatus.OK,
    )


@blueprint.get("/entries/status")
def entry_status():
    """Return stored or derived metadata for a single key."""

    key = request.args.get("key", "")
    if not key:
        raise ValueError("A key query parameter is required")
    language = request.args.get("language")
    metadata = get_service().describe(key, language)
    return jsonify({"key": key, "metadata": metadata.as_dict()}), HTTPStatus.OK


@blueprint.get("/keys")
def list_keys():
    """Return registered keys filtered by search term and group."""

    keys = get_service().search_keys(request.args.get("search"), group=request.args.get("group"))
    return jsonify({"keys": keys, "groups": group_keys(keys)}), HTTPStatus.OK


@blueprint.get("/progress")
def progress():
    """Return the completion summary for the requested or active language."""

    summary = get_service().progress(request.args.get("language"))
    return jsonify(summary.as_dict()), HTTPStatus.OK


@blueprint.post("/sync")
def sync():
    """Reload the base documents and report what changed."""

    report = get_service().reconcile_blocking()
    return jsonify(report.as_dict()), HTTPStatus.OK


@blueprint.get("/overrides")
def export_overrides():
    """Return a read-only snapshot of the override layer."""

    return jsonify(get_service().export_overrides()), HTTPStatus.OK
