"""Pydantic models describing the public API request bodies."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tinylocalize.backend.config.schema import normalise_language_code

__all__ = [
    "EditRequest",
    "LanguageRequest",
    "ResolveRequest",
    "format_validation_error",
    "variables_from_args",
]

Scalar = str | int | float | bool


class ResolveRequest(BaseModel):
    """Key lookup with optional interpolation variables."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1)
    vars: dict[str, Scalar | None] = Field(default_factory=dict)


class EditRequest(BaseModel):
    """Replacement text for a single key."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1)
    value: str
    language: str | None = None

    @field_validator("language", mode="before")
    @classmethod
    def _normalise_language(cls, value: Any) -> str | None:
        return normalise_language_code(value) or None


class LanguageRequest(BaseModel):
    """Payload naming a single language code."""

    model_config = ConfigDict(extra="forbid")

    code: str

    @field_validator("code", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Language code must be a string")
        return normalise_language_code(value)


def variables_from_args(args: Mapping[str, str]) -> dict[str, str]:
    """Collect ``var.<name>=<value>`` query arguments into a variables mapping."""

    return {
        name[len("var."):]: value
        for name, value in args.items()
        if name.startswith("var.") and len(name) > len("var.")
    }


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid request payload: {details}"
