"""Request models shared by the translation routes."""

from .api import (
    EditRequest,
    LanguageRequest,
    ResolveRequest,
    format_validation_error,
    variables_from_args,
)

__all__ = [
    "EditRequest",
    "LanguageRequest",
    "ResolveRequest",
    "format_validation_error",
    "variables_from_args",
]
