"""Pydantic models describing the translation store settings."""

from __future__ import annotations

from typing import Any, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def normalise_language_code(code: Any) -> str:
    """Return the lower-cased, stripped form of a language code."""

    if code is None:
        return ""
    return str(code).strip().lower()


class LanguageDescriptor(ImmutableModel):
    """Display details for a known language."""

    code: str
    name: str | None = None
    country_code: str = Field(default="UN", alias="country")

    @field_validator("code", mode="before")
    @classmethod
    def _normalise_code(cls, value: Any) -> str:
        code = normalise_language_code(value)
        if not code:
            raise ConfigurationError("Language codes must be non-empty")
        return code

    @property
    def display_name(self) -> str:
        return self.name or self.code


class BaseSourceConfig(ImmutableModel):
    """Location of the shipped per-language documents."""

    kind: Literal["package", "directory", "http"] = "package"
    location: str = "tinylocalize.locales"
    timeout: float = Field(default=5.0, gt=0)


class StorageConfig(ImmutableModel):
    """Backend used for the override layer and active-language slot."""

    kind: Literal["memory", "sqlite"] = "memory"
    path: str | None = None

    @model_validator(mode="after")
    def _validate_path(self) -> Self:
        if self.kind == "sqlite" and not self.path:
            raise ConfigurationError("SQLite storage requires a database path")
        return self


class StoreSettings(ImmutableModel):
    """Top-level settings for the translation store and its HTTP surface."""

    enable_overrides: bool = True
    default_language: str = "en"
    languages: Sequence[LanguageDescriptor] = Field(default_factory=tuple)
    base_source: BaseSourceConfig = Field(default_factory=BaseSourceConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    discard_stale_fetches: bool = True
    sync_on_startup: bool = True

    @field_validator("default_language", mode="before")
    @classmethod
    def _normalise_default(cls, value: Any) -> str:
        code = normalise_language_code(value)
        if not code:
            raise ConfigurationError("A default language code is required")
        return code

    @field_validator("languages", mode="before")
    @classmethod
    def _coerce_languages(cls, value: Any) -> Sequence[Any]:
        if value is None:
            return ()
        if isinstance(value, Mapping):
            return tuple({"code": code, **(details or {})} for code, details in value.items())
        if isinstance(value, (list, tuple)):
            return tuple({"code": item} if isinstance(item, str) else item for item in value)
        raise ConfigurationError("Languages must be a list or a mapping of codes")

    @model_validator(mode="after")
    def _validate_languages(self) -> Self:
        codes = [language.code for language in self.languages]
        duplicates = sorted({code for code in codes if codes.count(code) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate language codes configured: {duplicates}")
        return self

    @property
    def known_languages(self) -> tuple[str, ...]:
        """Configured codes, with the default language first if it is missing."""

        codes = [language.code for language in self.languages]
        if self.default_language not in codes:
            codes.insert(0, self.default_language)
        return tuple(codes)

    def describe_language(self, code: str) -> LanguageDescriptor:
        for language in self.languages:
            if language.code == code:
                return language
        return LanguageDescriptor(code=code)


__all__ = [
    "BaseSourceConfig",
    "ConfigurationError",
    "ImmutableModel",
    "LanguageDescriptor",
    "StorageConfig",
    "StoreSettings",
    "normalise_language_code",
]
