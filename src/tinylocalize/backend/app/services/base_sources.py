"""Readers for the shipped per-language documents forming the base layer."""

from __future__ import annotations

import asyncio
import json
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Protocol

import requests

from tinylocalize.backend.config.schema import BaseSourceConfig


class BaseSourceError(RuntimeError):
    """Raised when a language document cannot be retrieved or decoded."""


class BaseSource(Protocol):
    async def fetch(self, code: str) -> Mapping[str, Any]: ...


def _decode_document(text: str, *, origin: str) -> Mapping[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BaseSourceError(f"Invalid JSON in {origin}: {exc}") from exc
    if not isinstance(payload, dict):
        raise BaseSourceError(f"Expected a JSON object in {origin}")
    return payload


class PackageBaseSource:
    """Documents shipped as package resources, e.g. ``tinylocalize.locales``."""

    def __init__(self, package: str = "tinylocalize.locales") -> None:
        self._package = package

    def read(self, code: str) -> Mapping[str, Any]:
        try:
            resource = resources.files(self._package).joinpath(f"{code}.json")
        except ModuleNotFoundError as exc:
            raise BaseSourceError(f"Locale package {self._package} is not importable") from exc

        if not resource.is_file():
            raise BaseSourceError(f"No shipped document for {code!r}")

        return _decode_document(resource.read_text(encoding="utf-8"), origin=f"{code}.json")

    async def fetch(self, code: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self.read, code)


class DirectoryBaseSource:
    """Documents stored as ``<root>/<code>.json`` on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def read(self, code: str) -> Mapping[str, Any]:
        path = self._root / f"{code}.json"
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise BaseSourceError(f"Unable to read {path}: {exc}") from exc
        return _decode_document(text, origin=str(path))

    async def fetch(self, code: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self.read, code)


class HttpBaseSource:
    """Documents served over HTTP at ``<base_url>/locales/<code>.json``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def url_for(self, code: str) -> str:
        return f"{self._base_url}/locales/{code}.json"

    def read(self, code: str) -> Mapping[str, Any]:
        url = self.url_for(code)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise BaseSourceError(f"Request for {url} failed: {exc}") from exc

        if not response.ok:
            raise BaseSourceError(f"Request for {url} returned HTTP {response.status_code}")

        return _decode_document(response.text, origin=url)

    async def fetch(self, code: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self.read, code)


def build_base_source(
    config: BaseSourceConfig,
) -> PackageBaseSource | DirectoryBaseSource | HttpBaseSource:
    if config.kind == "http":
        return HttpBaseSource(config.location, timeout=config.timeout)
    if config.kind == "directory":
        return DirectoryBaseSource(Path(config.location).expanduser())
    return PackageBaseSource(config.location)


__all__ = [
    "BaseSource",
    "BaseSourceError",
    "DirectoryBaseSource",
    "HttpBaseSource",
    "PackageBaseSource",
    "build_base_source",
]
