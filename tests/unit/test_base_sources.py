"""Unit coverage for the base-layer document sources."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
import requests

from tinylocalize.backend.app.services.base_sources import (
    BaseSourceError,
    DirectoryBaseSource,
    HttpBaseSource,
    PackageBaseSource,
    build_base_source,
)
from tinylocalize.backend.config.schema import BaseSourceConfig

LOCALES_ROOT = Path("src/tinylocalize/locales")


class FakeResponse:
    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class FakeSession:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.requested: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.requested.append((url, timeout))
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_package_source_reads_shipped_documents() -> None:
    payload = asyncio.run(PackageBaseSource().fetch("en"))

    expected = json.loads(LOCALES_ROOT.joinpath("en.json").read_text(encoding="utf-8"))
    assert payload == expected


def test_package_source_reports_missing_documents() -> None:
    with pytest.raises(BaseSourceError):
        asyncio.run(PackageBaseSource().fetch("zz"))


def test_package_source_reports_unknown_package() -> None:
    with pytest.raises(BaseSourceError):
        PackageBaseSource("tinylocalize.does_not_exist").read("en")


def test_directory_source(tmp_path: Path) -> None:
    tmp_path.joinpath("fr.json").write_text('{"greeting": "Salut"}', encoding="utf-8")
    tmp_path.joinpath("bad.json").write_text("{oops", encoding="utf-8")
    tmp_path.joinpath("list.json").write_text("[1]", encoding="utf-8")
    source = DirectoryBaseSource(tmp_path)

    assert asyncio.run(source.fetch("fr")) == {"greeting": "Salut"}
    for code in ("bad", "list", "missing"):
        with pytest.raises(BaseSourceError):
            source.read(code)


def test_http_source_requests_conventional_location() -> None:
    session = FakeSession(
        {"https://cdn.test/locales/en.json": FakeResponse(200, '{"greeting": "Hi"}')}
    )
    source = HttpBaseSource("https://cdn.test/", timeout=2.5, session=session)

    assert asyncio.run(source.fetch("en")) == {"greeting": "Hi"}
    assert session.requested == [("https://cdn.test/locales/en.json", 2.5)]


def test_http_source_wraps_failures() -> None:
    session = FakeSession(
        {
            "https://cdn.test/locales/fr.json": FakeResponse(404, "Not found"),
            "https://cdn.test/locales/de.json": requests.ConnectionError("offline"),
        }
    )
    source = HttpBaseSource("https://cdn.test", session=session)

    with pytest.raises(BaseSourceError, match="HTTP 404"):
        source.read("fr")
    with pytest.raises(BaseSourceError, match="offline"):
        source.read("de")


def test_build_base_source_selects_implementation(tmp_path: Path) -> None:
    assert isinstance(build_base_source(BaseSourceConfig()), PackageBaseSource)
    assert isinstance(
        build_base_source(BaseSourceConfig(kind="directory", location=str(tmp_path))),
        DirectoryBaseSource,
    )
    http = build_base_source(BaseSourceConfig(kind="http", location="https://cdn.test"))
    assert isinstance(http, HttpBaseSource)
    assert http.url_for("de") == "https://cdn.test/locales/de.json"
