"""Reading API descriptions and settings from files, URLs or mappings.

This module is the only part of clientforge that performs I/O. The generation
pipeline itself consumes already-built values.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import cast
from urllib.parse import urlparse
from urllib.request import Request, urlopen

import yaml

from .document import ApiDocument
from .errors import SettingsError, SpecError
from .openapi import OpenAPIDocument, build_document
from .settings import ClientSettings

logger = logging.getLogger(__name__)

Source = str | PathLike[str] | Mapping[str, object]


def load_openapi(source: Source) -> OpenAPIDocument:
    """Load an OpenAPI (3.x) or Swagger (2.0) document.

    Args:
        source: A file path, an http(s) URL, or an already-parsed mapping

    Returns:
        The parsed document; ``$ref`` values are left in place

    Raises:
        SpecError: If the source cannot be read or is not an OpenAPI document
    """
    document = _read_source(source, SpecError)
    version = document.get("openapi", document.get("swagger"))
    if not isinstance(version, str):
        raise SpecError("Missing or invalid 'openapi' field in document")
    if not version.startswith(("2.", "3.")):
        raise SpecError(f"Unsupported OpenAPI version: {version}")
    return cast(OpenAPIDocument, document)


def load_document(source: Source) -> ApiDocument:
    """Load an OpenAPI document and convert it to an ApiDocument."""
    return build_document(load_openapi(source))


def load_settings(source: Source) -> ClientSettings:
    """Load client settings from a JSON or YAML mapping.

    Raises:
        SettingsError: If the source cannot be read or holds invalid settings
    """
    return ClientSettings.from_mapping(_read_source(source, SettingsError))


def _read_source(source: Source, error: type[SpecError] | type[SettingsError]) -> dict[str, object]:
    if isinstance(source, Mapping):
        return dict(source)

    source_str = str(source) if isinstance(source, PathLike) else source
    if _is_url(source_str):
        logger.debug("Fetching %s", source_str)
        text = _fetch_url(source_str, error)
        suffix = _get_url_extension(source_str)
    else:
        path = Path(source_str)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise error(f"Failed to read {path}: {exc}") from exc
        suffix = path.suffix.lower()

    try:
        data = _load_yaml(text) if suffix in {".yaml", ".yml"} else _load_json_or_yaml(text)
    except yaml.YAMLError as exc:
        raise error(f"Failed to parse {source_str}: {exc}") from exc
    if not isinstance(data, dict):
        raise error(f"Document must be an object: {source_str}")
    return data


def _is_url(source: str) -> bool:
    """Check if the source string is a URL."""
    parsed = urlparse(source)
    return parsed.scheme in {"http", "https"}


def _fetch_url(url: str, error: type[SpecError] | type[SettingsError]) -> str:
    """Fetch content from a URL.

    Raises:
        SpecError: If the URL cannot be fetched
    """
    try:
        request = Request(url, headers={"User-Agent": "clientforge"})
        with urlopen(request, timeout=30) as response:  # noqa: S310
            return response.read().decode("utf-8")
    except OSError as exc:
        raise error(f"Failed to fetch URL: {url}") from exc


def _get_url_extension(url: str) -> str:
    """Extract file extension from URL path."""
    path = urlparse(url).path
    if "." in path:
        return "." + path.rsplit(".", 1)[-1].lower()
    return ""


def _load_json_or_yaml(text: str) -> object:
    """Try to load as JSON, fall back to YAML if that fails."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return _load_yaml(text)


def _load_yaml(text: str) -> object:
    return yaml.safe_load(text)
