"""Pytest fixtures for integration tests.

This module provides fixtures for:
- Generating client modules from the OpenAPI document under different settings
- Serving the FastAPI test app in-process through ``httpx.ASGITransport``
"""

from __future__ import annotations

import itertools
import sys
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path
from types import ModuleType

import httpx
import pytest

from clientforge import ApiDocument, ClientSettings, generate_client, load_document

from .server import app, store

SPEC_PATH = Path(__file__).parent / "openapi.yaml"

_module_ids = itertools.count()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def people_api() -> ApiDocument:
    return load_document(SPEC_PATH)


@pytest.fixture
def client_module(people_api: ApiDocument) -> Generator[Callable[..., ModuleType], None, None]:
    """Return a factory that generates and imports a client module for the given settings."""
    names: list[str] = []

    def factory(**settings: object) -> ModuleType:
        code = generate_client(people_api, ClientSettings(**settings)).code  # type: ignore[arg-type]
        name = f"people_client_{next(_module_ids)}"
        module = ModuleType(name)
        module.__file__ = f"<{name}>"
        sys.modules[name] = module
        names.append(name)
        exec(compile(code, module.__file__, "exec"), module.__dict__)
        return module

    yield factory

    for name in names:
        sys.modules.pop(name, None)


@pytest.fixture(autouse=True)
def reset_store() -> Generator[None, None, None]:
    """Reset the people store before each test."""
    store.reset()
    yield


@pytest.fixture
async def transport() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client
