"""Identifier sanitization for generated code.

Every raw name taken from an API description passes through :func:`sanitize`
before it becomes a Python identifier. The function is pure and idempotent:
``sanitize(sanitize(name, role), role) == sanitize(name, role)``.

Roles:
- "parameter" and "method" produce snake_case names, escaped with a trailing "_"
- "type" produces PascalCase names, escaped with a trailing "Model"
"""

from __future__ import annotations

import keyword
import re
from typing import Literal

Role = Literal["parameter", "method", "type"]

# Names bound at module level by every generated client module.
MODULE_NAMES = frozenset(
    {
        "json",
        "httpx",
        "quote",
        "cast",
        "override",
        "Any",
        "AsyncIterable",
        "AsyncIterator",
        "Generic",
        "Literal",
        "Mapping",
        "Optional",
        "Protocol",
        "Required",
        "T",
        "TypeVar",
        "TypedDict",
        "Union",
    }
)

SUPPORT_TYPE_NAMES = frozenset(
    {
        "ApiException",
        "ApiResponse",
        "DisposableApiResponse",
        "JsonArrayStream",
        "JsonArrayStreamContent",
    }
)

# Builtins called by generated method bodies.
BODY_BUILTINS = frozenset({"str", "list", "dict", "ValueError"})

# Locals used inside generated method bodies.
METHOD_LOCALS = frozenset(
    {
        "url_",
        "query_",
        "request_headers_",
        "content_",
        "request_",
        "response_",
        "dispose_response_",
        "status_",
        "headers_",
        "data_",
        "text_",
        "result_",
    }
)

CLIENT_MEMBERS = frozenset(
    {
        "__init__",
        "__aenter__",
        "__aexit__",
        "aclose",
        "base_url",
        "configuration",
        "create_http_request_async",
        "_transport",
    }
)

_RESERVED: dict[str, frozenset[str]] = {
    "parameter": (
        frozenset(keyword.kwlist) | {"self"} | MODULE_NAMES | SUPPORT_TYPE_NAMES | METHOD_LOCALS | BODY_BUILTINS
    ),
    "method": frozenset(keyword.kwlist) | MODULE_NAMES | CLIENT_MEMBERS,
    "type": frozenset(keyword.kwlist) | MODULE_NAMES | SUPPORT_TYPE_NAMES,
}

_ESCAPE_SUFFIX: dict[str, str] = {"parameter": "_", "method": "_", "type": "Model"}
_DIGIT_PREFIX: dict[str, str] = {"parameter": "_", "method": "_", "type": "Model"}
_EMPTY_NAME: dict[str, str] = {"parameter": "value", "method": "value", "type": "Value"}

_INVALID_CHARS = re.compile(r"[^0-9A-Za-z_]")
_WORD_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def sanitize(raw_name: str, role: Role) -> str:
    """Map a raw name to a valid, non-reserved Python identifier for the given role.

    Example:
        >>> sanitize("override", "parameter")
        'override_'
        >>> sanitize("GetPeople", "method")
        'get_people'
        >>> sanitize("person-dto", "type")
        'PersonDto'
    """
    if role == "type":
        name = _pascal_case(raw_name)
    else:
        name = _snake_case(_INVALID_CHARS.sub("_", raw_name))
    if not name:
        name = _EMPTY_NAME[role]
    if name[0].isdigit():
        name = _DIGIT_PREFIX[role] + name
    reserved = _RESERVED[role]
    while name in reserved:
        name += _ESCAPE_SUFFIX[role]
    return name


def is_reserved(name: str, role: Role) -> bool:
    return name in _RESERVED[role]


def operation_name(method: str, path: str) -> str:
    """Convert an operation method and path to a PascalCase name.

    Example:
        >>> operation_name("get", "/users/{id}")
        'GetUsersId'
    """
    raw = f"{method}_{path}"
    cleaned = []
    prev_underscore = False
    for ch in raw:
        if ch.isalnum():
            cleaned.append(ch.lower())
            prev_underscore = False
        else:
            if not prev_underscore:
                cleaned.append("_")
                prev_underscore = True
    name = "".join(cleaned).strip("_")
    name = name.replace("_", " ").title().replace(" ", "")
    return name


def _snake_case(value: str) -> str:
    chars: list[str] = []
    for index, ch in enumerate(value):
        if not ch.isupper():
            chars.append(ch)
            continue
        prev = value[index - 1] if index > 0 else ""
        nxt = value[index + 1] if index + 1 < len(value) else ""
        if prev and prev != "_" and (prev.islower() or prev.isdigit() or (prev.isupper() and nxt.islower())):
            chars.append("_")
        chars.append(ch.lower())
    return "".join(chars)


def _pascal_case(value: str) -> str:
    parts = [part for part in _WORD_SEPARATORS.split(value) if part]
    return "".join(part[0].upper() + part[1:] for part in parts)
