"""Normalized API document model consumed by the generator.

This module defines the input data structures of a generation run. They describe
a remote API independently of where the description came from (an OpenAPI file,
framework reflection, or hand-built values in tests) and are never mutated by
the generation pipeline.

Key classes:
- ApiDocument: Root container holding operations in document order
- Operation: One callable endpoint, grouped into a client by its tag
- Parameter: A request parameter (path, query, header or body)
- Response: A declared response of an operation
- PrimitiveType, ArrayType, ObjectType, EnumType, GenericType, UnknownType:
  the TypeReference variants describing schema-level types
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

PrimitiveKind = Literal["string", "integer", "number", "boolean", "binary", "any"]
ParameterLocation = Literal["path", "query", "header", "body"]
ResponseCategory = Literal["success", "error", "default"]
EnumValue = Union[str, int, float, bool, None]

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


@dataclass(frozen=True)
class PrimitiveType:
    """A scalar schema type.

    Attributes:
        kind: The primitive kind; "any" stands for an unconstrained value
        nullable: Whether null is an accepted value
    """

    kind: PrimitiveKind
    nullable: bool = False


@dataclass(frozen=True)
class ArrayType:
    """An ordered collection of elements.

    Attributes:
        element: The element type
        nullable: Whether null is an accepted value
        streamable: Whether the array may be produced or consumed incrementally
    """

    element: TypeReference
    nullable: bool = False
    streamable: bool = True


@dataclass(frozen=True)
class ObjectField:
    """A named property of an object type."""

    name: str
    type: TypeReference
    required: bool = False


@dataclass(frozen=True)
class ObjectType:
    """A structured object.

    Attributes:
        name: The schema name, or None for inline objects
        fields: Declared properties in declaration order
        additional: Value type of undeclared properties, if any are allowed
        nullable: Whether null is an accepted value
    """

    name: str | None
    fields: tuple[ObjectField, ...] = ()
    additional: TypeReference | None = None
    nullable: bool = False


@dataclass(frozen=True)
class EnumType:
    """A closed set of literal values."""

    name: str | None
    members: tuple[EnumValue, ...]
    nullable: bool = False


@dataclass(frozen=True)
class GenericType:
    """A generic container applied to a single type argument (e.g. ``Page<Person>``)."""

    name: str
    argument: TypeReference
    nullable: bool = False


@dataclass(frozen=True)
class UnknownType:
    """A schema the description could not express with the other variants."""

    description: str | None = None
    nullable: bool = False


TypeReference = Union[PrimitiveType, ArrayType, ObjectType, EnumType, GenericType, UnknownType]


@dataclass(frozen=True)
class Parameter:
    """A request parameter.

    Attributes:
        name: The parameter name as sent on the wire
        location: Where the value is sent ("path", "query", "header", "body")
        type: The parameter type
        required: Whether the caller must supply a value
        default: Default value declared by the API, if any
        description: Human-readable description
    """

    name: str
    location: ParameterLocation
    type: TypeReference
    required: bool = False
    default: object | None = None
    description: str | None = None


@dataclass(frozen=True)
class Response:
    """A declared response of an operation.

    Attributes:
        status: A status code ("200"), a range ("2XX") or "default"
        type: The body type, or None when the response has no body
        nullable: Whether the body may legitimately be absent or null
        description: Human-readable description
    """

    status: str
    type: TypeReference | None = None
    nullable: bool = False
    description: str | None = None

    @property
    def category(self) -> ResponseCategory:
        if self.status == "default":
            return "default"
        if self.status.startswith("2"):
            return "success"
        return "error"


@dataclass(frozen=True)
class Operation:
    """One callable API endpoint.

    Attributes:
        tag: The logical client the operation belongs to
        name: The operation name (e.g. "GetPeople"); derived from method and path when empty
        method: The HTTP method (lowercase)
        path: The URL path template (e.g. "/people/{id}")
        parameters: Parameters in declaration order
        responses: Declared responses in declaration order
        summary: Short description used as the generated method docstring
        deprecated: Whether the API marks the operation as deprecated
    """

    tag: str
    name: str
    method: str
    path: str
    parameters: list[Parameter] = field(default_factory=list)
    responses: list[Response] = field(default_factory=list)
    summary: str | None = None
    deprecated: bool = False


@dataclass(frozen=True)
class ApiDocument:
    """Root container of an API description.

    Attributes:
        operations: All operations in document order
        title: The API title, if known
    """

    operations: list[Operation] = field(default_factory=list)
    title: str | None = None
