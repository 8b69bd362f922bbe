"""Descriptors produced by the operation compiler and the client surface assembler.

Descriptors carry every decision the generator makes. The emitter only renders
them: it never re-evaluates settings or inspects the API document.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .types import TypeExpression


class ResponseStrategy(Enum):
    """How a method hands its response to the caller.

    PLAIN returns the decoded value, WRAPPED returns an ``ApiResponse`` with
    status and headers, STREAMED returns an ``AsyncIterator`` over the items of a
    JSON array body, STREAMED_WRAPPED returns a ``DisposableApiResponse`` whose
    result is such an iterator.
    """

    PLAIN = "plain"
    WRAPPED = "wrapped"
    STREAMED = "streamed"
    STREAMED_WRAPPED = "streamed_wrapped"

    @classmethod
    def select(cls, streamed: bool, wrapped: bool) -> "ResponseStrategy":
        if streamed:
            return cls.STREAMED_WRAPPED if wrapped else cls.STREAMED
        return cls.WRAPPED if wrapped else cls.PLAIN

    @property
    def streamed(self) -> bool:
        return self in (ResponseStrategy.STREAMED, ResponseStrategy.STREAMED_WRAPPED)

    @property
    def wrapped(self) -> bool:
        return self in (ResponseStrategy.WRAPPED, ResponseStrategy.STREAMED_WRAPPED)


class RequestStrategy(Enum):
    NONE = "none"
    BUFFERED = "buffered"
    STREAMED = "streamed"


class SupportType(Enum):
    """Auxiliary declarations shared by all generated clients.

    Declaration order in the output follows the order of this enumeration.
    """

    API_EXCEPTION = "ApiException"
    API_RESPONSE = "ApiResponse"
    DISPOSABLE_API_RESPONSE = "DisposableApiResponse"
    JSON_ARRAY_STREAM = "JsonArrayStream"
    JSON_ARRAY_STREAM_CONTENT = "JsonArrayStreamContent"


class ResponseAction(Enum):
    READ_JSON = "read_json"
    READ_NULLABLE_JSON = "read_nullable_json"
    READ_BYTES = "read_bytes"
    READ_STREAM = "read_stream"
    RETURN_EMPTY = "return_empty"
    RAISE_EMPTY = "raise_empty"
    RAISE_ERROR = "raise_error"


class BodyEncoding(Enum):
    JSON = "json"
    JSON_COLLECTION = "json_collection"
    BINARY = "binary"


@dataclass(frozen=True)
class ParameterDescriptor:
    """A sanitized method parameter.

    Attributes:
        name: The Python parameter name
        wire_name: The name sent on the wire
        location: "path", "query", "header" or "body"
        type: The parameter type (nullable when the parameter is optional without default)
        required: Whether the parameter has no default
        default: Python literal of the default value, if any
    """

    name: str
    wire_name: str
    location: str
    type: TypeExpression
    required: bool
    default: str | None = None


@dataclass(frozen=True)
class BuildUrl:
    """Join the base URL with the path template, quoting path parameters."""

    path: str
    parameters: tuple[ParameterDescriptor, ...] = ()


@dataclass(frozen=True)
class CollectQuery:
    parameters: tuple[ParameterDescriptor, ...]


@dataclass(frozen=True)
class CollectHeaders:
    parameters: tuple[ParameterDescriptor, ...]
    accept: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class SerializeBody:
    """Serialize the body parameter as one in-memory payload."""

    parameter: ParameterDescriptor
    encoding: BodyEncoding


@dataclass(frozen=True)
class StreamBody:
    """Pass the body producer to ``JsonArrayStreamContent`` so it is serialized incrementally."""

    parameter: ParameterDescriptor


@dataclass(frozen=True)
class CreateRequest:
    http_method: str
    use_factory: bool
    has_query: bool
    has_content: bool


@dataclass(frozen=True)
class SendRequest:
    pass


@dataclass(frozen=True)
class ResponseCase:
    """Handling of one declared response status.

    Attributes:
        status: A status code ("200"), a range ("2XX") or "default"
        action: What the generated method does for this status
        type: Decoded type of the body (for reading actions and typed errors)
        message: Exception message for raising actions
    """

    status: str
    action: ResponseAction
    type: TypeExpression | None = None
    message: str | None = None


@dataclass(frozen=True)
class HandleResponse:
    """Dispatch on the response status and produce the method result.

    Attributes:
        strategy: The response strategy of the method
        cases: Declared statuses in document order; "default" comes last
        result_type: The type produced by success cases (before wrapping)
    """

    strategy: ResponseStrategy
    cases: tuple[ResponseCase, ...]
    result_type: TypeExpression


BodyStep = Union[
    BuildUrl,
    CollectQuery,
    CollectHeaders,
    SerializeBody,
    StreamBody,
    CreateRequest,
    SendRequest,
    HandleResponse,
]


@dataclass(frozen=True)
class MethodDescriptor:
    """A compiled client method.

    Attributes:
        name: The Python method name
        operation_name: The raw operation name the method was compiled from
        parameters: Parameters in signature order (required ones first)
        return_type: The declared return type
        response_strategy: Selected response strategy
        request_strategy: Selected request body strategy
        steps: Body-construction steps in execution order
        support_types: Auxiliary declarations the method relies on
        summary: Docstring text
        deprecated: Whether the operation is deprecated
    """

    name: str
    operation_name: str
    parameters: tuple[ParameterDescriptor, ...]
    return_type: TypeExpression
    response_strategy: ResponseStrategy
    request_strategy: RequestStrategy
    steps: tuple[BodyStep, ...]
    support_types: frozenset[SupportType]
    models: tuple[ModelDescriptor, ...] = ()
    summary: str | None = None
    deprecated: bool = False


@dataclass(frozen=True)
class ModelField:
    name: str
    type: TypeExpression
    required: bool


@dataclass(frozen=True)
class ModelDescriptor:
    """A named type declaration (TypedDict or Literal alias).

    Attributes:
        name: The Python type name
        source_name: The schema name it was generated from
        fields: TypedDict fields; empty for Literal aliases
        literals: Members of a Literal alias
        is_enum: Whether the model renders as a Literal alias
        alias: Type of a field-less object (rendered as ``Name = dict[str, ...]``)
    """

    name: str
    source_name: str
    fields: tuple[ModelField, ...] = ()
    literals: tuple[object, ...] = ()
    is_enum: bool = False
    alias: TypeExpression | None = None


class TransportMode(Enum):
    INJECTED = "injected"
    OWNED = "owned"


@dataclass(frozen=True)
class ConstructorShape:
    """Constructor parameters of a generated client class.

    Attributes:
        configuration_type: Type of the configuration parameter, if any
        forward_configuration: Pass the configuration to the base class constructor
        call_base: Call the base class constructor without arguments
        transport: Whether the transport is injected or owned by the client
        transport_type: Type expression text of the transport
    """

    configuration_type: str | None
    forward_configuration: bool
    call_base: bool
    transport: TransportMode
    transport_type: str


@dataclass(frozen=True)
class ClassDescriptor:
    """A generated client: its class and its interface.

    Attributes:
        tag: The tag the operations were grouped by
        class_name: Name of the client class
        interface_name: Name of the client interface
        methods: Compiled methods in document order
        base_class: Configured base class, attached verbatim
        base_interface: Configured base interface, attached verbatim
        constructor: Constructor shape of the class
        generate_class: Whether the class is built
        emit_class: Whether the built class appears in the output
        generate_interface: Whether the interface is built (and implemented by the class)
        emit_interface: Whether the built interface appears in the output
    """

    tag: str
    class_name: str
    interface_name: str
    methods: tuple[MethodDescriptor, ...]
    base_class: str | None
    base_interface: str | None
    constructor: ConstructorShape
    generate_class: bool = True
    emit_class: bool = True
    generate_interface: bool = False
    emit_interface: bool = False

    @property
    def support_types(self) -> frozenset[SupportType]:
        result: frozenset[SupportType] = frozenset()
        for method in self.methods:
            result |= method.support_types
        return result

    @property
    def models(self) -> tuple[ModelDescriptor, ...]:
        seen: dict[str, ModelDescriptor] = {}
        for method in self.methods:
            for model in method.models:
                seen.setdefault(model.name, model)
        return tuple(seen.values())

    @property
    def implements_interface(self) -> bool:
        return self.generate_interface
