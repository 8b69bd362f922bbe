"""Type mapping from schema-level types to Python type expressions.

The :class:`TypeMapper` turns a TypeReference into a :class:`TypeExpression`.
Expressions keep nullability as a separate flag and are rendered to text only
by :func:`render_type`, so the same expression can be written with PEP 604
unions or ``Optional[...]`` depending on the generation profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from ..document import (
    ArrayType,
    EnumType,
    EnumValue,
    GenericType,
    ObjectType,
    PrimitiveType,
    TypeReference,
    UnknownType,
)
from .naming import sanitize
from .profile import GenerationProfile

logger = logging.getLogger(__name__)

_PRIMITIVES = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "binary": "bytes",
}

_LIST_GENERICS = frozenset({"list", "array", "sequence", "collection", "enumerable"})
_MAPPING_GENERICS = frozenset({"dict", "dictionary", "map", "mapping"})


class TypeForm(Enum):
    NAMED = "named"
    LIST = "list"
    MAPPING = "mapping"
    LITERAL = "literal"
    GENERIC = "generic"
    STREAM = "stream"
    PRODUCER = "producer"
    OPAQUE = "opaque"


class Usage(Enum):
    RESPONSE = "response"
    PARAMETER = "parameter"
    BODY = "body"


@dataclass(frozen=True)
class TypeExpression:
    """A Python type expression prior to rendering.

    Attributes:
        form: The shape of the expression
        name: The type name for NAMED and GENERIC forms
        arguments: Type arguments (element type, value type, generic argument)
        literals: Members of a LITERAL form
        nullable: Whether None is an accepted value
        model: Whether a NAMED form refers to a generated model declaration
    """

    form: TypeForm
    name: str = ""
    arguments: tuple[TypeExpression, ...] = ()
    literals: tuple[EnumValue, ...] = ()
    nullable: bool = False
    model: bool = False

    def with_nullable(self, nullable: bool = True) -> TypeExpression:
        return replace(self, nullable=nullable)

    @property
    def element(self) -> TypeExpression:
        return self.arguments[0]


OPAQUE = TypeExpression(TypeForm.OPAQUE)
NONE = TypeExpression(TypeForm.NAMED, name="None")


def named(name: str) -> TypeExpression:
    return TypeExpression(TypeForm.NAMED, name=name)


@dataclass(frozen=True)
class TypeContext:
    """Where a type occurs, set per operation by the operation compiler.

    Attributes:
        usage: Whether the type is a response body, a parameter or a request body
        stream_response: The operation streams its array response
        stream_request: The operation streams its array request body
    """

    usage: Usage
    stream_response: bool = False
    stream_request: bool = False


RESPONSE = TypeContext(Usage.RESPONSE)
PARAMETER = TypeContext(Usage.PARAMETER)
BODY = TypeContext(Usage.BODY)


class TypeMapper:
    """Maps TypeReference values to TypeExpression values.

    The mapper holds no state, so one instance can be shared by worker threads
    compiling independent operations.

    Example:
        >>> mapper = TypeMapper()
        >>> render_type(mapper.map(ArrayType(PrimitiveType("string")), RESPONSE), profile)
        'list[str]'
        >>> streamed = TypeContext(Usage.RESPONSE, stream_response=True)
        >>> render_type(mapper.map(ArrayType(PrimitiveType("string")), streamed), profile)
        'AsyncIterator[str]'
    """

    def map(self, reference: TypeReference | None, context: TypeContext) -> TypeExpression:
        if reference is None:
            return OPAQUE
        expression = self._map(reference, context)
        if reference.nullable:
            return expression.with_nullable()
        return expression

    def is_streamable(self, reference: TypeReference | None) -> bool:
        return isinstance(reference, ArrayType) and reference.streamable

    def _map(self, reference: TypeReference, context: TypeContext) -> TypeExpression:
        if isinstance(reference, PrimitiveType):
            python_type = _PRIMITIVES.get(reference.kind)
            if python_type is None:
                return OPAQUE
            return named(python_type)
        if isinstance(reference, ArrayType):
            return self._map_array(reference, context)
        if isinstance(reference, ObjectType):
            if reference.name:
                return TypeExpression(TypeForm.NAMED, name=sanitize(reference.name, "type"), model=True)
            if reference.additional is not None:
                value = self.map(reference.additional, _element_context(context))
                return TypeExpression(TypeForm.MAPPING, arguments=(value,))
            return TypeExpression(TypeForm.MAPPING, arguments=(OPAQUE,))
        if isinstance(reference, EnumType):
            if reference.name:
                return TypeExpression(TypeForm.NAMED, name=sanitize(reference.name, "type"), model=True)
            if not reference.members:
                return OPAQUE
            return TypeExpression(TypeForm.LITERAL, literals=tuple(dict.fromkeys(reference.members)))
        if isinstance(reference, GenericType):
            return self._map_generic(reference, context)
        if isinstance(reference, UnknownType):
            logger.debug("Falling back to an opaque type for %s", reference.description or "an unknown schema")
            return OPAQUE
        logger.debug("Falling back to an opaque type for unrecognized reference %r", reference)
        return OPAQUE

    def _map_array(self, reference: ArrayType, context: TypeContext) -> TypeExpression:
        element = self.map(reference.element, _element_context(context))
        if reference.streamable:
            if context.usage is Usage.RESPONSE and context.stream_response:
                return TypeExpression(TypeForm.STREAM, arguments=(element,))
            if context.usage is Usage.BODY and context.stream_request:
                return TypeExpression(TypeForm.PRODUCER, arguments=(element,))
        return TypeExpression(TypeForm.LIST, arguments=(element,))

    def _map_generic(self, reference: GenericType, context: TypeContext) -> TypeExpression:
        argument = self.map(reference.argument, _element_context(context))
        key = reference.name.lower()
        if key in _LIST_GENERICS:
            return TypeExpression(TypeForm.LIST, arguments=(argument,))
        if key in _MAPPING_GENERICS:
            return TypeExpression(TypeForm.MAPPING, arguments=(argument,))
        return TypeExpression(TypeForm.GENERIC, name=sanitize(reference.name, "type"), arguments=(argument,))


def render_type(
    expression: TypeExpression,
    profile: GenerationProfile,
    quote_models: bool = False,
) -> str:
    """Render a type expression as Python source text.

    Args:
        expression: The expression to render
        profile: Generation profile selecting the union syntax
        quote_models: Quote references to generated models (for runtime-evaluated
            positions such as functional TypedDict declarations)
    """
    base = _render_base(expression, profile, quote_models)
    if not expression.nullable or base in {"Any", "None"}:
        return base
    if profile.use_pep604 and not quote_models:
        return f"{base} | None"
    return f"Optional[{base}]"


def _render_base(expression: TypeExpression, profile: GenerationProfile, quote_models: bool) -> str:
    form = expression.form
    if form is TypeForm.OPAQUE:
        return "Any"
    if form is TypeForm.NAMED:
        if expression.model and quote_models:
            return repr(expression.name)
        return expression.name
    if form is TypeForm.LITERAL:
        return f"Literal[{', '.join(repr(value) for value in expression.literals)}]"
    arguments = ", ".join(render_type(argument, profile, quote_models) for argument in expression.arguments)
    if form is TypeForm.LIST:
        return f"list[{arguments}]"
    if form is TypeForm.MAPPING:
        return f"dict[str, {arguments}]"
    if form is TypeForm.STREAM:
        return f"AsyncIterator[{arguments}]"
    if form is TypeForm.PRODUCER:
        return f"AsyncIterable[{arguments}]"
    return f"{expression.name}[{arguments}]"


def _element_context(context: TypeContext) -> TypeContext:
    # Streaming applies to the outermost array only.
    return TypeContext(context.usage)
