"""Operation compilation.

``compile_operation`` turns one :class:`~clientforge.document.Operation` into a
:class:`~clientforge.generation.descriptors.MethodDescriptor`. It selects the
response strategy from the (streamed, wrapped) decision table, the request body
strategy, and records the body-construction steps and support types the
emitter needs to render the method.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..document import ArrayType, Operation, Parameter, PrimitiveType, Response
from ..errors import NameCollisionError
from .descriptors import (
    BodyEncoding,
    BodyStep,
    BuildUrl,
    CollectHeaders,
    CollectQuery,
    CreateRequest,
    HandleResponse,
    MethodDescriptor,
    ParameterDescriptor,
    RequestStrategy,
    ResponseAction,
    ResponseCase,
    ResponseStrategy,
    SendRequest,
    SerializeBody,
    StreamBody,
    SupportType,
)
from .models import collect_models
from .naming import operation_name, sanitize
from .types import NONE, TypeContext, TypeExpression, TypeForm, TypeMapper, Usage

if TYPE_CHECKING:
    from ..settings import ClientSettings, MethodKey

logger = logging.getLogger(__name__)

EMPTY_BODY_MESSAGE = "Response content was null which was not expected."
DEFAULT_ERROR_MESSAGE = "A server side error occurred."
JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"

_STRATEGY_SUPPORT_TYPES = {
    ResponseStrategy.PLAIN: frozenset({SupportType.API_EXCEPTION}),
    ResponseStrategy.WRAPPED: frozenset({SupportType.API_EXCEPTION, SupportType.API_RESPONSE}),
    ResponseStrategy.STREAMED: frozenset({SupportType.API_EXCEPTION, SupportType.JSON_ARRAY_STREAM}),
    ResponseStrategy.STREAMED_WRAPPED: frozenset(
        {
            SupportType.API_EXCEPTION,
            SupportType.API_RESPONSE,
            SupportType.DISPOSABLE_API_RESPONSE,
            SupportType.JSON_ARRAY_STREAM,
        }
    ),
}

_LITERAL_DEFAULT_TYPES = (bool, int, float, str)


def method_name(operation: Operation) -> str:
    return sanitize(raw_operation_name(operation), "method")


def raw_operation_name(operation: Operation) -> str:
    return operation.name or operation_name(operation.method, operation.path)


def method_keys(operation: Operation, settings: ClientSettings) -> frozenset[tuple[str, str]]:
    """Normalized ``(client, method)`` pairs under which settings may list the operation."""
    name = method_name(operation)
    clients = {settings.class_name(operation.tag)}
    if operation.tag:
        clients.add(sanitize(operation.tag, "type"))
    return frozenset((client, name) for client in clients)


def is_listed(keys: frozenset[MethodKey], candidates: frozenset[tuple[str, str]]) -> bool:
    return any(key.normalized in candidates for key in keys)


def compile_operation(
    operation: Operation,
    settings: ClientSettings,
    mapper: TypeMapper | None = None,
) -> MethodDescriptor:
    """Compile an operation into a method descriptor.

    The function is total: types it cannot map become ``Any``. It only fails on
    parameter names that still collide after sanitization.

    Raises:
        NameCollisionError: If two parameters map to the same Python name
    """
    mapper = mapper or TypeMapper()
    name = method_name(operation)
    class_name = settings.class_name(operation.tag)
    candidates = method_keys(operation, settings)

    body = _body_parameter(operation, f"{class_name}.{name}")
    primary = _primary_response(operation)

    streamed = False
    if is_listed(settings.large_array_response_methods, candidates):
        if primary is not None and mapper.is_streamable(primary.type):
            streamed = True
        else:
            logger.warning("%s.%s is listed for response streaming but does not return an array", class_name, name)
    wrapped = settings.wrap_responses and (
        not settings.wrap_response_methods or is_listed(settings.wrap_response_methods, candidates)
    )
    strategy = ResponseStrategy.select(streamed, wrapped)

    stream_request = False
    if is_listed(settings.large_array_request_methods, candidates):
        if body is not None and mapper.is_streamable(body.type):
            stream_request = True
        else:
            logger.warning("%s.%s is listed for request streaming but has no array body", class_name, name)

    parameters = _compile_parameters(operation, body, stream_request, mapper, f"{class_name}.{name}")
    body_descriptor = next((param for param in parameters if param.location == "body"), None)

    result_type = _result_type(operation, primary, strategy, mapper)
    cases = _response_cases(operation, strategy, mapper)

    steps: list[BodyStep] = [
        BuildUrl(
            path=operation.path,
            parameters=tuple(param for param in parameters if param.location == "path"),
        )
    ]
    query = tuple(param for param in parameters if param.location == "query")
    if query:
        steps.append(CollectQuery(parameters=query))
    steps.append(
        CollectHeaders(
            parameters=tuple(param for param in parameters if param.location == "header"),
            accept=_accept(operation),
            content_type=_content_type(body),
        )
    )
    if body_descriptor is not None and body is not None:
        if stream_request:
            request_strategy = RequestStrategy.STREAMED
            steps.append(StreamBody(parameter=body_descriptor))
        else:
            request_strategy = RequestStrategy.BUFFERED
            steps.append(SerializeBody(parameter=body_descriptor, encoding=_body_encoding(body)))
    else:
        request_strategy = RequestStrategy.NONE
    steps.append(
        CreateRequest(
            http_method=operation.method.upper(),
            use_factory=settings.use_request_factory_method,
            has_query=bool(query),
            has_content=body_descriptor is not None,
        )
    )
    steps.append(SendRequest())
    steps.append(HandleResponse(strategy=strategy, cases=cases, result_type=result_type))

    support_types = _STRATEGY_SUPPORT_TYPES[strategy]
    if request_strategy is RequestStrategy.STREAMED:
        support_types = support_types | {SupportType.JSON_ARRAY_STREAM_CONTENT}

    models = collect_models(
        [param.type for param in operation.parameters] + [response.type for response in operation.responses],
        mapper,
    )

    logger.debug(
        "Compiled %s.%s (response: %s, request: %s)",
        class_name,
        name,
        strategy.value,
        request_strategy.value,
    )
    return MethodDescriptor(
        name=name,
        operation_name=raw_operation_name(operation),
        parameters=parameters,
        return_type=_return_type(result_type, strategy),
        response_strategy=strategy,
        request_strategy=request_strategy,
        steps=tuple(steps),
        support_types=support_types,
        models=models,
        summary=operation.summary,
        deprecated=operation.deprecated,
    )


def _body_parameter(operation: Operation, scope: str) -> Parameter | None:
    bodies = [param for param in operation.parameters if param.location == "body"]
    for extra in bodies[1:]:
        logger.warning("%s declares more than one body parameter; ignoring %r", scope, extra.name)
    return bodies[0] if bodies else None


def _primary_response(operation: Operation) -> Response | None:
    """The success response whose body type becomes the method result."""
    successes = [response for response in operation.responses if response.category == "success"]
    for response in successes:
        if response.type is not None:
            return response
    return successes[0] if successes else None


def _compile_parameters(
    operation: Operation,
    body: Parameter | None,
    stream_request: bool,
    mapper: TypeMapper,
    scope: str,
) -> tuple[ParameterDescriptor, ...]:
    compiled: list[ParameterDescriptor] = []
    sources: dict[str, str] = {}
    for param in operation.parameters:
        if param.location == "body" and param is not body:
            continue
        name = sanitize(param.name, "parameter")
        if name in sources:
            raise NameCollisionError(f"parameters of {scope}", name, (sources[name], param.name))
        sources[name] = param.name

        if param.location == "body":
            context = TypeContext(Usage.BODY, stream_request=stream_request)
        else:
            context = TypeContext(Usage.PARAMETER)
        param_type = mapper.map(param.type, context)
        required = param.required or param.location == "path"
        default: str | None = None
        if not required:
            if isinstance(param.default, _LITERAL_DEFAULT_TYPES):
                default = repr(param.default)
            else:
                param_type = param_type.with_nullable()
                default = "None"
        compiled.append(
            ParameterDescriptor(
                name=name,
                wire_name=param.name,
                location=param.location,
                type=param_type,
                required=required,
                default=default,
            )
        )
    # Parameters with defaults must follow the ones without.
    return tuple(sorted(compiled, key=lambda item: not item.required))


def _result_type(
    operation: Operation,
    primary: Response | None,
    strategy: ResponseStrategy,
    mapper: TypeMapper,
) -> TypeExpression:
    if primary is None or primary.type is None:
        return NONE
    context = TypeContext(Usage.RESPONSE, stream_response=strategy.streamed)
    result = mapper.map(primary.type, context)
    if strategy.streamed:
        return result.with_nullable(False)
    bodyless_success = any(
        response.category == "success" and response.type is None for response in operation.responses
    )
    if primary.nullable or bodyless_success:
        return result.with_nullable()
    return result


def _return_type(result_type: TypeExpression, strategy: ResponseStrategy) -> TypeExpression:
    if strategy is ResponseStrategy.WRAPPED:
        return TypeExpression(TypeForm.GENERIC, name=SupportType.API_RESPONSE.value, arguments=(result_type,))
    if strategy is ResponseStrategy.STREAMED_WRAPPED:
        return TypeExpression(
            TypeForm.GENERIC,
            name=SupportType.DISPOSABLE_API_RESPONSE.value,
            arguments=(result_type,),
        )
    return result_type


def _response_cases(
    operation: Operation,
    strategy: ResponseStrategy,
    mapper: TypeMapper,
) -> tuple[ResponseCase, ...]:
    cases: list[ResponseCase] = []
    default: ResponseCase | None = None
    seen: set[str] = set()
    for response in operation.responses:
        status = response.status.upper() if response.status != "default" else "default"
        if status in seen:
            continue
        seen.add(status)
        if response.category == "default":
            default = _error_case(response, mapper)
        elif response.category == "error":
            cases.append(_error_case(response, mapper))
        else:
            cases.append(_success_case(response, strategy, mapper))
    if not any(response.category == "success" for response in operation.responses):
        cases.insert(0, ResponseCase(status="2XX", action=ResponseAction.RETURN_EMPTY))
    if default is not None:
        cases.append(default)
    return tuple(cases)


def _success_case(response: Response, strategy: ResponseStrategy, mapper: TypeMapper) -> ResponseCase:
    status = response.status.upper()
    if response.type is None:
        if strategy.streamed:
            return ResponseCase(status=status, action=ResponseAction.RAISE_EMPTY, message=EMPTY_BODY_MESSAGE)
        return ResponseCase(status=status, action=ResponseAction.RETURN_EMPTY)
    if strategy.streamed:
        context = TypeContext(Usage.RESPONSE, stream_response=True)
        stream_type = mapper.map(response.type, context).with_nullable(False)
        return ResponseCase(
            status=status,
            action=ResponseAction.READ_STREAM,
            type=stream_type,
            message=EMPTY_BODY_MESSAGE,
        )
    body_type = mapper.map(response.type, TypeContext(Usage.RESPONSE))
    if _is_binary(response):
        return ResponseCase(status=status, action=ResponseAction.READ_BYTES, type=body_type)
    if response.nullable:
        return ResponseCase(status=status, action=ResponseAction.READ_NULLABLE_JSON, type=body_type.with_nullable())
    return ResponseCase(status=status, action=ResponseAction.READ_JSON, type=body_type, message=EMPTY_BODY_MESSAGE)


def _error_case(response: Response, mapper: TypeMapper) -> ResponseCase:
    error_type = mapper.map(response.type, TypeContext(Usage.RESPONSE)) if response.type is not None else None
    return ResponseCase(
        status=response.status.upper() if response.status != "default" else "default",
        action=ResponseAction.RAISE_ERROR,
        type=error_type,
        message=response.description or DEFAULT_ERROR_MESSAGE,
    )


def _is_binary(response: Response) -> bool:
    return isinstance(response.type, PrimitiveType) and response.type.kind == "binary"


def _body_encoding(body: Parameter) -> BodyEncoding:
    if isinstance(body.type, PrimitiveType) and body.type.kind == "binary":
        return BodyEncoding.BINARY
    if isinstance(body.type, ArrayType):
        return BodyEncoding.JSON_COLLECTION
    return BodyEncoding.JSON


def _content_type(body: Parameter | None) -> str | None:
    if body is None:
        return None
    if isinstance(body.type, PrimitiveType) and body.type.kind == "binary":
        return BINARY_CONTENT_TYPE
    return JSON_CONTENT_TYPE


def _accept(operation: Operation) -> str | None:
    types = [response.type for response in operation.responses if response.category == "success" and response.type]
    if not types:
        return None
    if all(isinstance(item, PrimitiveType) and item.kind == "binary" for item in types):
        return BINARY_CONTENT_TYPE
    return JSON_CONTENT_TYPE
