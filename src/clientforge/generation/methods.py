from __future__ import annotations

import re

from .descriptors import (
    BodyEncoding,
    BuildUrl,
    CollectHeaders,
    CollectQuery,
    CreateRequest,
    HandleResponse,
    MethodDescriptor,
    ParameterDescriptor,
    ResponseAction,
    ResponseCase,
    ResponseStrategy,
    SendRequest,
    SerializeBody,
    StreamBody,
)
from .profile import GenerationProfile
from .types import TypeExpression, render_type

_PATH_PARAMETER = re.compile(r"\{([^{}]+)\}")

UNEXPECTED_STATUS_MESSAGE = "The HTTP status code of the response was not expected ({status_})."
DESERIALIZATION_MESSAGE = "Could not deserialize the response body."


def render_signature(method: MethodDescriptor, profile: GenerationProfile) -> str:
    """Render the ``async def`` line of a method."""
    parts = ["self"]
    for param in method.parameters:
        annotation = render_type(param.type, profile)
        if param.default is None:
            parts.append(f"{param.name}: {annotation}")
        else:
            parts.append(f"{param.name}: {annotation} = {param.default}")
    returns = render_type(method.return_type, profile)
    return f"    async def {method.name}({', '.join(parts)}) -> {returns}:"


def render_docstring(method: MethodDescriptor, indent: str = "        ") -> list[str]:
    text = (method.summary or "").strip()
    if method.deprecated:
        text = f"{text}\n\nDeprecated." if text else "Deprecated."
    if not text:
        return []
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    doc_lines = text.splitlines()
    if len(doc_lines) == 1:
        return [f'{indent}"""{doc_lines[0]}"""']
    lines = [f'{indent}"""{doc_lines[0]}']
    lines.extend(f"{indent}{line}" if line else "" for line in doc_lines[1:])
    lines.append(f'{indent}"""')
    return lines


def render_interface_method(method: MethodDescriptor, profile: GenerationProfile) -> list[str]:
    lines = [render_signature(method, profile)]
    lines.extend(render_docstring(method))
    lines.append("        ...")
    return lines


def render_method(method: MethodDescriptor, profile: GenerationProfile, override: bool = False) -> list[str]:
    """Render a client method by rendering its body-construction steps in order."""
    lines: list[str] = []
    if override:
        lines.append("    @override")
    lines.append(render_signature(method, profile))
    lines.extend(render_docstring(method))
    for step in method.steps:
        if isinstance(step, BuildUrl):
            lines.append(f"        url_ = {_url_expression(step)}")
        elif isinstance(step, CollectQuery):
            lines.extend(_collect_query(step))
        elif isinstance(step, CollectHeaders):
            lines.extend(_collect_headers(step))
        elif isinstance(step, SerializeBody):
            lines.append(f"        content_ = {_serialize_body(step)}")
        elif isinstance(step, StreamBody):
            lines.append(f"        content_ = {_stream_body(step)}")
        elif isinstance(step, CreateRequest):
            lines.extend(_create_request(step))
        elif isinstance(step, SendRequest):
            lines.append("        response_ = await self._transport.send(request_, stream=True)")
            lines.append("        dispose_response_ = True")
        elif isinstance(step, HandleResponse):
            lines.extend(_handle_response(step, profile))
    return lines


def _url_expression(step: BuildUrl) -> str:
    by_wire_name = {param.wire_name: param for param in step.parameters}
    parts = ["self.base_url.rstrip('/')"]
    position = 0
    for match in _PATH_PARAMETER.finditer(step.path):
        param = by_wire_name.get(match.group(1))
        if param is None:
            continue
        literal = step.path[position : match.start()]
        if literal:
            parts.append(repr(literal))
        parts.append(f"quote(str({param.name}), safe='')")
        position = match.end()
    if position < len(step.path):
        parts.append(repr(step.path[position:]))
    return " + ".join(parts)


def _collect_query(step: CollectQuery) -> list[str]:
    lines = ["        query_: dict[str, Any] = {}"]
    for param in step.parameters:
        lines.extend(_assign("query_", param, param.name))
    return lines


def _collect_headers(step: CollectHeaders) -> list[str]:
    fixed: list[str] = []
    if step.accept is not None:
        fixed.append(f"'Accept': {step.accept!r}")
    if step.content_type is not None:
        fixed.append(f"'Content-Type': {step.content_type!r}")
    lines = [f"        request_headers_: dict[str, str] = {{{', '.join(fixed)}}}"]
    for param in step.parameters:
        lines.extend(_assign("request_headers_", param, f"str({param.name})"))
    return lines


def _assign(target: str, param: ParameterDescriptor, value: str) -> list[str]:
    assignment = f"{target}[{param.wire_name!r}] = {value}"
    if param.default == "None":
        return [f"        if {param.name} is not None:", f"            {assignment}"]
    return [f"        {assignment}"]


def _serialize_body(step: SerializeBody) -> str:
    name = step.parameter.name
    if step.encoding is BodyEncoding.BINARY:
        return name
    if step.encoding is BodyEncoding.JSON_COLLECTION:
        value = f"json.dumps(list({name}))"
    else:
        value = f"json.dumps({name})"
    if step.parameter.default == "None":
        return f"{value} if {name} is not None else None"
    return value


def _stream_body(step: StreamBody) -> str:
    name = step.parameter.name
    if step.parameter.default == "None":
        return f"JsonArrayStreamContent({name}) if {name} is not None else None"
    return f"JsonArrayStreamContent({name})"


def _create_request(step: CreateRequest) -> list[str]:
    arguments = [repr(step.http_method), "url_"]
    if step.has_query:
        arguments.append("params=query_")
    arguments.append("headers=request_headers_")
    if step.has_content:
        arguments.append("content=content_")
    if step.use_factory:
        return [f"        request_ = await self.create_http_request_async({', '.join(arguments)})"]
    return [f"        request_ = self._transport.build_request({', '.join(arguments)})"]


def _handle_response(step: HandleResponse, profile: GenerationProfile) -> list[str]:
    lines = [
        "        try:",
        "            status_ = response_.status_code",
        "            headers_ = response_.headers",
    ]
    fallthrough = True
    for case in step.cases:
        if case.status == "default":
            body = _case_body(case, step.strategy, profile, "            ")
            lines.extend(body)
            fallthrough = False
            continue
        lines.append(f"            if {_status_condition(case.status)}:")
        lines.extend(_case_body(case, step.strategy, profile, "                "))
    if fallthrough:
        lines.extend(
            [
                "            await response_.aread()",
                f"            raise ApiException(f{UNEXPECTED_STATUS_MESSAGE!r}, status_, response_.text, headers_, None)",
            ]
        )
    lines.extend(
        [
            "        finally:",
            "            if dispose_response_:",
            "                await response_.aclose()",
        ]
    )
    return lines


def _status_condition(status: str) -> str:
    if len(status) == 3 and status[0].isdigit() and status[1:] == "XX":
        low = int(status[0]) * 100
        return f"{low} <= status_ < {low + 100}"
    return f"status_ == {int(status)}"


def _case_body(case: ResponseCase, strategy: ResponseStrategy, profile: GenerationProfile, indent: str) -> list[str]:
    empty = f"raise ApiException({case.message!r}, status_, None, headers_, None)"
    action = case.action
    if action is ResponseAction.RETURN_EMPTY:
        return [f"{indent}return {_wrap('None', strategy)}"]
    if action is ResponseAction.RAISE_EMPTY:
        return [f"{indent}{empty}"]
    if action is ResponseAction.READ_BYTES:
        return [
            f"{indent}result_ = await response_.aread()",
            f"{indent}return {_wrap('result_', strategy)}",
        ]
    if action is ResponseAction.READ_STREAM:
        value = f"cast({_cast_type(case.type, profile)}, result_)"
        if strategy is ResponseStrategy.STREAMED_WRAPPED:
            returned = f"DisposableApiResponse(status_, headers_, {value}, response_)"
        else:
            returned = value
        return [
            f"{indent}result_ = JsonArrayStream(response_)",
            f"{indent}if not await result_.prime():",
            f"{indent}    {empty}",
            f"{indent}dispose_response_ = False",
            f"{indent}return {returned}",
        ]
    if action is ResponseAction.RAISE_ERROR and case.type is None:
        return [
            f"{indent}await response_.aread()",
            f"{indent}raise ApiException({case.message!r}, status_, response_.text, headers_, None)",
        ]
    if action is ResponseAction.RAISE_ERROR:
        # An undecodable error body still raises the declared error, without a result.
        undecodable = f"raise ApiException({case.message!r}, status_, response_.text, headers_, None) from None"
    else:
        undecodable = f"raise ApiException({DESERIALIZATION_MESSAGE!r}, status_, response_.text, headers_, None) from None"
    lines = [
        f"{indent}data_ = await response_.aread()",
        f"{indent}try:",
        f"{indent}    result_ = json.loads(data_) if data_ else None",
        f"{indent}except ValueError:",
        f"{indent}    {undecodable}",
    ]
    if action is ResponseAction.RAISE_ERROR:
        return lines + [f"{indent}raise ApiException({case.message!r}, status_, response_.text, headers_, result_)"]
    if action is ResponseAction.READ_JSON:
        lines.extend([f"{indent}if result_ is None:", f"{indent}    {empty}"])
    value = f"cast({_cast_type(case.type, profile)}, result_)"
    lines.append(f"{indent}return {_wrap(value, strategy)}")
    return lines


def _wrap(value: str, strategy: ResponseStrategy) -> str:
    if strategy is ResponseStrategy.WRAPPED:
        return f"ApiResponse(status_, headers_, {value})"
    return value


def _cast_type(expression: TypeExpression | None, profile: GenerationProfile) -> str:
    # The cast target is quoted so it is never evaluated at runtime.
    if expression is None:
        return "Any"
    return repr(render_type(expression, profile))
