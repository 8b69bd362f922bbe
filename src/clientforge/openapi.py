"""OpenAPI adapter.

Builds an :class:`~clientforge.document.ApiDocument` from a parsed OpenAPI 3.x
or Swagger 2.0 document. Local ``$ref`` values are resolved lazily while the
document is walked; references to ``#/components/schemas/X`` (or
``#/definitions/X``) produce types named ``X``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TypedDict, cast

from .document import (
    HTTP_METHODS,
    ApiDocument,
    ArrayType,
    EnumType,
    ObjectField,
    ObjectType,
    Operation,
    Parameter,
    PrimitiveType,
    Response,
    TypeReference,
    UnknownType,
)
from .errors import SpecError

logger = logging.getLogger(__name__)

JsonPrimitive = str | int | float | bool | None
JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]

SchemaObject = TypedDict(
    "SchemaObject",
    {
        "type": str | list[str],
        "format": str,
        "properties": dict[str, "SchemaObject"],
        "items": "SchemaObject",
        "required": list[str],
        "nullable": bool,
        "x-nullable": bool,
        "enum": list[JsonPrimitive],
        "oneOf": list["SchemaObject"],
        "anyOf": list["SchemaObject"],
        "allOf": list["SchemaObject"],
        "additionalProperties": object,
        "default": JsonValue,
        "description": str,
        "title": str,
        "$ref": str,
    },
    total=False,
)

MediaTypeObject = TypedDict(
    "MediaTypeObject",
    {
        "schema": SchemaObject,
    },
    total=False,
)

ResponseObject = TypedDict(
    "ResponseObject",
    {
        "description": str,
        "content": dict[str, MediaTypeObject],
        # Swagger 2.0
        "schema": SchemaObject,
        "x-nullable": bool,
        "$ref": str,
    },
    total=False,
)

RequestBodyObject = TypedDict(
    "RequestBodyObject",
    {
        "description": str,
        "content": dict[str, MediaTypeObject],
        "required": bool,
        "x-name": str,
        "$ref": str,
    },
    total=False,
)

ParameterObject = TypedDict(
    "ParameterObject",
    {
        "name": str,
        "in": str,
        "required": bool,
        "description": str,
        "schema": SchemaObject,
        "content": dict[str, MediaTypeObject],
        "default": JsonValue,
        # Swagger 2.0 inline schemas
        "type": str,
        "format": str,
        "items": SchemaObject,
        "enum": list[JsonPrimitive],
        "x-nullable": bool,
        "$ref": str,
    },
    total=False,
)

OperationObject = TypedDict(
    "OperationObject",
    {
        "operationId": str,
        "summary": str,
        "description": str,
        "tags": list[str],
        "parameters": list[ParameterObject],
        "requestBody": RequestBodyObject,
        "responses": dict[str, ResponseObject],
        "deprecated": bool,
    },
    total=False,
)

PathItemObject = TypedDict(
    "PathItemObject",
    {
        "parameters": list[ParameterObject],
        "get": OperationObject,
        "put": OperationObject,
        "post": OperationObject,
        "delete": OperationObject,
        "options": OperationObject,
        "head": OperationObject,
        "patch": OperationObject,
        "trace": OperationObject,
    },
    total=False,
)

ComponentsObject = TypedDict(
    "ComponentsObject",
    {
        "schemas": dict[str, SchemaObject],
    },
    total=False,
)

InfoObject = TypedDict(
    "InfoObject",
    {
        "title": str,
        "version": str,
    },
    total=False,
)

OpenAPIDocument = TypedDict(
    "OpenAPIDocument",
    {
        "openapi": str,
        "swagger": str,
        "info": InfoObject,
        "paths": dict[str, PathItemObject],
        "components": ComponentsObject,
        "definitions": dict[str, SchemaObject],
    },
    total=False,
)

_SCHEMA_PREFIXES = ("#/components/schemas/", "#/definitions/")
_JSON_MEDIA_TYPES = ("application/json", "text/json")
_BINARY_MEDIA_TYPES = ("application/octet-stream",)


def build_document(document: Mapping[str, object]) -> ApiDocument:
    """Build an API document from a parsed OpenAPI or Swagger document.

    Raises:
        SpecError: If the document structure is invalid or a ``$ref`` does not resolve
    """
    return DocumentBuilder(cast(OpenAPIDocument, document)).build()


@dataclass
class DocumentBuilder:
    """Converts an OpenAPI document into an ApiDocument.

    Named schemas are converted once and cached. A reference to a schema that is
    still being converted (a recursive reference) yields a name-only stub.

    Example:
        >>> builder = DocumentBuilder(document)
        >>> api = builder.build()
    """

    document: OpenAPIDocument
    _named: dict[str, TypeReference] = field(default_factory=dict, init=False)
    _resolving: set[str] = field(default_factory=set, init=False)

    def build(self) -> ApiDocument:
        paths = self.document.get("paths", {})
        if not isinstance(paths, Mapping):
            raise SpecError("'paths' must be an object")
        operations: list[Operation] = []
        for path, item in paths.items():
            item = self._deref(item)
            if not isinstance(item, Mapping):
                raise SpecError(f"Path item for {path!r} must be an object")
            operations.extend(self._path_operations(str(path), cast(PathItemObject, item)))
        info = self.document.get("info", {})
        title = info.get("title") if isinstance(info, Mapping) else None
        logger.debug("Built %d operations from %s", len(operations), title or "an untitled document")
        return ApiDocument(operations=operations, title=title)

    def _path_operations(self, path: str, item: PathItemObject) -> list[Operation]:
        common = self._parameter_objects(item.get("parameters", []))
        operations: list[Operation] = []
        for method in HTTP_METHODS:
            operation = item.get(method)
            if operation is None:
                continue
            if not isinstance(operation, Mapping):
                raise SpecError(f"Operation {method.upper()} {path} must be an object")
            operations.append(self._operation(method, path, cast(OperationObject, operation), common))
        return operations

    def _operation(
        self,
        method: str,
        path: str,
        operation: OperationObject,
        common: list[ParameterObject],
    ) -> Operation:
        tag, name = _tag_and_name(operation)
        merged: dict[tuple[str, str], ParameterObject] = {}
        for param in common + self._parameter_objects(operation.get("parameters", [])):
            param_name = param.get("name")
            location = param.get("in")
            if not param_name or not location:
                raise SpecError(f"Parameter of {method.upper()} {path} needs 'name' and 'in'")
            merged[(param_name, location)] = param

        parameters: list[Parameter] = []
        for param in merged.values():
            converted = self._parameter(param, f"{method.upper()} {path}")
            if converted is not None:
                parameters.append(converted)
        request_body = operation.get("requestBody")
        if request_body is not None:
            parameters.append(self._request_body(cast(RequestBodyObject, self._deref(request_body))))

        responses = operation.get("responses", {})
        if not isinstance(responses, Mapping):
            raise SpecError(f"Responses of {method.upper()} {path} must be an object")
        summary = operation.get("summary") or _first_line(operation.get("description"))
        return Operation(
            tag=tag,
            name=name,
            method=method,
            path=path,
            parameters=parameters,
            responses=[
                self._response(str(status), cast(ResponseObject, self._deref(response)))
                for status, response in responses.items()
            ],
            summary=summary,
            deprecated=bool(operation.get("deprecated", False)),
        )

    def _parameter_objects(self, values: object) -> list[ParameterObject]:
        if not isinstance(values, list):
            raise SpecError("'parameters' must be a list")
        return [cast(ParameterObject, self._deref(value)) for value in values]

    def _parameter(self, param: ParameterObject, scope: str) -> Parameter | None:
        location = param["in"]
        if location not in ("path", "query", "header", "body"):
            logger.warning("Skipping %s parameter %r of %s", location, param["name"], scope)
            return None
        schema = param.get("schema")
        if schema is None:
            content = param.get("content")
            schema = _media_schema(content) if content else cast(SchemaObject, param)
        type_ = self.convert(schema)
        if param.get("x-nullable"):
            type_ = _with_nullable(type_)
        default = param.get("default", schema.get("default") if isinstance(schema, Mapping) else None)
        return Parameter(
            name=param["name"],
            location=location,
            type=type_,
            required=bool(param.get("required", location == "path")),
            default=default,
            description=param.get("description"),
        )

    def _request_body(self, body: RequestBodyObject) -> Parameter:
        content = body.get("content", {})
        if any(media_type in _BINARY_MEDIA_TYPES for media_type in content) and not _has_json(content):
            type_: TypeReference = PrimitiveType("binary")
        else:
            schema = _media_schema(content)
            type_ = self.convert(schema) if schema is not None else PrimitiveType("any")
        return Parameter(
            name=body.get("x-name", "body"),
            location="body",
            type=type_,
            required=bool(body.get("required", False)),
            description=body.get("description"),
        )

    def _response(self, status: str, response: ResponseObject) -> Response:
        type_: TypeReference | None = None
        if "schema" in response:
            type_ = self.convert(response["schema"])
        elif response.get("content"):
            content = response["content"]
            if any(media_type in _BINARY_MEDIA_TYPES for media_type in content) and not _has_json(content):
                type_ = PrimitiveType("binary")
            else:
                schema = _media_schema(content)
                type_ = self.convert(schema) if schema is not None else None
        nullable = bool(response.get("x-nullable")) or bool(type_ is not None and type_.nullable)
        return Response(
            status=status.upper() if status != "default" else status,
            type=type_,
            nullable=nullable,
            description=response.get("description"),
        )

    def convert(self, schema: object) -> TypeReference:
        """Convert a schema object to a TypeReference."""
        if not isinstance(schema, Mapping):
            return UnknownType("non-object schema")
        schema = cast(SchemaObject, schema)
        ref = schema.get("$ref")
        if ref is not None:
            type_ = self._convert_ref(ref)
            if _is_nullable(schema):
                type_ = _with_nullable(type_)
            return type_
        return self._convert_inline(schema, None)

    def _convert_ref(self, ref: str) -> TypeReference:
        name = _schema_name(ref)
        if name is None:
            return self.convert(self._resolve(ref))
        if name in self._named:
            return self._named[name]
        if name in self._resolving:
            return ObjectType(name=name)
        self._resolving.add(name)
        try:
            target = self._resolve(ref)
            if isinstance(target, Mapping) and "$ref" in target:
                type_ = self.convert(target)
            elif isinstance(target, Mapping):
                type_ = self._convert_inline(cast(SchemaObject, target), name)
            else:
                raise SpecError(f"$ref target must be an object: {ref}")
        finally:
            self._resolving.discard(name)
        self._named[name] = type_
        return type_

    def _convert_inline(self, schema: SchemaObject, name: str | None) -> TypeReference:
        nullable = _is_nullable(schema)
        for key in ("oneOf", "anyOf"):
            members = schema.get(key)
            if members:
                options = [member for member in members if not _is_null_schema(member)]
                if len(options) == 1:
                    type_ = self.convert(options[0])
                    return _with_nullable(type_) if nullable or len(options) < len(members) else type_
                return UnknownType(f"{key} union", nullable=nullable)
        all_of = schema.get("allOf")
        if all_of:
            if len(all_of) == 1 and not schema.get("properties"):
                type_ = self.convert(all_of[0])
                return _with_nullable(type_) if nullable else type_
            return self._convert_object(schema, name, nullable, all_of)

        enum = schema.get("enum")
        if enum:
            members = tuple(value for value in enum if value is not None)
            return EnumType(name=name, members=members, nullable=nullable or None in enum)

        schema_type = _schema_type(schema)
        if schema_type == "string":
            if schema.get("format") == "binary":
                return PrimitiveType("binary", nullable=nullable)
            return PrimitiveType("string", nullable=nullable)
        if schema_type == "file":
            return PrimitiveType("binary", nullable=nullable)
        if schema_type in ("integer", "number", "boolean"):
            return PrimitiveType(schema_type, nullable=nullable)
        if schema_type == "array":
            items = schema.get("items")
            element = self.convert(items) if items is not None else PrimitiveType("any")
            return ArrayType(element=element, nullable=nullable)
        if schema_type == "object" or "properties" in schema or "additionalProperties" in schema:
            return self._convert_object(schema, name, nullable, [])
        if schema_type is None:
            return PrimitiveType("any", nullable=nullable)
        logger.debug("Unrecognized schema type %r", schema_type)
        return UnknownType(f"type {schema_type!r}", nullable=nullable)

    def _convert_object(
        self,
        schema: SchemaObject,
        name: str | None,
        nullable: bool,
        bases: list[SchemaObject],
    ) -> ObjectType:
        fields: dict[str, ObjectField] = {}
        additional: TypeReference | None = None
        for base in bases:
            converted = self.convert(base)
            if isinstance(converted, ObjectType):
                for item in converted.fields:
                    fields[item.name] = item
                additional = additional or converted.additional
            else:
                logger.warning("Ignoring non-object allOf member of %s", name or "an inline schema")
        required = set(schema.get("required", []))
        for field_name, field_schema in schema.get("properties", {}).items():
            fields[field_name] = ObjectField(
                name=field_name,
                type=self.convert(field_schema),
                required=field_name in required,
            )
        extra = schema.get("additionalProperties")
        if isinstance(extra, Mapping):
            additional = self.convert(extra)
        elif extra is True:
            additional = PrimitiveType("any")
        return ObjectType(name=name, fields=tuple(fields.values()), additional=additional, nullable=nullable)

    def _deref(self, value: object) -> object:
        seen: set[str] = set()
        while isinstance(value, Mapping) and "$ref" in value:
            ref = value["$ref"]
            if not isinstance(ref, str):
                raise SpecError("$ref must be a string")
            if ref in seen:
                raise SpecError(f"Circular $ref: {ref}")
            seen.add(ref)
            value = self._resolve(ref)
        return value

    def _resolve(self, ref: str) -> object:
        if not ref.startswith("#"):
            raise SpecError(f"Only local $ref values are supported: {ref}")
        return _resolve_pointer(self.document, ref[1:])


def _tag_and_name(operation: OperationObject) -> tuple[str, str]:
    operation_id = operation.get("operationId") or ""
    tags = operation.get("tags") or []
    if tags:
        tag = str(tags[0])
        prefix = f"{tag}_"
        return tag, operation_id[len(prefix) :] if operation_id.startswith(prefix) else operation_id
    if "_" in operation_id:
        tag, _, name = operation_id.partition("_")
        return tag, name
    return "", operation_id


def _schema_name(ref: str) -> str | None:
    for prefix in _SCHEMA_PREFIXES:
        if ref.startswith(prefix):
            name = ref[len(prefix) :]
            if "/" not in name:
                return name.replace("~1", "/").replace("~0", "~")
    return None


def _schema_type(schema: SchemaObject) -> str | None:
    value = schema.get("type")
    if isinstance(value, list):
        types = [item for item in value if item != "null"]
        return types[0] if len(types) == 1 else None
    return value


def _is_nullable(schema: SchemaObject) -> bool:
    value = schema.get("type")
    return bool(
        schema.get("nullable") or schema.get("x-nullable") or (isinstance(value, list) and "null" in value)
    )


def _is_null_schema(schema: SchemaObject) -> bool:
    return isinstance(schema, Mapping) and schema.get("type") == "null"


def _with_nullable(type_: TypeReference) -> TypeReference:
    if type_.nullable:
        return type_
    return replace(type_, nullable=True)


def _has_json(content: Mapping[str, MediaTypeObject]) -> bool:
    return any(_is_json(media_type) for media_type in content)


def _is_json(media_type: str) -> bool:
    base = media_type.split(";", 1)[0].strip().lower()
    return base in _JSON_MEDIA_TYPES or base.endswith("+json")


def _media_schema(content: Mapping[str, MediaTypeObject]) -> SchemaObject | None:
    for media_type, media in content.items():
        if _is_json(media_type):
            return media.get("schema")
    for media in content.values():
        return media.get("schema")
    return None


def _first_line(text: str | None) -> str | None:
    if not text:
        return None
    return text.strip().splitlines()[0] if text.strip() else None


def _resolve_pointer(document: OpenAPIDocument, fragment: str) -> object:
    """Resolve a JSON pointer fragment within a document.

    Raises:
        SpecError: If the pointer cannot be resolved
    """
    if fragment in {"", "/"}:
        return document
    pointer = fragment[1:] if fragment.startswith("/") else fragment
    current: object = document
    for part in pointer.split("/"):
        key = part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            raise SpecError(f"Unresolvable $ref pointer: #{fragment}")
    return current
