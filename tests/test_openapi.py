from __future__ import annotations

import logging

import pytest

from clientforge.document import ArrayType, EnumType, ObjectType, PrimitiveType, UnknownType
from clientforge.errors import SpecError
from clientforge.openapi import DocumentBuilder, build_document


def _document(paths: dict[str, object], schemas: dict[str, object] | None = None) -> dict[str, object]:
    document: dict[str, object] = {"openapi": "3.0.3", "info": {"title": "Test", "version": "1"}, "paths": paths}
    if schemas is not None:
        document["components"] = {"schemas": schemas}
    return document


def _json(schema: dict[str, object]) -> dict[str, object]:
    return {"content": {"application/json": {"schema": schema}}}


class TestBuildDocument:
    def test_operations_follow_path_and_method_order(self) -> None:
        document = build_document(
            _document(
                {
                    "/b": {
                        "post": {"operationId": "CreateB", "tags": ["B"], "responses": {}},
                        "get": {"operationId": "ListB", "tags": ["B"], "responses": {}},
                    },
                    "/a": {"get": {"operationId": "GetA", "tags": ["A"], "responses": {}}},
                }
            )
        )
        assert [(op.tag, op.name, op.method) for op in document.operations] == [
            ("B", "ListB", "get"),
            ("B", "CreateB", "post"),
            ("A", "GetA", "get"),
        ]
        assert document.title == "Test"

    def test_tag_prefix_is_stripped_from_operation_id(self) -> None:
        document = build_document(
            _document({"/people": {"get": {"operationId": "Bar_GetPeople", "tags": ["Bar"], "responses": {}}}})
        )
        (operation,) = document.operations
        assert (operation.tag, operation.name) == ("Bar", "GetPeople")

    def test_parameters(self, caplog: pytest.LogCaptureFixture) -> None:
        path_item = {
            "parameters": [{"name": "id", "in": "path", "schema": {"type": "integer"}}],
            "get": {
                "operationId": "GetPerson",
                "tags": ["Foo"],
                "parameters": [
                    {"name": "override", "in": "query", "schema": {"type": "boolean", "default": False}},
                    {"name": "X-Trace", "in": "header", "required": True, "schema": {"type": "string"}},
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                ],
                "responses": {},
            },
        }
        with caplog.at_level(logging.WARNING, logger="clientforge"):
            document = build_document(_document({"/people/{id}": path_item}))
        parameters = {param.name: param for param in document.operations[0].parameters}
        assert list(parameters) == ["id", "override", "X-Trace"]
        assert parameters["id"].required is True
        assert parameters["override"].default is False
        assert parameters["X-Trace"].location == "header"
        assert "session" in caplog.text

    def test_request_body(self) -> None:
        operation = {
            "operationId": "GetPeople",
            "requestBody": {"x-name": "names", "required": True, **_json({"type": "array", "items": {"type": "string"}})},
            "responses": {},
        }
        document = build_document(_document({"/people/search": {"post": operation}}))
        (body,) = document.operations[0].parameters
        assert body.name == "names"
        assert body.location == "body"
        assert body.required is True
        assert body.type == ArrayType(PrimitiveType("string"))

    def test_binary_request_body(self) -> None:
        operation = {
            "operationId": "Upload",
            "requestBody": {"content": {"application/octet-stream": {"schema": {"type": "string"}}}},
            "responses": {},
        }
        document = build_document(_document({"/files": {"put": operation}}))
        (body,) = document.operations[0].parameters
        assert body.name == "body"
        assert body.type == PrimitiveType("binary")

    def test_responses(self) -> None:
        operation = {
            "operationId": "GetPerson",
            "summary": "Get a person.",
            "deprecated": True,
            "responses": {
                "200": {"description": "OK", **_json({"$ref": "#/components/schemas/Person"})},
                "204": {"description": "No content"},
                "4xx": {"description": "Client error"},
                "default": {"description": "Failure", **_json({"type": "string"})},
            },
        }
        schemas = {"Person": {"type": "object", "properties": {"name": {"type": "string"}}}}
        document = build_document(_document({"/person": {"get": operation}}, schemas))
        (op,) = document.operations
        assert [response.status for response in op.responses] == ["200", "204", "4XX", "default"]
        assert isinstance(op.responses[0].type, ObjectType)
        assert op.responses[0].type.name == "Person"
        assert op.responses[1].type is None
        assert op.summary == "Get a person."
        assert op.deprecated is True

    def test_swagger_response_schema(self) -> None:
        document = build_document(
            {
                "swagger": "2.0",
                "paths": {
                    "/names": {
                        "get": {
                            "operationId": "ListNames",
                            "responses": {
                                "200": {
                                    "description": "OK",
                                    "x-nullable": True,
                                    "schema": {"type": "array", "items": {"type": "string"}},
                                }
                            },
                        }
                    }
                },
            }
        )
        (response,) = document.operations[0].responses
        assert response.type == ArrayType(PrimitiveType("string"))
        assert response.nullable is True

    def test_summary_falls_back_to_first_description_line(self) -> None:
        operation = {"operationId": "Ping", "description": "Ping the server.\n\nMore text.", "responses": {}}
        document = build_document(_document({"/ping": {"get": operation}}))
        assert document.operations[0].summary == "Ping the server."

    def test_unresolvable_ref_raises(self) -> None:
        operation = {"operationId": "Get", "responses": {"200": _json({"$ref": "#/components/schemas/Missing"})}}
        with pytest.raises(SpecError, match="Unresolvable"):
            build_document(_document({"/x": {"get": operation}}, {}))

    def test_remote_ref_raises(self) -> None:
        operation = {"operationId": "Get", "responses": {"200": _json({"$ref": "other.yaml#/Person"})}}
        with pytest.raises(SpecError, match="Only local"):
            build_document(_document({"/x": {"get": operation}}))

    def test_invalid_paths_raise(self) -> None:
        with pytest.raises(SpecError, match="'paths' must be an object"):
            build_document({"openapi": "3.0.3", "paths": []})


class TestConvert:
    @pytest.fixture
    def builder(self) -> DocumentBuilder:
        schemas = {
            "Node": {
                "type": "object",
                "properties": {
                    "value": {"type": "integer"},
                    "children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}},
                },
            },
            "Color": {"type": "string", "enum": ["red", "green", None]},
            "Named": {"type": "object", "required": ["name"], "properties": {"name": {"type": "string"}}},
        }
        return DocumentBuilder(_document({}, schemas))  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            pytest.param({"type": "string"}, PrimitiveType("string"), id="string"),
            pytest.param({"type": "string", "format": "binary"}, PrimitiveType("binary"), id="binary"),
            pytest.param({"type": "integer", "nullable": True}, PrimitiveType("integer", nullable=True), id="nullable"),
            pytest.param({"type": ["number", "null"]}, PrimitiveType("number", nullable=True), id="type-list"),
            pytest.param({}, PrimitiveType("any"), id="untyped"),
            pytest.param(
                {"anyOf": [{"type": "string"}, {"type": "null"}]},
                PrimitiveType("string", nullable=True),
                id="nullable-union",
            ),
            pytest.param(
                {"type": "array", "items": {"type": "boolean"}},
                ArrayType(PrimitiveType("boolean")),
                id="array",
            ),
        ],
    )
    def test_inline_schemas(self, builder: DocumentBuilder, schema: dict[str, object], expected: object) -> None:
        assert builder.convert(schema) == expected

    def test_unions_become_unknown(self, builder: DocumentBuilder) -> None:
        assert isinstance(builder.convert({"oneOf": [{"type": "string"}, {"type": "integer"}]}), UnknownType)

    def test_named_enum(self, builder: DocumentBuilder) -> None:
        color = builder.convert({"$ref": "#/components/schemas/Color"})
        assert color == EnumType(name="Color", members=("red", "green"), nullable=True)

    def test_recursive_reference_yields_stub(self, builder: DocumentBuilder) -> None:
        node = builder.convert({"$ref": "#/components/schemas/Node"})
        assert isinstance(node, ObjectType)
        assert node.name == "Node"
        children = node.fields[1].type
        assert isinstance(children, ArrayType)
        assert children.element == ObjectType(name="Node")

    def test_named_schemas_are_cached(self, builder: DocumentBuilder) -> None:
        first = builder.convert({"$ref": "#/components/schemas/Named"})
        assert builder.convert({"$ref": "#/components/schemas/Named"}) is first

    def test_all_of_merges_fields(self, builder: DocumentBuilder) -> None:
        merged = builder.convert(
            {
                "allOf": [{"$ref": "#/components/schemas/Named"}],
                "properties": {"age": {"type": "integer"}},
            }
        )
        assert isinstance(merged, ObjectType)
        assert [(item.name, item.required) for item in merged.fields] == [("name", True), ("age", False)]

    def test_nullable_reference(self, builder: DocumentBuilder) -> None:
        named = builder.convert({"$ref": "#/components/schemas/Named", "nullable": True})
        assert named.nullable is True
