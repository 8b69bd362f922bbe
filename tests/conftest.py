from __future__ import annotations

import pytest

from clientforge import (
    ApiDocument,
    ArrayType,
    ObjectField,
    ObjectType,
    Operation,
    Parameter,
    PrimitiveType,
    Response,
)

PERSON = ObjectType(
    name="Person",
    fields=(
        ObjectField("name", PrimitiveType("string"), required=True),
        ObjectField("age", PrimitiveType("integer", nullable=True)),
    ),
)


@pytest.fixture()
def minimal_openapi_document() -> dict[str, object]:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Example", "version": "1.0.0"},
        "paths": {},
    }


@pytest.fixture()
def get_person() -> Operation:
    return Operation(
        tag="Foo",
        name="GetPerson",
        method="get",
        path="/people/{id}",
        parameters=[
            Parameter("id", "path", PrimitiveType("integer"), required=True),
            Parameter("override", "query", PrimitiveType("boolean"), default=False),
        ],
        responses=[
            Response("200", PERSON),
            Response("404", PrimitiveType("string"), description="Person not found"),
        ],
    )


@pytest.fixture()
def get_people() -> Operation:
    return Operation(
        tag="Bar",
        name="GetPeople",
        method="post",
        path="/people/search",
        parameters=[Parameter("names", "body", ArrayType(PrimitiveType("string")), required=True)],
        responses=[Response("200", ArrayType(PERSON))],
    )


@pytest.fixture()
def people_document(get_person: Operation, get_people: Operation) -> ApiDocument:
    return ApiDocument(operations=[get_person, get_people], title="People")
