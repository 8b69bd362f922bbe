"""FastAPI server for integration testing.

This module provides a small People API that matches the OpenAPI document in
openapi.yaml. Requests are served in-process through ``httpx.ASGITransport``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Body, FastAPI, HTTPException, Path, Query, Response
from pydantic import BaseModel


class Person(BaseModel):
    name: str
    age: int | None = None


@dataclass
class PeopleStore:
    """In-memory people store for testing."""

    people: dict[int, Person] = field(default_factory=dict)

    def reset(self) -> None:
        self.people = {
            1: Person(name="Alice", age=31),
            2: Person(name="Bob"),
            3: Person(name="Carol", age=45),
        }

    def search(self, names: list[str]) -> list[Person]:
        wanted = set(names)
        return [person for person in self.people.values() if person.name in wanted]


# Global store instance
store = PeopleStore()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="People API", version="1.0.0")

    @app.get("/people/nobody")
    def get_nobody() -> Response:
        return Response(content="null", media_type="application/json")

    @app.get("/people/garbled")
    def get_garbled() -> Response:
        return Response(content="<html>Person</html>", media_type="text/html")

    @app.get("/people/missing")
    def get_missing_people() -> Response:
        return Response(content="null", media_type="application/json")

    @app.get("/people/{person_id}/greeting")
    def get_greeting(person_id: Annotated[int, Path()], greeting: Annotated[str, Query(alias="str")]) -> str:
        return f"{greeting} {store.people[person_id].name}"

    @app.get("/people/{person_id}", response_model=Person)
    def get_person(
        person_id: Annotated[int, Path()],
        override: Annotated[bool, Query()] = False,
    ) -> Person:
        person = store.people.get(person_id)
        if person is None:
            raise HTTPException(status_code=404, detail=f"Person {person_id} not found")
        if override:
            return Person(name=person.name.upper(), age=person.age)
        return person

    @app.post("/people/search", response_model=list[Person])
    def get_people(names: Annotated[list[str], Body()]) -> list[Person]:
        return store.search(names)

    @app.post("/people/count")
    def count_people(names: Annotated[list[str] | None, Body()] = None) -> int:
        return len(names) if names is not None else 0

    @app.get("/broken")
    def get_broken() -> Response:
        return Response(content="<html>Internal Server Error</html>", status_code=500, media_type="text/html")

    @app.get("/teapot")
    def brew() -> Response:
        return Response(content='"I am a teapot"', status_code=418, media_type="application/json")

    return app


app = create_app()
