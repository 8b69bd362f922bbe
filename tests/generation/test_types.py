from __future__ import annotations

import pytest

from clientforge.document import (
    ArrayType,
    EnumType,
    GenericType,
    ObjectType,
    PrimitiveType,
    TypeReference,
    UnknownType,
)
from clientforge.generation.profile import GenerationProfile
from clientforge.generation.types import (
    BODY,
    PARAMETER,
    RESPONSE,
    TypeContext,
    TypeForm,
    TypeMapper,
    Usage,
    render_type,
)

PEP604 = GenerationProfile.from_version("3.10")
LEGACY = GenerationProfile.from_version("3.9")


def _render(reference: TypeReference, context: TypeContext = RESPONSE, profile: GenerationProfile = PEP604) -> str:
    return render_type(TypeMapper().map(reference, context), profile)


class TestTypeMapper:
    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            pytest.param(PrimitiveType("string"), "str", id="string"),
            pytest.param(PrimitiveType("integer"), "int", id="integer"),
            pytest.param(PrimitiveType("number"), "float", id="number"),
            pytest.param(PrimitiveType("boolean"), "bool", id="boolean"),
            pytest.param(PrimitiveType("binary"), "bytes", id="binary"),
            pytest.param(PrimitiveType("any"), "Any", id="any"),
            pytest.param(ArrayType(PrimitiveType("string")), "list[str]", id="array"),
            pytest.param(ObjectType(name="person-dto"), "PersonDto", id="named-object"),
            pytest.param(ObjectType(name=None, additional=PrimitiveType("integer")), "dict[str, int]", id="map"),
            pytest.param(ObjectType(name=None), "dict[str, Any]", id="inline-object"),
            pytest.param(EnumType(name=None, members=("a", "b")), "Literal['a', 'b']", id="inline-enum"),
            pytest.param(GenericType("List", PrimitiveType("integer")), "list[int]", id="list-generic"),
            pytest.param(GenericType("Dictionary", PrimitiveType("string")), "dict[str, str]", id="dict-generic"),
            pytest.param(GenericType("Page", ObjectType(name="Person")), "Page[Person]", id="other-generic"),
            pytest.param(UnknownType("oneOf union"), "Any", id="unknown"),
        ],
    )
    def test_maps_reference(self, reference: TypeReference, expected: str) -> None:
        assert _render(reference) == expected

    def test_preserves_nullability(self) -> None:
        assert _render(PrimitiveType("string", nullable=True)) == "str | None"
        assert _render(PrimitiveType("string", nullable=True), profile=LEGACY) == "Optional[str]"
        assert _render(ArrayType(PrimitiveType("integer", nullable=True), nullable=True)) == "list[int | None] | None"

    def test_opaque_type_is_never_optional(self) -> None:
        assert _render(UnknownType(nullable=True)) == "Any"

    def test_streams_response_arrays_only_when_enabled(self) -> None:
        reference = ArrayType(PrimitiveType("string"))
        streamed = TypeContext(Usage.RESPONSE, stream_response=True)
        assert _render(reference, RESPONSE) == "list[str]"
        assert _render(reference, streamed) == "AsyncIterator[str]"
        assert _render(reference, TypeContext(Usage.PARAMETER, stream_response=True)) == "list[str]"

    def test_produces_request_bodies_only_when_enabled(self) -> None:
        reference = ArrayType(ObjectType(name="Person"))
        assert _render(reference, BODY) == "list[Person]"
        assert _render(reference, TypeContext(Usage.BODY, stream_request=True)) == "AsyncIterable[Person]"
        assert _render(reference, PARAMETER) == "list[Person]"

    def test_streaming_applies_to_outermost_array(self) -> None:
        reference = ArrayType(ArrayType(PrimitiveType("integer")))
        streamed = TypeContext(Usage.RESPONSE, stream_response=True)
        assert _render(reference, streamed) == "AsyncIterator[list[int]]"

    def test_non_streamable_array_stays_a_list(self) -> None:
        reference = ArrayType(PrimitiveType("integer"), streamable=False)
        streamed = TypeContext(Usage.RESPONSE, stream_response=True)
        assert _render(reference, streamed) == "list[int]"
        assert not TypeMapper().is_streamable(reference)

    def test_marks_named_types_as_models(self) -> None:
        expression = TypeMapper().map(ObjectType(name="Person"), RESPONSE)
        assert expression.form is TypeForm.NAMED
        assert expression.model
        assert render_type(expression, PEP604, quote_models=True) == "'Person'"

    def test_quoted_models_use_optional(self) -> None:
        expression = TypeMapper().map(ObjectType(name="Person", nullable=True), RESPONSE)
        assert render_type(expression, PEP604, quote_models=True) == "Optional['Person']"
