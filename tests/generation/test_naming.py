from __future__ import annotations

import keyword

import pytest

from clientforge.generation.naming import (
    BODY_BUILTINS,
    CLIENT_MEMBERS,
    METHOD_LOCALS,
    MODULE_NAMES,
    is_reserved,
    operation_name,
    sanitize,
)


class TestSanitize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            pytest.param("override", "override_", id="imported-decorator"),
            pytest.param("class", "class_", id="keyword"),
            pytest.param("self", "self_", id="self"),
            pytest.param("url_", "url__", id="method-local"),
            pytest.param("json", "json_", id="module-name"),
            pytest.param("str", "str_", id="builtin-str"),
            pytest.param("list", "list_", id="builtin-list"),
            pytest.param("dict", "dict_", id="builtin-dict"),
            pytest.param("userId", "user_id", id="camel-case"),
            pytest.param("X-Request-Id", "x_request_id", id="header-name"),
            pytest.param("page[size]", "page_size_", id="brackets"),
            pytest.param("2fa", "_2fa", id="leading-digit"),
            pytest.param("", "value", id="empty"),
        ],
    )
    def test_parameter_names(self, raw: str, expected: str) -> None:
        assert sanitize(raw, "parameter") == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            pytest.param("GetPerson", "get_person", id="pascal-case"),
            pytest.param("HTTPStatus", "http_status", id="acronym"),
            pytest.param("aclose", "aclose_", id="client-member"),
            pytest.param("_transport", "_transport_", id="transport-attribute"),
            pytest.param("import", "import_", id="keyword"),
        ],
    )
    def test_method_names(self, raw: str, expected: str) -> None:
        assert sanitize(raw, "method") == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            pytest.param("person-dto", "PersonDto", id="dashes"),
            pytest.param("Person", "Person", id="unchanged"),
            pytest.param("ApiException", "ApiExceptionModel", id="support-type"),
            pytest.param("Mapping", "MappingModel", id="typing-name"),
            pytest.param("None", "NoneModel", id="keyword"),
            pytest.param("1stPlace", "Model1stPlace", id="leading-digit"),
        ],
    )
    def test_type_names(self, raw: str, expected: str) -> None:
        assert sanitize(raw, "type") == expected

    @pytest.mark.parametrize(
        "raw",
        ["override", "class", "GetPeople", "X-Request-Id", "2fa", "", "a__b", "__init__", "self_", "HTTPStatus"],
    )
    @pytest.mark.parametrize("role", ["parameter", "method", "type"])
    def test_is_idempotent(self, raw: str, role: str) -> None:
        once = sanitize(raw, role)  # type: ignore[arg-type]
        assert sanitize(once, role) == once  # type: ignore[arg-type]

    @pytest.mark.parametrize("raw", ["from", "override", "json", "self", "response_", "str", "list"])
    def test_result_is_a_free_identifier(self, raw: str) -> None:
        name = sanitize(raw, "parameter")
        assert name.isidentifier()
        assert not keyword.iskeyword(name)
        assert name not in MODULE_NAMES
        assert name not in METHOD_LOCALS
        assert name not in BODY_BUILTINS


class TestIsReserved:
    def test_roles_have_separate_reserved_sets(self) -> None:
        assert is_reserved("override", "parameter")
        assert is_reserved("base_url", "method")
        assert not is_reserved("base_url", "parameter")
        assert all(is_reserved(name, "method") for name in CLIENT_MEMBERS)


class TestOperationName:
    def test_builds_pascal_case_from_method_and_path(self) -> None:
        assert operation_name("get", "/users/{id}") == "GetUsersId"
        assert operation_name("post", "/pets") == "PostPets"
