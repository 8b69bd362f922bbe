"""Client generation settings.

``ClientSettings`` is immutable and passed explicitly through every stage of the
pipeline. Per-method option sets are parsed eagerly into :class:`MethodKey`
values so that compilation never inspects raw "Client.Method" strings.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields

from .errors import SettingsError
from .generation.naming import sanitize
from .generation.profile import GenerationProfile

_QUALIFIED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_VERSION = re.compile(r"^3\.\d+$")

_CAMEL_CASE_ALIASES = {
    "classNameTemplate": "class_name_template",
    "configurationClassName": "configuration_class_name",
    "baseClassName": "base_class_name",
    "baseInterfaceName": "base_interface_name",
    "injectTransport": "inject_transport",
    "customTransportTypeName": "custom_transport_type_name",
    "useRequestFactoryMethod": "use_request_factory_method",
    "largeArrayResponseMethods": "large_array_response_methods",
    "largeArrayRequestMethods": "large_array_request_methods",
    "wrapResponses": "wrap_responses",
    "wrapResponseMethods": "wrap_response_methods",
    "generateClasses": "generate_classes",
    "suppressClassOutput": "suppress_class_output",
    "generateInterfaces": "generate_interfaces",
    "suppressInterfaceOutput": "suppress_interface_output",
    "generateModels": "generate_models",
    "additionalImports": "additional_imports",
    "targetPython": "target_python",
}

_METHOD_SET_FIELDS = ("large_array_response_methods", "large_array_request_methods", "wrap_response_methods")
_TYPE_NAME_FIELDS = (
    "configuration_class_name",
    "base_class_name",
    "base_interface_name",
    "custom_transport_type_name",
)
_BOOL_FIELDS = (
    "inject_transport",
    "use_request_factory_method",
    "wrap_responses",
    "generate_classes",
    "suppress_class_output",
    "generate_interfaces",
    "suppress_interface_output",
    "generate_models",
)


@dataclass(frozen=True)
class MethodKey:
    """A structured ``Client.Method`` reference.

    ``client`` may name either the tag ("Bar") or the generated class ("BarClient").
    Both parts are compared in sanitized form, so "Bar.GetPeople" and
    "BarClient.get_people" address the same operation.
    """

    client: str
    method: str

    @classmethod
    def parse(cls, value: str) -> "MethodKey":
        client, sep, method = value.strip().rpartition(".")
        if not sep or not client or not method:
            raise SettingsError(f"Method reference must have the form 'Client.Method': {value!r}")
        return cls(client=client, method=method)

    @property
    def normalized(self) -> tuple[str, str]:
        return sanitize(self.client, "type"), sanitize(self.method, "method")

    def __str__(self) -> str:
        return f"{self.client}.{self.method}"


@dataclass(frozen=True)
class ClientSettings:
    """Options controlling the shape of the generated client module.

    Attributes:
        class_name_template: Client class name pattern; "{tag}" is replaced by the tag
        configuration_class_name: When set, the constructor takes an instance of this type
        base_class_name: Base class of every generated client class
        base_interface_name: Base interface of every generated client interface
        inject_transport: Whether the constructor accepts an ``httpx.AsyncClient``
        custom_transport_type_name: Transport type constructed when not injected
        use_request_factory_method: Build requests through ``create_http_request_async``
        large_array_response_methods: Methods whose array response is streamed
        large_array_request_methods: Methods whose array body is streamed
        wrap_responses: Return ``ApiResponse`` wrappers with status and headers
        wrap_response_methods: Restricts ``wrap_responses`` to these methods when non-empty
        generate_classes: Build client classes
        suppress_class_output: Build client classes but leave them out of the output
        generate_interfaces: Build client interfaces (``Protocol`` classes)
        suppress_interface_output: Build client interfaces but leave them out of the output
        generate_models: Emit declarations for named object and enum types
        additional_imports: Import lines added verbatim to the module header
        target_python: Python version the generated module targets
    """

    class_name_template: str = "{tag}Client"
    configuration_class_name: str | None = None
    base_class_name: str | None = None
    base_interface_name: str | None = None
    inject_transport: bool = True
    custom_transport_type_name: str | None = None
    use_request_factory_method: bool = False
    large_array_response_methods: frozenset[MethodKey] = field(default_factory=frozenset)
    large_array_request_methods: frozenset[MethodKey] = field(default_factory=frozenset)
    wrap_responses: bool = False
    wrap_response_methods: frozenset[MethodKey] = field(default_factory=frozenset)
    generate_classes: bool = True
    suppress_class_output: bool = False
    generate_interfaces: bool = False
    suppress_interface_output: bool = False
    generate_models: bool = True
    additional_imports: tuple[str, ...] = ()
    target_python: str = "3.10"

    def __post_init__(self) -> None:
        for name in _METHOD_SET_FIELDS:
            keys = frozenset(
                item if isinstance(item, MethodKey) else MethodKey.parse(item) for item in getattr(self, name)
            )
            object.__setattr__(self, name, keys)
        object.__setattr__(self, "additional_imports", tuple(self.additional_imports))
        if "{tag}" not in self.class_name_template:
            raise SettingsError("class_name_template must contain '{tag}'")
        for name in _TYPE_NAME_FIELDS:
            value = getattr(self, name)
            if value is not None and not _QUALIFIED_NAME.match(value):
                raise SettingsError(f"{name} must be a (dotted) Python name: {value!r}")
        if not _VERSION.match(self.target_python):
            raise SettingsError(f"target_python must look like '3.10': {self.target_python!r}")

    @property
    def profile(self) -> GenerationProfile:
        return GenerationProfile.from_version(self.target_python)

    def class_name(self, tag: str) -> str:
        tag_part = sanitize(tag, "type") if tag else ""
        return sanitize(self.class_name_template.replace("{tag}", tag_part), "type")

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "ClientSettings":
        """Build settings from a plain mapping, e.g. a parsed JSON or YAML file.

        Keys may use the snake_case field names or their camelCase equivalents.
        Method sets are given as lists of "Client.Method" strings.

        Raises:
            SettingsError: On unknown keys or values of the wrong type
        """
        known = {item.name for item in fields(cls)}
        values: dict[str, object] = {}
        for raw_key, value in data.items():
            key = _CAMEL_CASE_ALIASES.get(raw_key, raw_key)
            if key not in known:
                raise SettingsError(f"Unknown setting: {raw_key!r}")
            if key in values:
                raise SettingsError(f"Setting given twice: {raw_key!r}")
            values[key] = _convert(key, value)
        return cls(**values)  # type: ignore[arg-type]


def parse_method_keys(values: Iterable[str]) -> frozenset[MethodKey]:
    return frozenset(MethodKey.parse(value) for value in values)


def _convert(key: str, value: object) -> object:
    if key in _METHOD_SET_FIELDS:
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise SettingsError(f"{key} must be a list of 'Client.Method' strings")
        items = list(value)
        if not all(isinstance(item, str) for item in items):
            raise SettingsError(f"{key} must be a list of 'Client.Method' strings")
        return parse_method_keys(items)
    if key in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise SettingsError(f"{key} must be a boolean")
        return value
    if key == "additional_imports":
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise SettingsError("additional_imports must be a list of strings")
        imports = tuple(value)
        if not all(isinstance(item, str) for item in imports):
            raise SettingsError("additional_imports must be a list of strings")
        return imports
    if key in _TYPE_NAME_FIELDS:
        if value is not None and not isinstance(value, str):
            raise SettingsError(f"{key} must be a string")
        return value
    if not isinstance(value, str):
        raise SettingsError(f"{key} must be a string")
    return value
