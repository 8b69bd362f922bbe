from .document import (
    ApiDocument,
    ArrayType,
    EnumType,
    GenericType,
    ObjectField,
    ObjectType,
    Operation,
    Parameter,
    PrimitiveType,
    Response,
    TypeReference,
    UnknownType,
)
from .errors import ClientforgeError, GenerationCancelled, NameCollisionError, SettingsError, SpecError
from .generation import GenerationProfile
from .generator import ClientOutput, generate_client
from .loader import load_document, load_openapi, load_settings
from .openapi import build_document
from .settings import ClientSettings, MethodKey

__all__ = [
    "ApiDocument",
    "ArrayType",
    "ClientOutput",
    "ClientSettings",
    "ClientforgeError",
    "EnumType",
    "GenerationCancelled",
    "GenerationProfile",
    "GenericType",
    "MethodKey",
    "NameCollisionError",
    "ObjectField",
    "ObjectType",
    "Operation",
    "Parameter",
    "PrimitiveType",
    "Response",
    "SettingsError",
    "SpecError",
    "TypeReference",
    "UnknownType",
    "build_document",
    "generate_client",
    "load_document",
    "load_openapi",
    "load_settings",
]
