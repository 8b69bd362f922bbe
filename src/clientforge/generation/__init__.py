from .assembler import assemble
from .compiler import compile_operation
from .descriptors import (
    ClassDescriptor,
    MethodDescriptor,
    RequestStrategy,
    ResponseStrategy,
    SupportType,
)
from .emitter import emit
from .naming import sanitize
from .profile import GenerationProfile
from .types import TypeMapper

__all__ = [
    "ClassDescriptor",
    "GenerationProfile",
    "MethodDescriptor",
    "RequestStrategy",
    "ResponseStrategy",
    "SupportType",
    "TypeMapper",
    "assemble",
    "compile_operation",
    "emit",
    "sanitize",
]
