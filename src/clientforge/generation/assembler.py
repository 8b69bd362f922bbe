"""Client surface assembly.

``assemble`` groups compiled methods by tag into :class:`ClassDescriptor`
values. Tags keep the order in which they first appear in the document and
methods keep document order within their tag, whether or not operations were
compiled on worker threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from ..document import ApiDocument, Operation
from ..errors import GenerationCancelled, NameCollisionError
from .compiler import compile_operation, method_keys
from .descriptors import ClassDescriptor, ConstructorShape, MethodDescriptor, ModelDescriptor, TransportMode
from .models import check_model_names
from .types import TypeMapper

if TYPE_CHECKING:
    from ..settings import ClientSettings

logger = logging.getLogger(__name__)

DEFAULT_TRANSPORT_TYPE = "httpx.AsyncClient"
INTERFACE_SUFFIX = "Protocol"


def assemble(
    document: ApiDocument,
    settings: ClientSettings,
    *,
    max_workers: int | None = None,
    cancelled: Callable[[], bool] | None = None,
) -> list[ClassDescriptor]:
    """Compile every operation and group the results into client descriptors.

    Args:
        document: The API document
        settings: Client generation settings
        max_workers: Compile operations on a thread pool of this size when greater than 1
        cancelled: Checked before each operation is compiled

    Returns:
        One ClassDescriptor per tag, in order of first appearance

    Raises:
        NameCollisionError: If generated method, parameter, class or model names collide
        GenerationCancelled: If ``cancelled`` returned True
    """
    mapper = TypeMapper()
    operations = list(document.operations)
    _warn_unmatched_keys(operations, settings)

    def compile_one(operation: Operation) -> MethodDescriptor:
        if cancelled is not None and cancelled():
            raise GenerationCancelled(f"Generation cancelled before compiling {operation.method} {operation.path}")
        return compile_operation(operation, settings, mapper)

    if max_workers is not None and max_workers > 1 and len(operations) > 1:
        logger.debug("Compiling %d operations on %d workers", len(operations), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            methods = list(executor.map(compile_one, operations))
    else:
        methods = [compile_one(operation) for operation in operations]

    grouped: dict[str, list[tuple[Operation, MethodDescriptor]]] = {}
    for operation, method in zip(operations, methods):
        grouped.setdefault(operation.tag, []).append((operation, method))

    constructor = constructor_shape(settings)
    classes: list[ClassDescriptor] = []
    type_names: dict[str, str] = {}
    for tag, members in grouped.items():
        class_name = settings.class_name(tag)
        _check_methods(class_name, members)
        descriptor = ClassDescriptor(
            tag=tag,
            class_name=class_name,
            interface_name=f"{class_name}{INTERFACE_SUFFIX}",
            methods=tuple(method for _, method in members),
            base_class=settings.base_class_name,
            base_interface=settings.base_interface_name,
            constructor=constructor,
            generate_class=settings.generate_classes,
            emit_class=settings.generate_classes and not settings.suppress_class_output,
            generate_interface=settings.generate_interfaces,
            emit_interface=settings.generate_interfaces and not settings.suppress_interface_output,
        )
        _register(type_names, descriptor.class_name, f"client {tag!r}")
        _register(type_names, descriptor.interface_name, f"client {tag!r}")
        classes.append(descriptor)
        logger.debug("Assembled %s with %d methods", class_name, len(descriptor.methods))

    if settings.generate_models:
        models: dict[str, ModelDescriptor] = {}
        for descriptor in classes:
            for model in descriptor.models:
                models.setdefault(model.name, model)
        check_model_names(models.values(), dict(type_names))
    return classes


def constructor_shape(settings: ClientSettings) -> ConstructorShape:
    configuration = settings.configuration_class_name
    has_base = settings.base_class_name is not None
    return ConstructorShape(
        configuration_type=configuration,
        forward_configuration=configuration is not None and has_base,
        call_base=configuration is None and has_base,
        transport=TransportMode.INJECTED if settings.inject_transport else TransportMode.OWNED,
        transport_type=settings.custom_transport_type_name or DEFAULT_TRANSPORT_TYPE,
    )


def _check_methods(class_name: str, members: list[tuple[Operation, MethodDescriptor]]) -> None:
    sources: dict[str, str] = {}
    for _, method in members:
        if method.name in sources:
            raise NameCollisionError(f"methods of {class_name}", method.name, (sources[method.name], method.operation_name))
        sources[method.name] = method.operation_name


def _register(taken: dict[str, str], name: str, source: str) -> None:
    existing = taken.setdefault(name, source)
    if existing != source:
        raise NameCollisionError("client names", name, (existing, source))


def _warn_unmatched_keys(operations: list[Operation], settings: ClientSettings) -> None:
    known: set[tuple[str, str]] = set()
    for operation in operations:
        known |= method_keys(operation, settings)
    configured = (
        ("large_array_response_methods", settings.large_array_response_methods),
        ("large_array_request_methods", settings.large_array_request_methods),
        ("wrap_response_methods", settings.wrap_response_methods),
    )
    for option, keys in configured:
        for key in sorted(keys, key=str):
            if key.normalized not in known:
                logger.warning("%s lists %s, which matches no operation", option, key)
