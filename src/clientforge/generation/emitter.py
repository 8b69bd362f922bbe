"""Client module emission.

The emitter renders :class:`ClassDescriptor` values to the source text of one
client module. It renders what the descriptors say and makes no decisions of
its own: declarations keep document order and each support type appears once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .descriptors import ClassDescriptor, ModelDescriptor, SupportType, TransportMode
from .methods import render_interface_method, render_method
from .models import render_models
from .profile import GenerationProfile
from .support import render_support_types

if TYPE_CHECKING:
    from ..settings import ClientSettings

logger = logging.getLogger(__name__)

_TYPING_NAMES = ("Any", "Generic", "Literal", "Optional", "Protocol", "TypeVar", "Union", "cast")


def emit(classes: Sequence[ClassDescriptor], settings: ClientSettings) -> str:
    """Render the client module for the given descriptors.

    Args:
        classes: Client descriptors in document order
        settings: Client generation settings (profile, imports, model output)

    Returns:
        The module source text
    """
    profile = settings.profile
    declarations: list[list[str]] = []
    emitted: list[ClassDescriptor] = []
    for descriptor in classes:
        interface, cls = render_declarations(descriptor, profile)
        if interface is not None and descriptor.emit_interface:
            declarations.append(interface)
        if cls is not None and descriptor.emit_class:
            declarations.append(cls)
        if descriptor.emit_interface or descriptor.emit_class:
            emitted.append(descriptor)

    required: set[SupportType] = set()
    for descriptor in emitted:
        required |= descriptor.support_types

    lines = render_header(profile, settings.additional_imports)
    if settings.generate_models:
        lines.extend(render_models(_unique_models(emitted), profile))
    for declaration in declarations:
        lines.extend(declaration)
        lines.extend(["", ""])
    lines.extend(render_support_types(required))
    logger.debug(
        "Emitted %d declarations and %d support types",
        len(declarations),
        len(required),
    )
    return "\n".join(lines).rstrip() + "\n"


def render_declarations(
    descriptor: ClassDescriptor,
    profile: GenerationProfile,
) -> tuple[list[str] | None, list[str] | None]:
    """Render the interface and class of a descriptor.

    A declaration that is not generated is returned as None. Suppressed
    declarations are still rendered; :func:`emit` leaves them out.
    """
    interface = render_interface(descriptor, profile) if descriptor.generate_interface else None
    cls = render_class(descriptor, profile) if descriptor.generate_class else None
    return interface, cls


def render_header(profile: GenerationProfile, additional_imports: Sequence[str] = ()) -> list[str]:
    typing_names = set(_TYPING_NAMES)
    extension_names: set[str] = set()
    if profile.use_typing_extensions:
        extension_names.update({"Required", "TypedDict"})
    else:
        typing_names.update({"Required", "TypedDict"})
    if profile.use_typing_override:
        typing_names.add("override")
    else:
        extension_names.add("override")

    lines = ["# ruff: noqa: F401"]
    if profile.use_future_annotations:
        lines.append("from __future__ import annotations")
    lines.extend(
        [
            "",
            "import json",
            "from collections.abc import AsyncIterable, AsyncIterator, Mapping",
            f"from typing import {', '.join(sorted(typing_names, key=_import_order))}",
            "from urllib.parse import quote",
            "",
            "import httpx",
        ]
    )
    if extension_names:
        lines.append(f"from typing_extensions import {', '.join(sorted(extension_names, key=_import_order))}")
    if additional_imports:
        lines.append("")
        lines.extend(additional_imports)
    lines.extend(["", "T = TypeVar('T')", "", ""])
    return lines


def render_interface(descriptor: ClassDescriptor, profile: GenerationProfile) -> list[str]:
    bases = [descriptor.base_interface] if descriptor.base_interface else []
    bases.append("Protocol")
    lines = [f"class {descriptor.interface_name}({', '.join(bases)}):"]
    for index, method in enumerate(descriptor.methods):
        if index:
            lines.append("")
        lines.extend(render_interface_method(method, profile))
    return lines


def render_class(descriptor: ClassDescriptor, profile: GenerationProfile) -> list[str]:
    bases: list[str] = []
    if descriptor.base_class:
        bases.append(descriptor.base_class)
    if descriptor.implements_interface:
        bases.append(descriptor.interface_name)
    header = f"class {descriptor.class_name}({', '.join(bases)}):" if bases else f"class {descriptor.class_name}:"
    lines = [header, "    base_url: str = ''", ""]
    lines.extend(_render_constructor(descriptor))
    for method in descriptor.methods:
        lines.append("")
        lines.extend(render_method(method, profile, override=descriptor.implements_interface))
    return lines


def _render_constructor(descriptor: ClassDescriptor) -> list[str]:
    shape = descriptor.constructor
    parameters = ["self"]
    body: list[str] = []
    if shape.configuration_type is not None:
        parameters.append(f"configuration: {shape.configuration_type}")
        if shape.forward_configuration:
            body.append("        super().__init__(configuration)")
        else:
            body.append("        self.configuration = configuration")
    elif shape.call_base:
        body.append("        super().__init__()")
    if shape.transport is TransportMode.INJECTED:
        parameters.append(f"transport: {shape.transport_type}")
        body.append("        self._transport = transport")
    else:
        body.append(f"        self._transport = {shape.transport_type}()")
    lines = [f"    def __init__({', '.join(parameters)}) -> None:"]
    lines.extend(body)
    if shape.transport is TransportMode.OWNED:
        lines.extend(
            [
                "",
                "    async def aclose(self) -> None:",
                "        await self._transport.aclose()",
                "",
                f"    async def __aenter__(self) -> {descriptor.class_name}:",
                "        return self",
                "",
                "    async def __aexit__(self, *args: Any) -> None:",
                "        await self.aclose()",
            ]
        )
    return lines


def _unique_models(classes: Sequence[ClassDescriptor]) -> list[ModelDescriptor]:
    seen: dict[str, ModelDescriptor] = {}
    for descriptor in classes:
        for model in descriptor.models:
            seen.setdefault(model.name, model)
    return list(seen.values())


def _import_order(name: str) -> tuple[bool, str]:
    # Classes before functions, as isort orders them.
    return (name[:1].islower(), name)
