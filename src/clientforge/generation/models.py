from __future__ import annotations

from collections.abc import Iterable

from ..document import ArrayType, EnumType, GenericType, ObjectType, TypeReference
from ..errors import NameCollisionError
from .descriptors import ModelDescriptor, ModelField
from .naming import sanitize
from .profile import GenerationProfile
from .types import OPAQUE, RESPONSE, TypeExpression, TypeForm, TypeMapper, render_type


def collect_models(
    references: Iterable[TypeReference | None],
    mapper: TypeMapper,
) -> tuple[ModelDescriptor, ...]:
    """Collect declarations for the named types reachable from the given references.

    Models are returned in first-reference order. A name-only stub (as produced for
    recursive references) is replaced by a later full declaration of the same name.
    """
    found: dict[str, ModelDescriptor] = {}
    for reference in references:
        _walk(reference, mapper, found)
    return tuple(found.values())


def check_model_names(models: Iterable[ModelDescriptor], taken: dict[str, str]) -> None:
    """Raise NameCollisionError when distinct source names share a generated name.

    Args:
        models: Models to register
        taken: Generated name -> source name of everything registered so far (updated)
    """
    for model in models:
        source = taken.setdefault(model.name, model.source_name)
        if source != model.source_name:
            raise NameCollisionError("type names", model.name, (source, model.source_name))


def render_models(models: Iterable[ModelDescriptor], profile: GenerationProfile) -> list[str]:
    # Functional TypedDict values are evaluated at import time, so model
    # references are quoted and unions use Optional[...].
    model_profile = GenerationProfile(
        use_future_annotations=profile.use_future_annotations,
        use_pep604=False,
        use_typing_extensions=profile.use_typing_extensions,
        use_typing_override=profile.use_typing_override,
    )
    lines: list[str] = []
    for model in models:
        if model.is_enum:
            literals = ", ".join(repr(value) for value in model.literals)
            lines.extend([f"{model.name} = Literal[{literals}]", "", ""])
            continue
        if model.alias is not None:
            alias = render_type(model.alias, model_profile, quote_models=True)
            lines.extend([f"{model.name} = {alias}", "", ""])
            continue
        lines.extend([f"{model.name} = TypedDict(", f"    {model.name!r},", "    {"])
        for item in model.fields:
            field_type = render_type(item.type, model_profile, quote_models=True)
            if item.required:
                field_type = f"Required[{field_type}]"
            lines.append(f"        {item.name!r}: {field_type},")
        lines.extend(["    },", "    total=False,", ")", "", ""])
    return lines


def _walk(
    reference: TypeReference | None,
    mapper: TypeMapper,
    found: dict[str, ModelDescriptor],
) -> None:
    if reference is None:
        return
    if isinstance(reference, ArrayType):
        _walk(reference.element, mapper, found)
    elif isinstance(reference, GenericType):
        _walk(reference.argument, mapper, found)
    elif isinstance(reference, EnumType) and reference.name:
        name = sanitize(reference.name, "type")
        _check_source(found.get(name), name, reference.name)
        if name not in found:
            found[name] = ModelDescriptor(
                name=name,
                source_name=reference.name,
                literals=tuple(dict.fromkeys(reference.members)),
                is_enum=True,
            )
    elif isinstance(reference, ObjectType):
        if reference.name:
            name = sanitize(reference.name, "type")
            existing = found.get(name)
            _check_source(existing, name, reference.name)
            if existing is not None and (existing.fields or not reference.fields):
                return
            found[name] = _object_model(name, reference, mapper)
        for item in reference.fields:
            _walk(item.type, mapper, found)
        _walk(reference.additional, mapper, found)


def _check_source(existing: ModelDescriptor | None, name: str, source_name: str) -> None:
    if existing is not None and existing.source_name != source_name:
        raise NameCollisionError("type names", name, (existing.source_name, source_name))


def _object_model(name: str, reference: ObjectType, mapper: TypeMapper) -> ModelDescriptor:
    assert reference.name is not None
    if not reference.fields:
        additional = mapper.map(reference.additional, RESPONSE) if reference.additional is not None else None
        value = additional if additional is not None else OPAQUE
        return ModelDescriptor(
            name=name,
            source_name=reference.name,
            alias=TypeExpression(TypeForm.MAPPING, arguments=(value,)),
        )
    return ModelDescriptor(
        name=name,
        source_name=reference.name,
        fields=tuple(
            ModelField(name=item.name, type=mapper.map(item.type, RESPONSE), required=item.required)
            for item in reference.fields
        ),
    )
