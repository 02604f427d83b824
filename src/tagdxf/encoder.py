from __future__ import annotations

import logging

from .config import DEFAULT_CONFIG, CodecConfig
from .entities import get_schema
from .entity import Entity
from .errors import MalformedTag, ValidationFailure, VersionError
from .schema import APP_GROUP_CODE, EntitySchema, FieldKind, FieldSlot, Marker, encode_value
from .tags import Tag
from .version import DxfVersion, parse_version

logger = logging.getLogger(__name__)

OMIT_HANDLE = -1


def encode_entity(
    entity: Entity,
    target_version: str | int | DxfVersion,
    *,
    strict: bool = False,
    config: CodecConfig = DEFAULT_CONFIG,
) -> list[Tag]:
    version = parse_version(target_version)
    schema = get_schema(entity.dxftype)
    if not schema.supports(version):
        message = (
            f"{schema.name} has no representation before "
            f"{schema.min_version.release}, target is {version.release}"
        )
        if strict:
            raise VersionError(message, dxftype=schema.name)
        logger.warning("illegal DXF version: %s", message)

    view = _normalized(entity, schema, config)
    for name in schema.required:
        if not view.dxf.get(name):
            raise ValidationFailure(
                f"required field {name} is empty, {schema.name} with id-code "
                f"{view.handle:X} not written",
                field=name,
                dxftype=schema.name,
            )

    tags = [Tag(0, schema.entity_name(version))]
    for item in schema.emission_order():
        if not item.applies_to(version):
            continue
        if isinstance(item, Marker):
            tags.append(Tag(item.group_code, item.value))
            continue
        tags.extend(_encode_slot(item, view, version, config))
    return tags


def _encode_slot(
    slot: FieldSlot, view: Entity, version: DxfVersion, config: CodecConfig
) -> list[Tag]:
    if slot.kind is FieldKind.CHUNK:
        return [
            Tag(slot.group_code, _single_line(view, slot.name, line))
            for line in getattr(view, slot.name)
        ]
    if slot.kind is FieldKind.HANDLE_CHAIN:
        return [
            Tag(node.group_code, _single_line(view, slot.name, node.handle))
            for node in getattr(view, slot.name)
        ]

    value = view.dxf.get(slot.name, slot.initial_value(config))
    if slot.kind is FieldKind.HEX_INT and value == OMIT_HANDLE:
        return []
    if slot.write_guard is not None and not slot.write_guard(view, config, version):
        return []
    try:
        text = encode_value(slot.kind, value, slot.fmt or config.float_format)
    except (TypeError, ValueError) as exc:
        raise MalformedTag(
            f"cannot write {slot.name}={value!r}: {exc}",
            dxftype=view.dxftype,
        ) from exc
    text = _single_line(view, slot.name, text)
    if slot.kind is FieldKind.STRING and len(text) > config.max_string_length:
        logger.warning(
            "%s: %s longer than %d characters, truncated",
            view.dxftype,
            slot.name,
            config.max_string_length,
        )
        text = text[: config.max_string_length]

    tag = Tag(slot.group_code, text)
    if slot.app_group is None:
        return [tag]
    return [Tag(APP_GROUP_CODE, "{" + slot.app_group), tag, Tag(APP_GROUP_CODE, "}")]


def _normalized(entity: Entity, schema: EntitySchema, config: CodecConfig) -> Entity:
    dxf = dict(entity.dxf)
    for slot in schema.slots():
        if slot.default_on_empty and dxf.get(slot.name, "") == "":
            if slot.name in dxf:
                logger.warning(
                    "%s with id-code %X: empty %s, reset to default",
                    schema.name,
                    int(dxf.get("id_code", 0)),
                    slot.name,
                )
            dxf[slot.name] = slot.initial_value(config)
    return Entity(
        dxftype=schema.name,
        dxf=dxf,
        binary_graphics_data=entity.binary_graphics_data,
        object_ids=entity.object_ids,
    )


def _single_line(view: Entity, name: str, text: str) -> str:
    # a line break would end the value line and shift every following tag
    if "\n" in text or "\r" in text:
        raise MalformedTag(
            f"cannot write {name}={text!r}: value contains a line break",
            dxftype=view.dxftype,
        )
    return text
