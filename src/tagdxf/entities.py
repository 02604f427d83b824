from __future__ import annotations

from typing import Any, Iterable

from .config import CodecConfig
from .entity import Entity
from .schema import EntitySchema, FieldKind, FieldSlot, Guard, Marker
from .version import DxfVersion

R11 = DxfVersion.R11
R13 = DxfVersion.R13
R14 = DxfVersion.R14
R2000 = DxfVersion.R2000
R2002 = DxfVersion.R2002
R2004 = DxfVersion.R2004
R2007 = DxfVersion.R2007
R2008 = DxfVersion.R2008
R2009 = DxfVersion.R2009

INT16 = FieldKind.INT16
INT32 = FieldKind.INT32
UINT32 = FieldKind.UINT32
DOUBLE = FieldKind.DOUBLE
STRING = FieldKind.STRING
HANDLE = FieldKind.HANDLE

EXTRUSION_DEFAULT = (0.0, 0.0, 1.0)


def _non_empty(name: str) -> Guard:
    return lambda entity, config, version: bool(entity.dxf.get(name))


def _differs(name: str, value: Any) -> Guard:
    return lambda entity, config, version: entity.dxf.get(name, value) != value


def _differs_from_config(name: str, attribute: str) -> Guard:
    return lambda entity, config, version: entity.dxf.get(name) != getattr(config, attribute)


def _point_differs(name: str, value: tuple[float, float, float]) -> Guard:
    return lambda entity, config, version: entity.point(name) != value


def _owner_guard(name: str, *later: tuple[str, DxfVersion]) -> Guard:
    # Group 330 slots are told apart by position, so an empty owner is still
    # written when a later 330 would otherwise slide into its place.
    def guard(entity: Entity, config: CodecConfig, version: DxfVersion) -> bool:
        if entity.dxf.get(name):
            return True
        if any(entity.dxf.get(other) and version >= since for other, since in later):
            return True
        return any(object_id.group_code == 330 for object_id in entity.object_ids)

    return guard


def _elevation_guard(entity: Entity, config: CodecConfig, version: DxfVersion) -> bool:
    return config.flatland and entity.dxf.get("elevation", 0.0) != 0.0


def _graphics_guard(entity: Entity, config: CodecConfig, version: DxfVersion) -> bool:
    return bool(entity.binary_graphics_data) or entity.dxf.get("graphics_data_size", 0) != 0


def _point(
    name: str,
    code: int,
    default: tuple[float, ...] = (0.0, 0.0, 0.0),
    *,
    dims: int = 3,
    **kwargs: Any,
) -> list[FieldSlot]:
    axes = ("x", "y", "z")[:dims]
    return [
        FieldSlot(f"{name}_{axis}", code + 10 * i, DOUBLE, default=default[i], **kwargs)
        for i, axis in enumerate(axes)
    ]


def _extrusion(min_version: DxfVersion | None = None) -> list[FieldSlot]:
    return _point(
        "extrusion",
        210,
        EXTRUSION_DEFAULT,
        min_version=min_version,
        write_guard=_point_differs("extrusion", EXTRUSION_DEFAULT),
    )


def _handle_slots(*, owner_min: DxfVersion = R2000, xdictionary: bool = True) -> list[FieldSlot]:
    slots = [
        FieldSlot("id_code", 5, FieldKind.HEX_INT, default=0),
        FieldSlot(
            "dictionary_owner_soft",
            330,
            HANDLE,
            min_version=R14,
            ordinal=1,
            app_group="ACAD_REACTORS",
            write_guard=_owner_guard(
                "dictionary_owner_soft", ("object_owner_soft", owner_min)
            ),
        ),
    ]
    if xdictionary:
        slots.append(
            FieldSlot(
                "dictionary_owner_hard",
                360,
                HANDLE,
                min_version=R14,
                app_group="ACAD_XDICTIONARY",
                write_guard=_non_empty("dictionary_owner_hard"),
            )
        )
    slots.append(
        FieldSlot(
            "object_owner_soft",
            330,
            HANDLE,
            min_version=owner_min,
            ordinal=2,
            write_guard=_owner_guard("object_owner_soft"),
        )
    )
    return slots


def _entity_common(
    *,
    owner_min: DxfVersion = R2000,
    xdictionary: bool = True,
    extended: bool = True,
    graphics: bool = True,
) -> list[FieldSlot | Marker]:
    items: list[FieldSlot | Marker] = [
        *_handle_slots(owner_min=owner_min, xdictionary=xdictionary),
        Marker(100, "AcDbEntity", min_version=R13),
        FieldSlot("paperspace", 67, INT16, default=0, write_guard=_differs("paperspace", 0)),
        FieldSlot("layer", 8, STRING, default_from="default_layer", default_on_empty=True),
        FieldSlot(
            "linetype",
            6,
            STRING,
            default_from="default_linetype",
            default_on_empty=True,
            write_guard=_differs_from_config("linetype", "default_linetype"),
        ),
    ]
    if extended:
        items.append(
            FieldSlot("material", 347, HANDLE, min_version=R2008, write_guard=_non_empty("material"))
        )
    items.append(
        FieldSlot(
            "color",
            62,
            INT16,
            default_from="default_color",
            write_guard=_differs_from_config("color", "default_color"),
        )
    )
    if extended:
        items.append(
            FieldSlot("lineweight", 370, INT16, min_version=R2002, write_guard=_differs("lineweight", 0))
        )
    items += [
        FieldSlot(
            "linetype_scale",
            48,
            DOUBLE,
            default_from="default_linetype_scale",
            min_version=R13,
            write_guard=_differs_from_config("linetype_scale", "default_linetype_scale"),
        ),
        FieldSlot(
            "visibility",
            60,
            INT16,
            default_from="default_visibility",
            min_version=R13,
            write_guard=_differs("visibility", 0),
        ),
        FieldSlot("elevation", 38, DOUBLE, max_version=R11, write_guard=_elevation_guard),
    ]
    if graphics:
        items += [
            FieldSlot(
                "graphics_data_size", 92, INT32, min_version=R2000, write_guard=_graphics_guard
            ),
            FieldSlot("binary_graphics_data", 310, FieldKind.CHUNK, min_version=R2000),
        ]
    if extended:
        items += [
            FieldSlot("color_value", 420, INT32, min_version=R2004, write_guard=_differs("color_value", 0)),
            FieldSlot("color_name", 430, STRING, min_version=R2004, write_guard=_non_empty("color_name")),
            FieldSlot(
                "transparency", 440, INT32, min_version=R2004, write_guard=_differs("transparency", 0)
            ),
            FieldSlot(
                "plot_style_name", 390, HANDLE, min_version=R2009, write_guard=_non_empty("plot_style_name")
            ),
            FieldSlot("shadow_mode", 284, INT16, min_version=R2009, write_guard=_differs("shadow_mode", 0)),
        ]
    return items


def _thickness() -> FieldSlot:
    return FieldSlot("thickness", 39, DOUBLE, write_guard=_differs("thickness", 0.0))


def _table_record(subclass: str) -> list[FieldSlot | Marker]:
    return [
        *_handle_slots(),
        Marker(100, "AcDbSymbolTableRecord", min_version=R13),
        Marker(100, subclass, min_version=R13),
        FieldSlot("name", 2, STRING),
        FieldSlot("flag", 70, INT16),
    ]


LINE = EntitySchema(
    name="LINE",
    items=(
        *_entity_common(),
        Marker(100, "AcDbLine", min_version=R13),
        _thickness(),
        *_point("start", 10),
        *_point("end", 11),
        *_extrusion(),
    ),
)

POINT = EntitySchema(
    name="POINT",
    items=(
        *_entity_common(),
        Marker(100, "AcDbPoint", min_version=R13),
        *_point("location", 10),
        _thickness(),
        *_extrusion(),
        FieldSlot("angle", 50, DOUBLE, write_guard=_differs("angle", 0.0)),
    ),
)

CIRCLE = EntitySchema(
    name="CIRCLE",
    items=(
        *_entity_common(),
        Marker(100, "AcDbCircle", min_version=R13),
        _thickness(),
        *_point("center", 10),
        FieldSlot("radius", 40, DOUBLE),
        *_extrusion(),
    ),
)

ARC = EntitySchema(
    name="ARC",
    items=(
        *_entity_common(),
        Marker(100, "AcDbCircle", min_version=R13),
        _thickness(),
        *_point("center", 10),
        FieldSlot("radius", 40, DOUBLE),
        Marker(100, "AcDbArc", min_version=R13),
        FieldSlot("start_angle", 50, DOUBLE),
        FieldSlot("end_angle", 51, DOUBLE),
        *_extrusion(),
    ),
)

RAY = EntitySchema(
    name="RAY",
    min_version=R13,
    items=(
        *_entity_common(),
        Marker(100, "AcDbRay", min_version=R13),
        *_point("start", 10),
        *_point("unit_vector", 11, (1.0, 0.0, 0.0)),
    ),
)

XLINE = EntitySchema(
    name="XLINE",
    min_version=R13,
    items=(
        *_entity_common(),
        Marker(100, "AcDbXline", min_version=R13),
        *_point("start", 10),
        *_point("unit_vector", 11, (1.0, 0.0, 0.0)),
    ),
)

TOLERANCE = EntitySchema(
    name="TOLERANCE",
    min_version=R13,
    required=("dimstyle_name",),
    items=(
        *_entity_common(),
        Marker(100, "AcDbFcf", min_version=R13),
        _thickness(),
        FieldSlot("dimstyle_name", 3, STRING),
        *_point("insert", 10),
        FieldSlot("text", 1, STRING),
        *_extrusion(),
        *_point("direction", 11, (1.0, 0.0, 0.0)),
    ),
)

LIGHT = EntitySchema(
    name="LIGHT",
    min_version=R2007,
    items=(
        *_entity_common(),
        _thickness(),
        Marker(100, "AcDbLight", min_version=R13),
        FieldSlot("version_number", 90, INT32),
        FieldSlot("light_name", 1, STRING),
        FieldSlot("light_type", 70, INT16, default=2),
        FieldSlot("status", 290, INT16, default=1),
        FieldSlot("plot_glyph", 291, INT16),
        FieldSlot("intensity", 40, DOUBLE, default=1.0),
        *_point("position", 10),
        *_point("target", 11),
        FieldSlot("attenuation_type", 72, INT16),
        FieldSlot("use_attenuation_limits", 292, INT16),
        FieldSlot("attenuation_start_limit", 41, DOUBLE),
        FieldSlot("attenuation_end_limit", 42, DOUBLE),
        FieldSlot("hotspot_angle", 50, DOUBLE),
        FieldSlot("falloff_angle", 51, DOUBLE),
        FieldSlot("cast_shadows", 293, INT16),
        FieldSlot("shadow_type", 73, INT16),
        FieldSlot("shadow_map_size", 91, INT32),
        FieldSlot("shadow_map_softness", 280, INT16),
    ),
)

ACAD_PROXY_ENTITY = EntitySchema(
    name="ACAD_PROXY_ENTITY",
    legacy_name="ACAD_ZOMBIE_ENTITY",
    legacy_max_version=R13,
    min_version=R13,
    items=(
        *_entity_common(owner_min=R14, xdictionary=False, extended=False, graphics=False),
        _thickness(),
        Marker(100, "AcDbProxyEntity", min_version=R13),
        FieldSlot("proxy_entity_class_id", 90, INT32, default_from="proxy_entity_class_id"),
        FieldSlot("application_entity_class_id", 91, INT32),
        FieldSlot("graphics_data_size", 92, INT32),
        FieldSlot("binary_graphics_data", 310, FieldKind.CHUNK),
        FieldSlot("entity_data_size", 93, INT32),
        FieldSlot(
            "object_ids",
            330,
            FieldKind.HANDLE_CHAIN,
            ordinal=3,
            aliases=(340, 350, 360),
            min_version=R14,
        ),
        FieldSlot(
            "end_of_object_ids",
            94,
            INT32,
            min_version=R14,
            write_guard=lambda entity, config, version: bool(entity.object_ids),
        ),
        FieldSlot("object_drawing_format", 95, UINT32, min_version=R2000),
        FieldSlot("original_custom_object_data_format", 70, INT16, min_version=R2000),
    ),
)

UCS = EntitySchema(
    name="UCS",
    table="UCS",
    items=(
        *_table_record("AcDbUCSTableRecord"),
        *_point("origin", 10),
        *_point("x_axis", 11, (1.0, 0.0, 0.0)),
        *_point("y_axis", 12, (0.0, 1.0, 0.0)),
    ),
)

VPORT = EntitySchema(
    name="VPORT",
    table="VPORT",
    items=(
        *_table_record("AcDbViewportTableRecord"),
        *_point("lower_left", 10, dims=2),
        *_point("upper_right", 11, (1.0, 1.0), dims=2),
        *_point("center", 12, dims=2),
        *_point("snap_base", 13, dims=2),
        *_point("snap_spacing", 14, (1.0, 1.0), dims=2),
        *_point("grid_spacing", 15, dims=2),
        *_point("direction", 16, (0.0, 0.0, 1.0)),
        *_point("target", 17),
        FieldSlot("view_height", 40, DOUBLE, default=1.0),
        FieldSlot("aspect_ratio", 41, DOUBLE, default=1.0),
        FieldSlot("lens_length", 42, DOUBLE, default=50.0),
        FieldSlot("front_plane_offset", 43, DOUBLE),
        FieldSlot("back_plane_offset", 44, DOUBLE),
        FieldSlot("snap_rotation_angle", 50, DOUBLE),
        FieldSlot("view_twist_angle", 51, DOUBLE),
        FieldSlot("status_field", 68, INT16, write_guard=_differs("status_field", 0)),
        FieldSlot("viewport_id", 69, INT16, write_guard=_differs("viewport_id", 0)),
        FieldSlot("view_mode", 71, INT16),
        FieldSlot("circle_zoom_percent", 72, INT16, default=100),
        FieldSlot("fast_zoom", 73, INT16, default=1),
        FieldSlot("ucsicon", 74, INT16, default=3),
        FieldSlot("snap_on", 75, INT16),
        FieldSlot("grid_on", 76, INT16),
        FieldSlot("snap_style", 77, INT16),
        FieldSlot("snap_isopair", 78, INT16),
    ),
)

_SCHEMAS: dict[str, EntitySchema] = {}


def register(schema: EntitySchema) -> EntitySchema:
    for name in schema.names:
        _SCHEMAS[name] = schema
    return schema


for _schema in (LINE, POINT, CIRCLE, ARC, RAY, XLINE, TOLERANCE, LIGHT, ACAD_PROXY_ENTITY, UCS, VPORT):
    register(_schema)


def find_schema(dxftype: str) -> EntitySchema | None:
    return _SCHEMAS.get(dxftype.strip().upper())


def get_schema(dxftype: str) -> EntitySchema:
    schema = find_schema(dxftype)
    if schema is None:
        raise ValueError(f"unknown entity type: {dxftype}")
    return schema


def registered_types(*, tables: bool | None = None) -> tuple[str, ...]:
    seen: list[str] = []
    for schema in _SCHEMAS.values():
        if schema.name in seen:
            continue
        if tables is not None and (schema.table is not None) != tables:
            continue
        seen.append(schema.name)
    return tuple(seen)


def table_schemas() -> Iterable[EntitySchema]:
    return [_SCHEMAS[name] for name in registered_types(tables=True)]
