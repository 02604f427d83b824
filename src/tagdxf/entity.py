from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

Point3D = tuple[float, float, float]


@dataclass(frozen=True)
class ObjectId:
    group_code: int
    handle: str


@dataclass(eq=False)
class Entity:
    dxftype: str
    dxf: dict[str, Any] = field(default_factory=dict)
    binary_graphics_data: list[str] = field(default_factory=list)
    object_ids: list[ObjectId] = field(default_factory=list)
    next: Entity | None = field(default=None, repr=False)

    @property
    def handle(self) -> int:
        return int(self.dxf.get("id_code", 0))

    def point(self, name: str) -> Point3D:
        return (
            float(self.dxf.get(f"{name}_x", 0.0)),
            float(self.dxf.get(f"{name}_y", 0.0)),
            float(self.dxf.get(f"{name}_z", 0.0)),
        )

    def to_points(self) -> list[Point3D]:
        if self.dxftype == "LINE":
            return [self.point("start"), self.point("end")]
        if self.dxftype == "RAY":
            start = self.point("start")
            direction = self.point("unit_vector")
            return [start, (start[0] + direction[0], start[1] + direction[1], start[2] + direction[2])]
        if self.dxftype == "XLINE":
            start = self.point("start")
            direction = self.point("unit_vector")
            return [
                (start[0] - direction[0], start[1] - direction[1], start[2] - direction[2]),
                (start[0] + direction[0], start[1] + direction[1], start[2] + direction[2]),
            ]
        if self.dxftype == "POINT":
            return [self.point("location")]
        if self.dxftype in {"CIRCLE", "ARC"}:
            return [self.point("center")]
        if self.dxftype == "TOLERANCE":
            return [self.point("insert")]
        if self.dxftype == "LIGHT":
            return [self.point("position"), self.point("target")]
        raise NotImplementedError(f"to_points is not supported for {self.dxftype}")
