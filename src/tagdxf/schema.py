from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from ezdxf.lldxf.encoding import decode_dxf_unicode, has_dxf_unicode

from .config import CodecConfig
from .version import DxfVersion, version_in_range

if TYPE_CHECKING:
    from .entity import Entity

SUBCLASS_MARKER_CODE = 100
APP_GROUP_CODE = 102

Guard = Callable[["Entity", CodecConfig, DxfVersion], bool]


class FieldKind(Enum):
    INT16 = "int16"
    INT32 = "int32"
    UINT32 = "uint32"
    HEX_INT = "hex"
    DOUBLE = "double"
    STRING = "string"
    HANDLE = "handle"
    CHUNK = "chunk"
    HANDLE_CHAIN = "handle_chain"

    @property
    def repeatable(self) -> bool:
        return self in (FieldKind.CHUNK, FieldKind.HANDLE_CHAIN)


_INT_RANGES = {
    FieldKind.INT16: (-(2**15), 2**15 - 1),
    FieldKind.INT32: (-(2**31), 2**31 - 1),
    FieldKind.UINT32: (0, 2**32 - 1),
}


@dataclass(frozen=True)
class FieldSlot:
    name: str
    group_code: int
    kind: FieldKind
    default: Any = None
    min_version: DxfVersion | None = None
    max_version: DxfVersion | None = None
    write_guard: Guard | None = None
    ordinal: int | None = None
    aliases: tuple[int, ...] = ()
    default_from: str | None = None
    default_on_empty: bool = False
    app_group: str | None = None
    fmt: str | None = None

    @property
    def group_codes(self) -> tuple[int, ...]:
        return (self.group_code, *self.aliases)

    def applies_to(self, version: DxfVersion) -> bool:
        return version_in_range(version, self.min_version, self.max_version)

    def initial_value(self, config: CodecConfig) -> Any:
        if self.default_from is not None:
            return getattr(config, self.default_from)
        if self.default is not None:
            return self.default
        if self.kind is FieldKind.DOUBLE:
            return 0.0
        if self.kind in (FieldKind.STRING, FieldKind.HANDLE):
            return ""
        return 0

    def accepts(self, group_code: int, ordinal: int) -> bool:
        if self.kind.repeatable:
            # the starting ordinal only applies to the primary group code
            if group_code != self.group_code or self.ordinal is None:
                return True
            return ordinal >= self.ordinal
        return self.ordinal is None or self.ordinal == ordinal


@dataclass(frozen=True)
class Marker:
    group_code: int
    value: str
    min_version: DxfVersion | None = None
    max_version: DxfVersion | None = None

    def applies_to(self, version: DxfVersion) -> bool:
        return version_in_range(version, self.min_version, self.max_version)


Item = FieldSlot | Marker


@dataclass(frozen=True)
class EntitySchema:
    """Declarative description of one DXF record type.

    ``items`` is the emission order: data slots interleaved with constant
    subclass markers. ``required`` names the fields that must be non-empty
    once a record is complete. ``legacy_name`` is the wire name used for
    targets up to ``legacy_max_version``.
    """

    name: str
    items: tuple[Item, ...]
    min_version: DxfVersion | None = None
    required: tuple[str, ...] = ()
    legacy_name: str | None = None
    legacy_max_version: DxfVersion | None = None
    table: str | None = None
    _by_code: dict[int, tuple[FieldSlot, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _by_name: dict[str, FieldSlot] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _slots: tuple[FieldSlot, ...] = field(init=False, repr=False, compare=False, default=())
    _subclass_markers: frozenset[str] = field(
        init=False, repr=False, compare=False, default=frozenset()
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_slots", tuple(item for item in self.items if isinstance(item, FieldSlot))
        )
        object.__setattr__(
            self,
            "_subclass_markers",
            frozenset(
                item.value
                for item in self.items
                if isinstance(item, Marker) and item.group_code == SUBCLASS_MARKER_CODE
            ),
        )
        by_code: dict[int, list[FieldSlot]] = {}
        for slot in self._slots:
            if slot.name in self._by_name:
                raise ValueError(f"{self.name}: duplicate field {slot.name!r}")
            self._by_name[slot.name] = slot
            for code in slot.group_codes:
                by_code.setdefault(code, []).append(slot)
        for name in self.required:
            if name not in self._by_name:
                raise ValueError(f"{self.name}: required field {name!r} is not declared")
        self._by_code.update({code: tuple(slots) for code, slots in by_code.items()})

    @property
    def names(self) -> tuple[str, ...]:
        if self.legacy_name is None:
            return (self.name,)
        return (self.name, self.legacy_name)

    def slots(self) -> tuple[FieldSlot, ...]:
        return self._slots

    def slot(self, name: str) -> FieldSlot:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"{self.name} has no field {name!r}") from None

    def subclass_markers(self) -> frozenset[str]:
        return self._subclass_markers

    def lookup(self, group_code: int, ordinal: int = 1) -> FieldSlot | None:
        exact = None
        repeated = None
        fallback = None
        for slot in self._by_code.get(group_code, ()):
            if not slot.accepts(group_code, ordinal):
                continue
            if slot.kind.repeatable:
                repeated = repeated or slot
            elif slot.ordinal is not None:
                exact = exact or slot
            else:
                fallback = fallback or slot
        return exact or repeated or fallback

    def emission_order(self) -> tuple[Item, ...]:
        return self.items

    def entity_name(self, version: DxfVersion) -> str:
        if (
            self.legacy_name is not None
            and self.legacy_max_version is not None
            and version <= self.legacy_max_version
        ):
            return self.legacy_name
        return self.name

    def supports(self, version: DxfVersion) -> bool:
        return self.min_version is None or version >= self.min_version


def decode_value(kind: FieldKind, raw: str) -> Any:
    if kind is FieldKind.STRING:
        # legacy codepage files carry other characters as \U+XXXX escapes
        return decode_dxf_unicode(raw) if has_dxf_unicode(raw) else raw
    if kind is FieldKind.CHUNK:
        return raw
    text = raw.strip()
    if kind in (FieldKind.HANDLE, FieldKind.HANDLE_CHAIN):
        if text:
            int(text, 16)
        return text
    if kind is FieldKind.DOUBLE:
        return float(text)
    if kind is FieldKind.HEX_INT:
        return int(text, 16)
    value = int(text)
    low, high = _INT_RANGES[kind]
    if not low <= value <= high:
        raise ValueError(f"{value} is outside the {kind.value} range")
    return value


def encode_value(kind: FieldKind, value: Any, fmt: str | None = None) -> str:
    if kind is FieldKind.DOUBLE:
        number = float(value)
        if fmt:
            return fmt % number
        return repr(number)
    if kind is FieldKind.HEX_INT:
        return f"{int(value):X}"
    if kind in _INT_RANGES:
        number = int(value)
        low, high = _INT_RANGES[kind]
        if not low <= number <= high:
            raise ValueError(f"{number} is outside the {kind.value} range")
        if fmt:
            return fmt % number
        return str(number)
    return str(value)
