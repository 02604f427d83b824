from __future__ import annotations

import logging
from collections import Counter

from .config import DEFAULT_CONFIG, CodecConfig
from .entities import get_schema
from .entity import Entity, ObjectId
from .errors import (
    MALFORMED,
    UNRECOGNIZED,
    VALIDATION,
    VERSION,
    Diagnostic,
    IoFailure,
    ValidationFailure,
)
from .schema import (
    APP_GROUP_CODE,
    SUBCLASS_MARKER_CODE,
    EntitySchema,
    FieldKind,
    FieldSlot,
    decode_value,
)
from .store import new_entity
from .tags import COMMENT_CODE, END_OF_ENTITY, DxfStream, Tag, TagScanner

logger = logging.getLogger(__name__)


def decode_entity(
    dxftype: str,
    source: TagScanner | DxfStream,
    config: CodecConfig = DEFAULT_CONFIG,
) -> Entity:
    """Decode one record whose ``0``/name pair has already been consumed.

    Reads tags until the next group ``0`` code line and leaves the stream
    positioned on that record's name line. Per-tag problems are recorded on
    the stream's diagnostics; a missing required field raises
    :class:`ValidationFailure` and a read error raises :class:`IoFailure`.
    """
    scanner = source if isinstance(source, TagScanner) else TagScanner(source)
    return _EntityDecoder(get_schema(dxftype), scanner, config, dxftype).run()


class _EntityDecoder:
    def __init__(
        self,
        schema: EntitySchema,
        scanner: TagScanner,
        config: CodecConfig,
        dxftype: str,
    ) -> None:
        self.schema = schema
        self.scanner = scanner
        self.stream = scanner.stream
        self.config = config
        self.dxftype = dxftype.strip().upper()
        self.ordinals: Counter[int] = Counter()
        self.entity = new_entity(schema.name, config)

    def run(self) -> Entity:
        while True:
            try:
                tag = self.scanner.next_tag()
            except IoFailure as exc:
                raise IoFailure(
                    exc.message,
                    dxftype=self.dxftype,
                    source=exc.source,
                    line_number=exc.line_number,
                ) from exc
            if tag is END_OF_ENTITY:
                break
            self._dispatch(tag)
        self._finish()
        return self.entity

    def _dispatch(self, tag: Tag) -> None:
        code = tag.code
        if code == COMMENT_CODE:
            self.stream.add_comment(tag.value, echo=self.config.echo_comments)
            return
        if code == SUBCLASS_MARKER_CODE:
            self._subclass_marker(tag.value)
            return
        if code == APP_GROUP_CODE:
            return

        self.ordinals[code] += 1
        slot = self.schema.lookup(code, self.ordinals[code])
        if slot is None:
            self._report(UNRECOGNIZED, f"unknown group code {code} (value {tag.value!r})", code)
            return
        if not slot.applies_to(self.stream.dxf_version):
            self._report(
                VERSION,
                f"group code {code} ({slot.name}) is not valid in "
                f"{self.stream.dxf_version.release}",
                code,
            )
            if self.config.skip_out_of_version_tags:
                return

        if slot.kind is FieldKind.CHUNK:
            self._append_chunk(slot, tag)
        elif slot.kind is FieldKind.HANDLE_CHAIN:
            self._append_object_id(slot, tag)
        else:
            self._store(slot, tag)

    def _store(self, slot: FieldSlot, tag: Tag) -> None:
        try:
            value = decode_value(slot.kind, tag.value)
        except ValueError:
            self._report(
                MALFORMED,
                f"cannot read {tag.value!r} as {slot.kind.value} for {slot.name}",
                tag.code,
            )
            return
        if slot.kind is FieldKind.STRING and len(value) > self.config.max_string_length:
            self._report(
                MALFORMED,
                f"{slot.name} is longer than {self.config.max_string_length} characters, truncated",
                tag.code,
            )
            value = value[: self.config.max_string_length]
        if slot.kind is FieldKind.HEX_INT and value < 0:
            self._report(VALIDATION, f"negative {slot.name} {value}", tag.code)
        self.entity.dxf[slot.name] = value

    def _append_chunk(self, slot: FieldSlot, tag: Tag) -> None:
        if len(tag.value) > self.config.max_chunk_length:
            self._report(
                MALFORMED,
                f"binary chunk of {len(tag.value)} characters exceeds "
                f"{self.config.max_chunk_length}, discarded",
                tag.code,
            )
            return
        getattr(self.entity, slot.name).append(tag.value)

    def _append_object_id(self, slot: FieldSlot, tag: Tag) -> None:
        try:
            handle = decode_value(slot.kind, tag.value)
        except ValueError:
            self._report(MALFORMED, f"invalid handle {tag.value!r}", tag.code)
            return
        getattr(self.entity, slot.name).append(ObjectId(tag.code, handle))

    def _subclass_marker(self, value: str) -> None:
        if value.strip() not in self.schema.subclass_markers():
            self._report(MALFORMED, f"bad subclass marker {value!r}", SUBCLASS_MARKER_CODE)

    def _finish(self) -> None:
        for name in self.schema.required:
            if not self.entity.dxf.get(name):
                code = self.schema.slot(name).group_code
                raise ValidationFailure(
                    f"required group code {code} ({name}) is missing or empty, record discarded",
                    field=name,
                    dxftype=self.dxftype,
                    source=self.stream.name,
                    line_number=self.stream.line_number,
                )
        for slot in self.schema.slots():
            if slot.default_on_empty and self.entity.dxf.get(slot.name) == "":
                self.entity.dxf[slot.name] = slot.initial_value(self.config)
                logger.debug("%s: empty %s reset to default", self.dxftype, slot.name)

    def _report(self, kind: str, message: str, group_code: int | None = None) -> None:
        self.stream.report(
            Diagnostic(
                kind=kind,
                message=message,
                dxftype=self.dxftype,
                source=self.stream.name,
                line_number=self.stream.line_number,
                group_code=group_code,
            )
        )
