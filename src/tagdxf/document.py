from __future__ import annotations

import fnmatch
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, TextIO

from ezdxf.tools.codepage import toencoding

from .config import DEFAULT_CONFIG, PAPERSPACE, CodecConfig
from .decoder import decode_entity
from .entities import find_schema, registered_types
from .entity import Entity
from .errors import UNRECOGNIZED, VALIDATION, VERSION, Diagnostic, IoFailure, ValidationFailure
from .store import EntityStore
from .tags import COMMENT_CODE, END_OF_ENTITY, DxfStream, Tag, TagScanner
from .version import DxfVersion, parse_version

logger = logging.getLogger(__name__)

SUPPORTED_ENTITY_TYPES = registered_types(tables=False)
SUPPORTED_TABLE_TYPES = registered_types(tables=True)
TYPE_ALIASES = {
    "ACAD_ZOMBIE_ENTITY": "ACAD_PROXY_ENTITY",
    "PROXY": "ACAD_PROXY_ENTITY",
}

_HEADER_SCAN_BYTES = 128 * 1024
_DECODED_SECTIONS = {"TABLES": True, "ENTITIES": False}
_STRUCTURAL_RECORDS = {"TABLE", "ENDTAB"}


def read(path: str, config: CodecConfig = DEFAULT_CONFIG) -> "Document":
    file_path = Path(path)
    try:
        with file_path.open("rb") as fp:
            head = fp.read(_HEADER_SCAN_BYTES)
        encoding = guess_dxf_encoding(head)
        with file_path.open("r", encoding=encoding, errors="replace") as fp:
            return read_stream(fp, name=str(path), config=config)
    except OSError as exc:
        raise IoFailure(f"cannot read file: {exc}", source=str(path)) from exc


def read_stream(
    lines: TextIO | Iterable[str],
    name: str = "<stream>",
    config: CodecConfig = DEFAULT_CONFIG,
) -> "Document":
    stream = DxfStream(lines, name=name)
    return _DocumentReader(TagScanner(stream), config).run()


def guess_dxf_encoding(data: bytes) -> str:
    if not data:
        return "utf-8"
    lines = data.decode("latin1", errors="ignore").splitlines()
    acadver = _find_header_value(lines, "$ACADVER")
    if acadver and acadver >= "AC1021":
        return "utf-8"
    codepage = _find_header_value(lines, "$DWGCODEPAGE")
    if codepage:
        return toencoding(codepage)
    return "cp1252"


def _find_header_value(lines: list[str], key: str) -> str | None:
    for idx, line in enumerate(lines):
        if line.strip() != key:
            continue
        # variable name, then a group code line, then the value line
        value_idx = idx + 2
        if value_idx >= len(lines):
            return None
        return lines[value_idx].strip() or None
    return None


@dataclass(frozen=True)
class Document:
    path: str
    version: DxfVersion
    store: EntityStore
    diagnostics: list[Diagnostic] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    skipped_by_type: dict[str, int] = field(default_factory=dict)

    def modelspace(self) -> "Layout":
        return Layout(self, "MODELSPACE")

    def paperspace(self) -> "Layout":
        return Layout(self, "PAPERSPACE")

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        return self.store.query(_normalize_types(types, include_tables=True))

    def table_entries(self, table: str) -> list[Entity]:
        return [entity for entity in self.store if entity.dxftype == table.strip().upper()]

    def saveas(
        self,
        output_path: str,
        *,
        dxf_version: str | DxfVersion | None = None,
        types: str | Iterable[str] | None = None,
        strict: bool = False,
        config: CodecConfig = DEFAULT_CONFIG,
    ):
        from .convert import write_dxf

        return write_dxf(
            self.query(types),
            output_path,
            dxf_version=self.version if dxf_version is None else dxf_version,
            strict=strict,
            config=config,
        )


@dataclass(frozen=True)
class Layout:
    doc: Document
    name: str

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        paperspace = self.name == "PAPERSPACE"
        for entity in self.doc.store.query(_normalize_types(types)):
            if (entity.dxf.get("paperspace", 0) == PAPERSPACE) == paperspace:
                yield entity

    def __iter__(self) -> Iterator[Entity]:
        return self.query()

    def __len__(self) -> int:
        return sum(1 for _ in self.query())


class _DocumentReader:
    def __init__(self, scanner: TagScanner, config: CodecConfig) -> None:
        self.scanner = scanner
        self.stream = scanner.stream
        self.config = config
        self.store = EntityStore()
        self.skipped: Counter[str] = Counter()

    def run(self) -> Document:
        while True:
            tag = self.scanner.next_pair()
            if tag is None:
                logger.warning("%s: missing EOF marker", self.stream.name)
                break
            if tag.code == COMMENT_CODE:
                self.stream.add_comment(tag.value, echo=self.config.echo_comments)
                continue
            if tag.code != 0:
                self._report(UNRECOGNIZED, f"stray group code {tag.code} outside a section")
                continue
            value = tag.value.strip()
            if value == "EOF":
                break
            if value != "SECTION":
                self._report(UNRECOGNIZED, f"unexpected {value!r} outside a section")
                continue
            self._section(self._pair())

        return Document(
            path=self.stream.name,
            version=self.stream.dxf_version,
            store=self.store,
            diagnostics=self.stream.diagnostics,
            comments=self.stream.comments,
            skipped_by_type=dict(sorted(self.skipped.items())),
        )

    def _section(self, name_tag: Tag) -> None:
        section = name_tag.value.strip().upper() if name_tag.code == 2 else ""
        if section == "HEADER":
            self._header()
            return
        self._skip_record()
        record = self.scanner.read_value().strip()
        while record != "ENDSEC":
            if record == "EOF":
                raise IoFailure(
                    f"unexpected EOF inside section {section}",
                    source=self.stream.name,
                    line_number=self.stream.line_number,
                )
            if section in _DECODED_SECTIONS and record not in _STRUCTURAL_RECORDS:
                self._record(record, tables=_DECODED_SECTIONS[section])
            else:
                self._skip_record()
            record = self.scanner.read_value().strip()

    def _header(self) -> None:
        variable = None
        while True:
            tag = self._pair()
            if tag.code == 0:
                return
            if tag.code == 9:
                variable = tag.value.strip()
                continue
            if variable == "$ACADVER":
                try:
                    self.stream.dxf_version = parse_version(tag.value)
                except ValueError as exc:
                    self._report(VERSION, str(exc))

    def _record(self, name: str, *, tables: bool) -> None:
        dxftype = name.upper()
        schema = find_schema(dxftype)
        if schema is None or (schema.table is not None) != tables:
            self.skipped[dxftype] += 1
            self._skip_record()
            return
        try:
            entity = decode_entity(dxftype, self.scanner, self.config)
        except ValidationFailure as exc:
            self.skipped[schema.name] += 1
            self.stream.report(
                Diagnostic(
                    kind=VALIDATION,
                    message=exc.message,
                    dxftype=exc.dxftype,
                    source=exc.source,
                    line_number=exc.line_number,
                    group_code=schema.slot(exc.field).group_code,
                )
            )
            return
        self.store.append(entity)

    def _skip_record(self) -> None:
        while True:
            tag = self.scanner.next_tag()
            if tag is END_OF_ENTITY:
                return
            if tag.code == COMMENT_CODE:
                self.stream.add_comment(tag.value, echo=self.config.echo_comments)

    def _pair(self) -> Tag:
        tag = self.scanner.next_pair()
        if tag is None:
            raise IoFailure(
                "unexpected end of file",
                source=self.stream.name,
                line_number=self.stream.line_number,
            )
        return tag

    def _report(self, kind: str, message: str) -> None:
        self.stream.report(
            Diagnostic(
                kind=kind,
                message=message,
                source=self.stream.name,
                line_number=self.stream.line_number,
            )
        )


def _normalize_types(
    types: str | Iterable[str] | None,
    *,
    include_tables: bool = False,
) -> list[str]:
    candidate_types = list(SUPPORTED_ENTITY_TYPES)
    if include_tables:
        candidate_types += list(SUPPORTED_TABLE_TYPES)
    if types is None:
        return candidate_types
    if isinstance(types, str):
        tokens = re.split(r"[,\s]+", types.strip())
    else:
        tokens = list(types)

    normalized = [token.strip().upper() for token in tokens if token and token.strip()]
    normalized = [TYPE_ALIASES.get(token, token) for token in normalized]
    if not normalized:
        return candidate_types

    if any(token in {"*", "ALL"} for token in normalized):
        return candidate_types

    selected: list[str] = []
    seen = set()

    for token in normalized:
        if any(ch in token for ch in "*?[]"):
            for name in candidate_types:
                if fnmatch.fnmatchcase(name, token) and name not in seen:
                    seen.add(name)
                    selected.append(name)
            continue

        if token in candidate_types and token not in seen:
            seen.add(token)
            selected.append(token)

    return selected
