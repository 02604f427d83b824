from __future__ import annotations

import codecs
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, TextIO

from ezdxf.lldxf.encoding import dxf_backslash_replace
from ezdxf.tools.codepage import toencoding

from .config import DEFAULT_CONFIG, CodecConfig
from .document import Document, Layout, read
from .encoder import encode_entity
from .entities import find_schema, table_schemas
from .entity import Entity
from .errors import MalformedTag, ValidationFailure, VersionError
from .tags import Tag, format_tags
from .version import DxfVersion, parse_version

logger = logging.getLogger(__name__)

LEGACY_CODEPAGE = "ANSI_1252"
ENCODE_ERRORS = "dxfreplace"

# characters outside the codepage are written as \U+XXXX escapes
codecs.register_error(ENCODE_ERRORS, dxf_backslash_replace)


@dataclass(frozen=True)
class WriteResult:
    output_path: str
    target_version: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    target_version: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]


def write_dxf(
    entities: Iterable[Entity],
    output_path: str,
    *,
    dxf_version: str | int | DxfVersion = DxfVersion.R2000,
    strict: bool = False,
    config: CodecConfig = DEFAULT_CONFIG,
) -> WriteResult:
    version = parse_version(dxf_version)
    tables: dict[str, list[list[Tag]]] = {}
    graphics: list[list[Tag]] = []
    total = 0
    skipped_by_type: Counter[str] = Counter()

    for entity in entities:
        total += 1
        schema = find_schema(entity.dxftype)
        if schema is None:
            skipped_by_type[entity.dxftype] += 1
            continue
        try:
            tags = encode_entity(entity, version, strict=True, config=config)
        except (VersionError, ValidationFailure, MalformedTag) as exc:
            logger.warning("skipped: %s", exc)
            skipped_by_type[schema.name] += 1
            continue
        if schema.table is not None:
            tables.setdefault(schema.table, []).append(tags)
        else:
            graphics.append(tags)

    skipped = sum(skipped_by_type.values())
    if strict and skipped > 0:
        summary = ", ".join(
            f"{dxftype}:{count}" for dxftype, count in sorted(skipped_by_type.items())
        )
        raise ValueError(f"failed to write {skipped} entities ({summary})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    encoding = output_encoding(version)
    with out_path.open("w", encoding=encoding, errors=ENCODE_ERRORS, newline="\n") as fp:
        _write_document(fp, version, tables, graphics)

    return WriteResult(
        output_path=str(out_path),
        target_version=version.release,
        total_entities=total,
        written_entities=total - skipped,
        skipped_entities=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
    )


def to_dxf(
    source: str | Document | Layout,
    output_path: str,
    *,
    types: str | Iterable[str] | None = None,
    dxf_version: str | int | DxfVersion = "R2000",
    strict: bool = False,
    config: CodecConfig = DEFAULT_CONFIG,
) -> ConvertResult:
    source_path, entities = _resolve_entities(source, types, config)
    result = write_dxf(
        entities,
        output_path,
        dxf_version=dxf_version,
        strict=strict,
        config=config,
    )
    return ConvertResult(
        source_path=source_path,
        output_path=result.output_path,
        target_version=result.target_version,
        total_entities=result.total_entities,
        written_entities=result.written_entities,
        skipped_entities=result.skipped_entities,
        skipped_by_type=result.skipped_by_type,
    )


def output_encoding(version: DxfVersion) -> str:
    if version >= DxfVersion.R2007:
        return "utf-8"
    return toencoding(LEGACY_CODEPAGE)


def _resolve_entities(
    source: str | Document | Layout,
    types: str | Iterable[str] | None,
    config: CodecConfig,
) -> tuple[str, list[Entity]]:
    if isinstance(source, Layout):
        return source.doc.path, list(source.query(types))
    if isinstance(source, Document):
        return source.path, list(source.query(types))
    doc = read(source, config)
    return str(source), list(doc.query(types))


def _write_document(
    fp: TextIO,
    version: DxfVersion,
    tables: dict[str, list[list[Tag]]],
    graphics: list[list[Tag]],
) -> None:
    header = [Tag(9, "$ACADVER"), Tag(1, version.acadver)]
    if version < DxfVersion.R2007:
        header += [Tag(9, "$DWGCODEPAGE"), Tag(3, LEGACY_CODEPAGE)]
    _write_section(fp, "HEADER", [header])

    table_tags: list[list[Tag]] = []
    for schema in table_schemas():
        records = tables.get(schema.table or schema.name, [])
        if not records:
            continue
        table_tags.append([Tag(0, "TABLE"), Tag(2, schema.table or schema.name), Tag(70, str(len(records)))])
        table_tags.extend(records)
        table_tags.append([Tag(0, "ENDTAB")])
    if table_tags:
        _write_section(fp, "TABLES", table_tags)

    _write_section(fp, "ENTITIES", graphics)
    fp.write(format_tags([Tag(0, "EOF")]))


def _write_section(fp: TextIO, name: str, records: list[list[Tag]]) -> None:
    fp.write(format_tags([Tag(0, "SECTION"), Tag(2, name)]))
    for tags in records:
        fp.write(format_tags(tags))
    fp.write(format_tags([Tag(0, "ENDSEC")]))
