from typing import Sequence

from .config import DEFAULT_CONFIG, CodecConfig
from .convert import ConvertResult, WriteResult, to_dxf, write_dxf
from .decoder import decode_entity
from .document import Document, Layout, read, read_stream
from .encoder import OMIT_HANDLE, encode_entity
from .entities import find_schema, get_schema, registered_types
from .entity import Entity, ObjectId
from .errors import (
    DanglingSuccessor,
    Diagnostic,
    DxfError,
    IoFailure,
    MalformedTag,
    UnrecognizedTag,
    ValidationFailure,
    VersionError,
)
from .store import EntityStore, free_list, free_one, new_entity
from .tags import DxfStream, Tag, TagScanner
from .version import DxfVersion, parse_version

__all__ = [
    "read",
    "read_stream",
    "Document",
    "Layout",
    "Entity",
    "ObjectId",
    "EntityStore",
    "new_entity",
    "free_one",
    "free_list",
    "decode_entity",
    "encode_entity",
    "OMIT_HANDLE",
    "find_schema",
    "get_schema",
    "registered_types",
    "to_dxf",
    "write_dxf",
    "ConvertResult",
    "WriteResult",
    "CodecConfig",
    "DEFAULT_CONFIG",
    "DxfStream",
    "Tag",
    "TagScanner",
    "DxfVersion",
    "parse_version",
    "DxfError",
    "IoFailure",
    "MalformedTag",
    "UnrecognizedTag",
    "ValidationFailure",
    "VersionError",
    "DanglingSuccessor",
    "Diagnostic",
]


def main(argv: Sequence[str] | None = None) -> int:
    from tagdxf.cli import main as cli_main

    return cli_main(argv)
