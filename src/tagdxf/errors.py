from __future__ import annotations

from dataclasses import dataclass


class DxfError(Exception):
    """Base class for codec errors."""

    def __init__(
        self,
        message: str,
        *,
        dxftype: str | None = None,
        source: str | None = None,
        line_number: int | None = None,
    ) -> None:
        self.message = message
        self.dxftype = dxftype
        self.source = source
        self.line_number = line_number
        super().__init__(_render(message, dxftype, source, line_number))


class IoFailure(DxfError):
    """The stream could not be read; fatal for the current file."""


class MalformedTag(DxfError):
    """A value did not parse as its declared kind."""


class UnrecognizedTag(DxfError):
    """A group code is not part of the entity's schema."""


class ValidationFailure(DxfError):
    """A required field is missing; the whole record is discarded."""

    def __init__(self, message: str, *, field: str, **kwargs) -> None:
        self.field = field
        super().__init__(message, **kwargs)


class VersionError(DxfError):
    """The entity has no representation at the requested DXF version."""


class DanglingSuccessor(DxfError):
    """A node that still links to a successor was freed on its own."""


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str
    dxftype: str | None = None
    source: str | None = None
    line_number: int | None = None
    group_code: int | None = None

    def __str__(self) -> str:
        return f"{self.kind}: {_render(self.message, self.dxftype, self.source, self.line_number)}"


MALFORMED = "malformed"
UNRECOGNIZED = "unrecognized"
VERSION = "version"
VALIDATION = "validation"


def _render(
    message: str,
    dxftype: str | None,
    source: str | None,
    line_number: int | None,
) -> str:
    where = []
    if dxftype:
        where.append(dxftype)
    if source:
        where.append(source)
    if line_number is not None:
        where.append(f"line {line_number}")
    if not where:
        return message
    return f"{message} ({', '.join(where)})"
