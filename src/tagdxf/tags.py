from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, TextIO

from .errors import Diagnostic, IoFailure
from .version import DEFAULT_VERSION, DxfVersion

logger = logging.getLogger(__name__)

COMMENT_CODE = 999


@dataclass(frozen=True)
class Tag:
    code: int
    value: str

    def line(self) -> str:
        return f"{self.code:>3}\n{self.value}\n"


class _EndOfEntity:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END_OF_ENTITY"


END_OF_ENTITY = _EndOfEntity()


@dataclass
class DxfStream:
    """Line source for one DXF file.

    Owns the file-scoped state the codec needs: the current line number,
    the display name used in messages, the declared ``$ACADVER`` and the
    diagnostics and comments collected while decoding.
    """

    lines: TextIO | Iterable[str]
    name: str = "<stream>"
    dxf_version: DxfVersion = DEFAULT_VERSION
    line_number: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._iter: Iterator[str] = iter(self.lines)

    def read_line(self) -> str | None:
        try:
            line = next(self._iter)
        except StopIteration:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise IoFailure(
                f"read error: {exc}",
                source=self.name,
                line_number=self.line_number + 1,
            ) from exc
        self.line_number += 1
        return line.rstrip("\r\n")

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        logger.warning("%s", diagnostic)

    def add_comment(self, text: str, *, echo: bool = False) -> None:
        self.comments.append(text)
        if echo:
            print(f"DXF comment: {text}")


class TagScanner:
    def __init__(self, stream: DxfStream) -> None:
        self.stream = stream

    @property
    def line_number(self) -> int:
        return self.stream.line_number

    def next_tag(self) -> Tag | _EndOfEntity:
        code = self._read_code()
        if code is None:
            raise IoFailure(
                "unexpected end of file inside a record",
                source=self.stream.name,
                line_number=self.stream.line_number,
            )
        if code == 0:
            return END_OF_ENTITY
        return Tag(code, self.read_value())

    def next_pair(self) -> Tag | None:
        code = self._read_code()
        if code is None:
            return None
        return Tag(code, self.read_value())

    def read_value(self) -> str:
        value = self.stream.read_line()
        if value is None:
            raise IoFailure(
                "unexpected end of file, missing value line",
                source=self.stream.name,
                line_number=self.stream.line_number,
            )
        return value

    def skip_record(self) -> int:
        skipped = 0
        while self.next_tag() is not END_OF_ENTITY:
            skipped += 1
        return skipped

    def _read_code(self) -> int | None:
        line = self.stream.read_line()
        if line is None:
            return None
        try:
            return int(line.strip())
        except ValueError:
            raise IoFailure(
                f"invalid group code {line!r}",
                source=self.stream.name,
                line_number=self.stream.line_number,
            ) from None


def format_tags(tags: Iterable[Tag]) -> str:
    return "".join(tag.line() for tag in tags)


def iter_tags(text: str) -> Iterator[Tag]:
    scanner = TagScanner(DxfStream(text.splitlines()))
    while True:
        tag = scanner.next_pair()
        if tag is None:
            return
        yield tag
