from __future__ import annotations

from enum import IntEnum


class DxfVersion(IntEnum):
    R10 = 1006
    R12 = 1009
    R11 = 1009
    R13 = 1012
    R14 = 1014
    R2000 = 1015
    R2000i = 1016
    R2002 = 1017
    R2004 = 1018
    R2005 = 1019
    R2006 = 1020
    R2007 = 1021
    R2008 = 1022
    R2009 = 1023
    R2010 = 1024
    R2011 = 1025
    R2012 = 1026
    R2013 = 1027
    R2018 = 1032

    @property
    def acadver(self) -> str:
        return f"AC{int(self)}"

    @property
    def release(self) -> str:
        return self.name


OLDEST = DxfVersion.R10
NEWEST = DxfVersion.R2018
DEFAULT_VERSION = DxfVersion.R12

_RELEASE_NAMES = {name.upper(): member for name, member in DxfVersion.__members__.items()}


def parse_version(value: str | int | DxfVersion) -> DxfVersion:
    if isinstance(value, DxfVersion):
        return value
    if isinstance(value, int):
        try:
            return DxfVersion(value)
        except ValueError:
            raise ValueError(f"unknown DXF version number: {value}") from None
    text = str(value).strip().upper()
    if text.startswith("AC") and text[2:].isdigit():
        try:
            return DxfVersion(int(text[2:]))
        except ValueError:
            raise ValueError(f"unsupported $ACADVER: {value}") from None
    member = _RELEASE_NAMES.get(text)
    if member is None:
        raise ValueError(f"unknown DXF version: {value!r}")
    return member


def version_at_least(declared: DxfVersion, minimum: DxfVersion | None) -> bool:
    if minimum is None:
        return True
    return declared >= minimum


def version_in_range(
    declared: DxfVersion,
    min_version: DxfVersion | None,
    max_version: DxfVersion | None,
) -> bool:
    if min_version is not None and declared < min_version:
        return False
    if max_version is not None and declared > max_version:
        return False
    return True
