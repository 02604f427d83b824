from __future__ import annotations

from dataclasses import dataclass

COLOR_BYBLOCK = 0
COLOR_BYLAYER = 256
MODELSPACE = 0
PAPERSPACE = 1


@dataclass(frozen=True)
class CodecConfig:
    default_layer: str = "0"
    default_linetype: str = "BYLAYER"
    default_color: int = COLOR_BYLAYER
    default_linetype_scale: float = 1.0
    default_visibility: int = 0
    proxy_entity_class_id: int = 498
    max_string_length: int = 255
    max_chunk_length: int = 256
    flatland: bool = False
    echo_comments: bool = False
    skip_out_of_version_tags: bool = False
    float_format: str | None = None


DEFAULT_CONFIG = CodecConfig()
