"""
メディアタイプ解析
Content-Typeヘッダーを正規化してJSON/バイナリ/その他に分類
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class MediaKind(Enum):
    JSON = "json"
    BINARY = "binary"
    OTHER = "other"


@dataclass(frozen=True)
class MediaType:
    """正規化済みメディアタイプ（type/subtypeは小文字）"""
    type: str
    subtype: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def essence(self) -> str:
        return f"{self.type}/{self.subtype}"


def parse_media_type(header: Optional[str]) -> Optional[MediaType]:
    """Content-Typeヘッダーを解析

    Args:
        header: Content-Typeヘッダー値（例: 'application/json; charset=utf-8'）

    Returns:
        Optional[MediaType]: 解析結果。ヘッダーが無い・不正な場合はNone
    """
    if not header:
        return None

    essence, *raw_params = header.split(';')
    type_, sep, subtype = essence.strip().partition('/')
    if not sep or not type_ or not subtype:
        return None

    params = {}
    for raw in raw_params:
        name, sep, value = raw.strip().partition('=')
        if sep and name:
            params[name.strip().lower()] = value.strip().strip('"')

    return MediaType(type_.strip().lower(), subtype.strip().lower(), params)


def classify(media_type: Optional[MediaType]) -> MediaKind:
    """メディアタイプを分類

    Args:
        media_type: parse_media_typeの結果

    Returns:
        MediaKind: JSON / BINARY / OTHER
    """
    if media_type is None:
        return MediaKind.OTHER
    if media_type.essence == 'application/json':
        return MediaKind.JSON
    if media_type.essence == 'application/octet-stream' or media_type.type in ('image', 'audio', 'video'):
        return MediaKind.BINARY
    return MediaKind.OTHER
