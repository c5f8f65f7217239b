"""
Timestamp helpers for CitySense.

Detector inputs carry ISO-8601 text. Parsing is lenient: anything that
cannot be read yields None so callers can skip the record.
"""

import re
from datetime import datetime, timezone
from typing import Optional

# 날짜 시각, 소수 초, 오프셋 (Z, +08, +0800, +08:00)
_ISO_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:[.,](\d+))?"
    r"(Z|[+-]\d{2}(?::?\d{2})?)?$",
    re.IGNORECASE,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(text: str) -> str:
    """fromisoformat 이 모든 버전에서 받는 형태로 바꿉니다."""
    match = _ISO_PATTERN.match(text)
    if match is None:
        if text.endswith(("Z", "z")):
            return text[:-1] + "+00:00"
        return text

    base, fraction, offset = match.groups()
    if fraction:
        # 마이크로초 6자리로 맞춤
        base += "." + fraction[:6].ljust(6, "0")
    if offset:
        if offset.upper() == "Z":
            offset = "+00:00"
        else:
            digits = offset[1:].replace(":", "")
            offset = f"{offset[0]}{digits[:2]}:{digits[2:] or '00'}"
        base += offset
    return base


def parse_timestamp(value) -> Optional[datetime]:
    """
    ISO-8601 문자열을 timezone-aware datetime 으로 변환합니다.

    오프셋이 없는 값은 로컬 시간으로 해석합니다. `+0800`, `+08` 같은
    축약 오프셋과 1~9 자리 소수 초도 받습니다.

    Args:
        value: 변환할 값 (문자열 또는 datetime)

    Returns:
        변환된 datetime 또는 실패 시 None
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(_normalize(value.strip()))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        try:
            dt = dt.astimezone()
        except (OverflowError, OSError, ValueError):
            return None
    return dt


def isoformat(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds")
