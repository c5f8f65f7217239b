"""
Warning deduplication for CitySense.

Collapses candidate warnings that describe the same situation.
"""

from typing import Iterable, List
from citysense.core.models import CityWarning


def dedupe(warnings: Iterable[CityWarning]) -> List[CityWarning]:
    """
    (구, 도로, 분류, 제목) 키로 중복 경보를 제거합니다. 먼저 나온 경보가 남습니다.

    Args:
        warnings: 경보 목록

    Returns:
        순서를 유지한 중복 제거 목록
    """
    seen = set()
    unique: List[CityWarning] = []
    for warning in warnings:
        key = warning.identity_key
        if key not in seen:
            seen.add(key)
            unique.append(warning)
    return unique
