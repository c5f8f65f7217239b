"""
Geographic utilities for CitySense.

This module provides geographic calculations including
distance calculation, coordinate validation and the coarse
lat/lng grid used for co-location checks.
"""

import math
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from citysense.core.models import Location

# 지구 반지름 (킬로미터)
EARTH_RADIUS_KM = 6371.0

# 0.01도 격자 (약 1km)
GRID_PRECISION = 100

GridCell = Tuple[int, int]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (킬로미터).

    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도

    Returns:
        두 지점 간의 거리 (킬로미터)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return c * EARTH_RADIUS_KM


def distance_m(a: "Location", b: "Location") -> float:
    """두 위치 간의 거리 (미터)"""
    return haversine_distance(a.lat, a.lng, b.lat, b.lng) * 1000.0


def is_within_distance(a: "Location", b: "Location", max_distance_m: float = 500.0) -> bool:
    """
    두 위치가 지정 거리 이내인지 확인합니다.

    Args:
        a: 첫 번째 위치
        b: 두 번째 위치
        max_distance_m: 최대 거리 (미터)

    Returns:
        거리 이내이면 True
    """
    return distance_m(a, b) <= max_distance_m


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    좌표가 유효한지 확인합니다. NaN 은 비교가 모두 거짓이므로 무효 처리됩니다.

    Args:
        lat: 위도
        lon: 경도

    Returns:
        좌표가 유효하면 True
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def grid_cell(lat: float, lng: float, precision: int = GRID_PRECISION) -> Optional[GridCell]:
    """
    좌표를 격자 셀 키로 변환합니다.

    Args:
        lat: 위도
        lng: 경도
        precision: 1도당 셀 수 (기본 100 = 0.01도)

    Returns:
        (위도 셀, 경도 셀) 또는 좌표가 유효하지 않으면 None
    """
    if not validate_coordinates(lat, lng):
        return None
    return (_round_half_up(lat * precision), _round_half_up(lng * precision))
