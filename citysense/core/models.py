"""
Core domain models for CitySense.

This module defines the core domain models using Pydantic v2
for type safety and validation. JSON documents use camelCase keys.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 경보 분류/등급/상태 타입 정의
WarningKind = Literal["event", "sensor", "correlation"]
WarningLevel = Literal["high", "medium", "low"]
WarningStatus = Literal["pending", "processing", "resolved"]

WARNING_STATUSES = ("pending", "processing", "resolved")

# 센서 이상 상태 표기 (구버전 데이터의 중국어 라벨 포함)
ABNORMAL_STATUSES = frozenset({"abnormal", "异常"})


class _CamelModel(BaseModel):
    """camelCase 별칭을 사용하는 기본 모델"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(_CamelModel):
    """위치 정보 모델"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    district: str
    street: str = ""
    lat: float
    lng: float


class CityEvent(_CamelModel):
    """도시 이벤트(시민/점검원 신고) 모델"""
    id: str
    type: str
    description: str = ""
    location: Location
    report_time: str
    reporter_type: str = ""
    status: str = ""


class SensorReading(_CamelModel):
    """센서 측정값 모델"""
    sensor_id: str
    type: str
    location: Location
    value: float
    unit: str = ""
    threshold: float
    timestamp: str
    status: str = "normal"

    @property
    def is_abnormal(self) -> bool:
        return self.status in ABNORMAL_STATUSES


class CityWarning(_CamelModel):
    """경보 모델 (status, ai_suggestion 은 운영자 조작으로 변경됨)"""
    id: str
    kind: WarningKind
    level: WarningLevel
    title: str
    description: str
    location: Location
    related_event_ids: Optional[List[str]] = None
    related_sensor_ids: Optional[List[str]] = None
    created_at: str
    status: WarningStatus = "pending"
    ai_suggestion: Optional[str] = None

    @property
    def identity_key(self) -> tuple:
        """중복 판정 키 (구, 도로, 분류, 제목)"""
        return (self.location.district, self.location.street, self.kind, self.title)


class WarningConfig(_CamelModel):
    """경보 규칙 설정"""
    event_cluster_threshold: int = Field(default=5, ge=1)
    event_cluster_time_window_hours: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    sensor_consecutive_count: int = Field(default=3, ge=1)
    auto_check_enabled: bool = True
    check_interval_ms: int = Field(default=60000, gt=0)


class ConfigUpdate(_CamelModel):
    """WarningConfig 부분 갱신 (알 수 없는 필드는 거부)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    event_cluster_threshold: Optional[int] = Field(default=None, ge=1)
    event_cluster_time_window_hours: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    sensor_consecutive_count: Optional[int] = Field(default=None, ge=1)
    auto_check_enabled: Optional[bool] = None
    check_interval_ms: Optional[int] = Field(default=None, gt=0)

    def apply(self, config: WarningConfig) -> WarningConfig:
        """설정된 필드만 병합한 새 설정을 반환합니다."""
        changes = self.model_dump(exclude_none=True)
        return config.model_copy(update=changes)


class DataSnapshot(BaseModel):
    """데이터 소스의 현재 스냅샷"""
    events: List[CityEvent] = Field(default_factory=list)
    readings: List[SensorReading] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.events and not self.readings


class AnalysisResult(_CamelModel):
    """AI 분석 결과"""
    cause: str = ""
    suggestion: str
    priority: WarningLevel = "medium"
