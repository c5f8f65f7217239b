"""
In-memory data source for CitySense.

Holds the bounded dataset of city events and sensor readings that the
surrounding application has uploaded, and serves it as DataSnapshot.
"""

from typing import Iterable, List
from citysense.core.models import CityEvent, DataSnapshot, SensorReading
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.datasource")


class InMemoryDataSource:
    """메모리 기반 데이터 소스"""

    def __init__(self,
                 events: Iterable[CityEvent] = (),
                 readings: Iterable[SensorReading] = ()):
        self._events: List[CityEvent] = list(events)
        self._readings: List[SensorReading] = list(readings)

    async def snapshot(self) -> DataSnapshot:
        """현재 데이터의 복사본을 반환합니다."""
        return DataSnapshot(events=list(self._events), readings=list(self._readings))

    def set_events(self, events: Iterable[CityEvent]) -> None:
        """이벤트 전체 교체"""
        self._events = list(events)
        log.info("이벤트 데이터 교체", count=len(self._events))

    def set_readings(self, readings: Iterable[SensorReading]) -> None:
        """센서 측정값 전체 교체"""
        self._readings = list(readings)
        log.info("센서 데이터 교체", count=len(self._readings))

    def add_events(self, events: Iterable[CityEvent]) -> None:
        """이벤트 추가"""
        self._events.extend(events)

    def add_readings(self, readings: Iterable[SensorReading]) -> None:
        """센서 측정값 추가"""
        self._readings.extend(readings)

    def clear(self) -> None:
        """모든 데이터 삭제"""
        self._events = []
        self._readings = []

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def reading_count(self) -> int:
        return len(self._readings)
