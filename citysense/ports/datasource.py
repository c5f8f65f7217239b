"""
Data source port interface.

This module defines the protocol for reading the current
snapshot of city events and sensor readings.
"""

from typing import Protocol
from citysense.core.models import DataSnapshot

class DataSourcePort(Protocol):
    """데이터 소스 포트 인터페이스 (읽기 전용)"""
    
    async def snapshot(self) -> DataSnapshot:
        """
        현재 이벤트와 센서 측정값 스냅샷을 반환합니다.
        
        Returns:
            데이터 스냅샷
        """
        ...
