"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import inspect
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from citysense.core.models import CityEvent, Location, SensorReading
from citysense.adapters.storage import MemoryKVStore, WarningStateGateway
from citysense.adapters.datasource import InMemoryDataSource
from citysense.orchestrators import WarningManager

# 테스트 기준 시각
BASE_TIME = datetime(2025, 11, 12, 8, 0, 0, tzinfo=timezone.utc)

CHAOYANG = Location(district="朝阳区", street="建国路", lat=39.9087, lng=116.4575)
DONGCHENG = Location(district="东城区", street="王府井大街", lat=39.9142, lng=116.4156)
HAIDIAN = Location(district="海淀区", street="中关村大街", lat=39.9834, lng=116.3160)


def make_event(event_id, *, minutes=0.0, event_type="道路积水", location=CHAOYANG, report_time=None):
    """테스트용 이벤트 생성"""
    if report_time is None:
        report_time = (BASE_TIME + timedelta(minutes=minutes)).isoformat()
    return CityEvent(
        id=event_id,
        type=event_type,
        description="测试事件",
        location=location,
        report_time=report_time,
        reporter_type="市民APP",
        status="未处理",
    )


def make_reading(sensor_id, *, hours=0.0, value=60.0, threshold=50.0, status="abnormal",
                 sensor_type="积水监测", location=CHAOYANG, timestamp=None):
    """테스트용 센서 측정값 생성"""
    if timestamp is None:
        timestamp = (BASE_TIME + timedelta(hours=hours)).isoformat()
    return SensorReading(
        sensor_id=sensor_id,
        type=sensor_type,
        location=location,
        value=value,
        unit="cm",
        threshold=threshold,
        timestamp=timestamp,
        status=status,
    )


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def memory_store():
    """테스트용 메모리 저장소"""
    return MemoryKVStore()


@pytest.fixture
def gateway(memory_store):
    """테스트용 상태 게이트웨이"""
    return WarningStateGateway(memory_store)


@pytest.fixture
def data_source():
    """테스트용 빈 데이터 소스"""
    return InMemoryDataSource()


@pytest.fixture
def cluster_events():
    """기준 이벤트 + 30분 안에 이어진 같은 유형 이벤트 5건"""
    return [make_event(f"evt_{i}", minutes=i * 5) for i in range(6)]


@pytest.fixture
def streak_readings():
    """1시간 간격으로 4번 연속 이상"""
    return [make_reading("S001", hours=h, value=60.0) for h in range(4)]


@pytest.fixture
def manager(data_source, gateway):
    """테스트용 경보 관리자 (시계 고정)"""
    mgr = WarningManager(data_source, gateway, clock=lambda: BASE_TIME + timedelta(hours=1))
    yield mgr
    mgr.stop_auto_check()


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        function = getattr(item, "function", None)
        # 비동기 테스트에 asyncio 마커 추가
        if function is not None and inspect.iscoroutinefunction(function):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
