"""
데이터 소스 어댑터 테스트
"""

import pytest

from citysense.adapters.datasource import InMemoryDataSource
from conftest import make_event, make_reading


class TestInMemoryDataSource:
    """메모리 데이터 소스 테스트"""

    def test_implements_port(self):
        """포트 메서드 구현"""
        source = InMemoryDataSource()
        assert hasattr(source, "snapshot")
        assert callable(source.snapshot)

    @pytest.mark.asyncio
    async def test_empty_snapshot(self, data_source):
        """빈 데이터 소스의 스냅샷은 비어 있음"""
        snapshot = await data_source.snapshot()

        assert snapshot.is_empty
        assert data_source.event_count == 0
        assert data_source.reading_count == 0

    @pytest.mark.asyncio
    async def test_snapshot_is_copy(self):
        """스냅샷 목록을 바꿔도 원본은 그대로"""
        source = InMemoryDataSource(events=[make_event("e1")], readings=[make_reading("S1")])

        snapshot = await source.snapshot()
        snapshot.events.clear()

        assert source.event_count == 1
        assert len((await source.snapshot()).events) == 1

    @pytest.mark.asyncio
    async def test_set_add_clear(self, data_source):
        """데이터 교체, 추가, 삭제"""
        data_source.set_events([make_event("e1"), make_event("e2")])
        data_source.add_events([make_event("e3")])
        data_source.set_readings([make_reading("S1")])
        data_source.add_readings([make_reading("S2"), make_reading("S3")])

        snapshot = await data_source.snapshot()
        assert [e.id for e in snapshot.events] == ["e1", "e2", "e3"]
        assert [r.sensor_id for r in snapshot.readings] == ["S1", "S2", "S3"]

        data_source.clear()
        assert (await data_source.snapshot()).is_empty
