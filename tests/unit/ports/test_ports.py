"""
Port 모듈 단위 테스트

이 모듈은 포트 인터페이스들의 계약을 테스트합니다.
"""

import pytest

from citysense.core.models import AnalysisResult, DataSnapshot
from citysense.ports import AnalysisPort, DataSourcePort, KVStorePort
from conftest import make_event


class TestDataSourcePort:
    """데이터 소스 포트 인터페이스 테스트"""

    @pytest.fixture
    def mock_data_source(self):
        """테스트용 데이터 소스"""
        class MockDataSource:
            async def snapshot(self) -> DataSnapshot:
                """모킹된 스냅샷 메서드"""
                return DataSnapshot(events=[make_event("e1")])

        return MockDataSource()

    def test_port_interface(self):
        """포트가 snapshot 메서드를 정의"""
        assert hasattr(DataSourcePort, "snapshot")

    @pytest.mark.asyncio
    async def test_port_implementation(self, mock_data_source):
        """포트 구현 테스트"""
        snapshot = await mock_data_source.snapshot()

        assert [e.id for e in snapshot.events] == ["e1"]
        assert snapshot.readings == []


class TestAnalysisPort:
    """AI 분석 포트 인터페이스 테스트"""

    @pytest.fixture
    def mock_analyzer(self):
        """테스트용 분석기"""
        class MockAnalyzer:
            def __init__(self):
                self.prompts = []

            async def analyze(self, text: str) -> AnalysisResult:
                """모킹된 분석 메서드"""
                self.prompts.append(text)
                return AnalysisResult(cause="排水不畅", suggestion="派遣抢修队", priority="high")

        return MockAnalyzer()

    def test_port_interface(self):
        """포트가 analyze 메서드를 정의"""
        assert hasattr(AnalysisPort, "analyze")

    @pytest.mark.asyncio
    async def test_port_implementation(self, mock_analyzer):
        """포트 구현 테스트"""
        result = await mock_analyzer.analyze("预警标题：积水")

        assert result.suggestion == "派遣抢修队"
        assert result.priority == "high"
        assert mock_analyzer.prompts == ["预警标题：积水"]


class TestKVStorePort:
    """키-값 저장소 포트 인터페이스 테스트"""

    def test_port_interface(self):
        """포트가 get/set/delete 메서드를 정의"""
        for method in ("get", "set", "delete"):
            assert hasattr(KVStorePort, method)

    @pytest.mark.asyncio
    async def test_memory_store_satisfies_port(self, memory_store):
        """메모리 저장소가 포트 계약을 따름"""
        await memory_store.set("k", "v")
        assert await memory_store.get("k") == "v"
        await memory_store.delete("k")
        assert await memory_store.get("k") is None
