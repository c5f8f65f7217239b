# citysense/bootstrap.py
import os
from typing import Optional
from citysense.settings import Settings
from citysense.adapters.storage import SQLiteKVStore, MemoryKVStore, WarningStateGateway
from citysense.orchestrators import WarningManager
from citysense.ports.analysis import AnalysisPort
from citysense.ports.datasource import DataSourcePort
from citysense.ports.kvstore import KVStorePort
from citysense.observability.logging_setup import setup_logger, get_logger

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 경보 규칙 기본값
    s.rules.event_cluster_threshold = int(os.getenv("CITYSENSE_CLUSTER_THRESHOLD", s.rules.event_cluster_threshold))
    s.rules.event_cluster_time_window_hours = float(os.getenv("CITYSENSE_CLUSTER_WINDOW_HOURS", s.rules.event_cluster_time_window_hours))
    s.rules.sensor_consecutive_count = int(os.getenv("CITYSENSE_SENSOR_CONSECUTIVE", s.rules.sensor_consecutive_count))
    s.rules.auto_check_enabled = _b("CITYSENSE_AUTO_CHECK", s.rules.auto_check_enabled)
    s.rules.check_interval_ms = int(os.getenv("CITYSENSE_CHECK_INTERVAL_MS", s.rules.check_interval_ms))

    # 저장소
    s.storage.backend = os.getenv("CITYSENSE_STORAGE", s.storage.backend)
    s.storage.sqlite_path = os.getenv("CITYSENSE_DB_PATH", s.storage.sqlite_path)

    # 엔진
    s.engine.strict_transitions = _b("CITYSENSE_STRICT_TRANSITIONS", s.engine.strict_transitions)
    s.engine.analysis_max_retries = int(os.getenv("CITYSENSE_ANALYSIS_RETRIES", s.engine.analysis_max_retries))

    # 관측성
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)

    # 환경변수 값도 모델 제약을 통과해야 함
    return Settings.model_validate(s.model_dump())

async def build_store(settings: Settings) -> KVStorePort:
    log = get_logger()
    if settings.storage.backend == "memory":
        log.info("메모리 저장소 사용")
        return MemoryKVStore()
    store = SQLiteKVStore(settings.storage.sqlite_path)
    await store.init()
    return store

async def create_manager(data_source: DataSourcePort,
                         settings: Optional[Settings] = None,
                         *,
                         analyzer: Optional[AnalysisPort] = None,
                         store: Optional[KVStorePort] = None) -> WarningManager:
    """
    설정에 따라 저장소, 게이트웨이, 경보 관리자를 구성하고 저장된 상태를 복원합니다.

    Args:
        data_source: 이벤트/센서 데이터 소스
        settings: 설정 (None이면 환경변수에서 생성)
        analyzer: AI 분석 포트
        store: 키-값 저장소 (None이면 설정의 backend 사용)

    Returns:
        상태가 복원된 경보 관리자
    """
    s = settings or build_settings()
    setup_logger(s.observability.log_level)
    log = get_logger()

    if store is None:
        store = await build_store(s)
    gateway = WarningStateGateway(
        store,
        warnings_key=s.storage.warnings_key,
        history_key=s.storage.history_key,
        config_key=s.storage.config_key,
        suppressed_key=s.storage.suppressed_key,
    )
    manager = WarningManager(
        data_source,
        gateway,
        config=s.rules.model_copy(),
        analyzer=analyzer,
        strict_transitions=s.engine.strict_transitions,
        analysis_max_retries=s.engine.analysis_max_retries,
        analysis_backoff_initial_sec=s.engine.analysis_backoff_initial_sec,
        analysis_backoff_max_sec=s.engine.analysis_backoff_max_sec,
    )
    await manager.load()
    log.info("경보 관리자 생성 완료", service=s.observability.service_name)
    return manager
