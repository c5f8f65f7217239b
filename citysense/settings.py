# citysense/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field
from citysense.core.models import WarningConfig

class Storage(BaseModel):
    backend: str = "sqlite"                   # sqlite | memory
    sqlite_path: str = "/data/citysense.db"
    warnings_key: str = "city-sense-warnings"
    history_key: str = "city-sense-warning-history"
    config_key: str = "city-sense-warning-config"
    suppressed_key: str = "city-sense-closed-notifications"

class Engine(BaseModel):
    strict_transitions: bool = False          # True면 pending→processing→resolved 순방향만 허용
    analysis_max_retries: int = 2
    analysis_backoff_initial_sec: float = 0.5
    analysis_backoff_max_sec: float = 10.0

class Observability(BaseModel):
    service_name: str = "CitySense"
    build_version: str = "0.1.0"
    log_level: str = "INFO"

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    rules: WarningConfig = Field(default_factory=WarningConfig)
    storage: Storage = Field(default_factory=Storage)
    engine: Engine = Field(default_factory=Engine)
    observability: Observability = Field(default_factory=Observability)
