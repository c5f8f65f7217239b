"""
Warning state persistence gateway for CitySense.

This module serializes the warning engine state into four independent
JSON documents on top of a KVStorePort:

- live warnings list
- append-only history list
- rule configuration object
- suppressed notification ids (array, loaded back into a set)

A missing or corrupt document never raises; the default value is kept
and the failure is logged.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from pydantic import TypeAdapter

from citysense.core.models import CityWarning, WarningConfig
from citysense.ports.kvstore import KVStorePort
from citysense.observability import metrics
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.state")

# 저장 키 (기존 브라우저 저장소와 동일)
WARNINGS_KEY = "city-sense-warnings"
HISTORY_KEY = "city-sense-warning-history"
CONFIG_KEY = "city-sense-warning-config"
SUPPRESSED_KEY = "city-sense-closed-notifications"

# 구버전 설정 키 -> 현재 키
LEGACY_CONFIG_KEYS = {
    "eventClusterTimeWindow": "eventClusterTimeWindowHours",
    "autoCheck": "autoCheckEnabled",
    "checkInterval": "checkIntervalMs",
}

_warning_list = TypeAdapter(List[CityWarning])


@dataclass
class PersistedState:
    """저장/복원 대상 상태"""
    warnings: List[CityWarning] = field(default_factory=list)
    history: List[CityWarning] = field(default_factory=list)
    config: WarningConfig = field(default_factory=WarningConfig)
    suppressed: Set[str] = field(default_factory=set)


def _upgrade_config_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    upgraded = dict(raw)
    for old, new in LEGACY_CONFIG_KEYS.items():
        if old in upgraded and new not in upgraded:
            upgraded[new] = upgraded.pop(old)
    return upgraded


class WarningStateGateway:
    """경보 상태 저장 게이트웨이"""

    def __init__(self,
                 store: KVStorePort,
                 *,
                 warnings_key: str = WARNINGS_KEY,
                 history_key: str = HISTORY_KEY,
                 config_key: str = CONFIG_KEY,
                 suppressed_key: str = SUPPRESSED_KEY):
        """
        초기화합니다.

        Args:
            store: 키-값 저장소 포트
            warnings_key: 현재 경보 목록 키
            history_key: 경보 이력 키
            config_key: 규칙 설정 키
            suppressed_key: 닫힌 알림 ID 키
        """
        self.store = store
        self.warnings_key = warnings_key
        self.history_key = history_key
        self.config_key = config_key
        self.suppressed_key = suppressed_key

    async def _read(self, key: str, document: str) -> Optional[Any]:
        try:
            raw = await self.store.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            metrics.persistence_failures.labels(operation="load", document=document).inc()
            log.error("저장 문서 읽기 실패", document=document, error=str(e))
            return None

    async def load(self, default_config: Optional[WarningConfig] = None) -> PersistedState:
        """
        저장된 상태를 복원합니다. 문서별로 독립적으로 복원하며,
        실패한 문서는 기본값으로 둡니다.

        Args:
            default_config: 설정 문서가 없거나 일부 필드가 빠졌을 때의 기본 설정

        Returns:
            복원된 상태
        """
        state = PersistedState(config=default_config or WarningConfig())

        raw = await self._read(self.warnings_key, "warnings")
        if raw is not None:
            try:
                state.warnings = _warning_list.validate_python(raw)
            except Exception as e:
                metrics.persistence_failures.labels(operation="load", document="warnings").inc()
                log.error("경보 목록 복원 실패, 빈 목록 사용", error=str(e))

        raw = await self._read(self.history_key, "history")
        if raw is not None:
            try:
                state.history = _warning_list.validate_python(raw)
            except Exception as e:
                metrics.persistence_failures.labels(operation="load", document="history").inc()
                log.error("경보 이력 복원 실패, 빈 목록 사용", error=str(e))

        raw = await self._read(self.config_key, "config")
        if raw is not None:
            try:
                if not isinstance(raw, dict):
                    raise ValueError(f"config document is {type(raw).__name__}, expected object")
                merged = {**state.config.model_dump(by_alias=True), **_upgrade_config_keys(raw)}
                state.config = WarningConfig.model_validate(merged)
            except Exception as e:
                metrics.persistence_failures.labels(operation="load", document="config").inc()
                log.error("규칙 설정 복원 실패, 기본 설정 사용", error=str(e))

        raw = await self._read(self.suppressed_key, "suppressed")
        if raw is not None:
            if isinstance(raw, list) and all(isinstance(i, str) for i in raw):
                state.suppressed = set(raw)
            else:
                metrics.persistence_failures.labels(operation="load", document="suppressed").inc()
                log.error("닫힌 알림 목록 형식 오류, 빈 집합 사용")

        log.info("경보 상태 복원 완료",
                 warnings=len(state.warnings),
                 history=len(state.history),
                 suppressed=len(state.suppressed))
        return state

    async def save(self, state: PersistedState) -> bool:
        """
        상태를 네 개의 문서로 저장합니다. 실패는 로그만 남깁니다.

        Args:
            state: 저장할 상태

        Returns:
            모든 문서 저장 성공 여부
        """
        # 모든 문서는 첫 await 전에 직렬화
        documents = {
            "warnings": (self.warnings_key, _warning_list.dump_json(state.warnings, by_alias=True).decode()),
            "history": (self.history_key, _warning_list.dump_json(state.history, by_alias=True).decode()),
            "config": (self.config_key, state.config.model_dump_json(by_alias=True)),
            "suppressed": (self.suppressed_key, json.dumps(sorted(state.suppressed), ensure_ascii=False)),
        }

        ok = True
        for document, (key, payload) in documents.items():
            try:
                await self.store.set(key, payload)
            except Exception as e:
                ok = False
                metrics.persistence_failures.labels(operation="save", document=document).inc()
                log.error("저장 문서 쓰기 실패", document=document, error=str(e))
        return ok

