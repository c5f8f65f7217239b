"""
Warning lifecycle manager for CitySense.

This module owns the live warning list, the append-only history, the
rule configuration and the suppressed notification set. Each check
cycle pulls a snapshot from the data source, runs the detection rules,
deduplicates, inserts only new warnings and persists the state.

All state-mutating coroutines run on a single asyncio loop. Detection
and insertion happen without intermediate awaits, and overlapping
check cycles are skipped by a re-entrancy flag.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError

from citysense.core.dedup import dedupe
from citysense.core.models import AnalysisResult, CityWarning, ConfigUpdate, WarningConfig
from citysense.core.rules import detect_all
from citysense.core.transitions import can_transition, is_valid_status
from citysense.common.retry import retry_with_backoff
from citysense.common.timeparse import utcnow
from citysense.adapters.storage.state_gateway import PersistedState, WarningStateGateway
from citysense.orchestrators.scheduler import AutoCheckScheduler
from citysense.ports.analysis import AnalysisPort
from citysense.ports.datasource import DataSourcePort
from citysense.observability import metrics
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.manager")

# ConfigUpdate 가 받는 키 (필드명과 camelCase 별칭)
_CONFIG_KEYS = {
    key
    for name, info in ConfigUpdate.model_fields.items()
    for key in (name, info.alias)
    if key
}


def build_suggestion_prompt(warning: CityWarning) -> str:
    """경보 내용을 AI 분석 요청 텍스트로 변환합니다."""
    lines = [
        f"预警标题：{warning.title}",
        f"预警级别：{warning.level}",
        f"预警类型：{warning.kind}",
        f"位置：{warning.location.district}{warning.location.street}",
        f"描述：{warning.description}",
    ]
    if warning.related_event_ids:
        lines.append(f"关联事件数：{len(warning.related_event_ids)}")
    if warning.related_sensor_ids:
        lines.append(f"关联传感器：{'、'.join(warning.related_sensor_ids)}")
    lines.append("请分析可能的原因并给出处置建议。")
    return "\n".join(lines)


class WarningManager:
    """경보 생명주기 관리자"""

    def __init__(self,
                 data_source: DataSourcePort,
                 gateway: WarningStateGateway,
                 *,
                 config: Optional[WarningConfig] = None,
                 analyzer: Optional[AnalysisPort] = None,
                 scheduler: Optional[AutoCheckScheduler] = None,
                 strict_transitions: bool = False,
                 analysis_max_retries: int = 2,
                 analysis_backoff_initial_sec: float = 0.5,
                 analysis_backoff_max_sec: float = 10.0,
                 clock: Callable[[], datetime] = utcnow):
        """
        초기화합니다.

        Args:
            data_source: 이벤트/센서 스냅샷 제공 포트
            gateway: 상태 저장 게이트웨이
            config: 초기 규칙 설정
            analyzer: AI 분석 포트 (없으면 처치 제안 요청 비활성)
            scheduler: 주기 검사 스케줄러 (인스턴스마다 독립)
            strict_transitions: 순방향 상태 전이만 허용할지 여부
            analysis_max_retries: AI 분석 재시도 횟수
            analysis_backoff_initial_sec: AI 분석 재시도 초기 지연 (초)
            analysis_backoff_max_sec: AI 분석 재시도 최대 지연 (초)
            clock: 현재 시각 함수
        """
        self.data_source = data_source
        self.gateway = gateway
        self.analyzer = analyzer
        self.scheduler = scheduler or AutoCheckScheduler()
        self.strict_transitions = strict_transitions
        self.analysis_max_retries = analysis_max_retries
        self.analysis_backoff_initial = analysis_backoff_initial_sec
        self.analysis_backoff_max = analysis_backoff_max_sec
        self.clock = clock

        self.config: WarningConfig = config or WarningConfig()
        self.warnings: List[CityWarning] = []
        self.history: List[CityWarning] = []
        self.suppressed: Set[str] = set()

        self._checking = False
        self._schedule_generation = 0
        self._persist_lock = asyncio.Lock()

    # ---- 조회 ----

    def get(self, warning_id: str) -> Optional[CityWarning]:
        for warning in self.warnings:
            if warning.id == warning_id:
                return warning
        return None

    @property
    def pending_warnings(self) -> List[CityWarning]:
        return [w for w in self.warnings if w.status == "pending"]

    @property
    def processing_warnings(self) -> List[CityWarning]:
        return [w for w in self.warnings if w.status == "processing"]

    @property
    def resolved_warnings(self) -> List[CityWarning]:
        return [w for w in self.warnings if w.status == "resolved"]

    @property
    def high_level_warnings(self) -> List[CityWarning]:
        return [w for w in self.warnings if w.level == "high"]

    @property
    def is_auto_checking(self) -> bool:
        return self.scheduler.is_running

    @property
    def is_checking(self) -> bool:
        return self._checking

    # ---- 저장/복원 ----

    async def load(self) -> None:
        """저장된 경보, 이력, 설정, 닫힌 알림을 복원합니다."""
        state = await self.gateway.load(default_config=self.config)
        self.warnings = state.warnings
        self.history = state.history
        self.config = state.config
        self.suppressed = state.suppressed
        self._update_gauges()

    async def _persist(self) -> None:
        async with self._persist_lock:
            state = PersistedState(
                warnings=list(self.warnings),
                history=list(self.history),
                config=self.config,
                suppressed=set(self.suppressed),
            )
            await self.gateway.save(state)
        self._update_gauges()

    def _update_gauges(self) -> None:
        metrics.live_warnings.set(len(self.warnings))
        metrics.suppressed_notifications.set(len(self.suppressed))

    def _prune_suppressed(self) -> None:
        existing = {w.id for w in self.warnings}
        self.suppressed = {i for i in self.suppressed if i in existing}

    # ---- 검사 ----

    async def check_now(self, trigger: str = "manual") -> List[CityWarning]:
        """
        경보 검사를 한 번 실행합니다.

        스냅샷이 비어 있거나 다른 검사가 진행 중이면 아무것도 하지 않습니다.

        Args:
            trigger: 실행 계기 (manual, start, timer)

        Returns:
            새로 등록된 경보 목록
        """
        if self._checking:
            metrics.checks_skipped.labels(reason="in_progress").inc()
            log.debug("검사 진행 중, 중복 실행 건너뜀", trigger=trigger)
            return []

        self._checking = True
        try:
            try:
                snapshot = await self.data_source.snapshot()
            except Exception as e:
                metrics.checks_skipped.labels(reason="datasource_error").inc()
                log.error("데이터 스냅샷 조회 실패", error=str(e))
                return []

            if snapshot.is_empty:
                metrics.checks_skipped.labels(reason="empty").inc()
                log.debug("데이터 없음, 검사 건너뜀", trigger=trigger)
                return []

            created: List[CityWarning] = []
            with metrics.check_seconds.time():
                cfg = self.config
                try:
                    candidates = detect_all(
                        snapshot.events,
                        snapshot.readings,
                        window_hours=cfg.event_cluster_time_window_hours,
                        cluster_threshold=cfg.event_cluster_threshold,
                        consecutive_count=cfg.sensor_consecutive_count,
                        now=self.clock(),
                    )
                except Exception as e:
                    log.error("경보 규칙 실행 오류", error=str(e))
                    candidates = []

                for candidate in candidates:
                    metrics.warnings_detected.labels(kind=candidate.kind).inc()

                existing_ids = {w.id for w in self.warnings}
                existing_keys = {w.identity_key for w in self.warnings}
                for candidate in dedupe(candidates):
                    if candidate.id in existing_ids or candidate.identity_key in existing_keys:
                        continue
                    self.warnings.append(candidate)
                    self.history.append(candidate.model_copy(deep=True))
                    existing_ids.add(candidate.id)
                    existing_keys.add(candidate.identity_key)
                    created.append(candidate)
                    metrics.warnings_created.labels(kind=candidate.kind, level=candidate.level).inc()
                    log.info("신규 경보 등록",
                             warning_id=candidate.id,
                             kind=candidate.kind,
                             level=candidate.level)

                self._prune_suppressed()

            metrics.checks_run.labels(trigger=trigger).inc()
            log.info("경보 검사 완료",
                     trigger=trigger,
                     candidates=len(candidates),
                     created=len(created),
                     live=len(self.warnings))
            await self._persist()
            return created
        finally:
            self._checking = False

    # ---- 운영자 조작 ----

    async def set_status(self, warning_id: str, status: str) -> bool:
        """
        경보 상태를 변경합니다. 없는 ID 는 무시합니다.

        Args:
            warning_id: 경보 ID
            status: pending, processing, resolved 중 하나

        Returns:
            변경 여부
        """
        if not is_valid_status(status):
            log.warning("알 수 없는 경보 상태 무시", warning_id=warning_id, status=status)
            return False

        warning = self.get(warning_id)
        if warning is None:
            return False

        if not can_transition(warning.status, status, strict=self.strict_transitions):
            log.warning("허용되지 않는 상태 전이 무시",
                        warning_id=warning_id,
                        current=warning.status,
                        requested=status)
            return False

        warning.status = status
        await self._persist()
        return True

    async def attach_suggestion(self, warning_id: str, text: str) -> bool:
        """
        경보에 처치 제안을 붙입니다. 없는 ID 는 무시합니다.

        Args:
            warning_id: 경보 ID
            text: 처치 제안 내용

        Returns:
            변경 여부
        """
        warning = self.get(warning_id)
        if warning is None:
            return False
        warning.ai_suggestion = text
        await self._persist()
        return True

    async def delete(self, warning_id: str) -> None:
        """현재 목록에서만 경보를 삭제합니다 (이력은 유지)."""
        self.warnings = [w for w in self.warnings if w.id != warning_id]
        self.suppressed.discard(warning_id)
        await self._persist()

    async def clear_all(self) -> None:
        """현재 목록, 이력, 닫힌 알림을 모두 비우고 주기 검사를 중지합니다."""
        self.warnings = []
        self.history = []
        self.suppressed = set()
        self.stop_auto_check()
        await self._persist()
        log.info("경보 전체 삭제")

    # ---- 알림 억제 ----

    def is_suppressed(self, warning_id: str) -> bool:
        return warning_id in self.suppressed

    async def suppress(self, warning_id: str) -> None:
        """경보 알림을 닫힘으로 표시합니다."""
        self.suppressed.add(warning_id)
        await self._persist()

    # ---- 설정 ----

    def _coerce_update(self, partial: Union[ConfigUpdate, Mapping[str, Any]]) -> Optional[ConfigUpdate]:
        if isinstance(partial, ConfigUpdate):
            return partial
        if not isinstance(partial, Mapping):
            log.error("설정 갱신 형식 오류", type=type(partial).__name__)
            return None

        unknown = sorted(str(k) for k in partial if k not in _CONFIG_KEYS)
        if unknown:
            log.warning("알 수 없는 설정 필드 무시", fields=unknown)
        known = {k: v for k, v in partial.items() if k in _CONFIG_KEYS}

        try:
            return ConfigUpdate.model_validate(known)
        except ValidationError as e:
            log.error("설정 값 검증 실패, 설정 유지", error=str(e))
            return None

    async def update_config(self, partial: Union[ConfigUpdate, Mapping[str, Any]]) -> WarningConfig:
        """
        설정을 부분 갱신합니다. 자동 검사가 켜져 있으면 스케줄러를 재시작하고,
        꺼져 있으면 중지합니다.

        Args:
            partial: ConfigUpdate 또는 필드 매핑 (snake_case/camelCase)

        Returns:
            갱신된 설정 (검증 실패 시 기존 설정)
        """
        update = self._coerce_update(partial)
        if update is None:
            return self.config

        self.config = update.apply(self.config)
        log.info("경보 설정 갱신", **update.model_dump(exclude_none=True))
        await self._persist()

        if self.config.auto_check_enabled:
            await self.start_auto_check()
        else:
            self.stop_auto_check()
        return self.config

    # ---- 주기 검사 ----

    async def start_auto_check(self) -> None:
        """
        주기 검사를 시작합니다. 기존 타이머를 먼저 중지하고, 즉시 한 번 검사한 뒤
        check_interval_ms 간격의 타이머 하나를 겁니다.
        """
        self._schedule_generation += 1
        generation = self._schedule_generation
        self.scheduler.stop()

        if not self.config.auto_check_enabled:
            log.info("자동 검사 비활성화 상태, 시작하지 않음")
            return

        await self.check_now(trigger="start")

        # 즉시 검사 도중 stop/start 가 다시 호출되었으면 그쪽이 우선
        if generation != self._schedule_generation:
            return

        self.scheduler.start(self.config.check_interval_ms / 1000.0, self._scheduled_check)

    def stop_auto_check(self) -> None:
        """주기 검사를 중지합니다. 언제 호출해도 안전합니다."""
        self._schedule_generation += 1
        self.scheduler.stop()

    async def _scheduled_check(self) -> None:
        await self.check_now(trigger="timer")

    # ---- AI 처치 제안 ----

    async def request_suggestion(self, warning_id: str) -> Optional[AnalysisResult]:
        """
        AI 분석 서비스에 처치 제안을 요청해 경보에 붙입니다.

        Args:
            warning_id: 경보 ID

        Returns:
            분석 결과 또는 실패 시 None
        """
        warning = self.get(warning_id)
        if warning is None:
            return None
        if self.analyzer is None:
            log.warning("AI 분석 포트가 설정되지 않음", warning_id=warning_id)
            return None

        prompt = build_suggestion_prompt(warning)
        try:
            result = await retry_with_backoff(
                lambda: self.analyzer.analyze(prompt),
                max_retries=self.analysis_max_retries,
                base_delay=self.analysis_backoff_initial,
                max_delay=self.analysis_backoff_max,
                label="analysis",
            )
        except Exception as e:
            metrics.analysis_failures.inc()
            log.error("AI 처치 제안 요청 실패", warning_id=warning_id, error=str(e))
            return None

        await self.attach_suggestion(warning_id, result.suggestion)
        return result
