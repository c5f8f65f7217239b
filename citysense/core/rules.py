"""
Warning detection rules for CitySense.

This module contains pure functions that scan a snapshot of city events
and sensor readings and produce candidate warnings:

- detect_event_clusters: same district/type events bursting inside a window
- detect_sensor_streaks: sensors staying abnormal over closely spaced samples
- detect_correlations: events and abnormal sensors sharing a grid cell

Records with unparseable timestamps or coordinates are skipped; the rules
never raise on malformed input.
"""

import uuid
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from citysense.common.geo import GridCell, grid_cell
from citysense.common.timeparse import isoformat, parse_timestamp, utcnow
from citysense.core.models import CityEvent, CityWarning, SensorReading
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.rules")

# 집중 발생 건수가 이 값 이상이면 high
CLUSTER_HIGH_COUNT = 10

# 연속 이상으로 인정하는 최대 간격 (미만)
STREAK_MAX_GAP = timedelta(hours=2)

# 값이 임계값의 이 배수를 초과하면 high
STREAK_HIGH_RATIO = 1.5

# 관련 이벤트로 인정하는 최근 기간 (미만)
CORRELATION_RECENT = timedelta(hours=24)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return parse_timestamp(now) if now is not None else utcnow()


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _warning_id(kind: str, now: datetime, suffix: str) -> str:
    return f"warning_{kind}_{int(now.timestamp() * 1000)}_{suffix}_{uuid.uuid4().hex[:6]}"


def detect_event_clusters(
    events: Iterable[CityEvent],
    window_hours: float = 1.0,
    threshold: int = 5,
    *,
    now: Optional[datetime] = None
) -> List[CityWarning]:
    """
    같은 구/같은 유형 이벤트가 시간 창 안에 몰렸는지 검사합니다.

    각 그룹을 시간순으로 정렬한 뒤 이벤트마다 [t, t + window) 창을 열고,
    기준 이벤트 이후(초과)부터 창 끝 이전(미만)까지의 이벤트 수를 셉니다.
    threshold 이상인 첫 창에서 경보 하나를 만들고 그 그룹은 종료합니다.

    Args:
        events: 이벤트 목록
        window_hours: 시간 창 (시간)
        threshold: 경보 기준 건수
        now: 경보 생성 시각 (기본: 현재 UTC)

    Returns:
        생성된 경보 목록
    """
    now = _resolve_now(now)
    try:
        window = timedelta(hours=window_hours)
    except OverflowError:
        # timedelta 범위를 넘는 창은 이후 모든 이벤트를 덮음
        window = timedelta.max
    except ValueError:
        log.warning("시간 창 값이 올바르지 않음", window_hours=window_hours)
        return []

    groups: Dict[Tuple[str, str], List[Tuple[datetime, CityEvent]]] = {}
    skipped = 0
    for event in events:
        reported = parse_timestamp(event.report_time)
        if reported is None:
            skipped += 1
            continue
        key = (event.location.district, event.type)
        groups.setdefault(key, []).append((reported, event))

    if skipped:
        log.debug("보고 시각을 해석할 수 없는 이벤트 제외", skipped=skipped)

    warnings: List[CityWarning] = []
    for (district, event_type), members in groups.items():
        members.sort(key=lambda item: item[0])

        for i, (window_start, anchor) in enumerate(members):
            try:
                window_end = window_start + window
            except OverflowError:
                window_end = datetime.max.replace(tzinfo=window_start.tzinfo)
            in_window = [e for t, e in members if window_start < t < window_end]

            if len(in_window) >= threshold:
                warnings.append(CityWarning(
                    id=_warning_id("event", now, str(i)),
                    kind="event",
                    level="high" if len(in_window) >= CLUSTER_HIGH_COUNT else "medium",
                    title=f"{district}{event_type}集中爆发",
                    description=(
                        f"{window_start:%Y-%m-%d %H:%M}至{window_end:%H:%M}期间，"
                        f"{district}发生{len(in_window)}起{event_type}事件，超过阈值{threshold}次"
                    ),
                    location=anchor.location,
                    related_event_ids=[e.id for e in in_window],
                    created_at=isoformat(now),
                    status="pending",
                ))
                # 그룹당 경보 하나
                break

    return warnings


def detect_sensor_streaks(
    readings: Iterable[SensorReading],
    consecutive_count: int = 3,
    *,
    now: Optional[datetime] = None
) -> List[CityWarning]:
    """
    센서가 연속으로 이상 상태를 보였는지 검사합니다.

    이상 측정값만 시간순으로 정렬해 인접 간격이 2시간 미만이면 같은 구간으로
    이어 붙이고, 가장 긴 구간이 consecutive_count 이상이면 그 구간의 첫
    측정값을 대표로 경보를 만듭니다.

    Args:
        readings: 센서 측정값 목록
        consecutive_count: 연속 이상 기준 횟수
        now: 경보 생성 시각 (기본: 현재 UTC)

    Returns:
        생성된 경보 목록
    """
    now = _resolve_now(now)

    groups: Dict[str, List[Tuple[datetime, SensorReading]]] = {}
    for reading in readings:
        if not reading.is_abnormal:
            continue
        ts = parse_timestamp(reading.timestamp)
        if ts is None:
            continue
        groups.setdefault(reading.sensor_id, []).append((ts, reading))

    warnings: List[CityWarning] = []
    for sensor_id, abnormal in groups.items():
        if len(abnormal) < consecutive_count:
            continue

        abnormal.sort(key=lambda item: item[0])

        run_length = 1
        run_start = 0
        longest = 1
        longest_start = 0
        for i in range(1, len(abnormal)):
            if abnormal[i][0] - abnormal[i - 1][0] < STREAK_MAX_GAP:
                run_length += 1
                if run_length > longest:
                    longest = run_length
                    longest_start = run_start
            else:
                run_length = 1
                run_start = i

        if longest < consecutive_count:
            continue

        reading = abnormal[longest_start][1]
        warnings.append(CityWarning(
            id=_warning_id("sensor", now, sensor_id),
            kind="sensor",
            level="high" if reading.value > reading.threshold * STREAK_HIGH_RATIO else "medium",
            title=f"{reading.type}持续异常",
            description=(
                f"传感器{sensor_id}连续{longest}次超过阈值，"
                f"当前值：{_format_number(reading.value)}{reading.unit}，阈值：{_format_number(reading.threshold)}{reading.unit}"
            ),
            location=reading.location,
            related_sensor_ids=[sensor_id],
            created_at=isoformat(now),
            status="pending",
        ))

    return warnings


def detect_correlations(
    events: Iterable[CityEvent],
    readings: Iterable[SensorReading],
    *,
    now: Optional[datetime] = None
) -> List[CityWarning]:
    """
    같은 격자 셀에서 이벤트와 센서 이상이 함께 발생했는지 검사합니다.

    셀에 이벤트와 이상 측정값이 모두 있고 24시간 이내 보고된 이벤트가 하나라도
    있으면 high 경보를 만듭니다. 설명에는 첫 최근 이벤트와 첫 이상 측정값을,
    관련 ID 에는 셀의 모든 이벤트/센서를 사용합니다.

    Args:
        events: 이벤트 목록
        readings: 센서 측정값 목록
        now: 판정 기준 시각 (기본: 현재 UTC)

    Returns:
        생성된 경보 목록
    """
    now = _resolve_now(now)

    cells: Dict[GridCell, Dict[str, list]] = {}
    for event in events:
        cell = grid_cell(event.location.lat, event.location.lng)
        if cell is None:
            continue
        cells.setdefault(cell, {"events": [], "readings": []})["events"].append(event)

    for reading in readings:
        if not reading.is_abnormal:
            continue
        cell = grid_cell(reading.location.lat, reading.location.lng)
        if cell is None:
            continue
        cells.setdefault(cell, {"events": [], "readings": []})["readings"].append(reading)

    warnings: List[CityWarning] = []
    for (lat_cell, lng_cell), group in cells.items():
        if not group["events"] or not group["readings"]:
            continue

        recent = []
        for event in group["events"]:
            reported = parse_timestamp(event.report_time)
            if reported is not None and now - reported < CORRELATION_RECENT:
                recent.append(event)
        if not recent:
            continue

        event = recent[0]
        reading = group["readings"][0]
        warnings.append(CityWarning(
            id=_warning_id("correlation", now, f"{lat_cell}_{lng_cell}"),
            kind="correlation",
            level="high",
            title=f"{event.location.district}{event.location.street}异常集中",
            description=f"该位置同时发生{event.type}事件和{reading.type}传感器异常，可能存在关联问题",
            location=event.location,
            related_event_ids=[e.id for e in group["events"]],
            related_sensor_ids=[r.sensor_id for r in group["readings"]],
            created_at=isoformat(now),
            status="pending",
        ))

    return warnings


def detect_all(
    events: List[CityEvent],
    readings: List[SensorReading],
    *,
    window_hours: float = 1.0,
    cluster_threshold: int = 5,
    consecutive_count: int = 3,
    now: Optional[datetime] = None
) -> List[CityWarning]:
    """
    세 가지 규칙을 모두 실행해 경보 후보를 합쳐 반환합니다.

    한 규칙이 실패해도 나머지 규칙의 결과는 반환됩니다.
    """
    now = _resolve_now(now)
    rules = (
        ("event", lambda: detect_event_clusters(events, window_hours, cluster_threshold, now=now)),
        ("sensor", lambda: detect_sensor_streaks(readings, consecutive_count, now=now)),
        ("correlation", lambda: detect_correlations(events, readings, now=now)),
    )

    warnings: List[CityWarning] = []
    for kind, rule in rules:
        try:
            warnings.extend(rule())
        except Exception as e:
            log.error("경보 규칙 실행 오류", rule=kind, error=str(e))
    return warnings
