"""
Warning status transitions for CitySense.

By default any status may be set directly. The forward-only table below
is applied only when strict transitions are enabled.
"""

from citysense.core.models import WARNING_STATUSES

# 상태 순서 (pending -> processing -> resolved)
STATUS_ORDER = {status: index for index, status in enumerate(WARNING_STATUSES)}

ALLOWED_TRANSITIONS = {
    "pending": {"pending", "processing", "resolved"},
    "processing": {"processing", "resolved"},
    "resolved": {"resolved"},
}


def is_valid_status(status) -> bool:
    return status in STATUS_ORDER


def can_transition(current: str, new: str, *, strict: bool = False) -> bool:
    """
    상태 변경 허용 여부를 판단합니다.

    Args:
        current: 현재 상태
        new: 변경할 상태
        strict: True 이면 순방향 전이만 허용

    Returns:
        허용되면 True
    """
    if not is_valid_status(new):
        return False
    if not strict:
        return True
    return new in ALLOWED_TRANSITIONS.get(current, set())
