"""
경보 상태 전이 테스트
"""

import pytest

from citysense.core.transitions import ALLOWED_TRANSITIONS, can_transition, is_valid_status

STATUSES = ["pending", "processing", "resolved"]


class TestTransitions:
    """상태 전이 판정 테스트"""

    @pytest.mark.parametrize("current", STATUSES)
    @pytest.mark.parametrize("new", STATUSES)
    def test_permissive_by_default(self, current, new):
        """기본 모드에서는 모든 상태로 변경 가능"""
        assert can_transition(current, new)

    @pytest.mark.parametrize("current,new,allowed", [
        ("pending", "processing", True),
        ("pending", "resolved", True),
        ("processing", "resolved", True),
        ("processing", "pending", False),
        ("resolved", "pending", False),
        ("resolved", "processing", False),
        ("resolved", "resolved", True),
    ])
    def test_strict_forward_only(self, current, new, allowed):
        """엄격 모드에서는 순방향만 허용"""
        assert can_transition(current, new, strict=True) is allowed

    @pytest.mark.parametrize("status", ["done", "", None, "PENDING"])
    def test_invalid_status(self, status):
        """정의되지 않은 상태는 거부"""
        assert not is_valid_status(status)
        assert not can_transition("pending", status)

    def test_table_covers_all_statuses(self):
        """전이 표는 모든 상태를 포함"""
        assert set(ALLOWED_TRANSITIONS) == set(STATUSES)
