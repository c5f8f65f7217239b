"""
Retry utilities for CitySense.

Calls to external collaborators (the analysis service in particular)
are retried with capped exponential backoff.
"""

import asyncio
import random
from typing import Awaitable, Callable, Tuple, Type, TypeVar
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.retry")

T = TypeVar('T')


def backoff_delay(attempt: int, base: float, max_delay: float, jitter: bool = False) -> float:
    """
    attempt 번째 재시도 전 대기 시간을 계산합니다.

    Args:
        attempt: 재시도 순번 (1부터 시작)
        base: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: True 이면 50~100% 사이로 흔듦

    Returns:
        지연 시간 (초)
    """
    delay = min(max_delay, base * (2 ** max(0, attempt - 1)))
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "call"
) -> T:
    """
    지수 백오프와 함께 비동기 함수를 재시도합니다.

    Args:
        func: 재시도할 비동기 함수
        max_retries: 최초 호출 이후 최대 재시도 횟수
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부
        retry_on: 재시도할 예외 타입
        label: 로그에 남길 호출 이름

    Returns:
        함수 실행 결과

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempt = 0
    while True:
        try:
            return await func()
        except retry_on as e:
            attempt += 1
            if attempt > max_retries:
                log.warning("재시도 한도 초과", label=label, attempts=attempt, error=str(e))
                raise
            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            log.debug("재시도 대기", label=label, attempt=attempt, delay=round(delay, 3), error=str(e))
            await asyncio.sleep(delay)
