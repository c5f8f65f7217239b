"""
Periodic check scheduler for CitySense.

Each WarningManager owns one AutoCheckScheduler. At most one timer task
is armed per scheduler: start() always cancels the previous task first.
"""

import asyncio
from typing import Awaitable, Callable, Optional
from citysense.observability import metrics
from citysense.observability.logging_setup import get_logger

log = get_logger("citysense.scheduler")


class AutoCheckScheduler:
    """주기 실행 스케줄러 (asyncio.Task 기반)"""

    def __init__(self, name: str = "auto-check"):
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self.interval_sec: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_sec: float, callback: Callable[[], Awaitable[object]]) -> None:
        """
        주기 실행을 시작합니다. 이미 실행 중이면 먼저 중지합니다.

        실행 중인 이벤트 루프 안에서 호출해야 합니다.

        Args:
            interval_sec: 실행 간격 (초)
            callback: 주기마다 호출할 비동기 함수
        """
        self.stop()
        self.interval_sec = interval_sec
        self._task = asyncio.get_running_loop().create_task(
            self._run(interval_sec, callback), name=self.name
        )
        metrics.auto_check_active.set(1)
        log.info("주기 검사 시작", scheduler=self.name, interval_sec=interval_sec)

    def stop(self) -> None:
        """주기 실행을 중지합니다. 실행 중이 아니면 아무것도 하지 않습니다."""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        metrics.auto_check_active.set(0)
        log.info("주기 검사 중지", scheduler=self.name)

    async def _run(self, interval_sec: float, callback: Callable[[], Awaitable[object]]) -> None:
        while True:
            await asyncio.sleep(interval_sec)
            try:
                await callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("주기 검사 오류", scheduler=self.name, error=str(e))
