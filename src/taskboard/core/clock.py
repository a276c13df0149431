"""Clock -- 当前时刻的唯一来源

所有需要 now() 的组件都通过注入的 Clock 获取时间，
测试中注入 FixedClock 固定时刻。
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol

from .models.task import ensure_utc


class Clock(Protocol):
    """时钟接口"""

    def now(self) -> datetime:
        """返回当前时刻（UTC aware）"""
        ...


class SystemClock:
    """系统墙钟"""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """固定时刻时钟，可手动推进"""

    def __init__(self, instant: datetime) -> None:
        self._instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta

    def set(self, instant: datetime) -> None:
        self._instant = ensure_utc(instant)
