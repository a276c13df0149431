"""DueDateClassifier -- 截止时间分类

纯函数：输入 due_date、status 和当前时刻，输出 DueFacts。
"""

import math
from datetime import datetime, timedelta

from .clock import Clock
from .models.enums import TaskStatus
from .models.task import Task, ensure_utc
from .models.view import DueFacts

# 0-2 天内到期视为临期
DUE_SOON_DAYS = 2

_ONE_DAY = timedelta(days=1)


def days_until_due(due_date: datetime, now: datetime) -> int:
    """距截止天数 = ceil((due_date - now) / 1 天)

    向上取整：今天稍晚到期记为 0，今天早些时候已过期也记为 0，
    不会被提前算作多天逾期。
    """
    return math.ceil((ensure_utc(due_date) - ensure_utc(now)) / _ONE_DAY)


def classify_due(due_date: datetime, status: TaskStatus, now: datetime) -> DueFacts:
    """计算单个任务的截止时间派生事实"""
    days = days_until_due(due_date, now)
    active = status != TaskStatus.COMPLETED
    return DueFacts(
        days_until_due=days,
        is_overdue=active and ensure_utc(due_date) < ensure_utc(now),
        is_due_soon=active and 0 <= days <= DUE_SOON_DAYS,
    )


class DueDateClassifier:
    """绑定 Clock 的分类器"""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def classify(self, task: Task, now: datetime | None = None) -> DueFacts:
        """按给定时刻（默认 clock.now()）分类任务"""
        return classify_due(task.due_date, task.status, now or self._clock.now())
