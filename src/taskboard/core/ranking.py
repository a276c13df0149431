"""RankingComparator -- 任务列表的确定性全序

比较键（严格优先级，逐级短路）：
1. 逾期任务优先
2. 均逾期时，逾期更久（days_until_due 更小）优先
3. 有效优先级权重降序（使用升级后的值）
4. 状态权重降序
5. days_until_due 升序

全部相等时保持输入顺序（sorted 是稳定排序）。
"""

from collections.abc import Iterable
from datetime import datetime
from functools import cmp_to_key

from .clock import Clock, FixedClock
from .due import DueDateClassifier
from .escalation import PriorityEscalator
from .models.enums import PRIORITY_WEIGHTS, STATUS_WEIGHTS
from .models.task import Task
from .models.view import TaskView


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


def compare_views(a: TaskView, b: TaskView) -> int:
    """比较两个 TaskView，负数表示 a 排在 b 之前"""
    if a.is_overdue != b.is_overdue:
        return -1 if a.is_overdue else 1

    if a.is_overdue and b.is_overdue:
        result = _cmp(a.days_until_due, b.days_until_due)
        if result:
            return result

    result = _cmp(
        PRIORITY_WEIGHTS[b.effective_priority],
        PRIORITY_WEIGHTS[a.effective_priority],
    )
    if result:
        return result

    result = _cmp(STATUS_WEIGHTS[b.task.status], STATUS_WEIGHTS[a.task.status])
    if result:
        return result

    return _cmp(a.days_until_due, b.days_until_due)


def sort_views(views: Iterable[TaskView]) -> list[TaskView]:
    """对已标注的视图做稳定排序"""
    return sorted(views, key=cmp_to_key(compare_views))


def rank_tasks(tasks: Iterable[Task], now: datetime) -> list[TaskView]:
    """以固定时刻标注并排序任务集合"""
    escalator = PriorityEscalator(DueDateClassifier(FixedClock(now)))
    return sort_views(escalator.annotate(task) for task in tasks)


class RankingComparator:
    """绑定 Clock 的排序器

    同一次 rank() 调用内所有任务使用同一个 now()，
    保证徽标（逾期/临期）与排序位置一致。
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._escalator = PriorityEscalator(DueDateClassifier(clock))

    def annotate(self, task: Task, now: datetime | None = None) -> TaskView:
        return self._escalator.annotate(task, now or self._clock.now())

    def rank(self, tasks: Iterable[Task], now: datetime | None = None) -> list[TaskView]:
        instant = now or self._clock.now()
        return sort_views(self._escalator.annotate(task, instant) for task in tasks)
