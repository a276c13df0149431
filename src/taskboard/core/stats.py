"""用户任务统计与公开任务摘要"""

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from .clock import FixedClock
from .due import DueDateClassifier, classify_due
from .escalation import PriorityEscalator
from .models.enums import Priority, TaskStatus
from .models.task import Task
from .models.view import TaskView

RECENT_TASKS_LIMIT = 5
PUBLIC_TASKS_LIMIT = 5


class UserStats(BaseModel):
    """个人看板统计"""

    total_tasks: int = Field(description="创建或参与的任务总数")
    completed_tasks: int = Field(description="已完成任务数")
    overdue_tasks: int = Field(description="逾期任务数")
    completion_rate: int = Field(description="完成率（四舍五入百分比）")
    tasks_by_priority: dict[Priority, int] = Field(description="按存储优先级计数")
    tasks_by_status: dict[TaskStatus, int] = Field(description="按状态计数")
    recent_tasks: list[TaskView] = Field(default_factory=list, description="最近更新的任务")


def compute_user_stats(
    tasks: Iterable[Task],
    now: datetime,
) -> UserStats:
    """统计给定任务集合（调用方负责按创建者/协作者过滤）"""
    items = list(tasks)
    total = len(items)
    completed = sum(1 for t in items if t.status == TaskStatus.COMPLETED)
    overdue = sum(1 for t in items if classify_due(t.due_date, t.status, now).is_overdue)

    by_priority = {p: 0 for p in Priority}
    by_status = {s: 0 for s in TaskStatus}
    for t in items:
        by_priority[t.priority] += 1
        by_status[t.status] += 1

    recent = sorted(items, key=lambda t: t.updated_at, reverse=True)[:RECENT_TASKS_LIMIT]
    escalator = PriorityEscalator(DueDateClassifier(FixedClock(now)))

    return UserStats(
        total_tasks=total,
        completed_tasks=completed,
        overdue_tasks=overdue,
        completion_rate=round(completed / total * 100) if total else 0,
        tasks_by_priority=by_priority,
        tasks_by_status=by_status,
        recent_tasks=[escalator.annotate(t) for t in recent],
    )


def select_public_tasks(
    tasks: Iterable[Task],
    creator_id: str,
    limit: int = PUBLIC_TASKS_LIMIT,
) -> list[Task]:
    """用户主页展示的公开未完成任务，按截止时间升序"""
    candidates = [
        t
        for t in tasks
        if t.creator_id == creator_id and t.is_public and t.status != TaskStatus.COMPLETED
    ]
    return sorted(candidates, key=lambda t: t.due_date)[:limit]
