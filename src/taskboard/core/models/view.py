"""派生视图模型

DueFacts / Escalation 是相对某个时刻计算出的派生事实，
TaskView 把它们附加在存储字段之上供读取方使用。
派生值从不持久化，也不应跨时刻比较。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import Priority
from .task import Task


class DueFacts(BaseModel):
    """单个任务的截止时间分类结果"""

    model_config = ConfigDict(frozen=True)

    days_until_due: int = Field(description="距截止天数（向上取整，负数表示已过期）")
    is_overdue: bool = Field(description="未完成且截止时间已过")
    is_due_soon: bool = Field(description="未完成且 0-2 天内到期")


class Escalation(BaseModel):
    """优先级升级结果 -- 仅用于展示与排序"""

    model_config = ConfigDict(frozen=True)

    effective_priority: Priority = Field(description="升级后的有效优先级")
    was_escalated: bool = Field(description="有效优先级是否不同于存储优先级")


class TaskView(BaseModel):
    """读取视图：存储的 Task + 派生事实

    使用组合而不是继承 Task，避免派生字段被误写回存储。
    """

    model_config = ConfigDict(frozen=True)

    task: Task
    due: DueFacts
    escalation: Escalation

    @property
    def task_id(self) -> str:
        return self.task.task_id

    @property
    def is_overdue(self) -> bool:
        return self.due.is_overdue

    @property
    def is_due_soon(self) -> bool:
        return self.due.is_due_soon

    @property
    def days_until_due(self) -> int:
        return self.due.days_until_due

    @property
    def effective_priority(self) -> Priority:
        return self.escalation.effective_priority

    @property
    def was_escalated(self) -> bool:
        return self.escalation.was_escalated

    def to_payload(self) -> dict[str, Any]:
        """扁平化为 JSON 友好的字典（API 响应 / CLI 输出）"""
        payload = self.task.model_dump(mode="json")
        payload.update(
            is_overdue=self.is_overdue,
            is_due_soon=self.is_due_soon,
            days_until_due=self.days_until_due,
            effective_priority=self.effective_priority.value,
            was_escalated=self.was_escalated,
        )
        return payload
