"""PriorityEscalator -- 临期优先级升级

临期任务的有效优先级至少为 high，只升不降（urgent 保持 urgent）。
结果只用于排序和展示，绝不写回 Task.priority。
"""

from datetime import datetime

from .due import DueDateClassifier
from .models.enums import Priority, max_priority
from .models.task import Task
from .models.view import DueFacts, Escalation, TaskView

ESCALATION_FLOOR = Priority.HIGH


def escalate(priority: Priority, is_due_soon: bool) -> Escalation:
    """计算有效优先级"""
    effective = max_priority(priority, ESCALATION_FLOOR) if is_due_soon else priority
    return Escalation(effective_priority=effective, was_escalated=effective != priority)


class PriorityEscalator:
    """组合分类与升级，生成 TaskView"""

    def __init__(self, classifier: DueDateClassifier) -> None:
        self._classifier = classifier

    def escalate(self, task: Task, facts: DueFacts | None = None) -> Escalation:
        facts = facts or self._classifier.classify(task)
        return escalate(task.priority, facts.is_due_soon)

    def annotate(self, task: Task, now: datetime | None = None) -> TaskView:
        """为单个任务附加全部派生事实"""
        facts = self._classifier.classify(task, now)
        return TaskView(task=task, due=facts, escalation=escalate(task.priority, facts.is_due_soon))
