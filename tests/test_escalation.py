"""PriorityEscalator 单元测试

测试内容：
1. 临期任务有效优先级至少为 high，且只升不降
2. was_escalated 标记
3. 存储优先级从不被修改
"""

from datetime import timedelta

import pytest
from taskboard.core.due import DueDateClassifier
from taskboard.core.escalation import PriorityEscalator, escalate
from taskboard.core.models import Priority, TaskStatus

from conftest import NOW


class TestEscalate:
    """纯函数升级规则"""

    @pytest.mark.parametrize(
        "stored,expected",
        [
            (Priority.LOW, Priority.HIGH),
            (Priority.MEDIUM, Priority.HIGH),
            (Priority.HIGH, Priority.HIGH),
            (Priority.URGENT, Priority.URGENT),
        ],
    )
    def test_due_soon_raises_to_high(self, stored, expected):
        assert escalate(stored, is_due_soon=True).effective_priority == expected

    @pytest.mark.parametrize("stored", list(Priority))
    def test_not_due_soon_keeps_priority(self, stored):
        result = escalate(stored, is_due_soon=False)
        assert result.effective_priority == stored
        assert result.was_escalated is False

    def test_was_escalated_flag(self):
        assert escalate(Priority.LOW, True).was_escalated is True
        assert escalate(Priority.HIGH, True).was_escalated is False
        assert escalate(Priority.URGENT, True).was_escalated is False


class TestPriorityEscalator:
    """组合分类与升级"""

    def test_annotate_does_not_touch_stored_priority(self, clock, make_task):
        escalator = PriorityEscalator(DueDateClassifier(clock))
        task = make_task(priority=Priority.LOW, due_date=NOW + timedelta(days=1))
        before = task.model_dump()

        view = escalator.annotate(task)

        assert view.effective_priority == Priority.HIGH
        assert view.was_escalated is True
        assert task.priority == Priority.LOW
        assert task.model_dump() == before

    def test_annotate_is_deterministic_for_fixed_now(self, clock, make_task):
        escalator = PriorityEscalator(DueDateClassifier(clock))
        task = make_task(priority=Priority.MEDIUM, due_date=NOW + timedelta(hours=20))
        assert escalator.annotate(task) == escalator.annotate(task)

    def test_completed_task_is_not_escalated(self, clock, make_task):
        escalator = PriorityEscalator(DueDateClassifier(clock))
        task = make_task(
            priority=Priority.LOW,
            status=TaskStatus.COMPLETED,
            completed_at=NOW,
            due_date=NOW + timedelta(days=1),
        )
        assert escalator.escalate(task).effective_priority == Priority.LOW

    def test_payload_carries_both_priorities(self, clock, make_task):
        escalator = PriorityEscalator(DueDateClassifier(clock))
        task = make_task(priority=Priority.LOW, due_date=NOW + timedelta(days=2))
        payload = escalator.annotate(task).to_payload()
        assert payload["priority"] == "low"
        assert payload["effective_priority"] == "high"
        assert payload["was_escalated"] is True
        assert payload["is_due_soon"] is True
        assert payload["is_overdue"] is False
        assert payload["days_until_due"] == 2
