"""DueDateClassifier 单元测试

测试内容：
1. days_until_due 向上取整
2. 逾期 / 临期判定
3. 已完成任务永不逾期、永不临期
"""

from datetime import timedelta

import pytest
from taskboard.core.due import DueDateClassifier, classify_due, days_until_due
from taskboard.core.models import TaskStatus

from conftest import NOW


class TestDaysUntilDue:
    """距截止天数"""

    @pytest.mark.parametrize(
        "offset,expected",
        [
            (timedelta(hours=3), 1),
            (timedelta(days=1), 1),
            (timedelta(days=1, seconds=1), 2),
            (timedelta(0), 0),
            (timedelta(hours=-3), 0),
            (timedelta(days=-1), -1),
            (timedelta(days=-1, hours=-1), -1),
            (timedelta(days=-2), -2),
        ],
    )
    def test_ceiling(self, offset, expected):
        assert days_until_due(NOW + offset, NOW) == expected


class TestClassifyDue:
    """逾期 / 临期分类"""

    def test_future_task_not_overdue(self):
        facts = classify_due(NOW + timedelta(days=5), TaskStatus.TODO, NOW)
        assert facts.is_overdue is False
        assert facts.is_due_soon is False
        assert facts.days_until_due == 5

    def test_past_due_is_overdue(self):
        facts = classify_due(NOW - timedelta(days=1), TaskStatus.TODO, NOW)
        assert facts.is_overdue is True
        assert facts.is_due_soon is False

    def test_passed_earlier_today_is_overdue_and_due_soon(self):
        """今天早些时候已过期：逾期，且 days_until_due == 0 仍属临期窗口"""
        facts = classify_due(NOW - timedelta(hours=2), TaskStatus.IN_PROGRESS, NOW)
        assert facts.is_overdue is True
        assert facts.days_until_due == 0
        assert facts.is_due_soon is True

    @pytest.mark.parametrize("days", [0, 1, 2])
    def test_due_soon_window(self, days):
        facts = classify_due(NOW + timedelta(days=days), TaskStatus.TODO, NOW)
        assert facts.is_due_soon is True

    def test_three_days_is_not_due_soon(self):
        facts = classify_due(NOW + timedelta(days=3), TaskStatus.TODO, NOW)
        assert facts.is_due_soon is False

    def test_completed_task_is_never_overdue(self):
        """已完成且截止日为昨天 -> 不逾期"""
        facts = classify_due(NOW - timedelta(days=1), TaskStatus.COMPLETED, NOW)
        assert facts.is_overdue is False
        assert facts.is_due_soon is False

    def test_completed_task_still_reports_days(self):
        facts = classify_due(NOW - timedelta(days=1), TaskStatus.COMPLETED, NOW)
        assert facts.days_until_due == -1


class TestDueDateClassifier:
    """绑定 Clock 的分类器"""

    def test_uses_clock_by_default(self, clock, make_task):
        classifier = DueDateClassifier(clock)
        task = make_task(due_date=NOW + timedelta(days=1))
        assert classifier.classify(task).is_due_soon is True

        clock.advance(timedelta(days=2))
        assert classifier.classify(task).is_overdue is True

    def test_explicit_now_overrides_clock(self, clock, make_task):
        classifier = DueDateClassifier(clock)
        task = make_task(due_date=NOW + timedelta(days=10))
        facts = classifier.classify(task, NOW + timedelta(days=9, hours=12))
        assert facts.days_until_due == 1
