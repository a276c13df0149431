"""枚举定义

包含 TaskStatus、Priority、Operation、ErrorKind 枚举，
以及排序使用的优先级权重和状态权重。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态

    不是严格的前向状态机：创建者可以通过 edit 在四个状态之间自由切换，
    complete 是单向快捷操作。
    """

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETED = "completed"


class Priority(StrEnum):
    """存储优先级 -- 仅能通过显式编辑修改"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Operation(StrEnum):
    """访问控制覆盖的操作集合"""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    ASSIGN = "assign"
    COMPLETE = "complete"
    COMMENT = "comment"


class ErrorKind(StrEnum):
    """结果错误类型（类别，不是异常类）"""

    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"


# 优先级全序：low < medium < high < urgent
PRIORITY_ORDER: dict[Priority, int] = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}

# 排序权重（数值越大越靠前）
PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.URGENT: 5,
    Priority.HIGH: 4,
    Priority.MEDIUM: 3,
    Priority.LOW: 2,
}

STATUS_WEIGHTS: dict[TaskStatus, int] = {
    TaskStatus.IN_PROGRESS: 4,
    TaskStatus.REVIEW: 3,
    TaskStatus.TODO: 2,
    TaskStatus.COMPLETED: 1,
}


def max_priority(a: Priority, b: Priority) -> Priority:
    """返回两个优先级中较高者（相等时返回 a）"""
    return b if PRIORITY_ORDER[b] > PRIORITY_ORDER[a] else a
