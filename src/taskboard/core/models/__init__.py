"""taskboard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    PRIORITY_ORDER,
    PRIORITY_WEIGHTS,
    STATUS_WEIGHTS,
    ErrorKind,
    Operation,
    Priority,
    TaskStatus,
    max_priority,
)
from .outcome import (
    AccessDecision,
    Outcome,
    OperationError,
    error_body,
    format_validation_error,
)
from .task import (
    COMMENT_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    TAG_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Assignment,
    Comment,
    Task,
    TaskCreate,
    TaskUpdate,
)
from .user import User
from .view import DueFacts, Escalation, TaskView

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "Operation",
    "ErrorKind",
    # 排序权重
    "PRIORITY_ORDER",
    "PRIORITY_WEIGHTS",
    "STATUS_WEIGHTS",
    "max_priority",
    # Task
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "Assignment",
    "Comment",
    "TITLE_MAX_LENGTH",
    "DESCRIPTION_MAX_LENGTH",
    "TAG_MAX_LENGTH",
    "COMMENT_MAX_LENGTH",
    # User
    "User",
    # 派生视图
    "DueFacts",
    "Escalation",
    "TaskView",
    # 结果
    "Outcome",
    "OperationError",
    "AccessDecision",
    "error_body",
    "format_validation_error",
]
