"""AccessControlEvaluator -- 操作级访问控制

判定仅依赖 (principal_id, creator_id, assignees, is_public, operation)，
拒绝作为 AccessDecision 值返回，不抛异常。没有管理员越权。

| 操作             | 允许的主体                         |
|------------------|------------------------------------|
| view             | 创建者、协作者；公开任务任何人     |
| edit             | 仅创建者                           |
| delete           | 仅创建者                           |
| assign/unassign  | 仅创建者                           |
| complete         | 创建者、协作者                     |
| comment          | 创建者、协作者；公开任务任何人     |
"""

from enum import StrEnum

import structlog

from .models.enums import Operation
from .models.outcome import AccessDecision
from .models.task import Task

log = structlog.get_logger()


class Role(StrEnum):
    """主体相对于某个任务的角色"""

    CREATOR = "creator"
    ASSIGNEE = "assignee"
    OUTSIDER = "outsider"


_CREATOR_ONLY = frozenset({Role.CREATOR})
_PARTICIPANTS = frozenset({Role.CREATOR, Role.ASSIGNEE})

# (允许的角色, 公开任务是否对 outsider 放行)
ACCESS_RULES: dict[Operation, tuple[frozenset[Role], bool]] = {
    Operation.VIEW: (_PARTICIPANTS, True),
    Operation.EDIT: (_CREATOR_ONLY, False),
    Operation.DELETE: (_CREATOR_ONLY, False),
    Operation.ASSIGN: (_CREATOR_ONLY, False),
    Operation.COMPLETE: (_PARTICIPANTS, False),
    Operation.COMMENT: (_PARTICIPANTS, True),
}


def role_of(principal_id: str, task: Task) -> Role:
    """确定主体角色（创建者优先于协作者）"""
    if task.is_creator(principal_id):
        return Role.CREATOR
    if task.is_assignee(principal_id):
        return Role.ASSIGNEE
    return Role.OUTSIDER


def evaluate(principal_id: str, task: Task, operation: Operation) -> AccessDecision:
    """判定主体能否对任务执行操作"""
    roles, public_grants = ACCESS_RULES[operation]
    role = role_of(principal_id, task)

    if role in roles:
        return AccessDecision(
            allowed=True,
            operation=operation,
            principal_id=principal_id,
            reason=f"principal is {role.value}",
        )
    if public_grants and task.is_public:
        return AccessDecision(
            allowed=True,
            operation=operation,
            principal_id=principal_id,
            reason="task is public",
        )

    allowed_roles = " or ".join(sorted(r.value for r in roles))
    return AccessDecision(
        allowed=False,
        operation=operation,
        principal_id=principal_id,
        reason=f"{operation.value} requires {allowed_roles}",
    )


class AccessControlEvaluator:
    """访问控制判定器 -- 无状态，记录拒绝日志"""

    def evaluate(self, principal_id: str, task: Task, operation: Operation) -> AccessDecision:
        decision = evaluate(principal_id, task, operation)
        if not decision.allowed:
            log.info(
                "access_denied",
                task_id=task.task_id,
                principal_id=principal_id,
                operation=operation.value,
            )
        return decision

    def can(self, principal_id: str, task: Task, operation: Operation) -> bool:
        return evaluate(principal_id, task, operation).allowed

    def permitted_operations(self, principal_id: str, task: Task) -> list[Operation]:
        """主体在该任务上被允许的全部操作（按 Operation 定义顺序）"""
        return [op for op in Operation if evaluate(principal_id, task, op).allowed]
