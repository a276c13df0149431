"""StateTransitionController -- 任务变更与状态迁移

所有变更遵循同一流程：
1. AccessControlEvaluator 先行检查，拒绝则立即返回（无部分副作用）
2. 在输入 Task 的副本上应用变更（输入对象从不被修改）
3. 重新构建并校验 Task（字段约束失败 -> VALIDATION_FAILED）
4. 复查 completed_at 不变量（违例 -> INVARIANT_VIOLATION，不做静默修正）

状态迁移不是严格前向的：创建者可经 edit 自由切换状态，
complete 是创建者/协作者均可使用的单向快捷操作。
"""

from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from .access import AccessControlEvaluator
from .clock import Clock
from .models.enums import ErrorKind, Operation, TaskStatus
from .models.outcome import Outcome
from .models.task import Assignment, Comment, Task, TaskCreate, TaskUpdate, dedupe

log = structlog.get_logger()


def derive_completed_at(task: Task, new_status: TaskStatus, now: datetime) -> datetime | None:
    """根据新旧状态推导 completed_at

    - 新状态为 completed 且旧状态不是：completed_at = now
    - 新状态不是 completed：completed_at = None（重新打开会清除完成时间）
    - 其余情况（completed -> completed）：保留原值
    """
    if new_status != TaskStatus.COMPLETED:
        return None
    if task.status != TaskStatus.COMPLETED:
        return now
    return task.completed_at


class StateTransitionController:
    """任务变更控制器"""

    def __init__(
        self,
        clock: Clock,
        evaluator: AccessControlEvaluator | None = None,
    ) -> None:
        self._clock = clock
        self._evaluator = evaluator or AccessControlEvaluator()

    # ============================================================
    # 创建
    # ============================================================

    def create(
        self,
        principal_id: str,
        payload: TaskCreate | dict[str, Any],
        task_id: str,
    ) -> Outcome:
        """以 principal 为创建者构造新任务

        协作者存在性由持久化侧校验（见 TaskService.create_task）。
        """
        try:
            data = payload if isinstance(payload, TaskCreate) else TaskCreate.model_validate(payload)
            now = self._clock.now()
            task = Task(
                task_id=task_id,
                title=data.title,
                description=data.description,
                priority=data.priority,
                due_date=data.due_date,
                creator_id=principal_id,
                assignees=[Assignment(user_id=uid, assigned_at=now) for uid in data.assignee_ids],
                tags=data.tags,
                is_public=data.is_public,
                estimated_hours=data.estimated_hours,
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            return Outcome.invalid(e)

        log.info("task_created", task_id=task_id, creator_id=principal_id)
        return self._verified(task, changed=True)

    # ============================================================
    # 变更操作
    # ============================================================

    def edit(
        self,
        principal_id: str,
        task: Task,
        changes: TaskUpdate | dict[str, Any],
    ) -> Outcome:
        """创建者编辑字段（含自由状态切换）"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.EDIT)
        if not decision:
            return Outcome.denied(decision)

        try:
            update = changes if isinstance(changes, TaskUpdate) else TaskUpdate.model_validate(changes)
        except ValidationError as e:
            return Outcome.invalid(e)

        fields = update.changes()
        if "status" in fields and fields["status"] is not None:
            new_status = TaskStatus(fields["status"])
            fields["completed_at"] = derive_completed_at(task, new_status, self._clock.now())
            if new_status != task.status:
                log.info(
                    "task_status_changed",
                    task_id=task.task_id,
                    from_status=task.status.value,
                    to_status=new_status.value,
                )

        return self._rebuild(task, fields)

    def complete(self, principal_id: str, task: Task) -> Outcome:
        """完成任务 -- 强制 status=completed"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.COMPLETE)
        if not decision:
            return Outcome.denied(decision)

        outcome = self._rebuild(
            task,
            {
                "status": TaskStatus.COMPLETED,
                "completed_at": derive_completed_at(task, TaskStatus.COMPLETED, self._clock.now()),
            },
        )
        if outcome.ok and outcome.changed:
            log.info("task_completed", task_id=task.task_id, principal_id=principal_id)
        return outcome

    def assign(self, principal_id: str, task: Task, user_ids: list[str]) -> Outcome:
        """添加协作者，已存在的 user_id 为 no-op"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.ASSIGN)
        if not decision:
            return Outcome.denied(decision)

        existing = task.assignee_ids
        added = [uid for uid in dedupe(list(user_ids)) if uid not in existing]
        if not added:
            return Outcome.success(task, changed=False)

        now = self._clock.now()
        try:
            assignments = [*task.assignees, *(Assignment(user_id=uid, assigned_at=now) for uid in added)]
        except ValidationError as e:
            return Outcome.invalid(e)

        log.info("task_assigned", task_id=task.task_id, user_ids=added)
        return self._rebuild(task, {"assignees": assignments})

    def unassign(self, principal_id: str, task: Task, user_id: str) -> Outcome:
        """移除协作者，不存在的 user_id 为 no-op"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.ASSIGN)
        if not decision:
            return Outcome.denied(decision)

        if not task.is_assignee(user_id):
            return Outcome.success(task, changed=False)

        log.info("task_unassigned", task_id=task.task_id, user_id=user_id)
        return self._rebuild(
            task,
            {"assignees": [a for a in task.assignees if a.user_id != user_id]},
        )

    def comment(self, principal_id: str, task: Task, content: str) -> Outcome:
        """追加评论（仅校验非空与长度上限）"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.COMMENT)
        if not decision:
            return Outcome.denied(decision)

        try:
            entry = Comment(author_id=principal_id, content=content, created_at=self._clock.now())
        except ValidationError as e:
            return Outcome.invalid(e)

        return self._rebuild(task, {"comments": [*task.comments, entry]})

    def delete(self, principal_id: str, task: Task) -> Outcome:
        """删除授权判定；实际删除由持久化侧执行"""
        decision = self._evaluator.evaluate(principal_id, task, Operation.DELETE)
        if not decision:
            return Outcome.denied(decision)
        return Outcome.success(task, changed=True)

    # ============================================================
    # 内部
    # ============================================================

    def _rebuild(self, task: Task, fields: dict[str, Any]) -> Outcome:
        """在副本上应用字段并完整校验"""
        data_before = task.model_dump()
        data = {**data_before, **fields}
        try:
            updated = Task.model_validate(data)
        except ValidationError as e:
            return Outcome.invalid(e)
        return self._verified(updated, changed=updated.model_dump() != data_before)

    def _verified(self, task: Task, changed: bool) -> Outcome:
        violations = task.invariant_violations()
        if violations:
            log.error(
                "invariant_violation",
                task_id=task.task_id,
                violations=violations,
            )
            return Outcome.failure(
                ErrorKind.INVARIANT_VIOLATION,
                "Task state is inconsistent",
                violations,
            )
        return Outcome.success(task, changed=changed)
