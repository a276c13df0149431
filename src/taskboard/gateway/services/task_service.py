"""TaskService -- 任务业务编排

每个变更遵循 fetch -> 核心判定/应用 -> persist：
1. 在 task 级别锁内读取当前 Task
2. 交给 StateTransitionController 判定并生成新副本
3. changed=True 时刷新 updated_at 并单事务写回

同一进程内对同一任务的并发变更被串行化；跨进程仍为 last-write-wins。
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from taskboard.core.access import AccessControlEvaluator
from taskboard.core.clock import Clock, SystemClock
from taskboard.core.config import LOG_PREVIEW_LENGTH, get_list_limit
from taskboard.core.models import (
    Operation,
    Outcome,
    Priority,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
    TaskView,
)
from taskboard.core.ranking import RankingComparator
from taskboard.core.stats import UserStats, compute_user_stats, select_public_tasks
from taskboard.core.store import StoreGroup, TaskFilter, remove_task, save_task
from taskboard.core.transitions import StateTransitionController
from ulid import ULID

log = structlog.get_logger()

ASSIGNEES_NOT_FOUND = "One or more assigned users not found"


class TaskService:
    """任务业务服务"""

    _task_locks: dict[str, asyncio.Lock] = {}
    _task_lock_refs: dict[str, int] = {}
    _task_locks_guard = asyncio.Lock()

    def __init__(self, store_group: StoreGroup, clock: Clock | None = None) -> None:
        self._stores = store_group
        self._clock = clock or SystemClock()
        self._evaluator = AccessControlEvaluator()
        self._controller = StateTransitionController(self._clock, self._evaluator)
        self._ranking = RankingComparator(self._clock)

    # ============================================================
    # 读取
    # ============================================================

    def annotate(self, task: Task) -> TaskView:
        """附加派生事实（逾期/临期/有效优先级）"""
        return self._ranking.annotate(task)

    async def get_task(self, principal_id: str, task_id: str) -> Outcome:
        """查询单个任务（需 view 权限）"""
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            return self._task_not_found(task_id)
        decision = self._evaluator.evaluate(principal_id, task, Operation.VIEW)
        if not decision:
            return Outcome.denied(decision)
        return Outcome.success(task, changed=False)

    async def list_tasks(
        self,
        principal_id: str,
        status: TaskStatus | None = None,
        priority: Priority | None = None,
        search: str | None = None,
    ) -> list[TaskView]:
        """principal 创建或参与的任务，按紧急程度排序"""
        tasks = await self._stores.task_store.list_tasks(
            TaskFilter(
                involving=principal_id,
                status=status,
                priority=priority,
                search=search or None,
            )
        )
        visible = [t for t in tasks if self._evaluator.can(principal_id, t, Operation.VIEW)]
        # 先排序后截断，逾期的旧任务不会被上限挤掉
        return self._ranking.rank(visible)[: get_list_limit()]

    async def user_stats(self, principal_id: str) -> UserStats:
        """个人统计（创建或参与的全部任务）"""
        tasks = await self._stores.task_store.list_tasks(TaskFilter(involving=principal_id))
        return compute_user_stats(tasks, self._clock.now())

    async def public_tasks(self, user_id: str) -> list[TaskView]:
        """用户主页公开任务"""
        tasks = await self._stores.task_store.list_tasks(
            TaskFilter(creator_id=user_id, public_only=True)
        )
        now = self._clock.now()
        return [self._ranking.annotate(t, now) for t in select_public_tasks(tasks, user_id)]

    # ============================================================
    # 变更
    # ============================================================

    async def create_task(self, principal_id: str, payload: TaskCreate) -> Outcome:
        """创建任务，初始协作者必须存在于用户目录"""
        task_id = str(ULID())
        outcome = self._controller.create(principal_id, payload, task_id)
        if not outcome.ok:
            return outcome

        missing = await self._stores.user_store.missing_user_ids(
            [a.user_id for a in outcome.task.assignees]
        )
        if missing:
            return Outcome.not_found(ASSIGNEES_NOT_FOUND, missing)

        await save_task(self._stores.conn, self._stores.task_store, outcome.task)
        return outcome

    async def update_task(
        self, principal_id: str, task_id: str, changes: TaskUpdate
    ) -> Outcome:
        return await self._mutate(
            task_id, lambda task: self._controller.edit(principal_id, task, changes)
        )

    async def complete_task(self, principal_id: str, task_id: str) -> Outcome:
        return await self._mutate(
            task_id, lambda task: self._controller.complete(principal_id, task)
        )

    async def assign_users(
        self, principal_id: str, task_id: str, user_ids: list[str]
    ) -> Outcome:
        """分配协作者

        顺序：任务存在 -> assign 权限 -> 用户存在。
        未通过权限检查的主体无法借此探测用户是否存在。
        """

        async def check_users(_: Outcome) -> Outcome | None:
            missing = await self._stores.user_store.missing_user_ids(user_ids)
            if missing:
                return Outcome.not_found(ASSIGNEES_NOT_FOUND, missing)
            return None

        return await self._mutate(
            task_id,
            lambda task: self._controller.assign(principal_id, task, user_ids),
            before_persist=check_users,
        )

    async def unassign_user(
        self, principal_id: str, task_id: str, user_id: str
    ) -> Outcome:
        return await self._mutate(
            task_id, lambda task: self._controller.unassign(principal_id, task, user_id)
        )

    async def add_comment(self, principal_id: str, task_id: str, content: str) -> Outcome:
        log.info(
            "task_comment_requested",
            task_id=task_id,
            principal_id=principal_id,
            preview=content[:LOG_PREVIEW_LENGTH],
        )
        return await self._mutate(
            task_id, lambda task: self._controller.comment(principal_id, task, content)
        )

    async def delete_task(self, principal_id: str, task_id: str) -> Outcome:
        """删除任务（仅创建者）"""
        async with self._task_lock(task_id):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                return self._task_not_found(task_id)
            outcome = self._controller.delete(principal_id, task)
            if not outcome.ok:
                return outcome
            await remove_task(self._stores.conn, self._stores.task_store, task_id)
        log.info("task_deleted", task_id=task_id, principal_id=principal_id)
        return outcome

    # ============================================================
    # 内部
    # ============================================================

    async def _mutate(
        self,
        task_id: str,
        apply: Callable[[Task], Outcome],
        before_persist: Callable[[Outcome], Awaitable[Outcome | None]] | None = None,
    ) -> Outcome:
        """在 task 锁内执行 fetch -> apply -> persist

        before_persist 仅在核心判定成功后调用，返回 Outcome 时中止写入。
        """
        async with self._task_lock(task_id):
            task = await self._stores.task_store.get_task(task_id)
            if task is None:
                return self._task_not_found(task_id)

            outcome = apply(task)
            if not outcome.ok:
                return outcome
            if before_persist is not None:
                rejected = await before_persist(outcome)
                if rejected is not None:
                    return rejected
            if not outcome.changed:
                return outcome

            stamped = outcome.task.model_copy(update={"updated_at": self._clock.now()})
            await save_task(self._stores.conn, self._stores.task_store, stamped)
            return Outcome.success(stamped)

    @staticmethod
    def _task_not_found(task_id: str) -> Outcome:
        return Outcome.not_found(f"Task with id {task_id} does not exist")

    @classmethod
    @asynccontextmanager
    async def _task_lock(cls, task_id: str) -> AsyncIterator[None]:
        """持有 task 级别锁，退出后释放引用"""
        lock = await cls._get_task_lock(task_id)
        try:
            async with lock:
                yield
        finally:
            await cls._cleanup_task_lock(task_id)

    @classmethod
    async def _get_task_lock(cls, task_id: str) -> asyncio.Lock:
        """获取 task 级别锁，序列化同一任务的变更。"""
        async with cls._task_locks_guard:
            lock = cls._task_locks.get(task_id)
            if lock is None:
                lock = asyncio.Lock()
                cls._task_locks[task_id] = lock
            cls._task_lock_refs[task_id] = cls._task_lock_refs.get(task_id, 0) + 1
            return lock

    @classmethod
    async def _cleanup_task_lock(cls, task_id: str) -> None:
        """最后一个使用者退出后移除 lock，避免全局字典无限增长。

        按引用计数而非 lock.locked() 判断：锁释放后、等待者被唤醒前
        locked() 短暂为 False，此时移除会让后来者拿到新锁。
        """
        async with cls._task_locks_guard:
            refs = cls._task_lock_refs.get(task_id, 0) - 1
            if refs > 0:
                cls._task_lock_refs[task_id] = refs
                return
            cls._task_lock_refs.pop(task_id, None)
            cls._task_locks.pop(task_id, None)
