"""Store Protocol 接口定义

定义 TaskStore、UserStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
过滤在持久化侧完成，核心层只负责对返回的集合排序。
"""

from typing import Protocol

from pydantic import BaseModel, Field

from ..models.enums import Priority, TaskStatus
from ..models.task import Task
from ..models.user import User


class TaskFilter(BaseModel):
    """list_tasks 过滤条件，所有条件取交集"""

    involving: str | None = Field(
        default=None, description="创建者或协作者为该用户"
    )
    visible_to: str | None = Field(
        default=None, description="该用户可查看（创建者、协作者或公开任务）"
    )
    creator_id: str | None = Field(default=None, description="按创建者过滤")
    assignee_id: str | None = Field(default=None, description="按协作者成员过滤")
    status: TaskStatus | None = None
    priority: Priority | None = None
    search: str | None = Field(
        default=None, description="title/description/tags 不区分大小写模糊匹配"
    )
    public_only: bool = False
    limit: int | None = Field(default=None, ge=1)


class TaskStore(Protocol):
    """Task 存储接口"""

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """按过滤条件查询任务，按 created_at 倒序"""
        ...

    async def put_task(self, task: Task) -> Task:
        """写入任务（不存在则插入，存在则整体覆盖）"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否存在"""
        ...


class UserStore(Protocol):
    """用户目录接口"""

    async def add_user(self, user: User) -> None:
        """写入用户（同 user_id 更新资料，username 被他人占用时抛出 UsernameTakenError）"""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...

    async def missing_user_ids(self, user_ids: list[str]) -> list[str]:
        """返回不存在的 user_id（保持输入顺序）"""
        ...
