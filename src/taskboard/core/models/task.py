"""Task Domain Model

Task 是唯一的聚合根。存储字段只包含持久化数据，
逾期、临期、有效优先级等派生值见 view.py，从不写回 Task。
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)

from .enums import Priority, TaskStatus

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
TAG_MAX_LENGTH = 20
COMMENT_MAX_LENGTH = 500

Title = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=TITLE_MAX_LENGTH),
]
Description = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=DESCRIPTION_MAX_LENGTH),
]
Tag = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=TAG_MAX_LENGTH),
]
CommentContent = Annotated[str, StringConstraints(min_length=1, max_length=COMMENT_MAX_LENGTH)]
Hours = Annotated[float, Field(ge=0)]


def ensure_utc(value: datetime | None) -> datetime | None:
    """naive datetime 视为 UTC，aware datetime 统一转换到 UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def dedupe(values: list[str]) -> list[str]:
    """保序去重"""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Assignment(BaseModel):
    """协作者分配记录 -- 只增不改，可由创建者移除"""

    user_id: str = Field(min_length=1, description="被分配用户 ID")
    assigned_at: datetime = Field(description="分配时间")

    @field_validator("assigned_at")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Comment(BaseModel):
    """评论 -- append-only"""

    author_id: str = Field(min_length=1, description="评论者用户 ID")
    content: CommentContent = Field(description="评论内容（1-500 字符）")
    created_at: datetime = Field(description="评论时间")

    @field_validator("created_at")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Task(BaseModel):
    """Task 数据模型

    completed_at 与 status 的一致性（completed_at 非空当且仅当 status == completed）
    由 StateTransitionController 维护；模型本身允许构造不一致的实例，
    以便核心层把它报告为 INVARIANT_VIOLATION 而不是静默修正。
    """

    model_config = ConfigDict(validate_assignment=True)

    task_id: str = Field(min_length=1, description="唯一标识，ULID 格式")
    title: Title = Field(description="任务标题")
    description: Description = Field(default="", description="任务描述")
    priority: Priority = Field(default=Priority.MEDIUM, description="存储优先级")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    due_date: datetime = Field(description="截止时间")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    creator_id: str = Field(min_length=1, description="创建者用户 ID，创建后不可变")
    assignees: list[Assignment] = Field(default_factory=list, description="协作者")
    tags: list[Tag] = Field(default_factory=list, description="标签")
    comments: list[Comment] = Field(default_factory=list, description="评论")
    is_public: bool = Field(default=False, description="公开任务任何人可查看与评论")
    estimated_hours: Hours = Field(default=0.0, description="预估工时")
    actual_hours: Hours = Field(default=0.0, description="实际工时")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("due_date", "completed_at", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        return dedupe(tags)

    @property
    def assignee_ids(self) -> set[str]:
        """协作者 user_id 集合（成员判断 O(1)）"""
        return {a.user_id for a in self.assignees}

    def is_creator(self, user_id: str) -> bool:
        return self.creator_id == user_id

    def is_assignee(self, user_id: str) -> bool:
        return user_id in self.assignee_ids

    def invariant_violations(self) -> list[str]:
        """返回所有不变量违例描述，空列表表示一致"""
        violations: list[str] = []
        if self.status == TaskStatus.COMPLETED and self.completed_at is None:
            violations.append("completed_at is null while status is completed")
        if self.status != TaskStatus.COMPLETED and self.completed_at is not None:
            violations.append(f"completed_at is set while status is {self.status.value}")
        if len(self.assignee_ids) != len(self.assignees):
            violations.append("assignees contain duplicate user_id entries")
        return violations


class TaskCreate(BaseModel):
    """新建任务请求载荷"""

    model_config = ConfigDict(extra="forbid")

    title: Title
    description: Description = ""
    priority: Priority = Priority.MEDIUM
    due_date: datetime
    assignee_ids: list[str] = Field(default_factory=list, description="初始协作者 user_id")
    tags: list[Tag] = Field(default_factory=list)
    is_public: bool = False
    estimated_hours: Hours = 0.0

    @field_validator("due_date")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @field_validator("assignee_ids", "tags")
    @classmethod
    def _dedupe(cls, values: list[str]) -> list[str]:
        return dedupe(values)


class TaskUpdate(BaseModel):
    """编辑载荷 -- 仅包含显式提交的字段（exclude_unset）

    creator_id、completed_at、assignees、comments 不可经由编辑修改，
    extra="forbid" 会把它们作为校验失败拒绝。
    """

    model_config = ConfigDict(extra="forbid")

    title: Title | None = None
    description: Description | None = None
    priority: Priority | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    tags: list[Tag] | None = None
    is_public: bool | None = None
    estimated_hours: Hours | None = None
    actual_hours: Hours | None = None

    @field_validator("due_date")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def changes(self) -> dict:
        """显式提交的字段"""
        return self.model_dump(exclude_unset=True)
