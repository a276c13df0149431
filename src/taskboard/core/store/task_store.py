"""TaskStore SQLite 实现

assignees / tags / comments 以 JSON 文本列存储，
协作者与标签过滤通过 json_each 在 SQL 内完成。
此处只执行语句，不提交事务（提交见 transaction.py）。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.task import Assignment, Comment, Task
from .protocols import TaskFilter

_ASSIGNEE_MATCH = (
    "EXISTS (SELECT 1 FROM json_each(tasks.assignees) "
    "WHERE json_extract(json_each.value, '$.user_id') = ?)"
)
_TAG_MATCH = (
    "EXISTS (SELECT 1 FROM json_each(tasks.tags) "
    "WHERE lower(json_each.value) LIKE ? ESCAPE '\\')"
)


def _like_pattern(text: str) -> str:
    """构造不区分大小写的包含匹配模式（转义 LIKE 通配符）"""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def put_task(self, task: Task) -> Task:
        """插入或整体覆盖任务记录"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, title, description, priority, status,
                               due_date, completed_at, creator_id, assignees, tags,
                               comments, is_public, estimated_hours, actual_hours,
                               created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(task_id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                priority = excluded.priority,
                status = excluded.status,
                due_date = excluded.due_date,
                completed_at = excluded.completed_at,
                assignees = excluded.assignees,
                tags = excluded.tags,
                comments = excluded.comments,
                is_public = excluded.is_public,
                estimated_hours = excluded.estimated_hours,
                actual_hours = excluded.actual_hours,
                updated_at = excluded.updated_at
            """,
            (
                task.task_id,
                task.title,
                task.description,
                task.priority.value,
                task.status.value,
                _dt(task.due_date),
                _dt(task.completed_at),
                task.creator_id,
                json.dumps([a.model_dump(mode="json") for a in task.assignees]),
                json.dumps(task.tags, ensure_ascii=False),
                json.dumps(
                    [c.model_dump(mode="json") for c in task.comments],
                    ensure_ascii=False,
                ),
                int(task.is_public),
                task.estimated_hours,
                task.actual_hours,
                _dt(task.created_at),
                _dt(task.updated_at),
            ),
        )
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """按过滤条件查询任务，按 created_at 倒序"""
        f = task_filter or TaskFilter()
        clauses: list[str] = []
        params: list = []

        if f.involving:
            clauses.append(f"(creator_id = ? OR {_ASSIGNEE_MATCH})")
            params += [f.involving, f.involving]
        if f.visible_to:
            clauses.append(f"(creator_id = ? OR is_public = 1 OR {_ASSIGNEE_MATCH})")
            params += [f.visible_to, f.visible_to]
        if f.creator_id:
            clauses.append("creator_id = ?")
            params.append(f.creator_id)
        if f.assignee_id:
            clauses.append(_ASSIGNEE_MATCH)
            params.append(f.assignee_id)
        if f.status:
            clauses.append("status = ?")
            params.append(f.status.value)
        if f.priority:
            clauses.append("priority = ?")
            params.append(f.priority.value)
        if f.search:
            pattern = _like_pattern(f.search)
            clauses.append(
                "(lower(title) LIKE ? ESCAPE '\\' "
                "OR lower(description) LIKE ? ESCAPE '\\' "
                f"OR {_TAG_MATCH})"
            )
            params += [pattern, pattern, pattern]
        if f.public_only:
            clauses.append("is_public = 1")

        sql = "SELECT * FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, task_id DESC"
        if f.limit:
            sql += " LIMIT ?"
            params.append(f.limit)

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录，返回是否存在"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        completed_at = row["completed_at"]
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            priority=row["priority"],
            status=row["status"],
            due_date=datetime.fromisoformat(row["due_date"]),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            creator_id=row["creator_id"],
            assignees=[Assignment(**a) for a in json.loads(row["assignees"])],
            tags=json.loads(row["tags"]),
            comments=[Comment(**c) for c in json.loads(row["comments"])],
            is_public=bool(row["is_public"]),
            estimated_hours=row["estimated_hours"],
            actual_hours=row["actual_hours"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
