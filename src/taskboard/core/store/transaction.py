"""任务写入事务封装

单条任务写入/删除在同一连接上提交，失败时回滚。
"""

import aiosqlite

from ..models.task import Task
from .task_store import SqliteTaskStore


async def save_task(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    task: Task,
) -> Task:
    """写入任务并提交

    Raises:
        Exception: 如果事务提交失败，自动回滚
    """
    try:
        await task_store.put_task(task)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return task


async def remove_task(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    task_id: str,
) -> bool:
    """删除任务并提交，返回记录是否存在"""
    try:
        existed = await task_store.delete_task(task_id)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return existed
