"""CLI 入口模块 -- python -m taskboard.core <command>

支持的命令：
  init-db                         创建数据库表结构
  add-user <user_id> <username>   写入用户目录
  rank <user_id> [--now ISO]      打印用户看板（按紧急程度排序）
"""

import asyncio
import sys
from datetime import datetime

from .clock import Clock, FixedClock, SystemClock
from .config import get_db_path, get_list_limit

USAGE = """用法: python -m taskboard.core <command>
命令:
  init-db                         创建数据库表结构
  add-user <user_id> <username>   写入用户目录
  rank <user_id> [--now ISO]      打印用户看板（按紧急程度排序）"""


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回退出码"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        return 1

    command, rest = args[0], args[1:]

    if command == "init-db":
        asyncio.run(init_database())
        return 0

    if command == "add-user":
        if len(rest) != 2:
            print("用法: python -m taskboard.core add-user <user_id> <username>")
            return 1
        return 0 if asyncio.run(add_user(rest[0], rest[1])) else 1

    if command == "rank":
        if not rest:
            print("用法: python -m taskboard.core rank <user_id> [--now ISO]")
            return 1
        user_id = rest[0]
        clock: Clock = SystemClock()
        if len(rest) == 3 and rest[1] == "--now":
            try:
                clock = FixedClock(datetime.fromisoformat(rest[2]))
            except ValueError:
                print(f"无效时间: {rest[2]}")
                return 1
        elif len(rest) != 1:
            print("用法: python -m taskboard.core rank <user_id> [--now ISO]")
            return 1
        asyncio.run(print_board(user_id, clock))
        return 0

    print(f"未知命令: {command}")
    print("可用命令: init-db, add-user, rank")
    return 1


async def init_database() -> None:
    """创建表结构（已存在则跳过）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.close()
    print("初始化完成")


async def add_user(user_id: str, username: str) -> bool:
    """写入用户目录条目，用户名冲突时返回 False"""
    from .models import User
    from .store import UsernameTakenError, create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        await store_group.user_store.add_user(
            User(user_id=user_id, username=username, created_at=SystemClock().now())
        )
    except UsernameTakenError as e:
        print(e)
        return False
    else:
        print(f"已写入用户: {user_id} ({username})")
        return True
    finally:
        await store_group.close()


async def print_board(user_id: str, clock: Clock) -> None:
    """打印用户创建或参与的任务，带逾期/临期/自动升级标记"""
    from .ranking import RankingComparator
    from .store import TaskFilter, create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        tasks = await store_group.task_store.list_tasks(TaskFilter(involving=user_id))
    finally:
        await store_group.close()

    views = RankingComparator(clock).rank(tasks)[: get_list_limit()]
    if not views:
        print(f"用户 {user_id} 没有任务")
        return

    for position, view in enumerate(views, start=1):
        badges = []
        if view.is_overdue:
            badges.append("逾期")
        elif view.is_due_soon:
            badges.append("临期")
        if view.was_escalated:
            badges.append("自动升级")
        badge_text = f" [{' '.join(badges)}]" if badges else ""
        print(
            f"{position:>3}. {view.task.title}"
            f"  ({view.effective_priority.value}/{view.task.status.value},"
            f" {view.days_until_due:+d}d){badge_text}"
        )


if __name__ == "__main__":
    sys.exit(main())
