"""全局 pytest 配置 -- 固定时钟 + Task 工厂 + 临时 SQLite 数据库 fixture"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskboard.core.clock import FixedClock
from taskboard.core.models import Assignment, Task, User
from taskboard.core.store import StoreGroup, create_store_group

# 所有时间相关测试共用的固定时刻
NOW = datetime(2025, 3, 12, 10, 0, tzinfo=UTC)

CREATOR = "user-creator"
ASSIGNEE = "user-assignee"
OUTSIDER = "user-outsider"


@pytest.fixture
def clock() -> FixedClock:
    """固定在 NOW 的时钟"""
    return FixedClock(NOW)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造 Task 的工厂，默认 CREATOR 创建、ASSIGNEE 参与、3 天后到期"""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Task:
        assignee_ids = overrides.pop("assignee_ids", [ASSIGNEE])
        data = {
            "task_id": f"task-{next(counter):04d}",
            "title": "Write release notes",
            "due_date": NOW + timedelta(days=3),
            "creator_id": CREATOR,
            "assignees": [
                Assignment(user_id=uid, assigned_at=NOW - timedelta(days=1))
                for uid in assignee_ids
            ],
            "created_at": NOW - timedelta(days=2),
            "updated_at": NOW - timedelta(days=2),
        }
        data.update(overrides)
        return Task(**data)

    return _make


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """已初始化的 Store 实例组，预置三个用户"""
    group = await create_store_group(str(tmp_db_path))
    for user_id in (CREATOR, ASSIGNEE, OUTSIDER):
        await group.user_store.add_user(
            User(user_id=user_id, username=user_id.removeprefix("user-"), created_at=NOW)
        )
    yield group
    await group.close()


@pytest_asyncio.fixture
async def app(tmp_db_path: Path, store_group: StoreGroup, clock: FixedClock):
    """测试用 FastAPI app（手动初始化 lifespan 状态）"""
    os.environ["TASKBOARD_DB_PATH"] = str(tmp_db_path)
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskboard.gateway.main import create_app

    application = create_app(clock=clock)
    application.state.store_group = store_group
    yield application

    for key in ["TASKBOARD_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
