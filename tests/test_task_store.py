"""SqliteTaskStore / SqliteUserStore 测试

测试内容：
1. put/get 往返保留嵌套字段
2. 覆盖写入
3. 过滤条件（参与者、可见性、状态、优先级、搜索、公开）
4. 删除
5. 用户目录存在性检查
"""

from datetime import timedelta

import pytest
from taskboard.core.models import Comment, Priority, TaskStatus, User
from taskboard.core.store import (
    TaskFilter,
    UsernameTakenError,
    remove_task,
    save_task,
    verify_wal_mode,
)

from conftest import ASSIGNEE, CREATOR, NOW, OUTSIDER


async def _save_all(store_group, tasks):
    for task in tasks:
        await save_task(store_group.conn, store_group.task_store, task)


class TestTaskStorePersistence:
    """写入与读取"""

    async def test_put_and_get_preserves_fields(self, store_group, make_task):
        task = make_task(
            tags=["docs", "release"],
            is_public=True,
            estimated_hours=3.5,
            status=TaskStatus.COMPLETED,
            completed_at=NOW,
            comments=[Comment(author_id=ASSIGNEE, content="done 🎉", created_at=NOW)],
        )
        await save_task(store_group.conn, store_group.task_store, task)

        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.model_dump() == task.model_dump()

    async def test_get_missing_returns_none(self, store_group):
        assert await store_group.task_store.get_task("missing") is None

    async def test_put_overwrites_existing(self, store_group, make_task):
        task = make_task()
        await save_task(store_group.conn, store_group.task_store, task)
        await save_task(
            store_group.conn,
            store_group.task_store,
            task.model_copy(update={"title": "Renamed", "priority": Priority.URGENT}),
        )

        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.title == "Renamed"
        assert loaded.priority == Priority.URGENT
        assert len(await store_group.task_store.list_tasks()) == 1

    async def test_delete(self, store_group, make_task):
        task = make_task()
        await save_task(store_group.conn, store_group.task_store, task)

        assert await remove_task(store_group.conn, store_group.task_store, task.task_id) is True
        assert await remove_task(store_group.conn, store_group.task_store, task.task_id) is False
        assert await store_group.task_store.get_task(task.task_id) is None

    async def test_wal_mode_enabled(self, store_group):
        assert await verify_wal_mode(store_group.conn) is True


class TestTaskStoreFilters:
    """list_tasks 过滤"""

    async def test_involving_matches_creator_or_assignee(self, store_group, make_task):
        mine = make_task(title="mine")
        assigned = make_task(title="assigned", creator_id=OUTSIDER, assignee_ids=[CREATOR])
        public_other = make_task(title="public", creator_id=OUTSIDER, assignee_ids=[], is_public=True)
        await _save_all(store_group, [mine, assigned, public_other])

        result = await store_group.task_store.list_tasks(TaskFilter(involving=CREATOR))
        assert {t.title for t in result} == {"mine", "assigned"}

    async def test_visible_to_includes_public(self, store_group, make_task):
        private_other = make_task(title="private", creator_id=OUTSIDER, assignee_ids=[])
        public_other = make_task(title="public", creator_id=OUTSIDER, assignee_ids=[], is_public=True)
        await _save_all(store_group, [private_other, public_other])

        result = await store_group.task_store.list_tasks(TaskFilter(visible_to=CREATOR))
        assert [t.title for t in result] == ["public"]

    async def test_assignee_filter(self, store_group, make_task):
        await _save_all(
            store_group,
            [make_task(title="with"), make_task(title="without", assignee_ids=[])],
        )
        result = await store_group.task_store.list_tasks(TaskFilter(assignee_id=ASSIGNEE))
        assert [t.title for t in result] == ["with"]

    async def test_status_and_priority_filters(self, store_group, make_task):
        await _save_all(
            store_group,
            [
                make_task(title="a", status=TaskStatus.REVIEW, priority=Priority.HIGH),
                make_task(title="b", status=TaskStatus.REVIEW, priority=Priority.LOW),
                make_task(title="c", status=TaskStatus.TODO, priority=Priority.HIGH),
            ],
        )
        result = await store_group.task_store.list_tasks(
            TaskFilter(status=TaskStatus.REVIEW, priority=Priority.HIGH)
        )
        assert [t.title for t in result] == ["a"]

    async def test_search_title_description_and_tags(self, store_group, make_task):
        await _save_all(
            store_group,
            [
                make_task(title="Fix LOGIN bug"),
                make_task(title="Other", description="the login page is slow"),
                make_task(title="Tagged", tags=["Login"]),
                make_task(title="Unrelated"),
            ],
        )
        result = await store_group.task_store.list_tasks(TaskFilter(search="login"))
        assert {t.title for t in result} == {"Fix LOGIN bug", "Other", "Tagged"}

    async def test_search_escapes_wildcards(self, store_group, make_task):
        await _save_all(
            store_group,
            [make_task(title="100% done"), make_task(title="100 items")],
        )
        result = await store_group.task_store.list_tasks(TaskFilter(search="100%"))
        assert [t.title for t in result] == ["100% done"]

    async def test_public_only_and_limit(self, store_group, make_task):
        await _save_all(
            store_group,
            [
                make_task(title=f"p{i}", is_public=True, created_at=NOW + timedelta(minutes=i))
                for i in range(4)
            ]
            + [make_task(title="private")],
        )
        result = await store_group.task_store.list_tasks(TaskFilter(public_only=True, limit=2))
        assert [t.title for t in result] == ["p3", "p2"]


class TestUserStore:
    """用户目录"""

    async def test_missing_user_ids(self, store_group):
        missing = await store_group.user_store.missing_user_ids(
            ["ghost-1", CREATOR, "ghost-2", ASSIGNEE]
        )
        assert missing == ["ghost-1", "ghost-2"]

    async def test_missing_user_ids_empty(self, store_group):
        assert await store_group.user_store.missing_user_ids([]) == []

    async def test_get_user(self, store_group):
        user = await store_group.user_store.get_user(CREATOR)
        assert user.username == "creator"
        assert await store_group.user_store.get_user("ghost") is None

    async def test_readd_updates_profile(self, store_group):
        await store_group.user_store.add_user(
            User(user_id=CREATOR, username="creator", display_name="Cora", created_at=NOW)
        )
        user = await store_group.user_store.get_user(CREATOR)
        assert user.display_name == "Cora"

    async def test_username_collision_keeps_existing_user(self, store_group):
        """用户名被占用时拒绝写入，原用户保持不变"""
        with pytest.raises(UsernameTakenError):
            await store_group.user_store.add_user(
                User(user_id="u-new", username="creator", created_at=NOW)
            )

        existing = await store_group.user_store.get_user(CREATOR)
        assert existing is not None
        assert existing.username == "creator"
        assert await store_group.user_store.get_user("u-new") is None
        assert await store_group.user_store.missing_user_ids([CREATOR]) == []
