"""UserStore SQLite 实现 -- 仅用于协作者存在性校验"""

from datetime import datetime

import aiosqlite

from ..models.user import User


class UsernameTakenError(Exception):
    """用户名已被其他 user_id 占用"""

    def __init__(self, username: str) -> None:
        """
        Args:
            username: 冲突的用户名
        """
        super().__init__(f"用户名已被占用: {username}")
        self.username = username


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def add_user(self, user: User) -> None:
        """写入用户（同 user_id 更新资料）

        Raises:
            UsernameTakenError: username 属于另一个 user_id，原记录保持不变
        """
        try:
            await self._conn.execute(
                """
                INSERT INTO users (user_id, username, display_name, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    username = excluded.username,
                    display_name = excluded.display_name
                """,
                (
                    user.user_id,
                    user.username,
                    user.display_name,
                    user.created_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            await self._conn.rollback()
            raise UsernameTakenError(user.username) from e
        await self._conn.commit()

    async def get_user(self, user_id: str) -> User | None:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return User(
            user_id=row["user_id"],
            username=row["username"],
            display_name=row["display_name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def missing_user_ids(self, user_ids: list[str]) -> list[str]:
        """返回不存在的 user_id（保持输入顺序）"""
        if not user_ids:
            return []
        placeholders = ", ".join("?" for _ in user_ids)
        cursor = await self._conn.execute(
            f"SELECT user_id FROM users WHERE user_id IN ({placeholders})",
            list(user_ids),
        )
        found = {row["user_id"] for row in await cursor.fetchall()}
        return [uid for uid in user_ids if uid not in found]
