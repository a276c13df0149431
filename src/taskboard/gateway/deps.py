"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / Clock / 主体身份

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
主体身份由上游认证层写入 X-User-ID 请求头，此处只读取。
"""

from fastapi import Depends, Header, HTTPException, Request
from taskboard.core.clock import Clock, SystemClock
from taskboard.core.store import StoreGroup

from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_clock(request: Request) -> Clock:
    """从 app.state 获取 Clock（测试可注入 FixedClock）"""
    clock = getattr(request.app.state, "clock", None)
    return clock if clock is not None else SystemClock()


def get_principal_id(
    x_user_id: str | None = Header(default=None, alias="X-User-ID"),
) -> str:
    """解析请求主体，缺失或为空时返回 401"""
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_task_service(
    store_group: StoreGroup = Depends(get_store_group),
    clock: Clock = Depends(get_clock),
) -> TaskService:
    return TaskService(store_group, clock)
