"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 路由注册 + 错误响应统一。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from taskboard.core.clock import Clock, SystemClock
from taskboard.core.config import get_db_path
from taskboard.core.models import format_validation_error
from taskboard.core.store import create_store_group

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .responses import simple_error
from .routes import actions, health, tasks, users

log = structlog.get_logger()

_HTTP_ERROR_CODES = {
    401: "UNAUTHENTICATED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group
    log.info("store_group_initialized", db_path=db_path)

    yield

    if getattr(app.state, "store_group", None):
        await app.state.store_group.close()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求体/参数校验失败 -> 400 VALIDATION_FAILED"""
    details = format_validation_error(exc)
    log.info("request_validation_failed", details=details)
    return simple_error(400, "VALIDATION_FAILED", "Request validation failed", details)


async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTPException -> 统一错误结构"""
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    response = simple_error(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def create_app(clock: Clock | None = None) -> FastAPI:
    """创建 FastAPI 应用实例

    Args:
        clock: 注入的时钟（默认系统时钟，测试可传入 FixedClock）
    """
    app = FastAPI(
        title="Taskboard Gateway",
        version="0.1.0",
        description="任务看板：访问控制、临期分类与紧急度排序 API",
        lifespan=lifespan,
    )
    app.state.clock = clock or SystemClock()

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(actions.router, tags=["actions"])
    app.include_router(users.router, tags=["users"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
