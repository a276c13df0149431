"""日志初始化

structlog 与标准库 logging 共用同一个 handler，uvicorn 等第三方日志也经
ProcessorFormatter 渲染。请求日志由 LoggingMiddleware 输出，uvicorn.access 被压到 WARNING。
"""

import logging
import os

import structlog
from taskboard.core.config import get_log_format, get_log_level

# 与 LoggingMiddleware 的 http_request 事件重复
_QUIETED_LOGGERS = ("uvicorn.access",)


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """配置 structlog + 根 logger

    Args:
        log_format: "json" 或 "dev"，缺省读 TASKBOARD_LOG_FORMAT
        log_level: 日志级别名，缺省读 TASKBOARD_LOG_LEVEL
    """
    log_format = log_format or get_log_format()
    level = logging.getLevelNamesMapping().get(
        (log_level or get_log_level()).upper(), logging.INFO
    )

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire(app=None) -> bool:
    """LOGFIRE_SEND_TO_LOGFIRE=true 时启用 Logfire（需 apm 可选依赖），返回是否启用"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure()
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception as e:
        # 初始化失败时退回本地日志
        structlog.get_logger().warning("logfire_init_failed", error_type=type(e).__name__)
        return False
    return True
