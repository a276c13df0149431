"""Outcome -> HTTP 响应映射

错误类型到状态码的映射只在此处定义：
NOT_FOUND 404 / ACCESS_DENIED 403 / VALIDATION_FAILED 400 / INVARIANT_VIOLATION 500。
"""

from typing import Any

import structlog
from starlette.responses import JSONResponse
from taskboard.core.models import ErrorKind, Outcome, error_body

log = structlog.get_logger()

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ACCESS_DENIED: 403,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.INVARIANT_VIOLATION: 500,
}


def error_response(outcome: Outcome) -> JSONResponse:
    """将失败的 Outcome 转换为统一错误响应"""
    error = outcome.error
    status_code = STATUS_CODES[error.kind]
    if status_code >= 500:
        log.error("outcome_internal_error", code=error.kind.value, details=error.details)
    return JSONResponse(status_code=status_code, content=error_body(error))


def simple_error(
    status_code: int,
    code: str,
    message: str,
    details: list[str] | None = None,
) -> JSONResponse:
    """不经过 Outcome 的错误响应（认证失败、请求体格式错误等）"""
    content: dict[str, Any] = {
        "error": {"code": code, "message": message, "details": details or []}
    }
    return JSONResponse(status_code=status_code, content=content)
