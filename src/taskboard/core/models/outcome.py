"""操作结果模型

NOT_FOUND / ACCESS_DENIED / VALIDATION_FAILED / INVARIANT_VIOLATION
都作为显式返回值传递，不通过异常控制流程。
状态码与提示文案的映射由外层（gateway）负责。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .enums import ErrorKind, Operation
from .task import Task


class OperationError(BaseModel):
    """结构化错误"""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    details: list[str] = Field(default_factory=list, description="逐条违例说明")


class AccessDecision(BaseModel):
    """访问控制判定结果"""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    operation: Operation
    principal_id: str
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


class Outcome(BaseModel):
    """变更/读取操作的结果

    成功时 task 为变更后的 Task（输入 Task 不会被修改）；
    changed=False 表示幂等 no-op，调用方可以跳过持久化。
    """

    task: Task | None = None
    error: OperationError | None = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, task: Task, changed: bool = True) -> "Outcome":
        return cls(task=task, changed=changed)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: list[str] | None = None,
    ) -> "Outcome":
        return cls(error=OperationError(kind=kind, message=message, details=details or []))

    @classmethod
    def not_found(cls, message: str, details: list[str] | None = None) -> "Outcome":
        return cls.failure(ErrorKind.NOT_FOUND, message, details)

    @classmethod
    def denied(cls, decision: AccessDecision) -> "Outcome":
        return cls.failure(
            ErrorKind.ACCESS_DENIED,
            f"Principal may not {decision.operation.value} this task",
            [decision.reason] if decision.reason else None,
        )

    @classmethod
    def invalid(cls, error: ValidationError) -> "Outcome":
        return cls.failure(
            ErrorKind.VALIDATION_FAILED,
            "Task fields violate constraints",
            format_validation_error(error),
        )


def format_validation_error(error: ValidationError) -> list[str]:
    """将 pydantic ValidationError 转换为逐条可读说明"""
    details: list[str] = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        details.append(f"{loc}: {item.get('msg', 'invalid')}" if loc else item.get("msg", "invalid"))
    return details


def error_body(error: OperationError) -> dict[str, Any]:
    """统一错误响应体 {"error": {"code", "message", "details"}}"""
    return {
        "error": {
            "code": error.kind.value,
            "message": error.message,
            "details": list(error.details),
        }
    }
