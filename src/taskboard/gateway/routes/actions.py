"""任务动作路由

POST   /api/tasks/{task_id}/assign: 添加协作者（仅创建者，幂等）
DELETE /api/tasks/{task_id}/assignees/{user_id}: 移除协作者（仅创建者，幂等）
POST   /api/tasks/{task_id}/comment: 追加评论（创建者/协作者/公开任务任何人）
POST   /api/tasks/{task_id}/complete: 完成任务（创建者/协作者）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_principal_id, get_task_service
from ..responses import error_response
from ..services.task_service import TaskService

router = APIRouter()


class AssignRequest(BaseModel):
    """分配请求体"""

    user_ids: list[str] = Field(min_length=1, description="要添加的协作者 user_id")


class CommentRequest(BaseModel):
    """评论请求体（长度约束由核心层校验）"""

    content: str


@router.post("/api/tasks/{task_id}/assign")
async def assign_users(
    task_id: str,
    body: AssignRequest,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    outcome = await service.assign_users(principal_id, task_id, body.user_ids)
    if not outcome.ok:
        return error_response(outcome)
    return {"task": service.annotate(outcome.task).to_payload(), "changed": outcome.changed}


@router.delete("/api/tasks/{task_id}/assignees/{user_id}")
async def unassign_user(
    task_id: str,
    user_id: str,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    outcome = await service.unassign_user(principal_id, task_id, user_id)
    if not outcome.ok:
        return error_response(outcome)
    return {"task": service.annotate(outcome.task).to_payload(), "changed": outcome.changed}


@router.post("/api/tasks/{task_id}/comment")
async def add_comment(
    task_id: str,
    body: CommentRequest,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    outcome = await service.add_comment(principal_id, task_id, body.content)
    if not outcome.ok:
        return error_response(outcome)
    return {
        "task": service.annotate(outcome.task).to_payload(),
        "comment": outcome.task.comments[-1].model_dump(mode="json"),
    }


@router.post("/api/tasks/{task_id}/complete")
async def complete_task(
    task_id: str,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    """完成任务 -- 已完成的任务保持原 completed_at"""
    outcome = await service.complete_task(principal_id, task_id)
    if not outcome.ok:
        return error_response(outcome)
    return {"task": service.annotate(outcome.task).to_payload(), "changed": outcome.changed}
