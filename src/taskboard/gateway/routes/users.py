"""用户视角路由

GET /api/users/me/stats: 当前用户任务统计
GET /api/users/{user_id}/public-tasks: 指定用户的公开未完成任务（最多 5 个）
"""

from fastapi import APIRouter, Depends

from ..deps import get_principal_id, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


@router.get("/api/users/me/stats")
async def my_stats(
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    stats = await service.user_stats(principal_id)
    payload = stats.model_dump(mode="json", exclude={"recent_tasks"})
    payload["recent_tasks"] = [v.to_payload() for v in stats.recent_tasks]
    return {"stats": payload}


@router.get("/api/users/{user_id}/public-tasks")
async def public_tasks(
    user_id: str,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    """公开任务对任何已认证主体可见"""
    views = await service.public_tasks(user_id)
    return {"user_id": user_id, "tasks": [v.to_payload() for v in views]}
