"""任务 CRUD 路由

POST   /api/tasks: 创建任务（201）
GET    /api/tasks: 当前用户创建或参与的任务，按紧急程度排序
GET    /api/tasks/{task_id}: 任务详情（需 view 权限）
PUT    /api/tasks/{task_id}: 编辑任务（仅创建者）
DELETE /api/tasks/{task_id}: 删除任务（仅创建者）
"""

from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse
from taskboard.core.models import Priority, TaskCreate, TaskStatus, TaskUpdate

from ..deps import get_principal_id, get_task_service
from ..responses import error_response
from ..services.task_service import TaskService

router = APIRouter()


@router.post("/api/tasks", status_code=201)
async def create_task(
    payload: TaskCreate,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    """创建任务，principal 成为创建者"""
    outcome = await service.create_task(principal_id, payload)
    if not outcome.ok:
        return error_response(outcome)
    return JSONResponse(
        status_code=201,
        content={"task": service.annotate(outcome.task).to_payload()},
    )


@router.get("/api/tasks")
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    priority: Priority | None = Query(default=None, description="按存储优先级筛选"),
    search: str | None = Query(default=None, description="标题/描述/标签模糊匹配"),
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表（已排序，附带逾期/临期/有效优先级）"""
    views = await service.list_tasks(principal_id, status, priority, search)
    return {
        "tasks": [v.to_payload() for v in views],
        "count": len(views),
    }


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    outcome = await service.get_task(principal_id, task_id)
    if not outcome.ok:
        return error_response(outcome)
    return {"task": service.annotate(outcome.task).to_payload()}


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    changes: TaskUpdate,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    """编辑任务字段（含状态自由切换）"""
    outcome = await service.update_task(principal_id, task_id, changes)
    if not outcome.ok:
        return error_response(outcome)
    return {"task": service.annotate(outcome.task).to_payload()}


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    principal_id: str = Depends(get_principal_id),
    service: TaskService = Depends(get_task_service),
):
    outcome = await service.delete_task(principal_id, task_id)
    if not outcome.ok:
        return error_response(outcome)
    return {"task_id": task_id, "deleted": True}
