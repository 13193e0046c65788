import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from tasklist_api.api.deps import get_current_user_id, get_task_service
from tasklist_api.models.schemas import TaskCreateRequest, TaskListQuery, TaskPage, TaskResponse, TaskUpdateRequest
from tasklist_api.service.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    req: TaskCreateRequest,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    logger.info("Creating task - Title: %s, TagCount: %d", req.title, len(req.tags))
    return await svc.create_task(user_id, req.title, req.description, req.tags)


@router.put("", response_model=TaskResponse)
async def update_task(
    req: TaskUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    logger.info("Updating task - TaskId: %s, Title: %s, TagCount: %d", req.task_id, req.title, len(req.tags))
    return await svc.update_task(user_id, req.task_id, req.title, req.description, req.tags)


@router.get("", response_model=TaskPage)
async def list_tasks(
    page_number: int = 1,
    page_size: int = 10,
    filter_by_tag: Optional[str] = None,
    filter_by_title: Optional[str] = None,
    filter_by_description: Optional[str] = None,
    sort_by: Optional[str] = None,
    is_ascending: bool = True,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    query = TaskListQuery(
        page_number=page_number,
        page_size=page_size,
        filter_by_tag=filter_by_tag,
        filter_by_title=filter_by_title,
        filter_by_description=filter_by_description,
        sort_by=sort_by,
        is_ascending=is_ascending,
    )
    return await svc.list_tasks(user_id, query)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    logger.info("Retrieving task - TaskId: %s", task_id)
    return await svc.get_task(user_id, task_id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    await svc.delete_task(user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
