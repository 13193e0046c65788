import logging
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tasklist_api.core.clock import SystemClock
from tasklist_api.core.errors import NotFoundError, ValidationError
from tasklist_api.db.database import unit_of_work
from tasklist_api.db.repositories.task_repo import TaskRepo
from tasklist_api.models.orm import Task
from tasklist_api.models.schemas import TaskListQuery, TaskPage, TaskResponse
from tasklist_api.service.tag_reconciler import TagReconciler, normalize_tags
from tasklist_api.service.task_query import TaskQueryEngine, to_task_response

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
TAG_MAX_LENGTH = 100


class TaskService:
    def __init__(self, session: AsyncSession, clock: SystemClock):
        self.session = session
        self.repo = TaskRepo(session)
        self.tags = TagReconciler(self.repo)
        self.query = TaskQueryEngine(self.repo)
        self.clock = clock

    async def create_task(
        self, user_id: int, title: str, description: str, tags: Optional[Iterable[Optional[str]]] = None
    ) -> TaskResponse:
        if not await self.repo.user_exists(user_id):
            raise ValidationError("User not found.")
        tags = list(tags or [])
        _validate_fields(title, description, tags)

        async with unit_of_work(self.session):
            task = await self.repo.add_task(user_id, title.strip(), description.strip(), self.clock.now())
            names = await self.tags.add_tags(task.id, tags)
        logger.info("User %s created task %s with %d tag(s)", user_id, task.id, len(names))
        return to_task_response(task, sorted(names))

    async def update_task(
        self,
        user_id: int,
        task_id: int,
        title: str,
        description: str,
        tags: Optional[Iterable[Optional[str]]] = None,
    ) -> TaskResponse:
        if task_id <= 0:
            raise ValidationError("Task id must be a positive number.")
        tags = list(tags or [])
        _validate_fields(title, description, tags)

        # field changes and tag reconciliation land together or not at all
        async with unit_of_work(self.session):
            task = await self._require_task(user_id, task_id)
            task.title = title.strip()
            task.description = description.strip()
            task.updated_date = self.clock.now()
            delta = await self.tags.reconcile(task.id, tags)
            await self.session.flush()
        names = await self.repo.get_tag_names(task.id)
        logger.info("User %s updated task %s (tags +%s -%s)", user_id, task.id, delta.added, delta.removed)
        return to_task_response(task, sorted(names))

    async def get_task(self, user_id: int, task_id: int) -> TaskResponse:
        task = await self._require_task(user_id, task_id)
        names = await self.repo.get_tag_names(task.id)
        return to_task_response(task, sorted(names))

    async def list_tasks(self, user_id: int, query: Optional[TaskListQuery] = None) -> TaskPage:
        return await self.query.list_page(user_id, query or TaskListQuery())

    async def delete_task(self, user_id: int, task_id: int) -> None:
        async with unit_of_work(self.session):
            task = await self._require_task(user_id, task_id)
            await self.repo.delete_task(task)
        logger.info("User %s deleted task %s", user_id, task_id)

    async def _require_task(self, user_id: int, task_id: int) -> Task:
        task = await self.repo.get_task(user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found.")
        return task


def _validate_fields(title: str, description: str, tags: Optional[Iterable[Optional[str]]]) -> None:
    if not title or not title.strip() or not description or not description.strip():
        raise ValidationError("Title or Description cannot be empty.")
    if len(title.strip()) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must not exceed {TITLE_MAX_LENGTH} characters.")
    too_long: List[str] = [t for t in normalize_tags(tags) if len(t) > TAG_MAX_LENGTH]
    if too_long:
        raise ValidationError(f"Tags must not exceed {TAG_MAX_LENGTH} characters.")
