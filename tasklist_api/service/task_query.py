from typing import List, Sequence

from tasklist_api.core.clock import ensure_utc
from tasklist_api.db.repositories.task_repo import TaskRepo
from tasklist_api.models.filters import SortKey, TaskFilters, TaskOrdering
from tasklist_api.models.orm import Task
from tasklist_api.models.schemas import TaskListQuery, TaskPage, TaskResponse
from tasklist_api.utils.pagination import PageRequest, total_pages


def to_task_response(task: Task, tags: Sequence[str]) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        created_date=ensure_utc(task.created_date),
        updated_date=ensure_utc(task.updated_date),
        tags=list(tags),
    )


class TaskQueryEngine:
    def __init__(self, repo: TaskRepo):
        self.repo = repo

    async def list_page(self, user_id: int, query: TaskListQuery) -> TaskPage:
        page = PageRequest.clamp(query.page_number, query.page_size)
        filters = TaskFilters(
            tag=query.filter_by_tag,
            title=query.filter_by_title,
            description=query.filter_by_description,
        )
        ordering = TaskOrdering(key=SortKey.parse(query.sort_by), ascending=query.is_ascending)

        total = await self.repo.count_tasks(user_id, filters)
        items: List[TaskResponse] = []
        if total > page.offset:
            tasks = await self.repo.list_tasks(user_id, filters, ordering, page.offset, page.page_size)
            tag_names = await self.repo.get_tag_names_for_tasks(t.id for t in tasks)
            items = [to_task_response(t, tag_names.get(t.id, [])) for t in tasks]

        pages = total_pages(total, page.page_size)
        return TaskPage(
            items=items,
            current_page=page.page_number,
            total_pages=pages,
            total_count=total,
            page_size=page.page_size,
            has_previous=page.page_number > 1,
            has_next=page.page_number < pages,
        )
