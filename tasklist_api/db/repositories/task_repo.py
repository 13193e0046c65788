from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from tasklist_api.models.filters import SortKey, TaskFilters, TaskOrdering
from tasklist_api.models.orm import Tag, Task, TaskTag, User


def _contains(column, text: str):
    return func.lower(column).contains(text.strip().lower(), autoescape=True)


def _tag_count():
    return (
        select(func.count(TaskTag.id))
        .where(TaskTag.task_id == Task.id)
        .correlate(Task)
        .scalar_subquery()
    )


def _apply_filters(stmt: Select, filters: TaskFilters) -> Select:
    if filters.tag and filters.tag.strip():
        tagged = (
            select(TaskTag.task_id)
            .join(Tag, Tag.id == TaskTag.tag_id)
            .where(_contains(Tag.name, filters.tag))
        )
        stmt = stmt.where(Task.id.in_(tagged))
    if filters.title and filters.title.strip():
        stmt = stmt.where(_contains(Task.title, filters.title))
    if filters.description and filters.description.strip():
        stmt = stmt.where(_contains(Task.description, filters.description))
    return stmt


def _apply_ordering(stmt: Select, ordering: TaskOrdering) -> Select:
    if ordering.key == SortKey.TITLE:
        primary = Task.title
    elif ordering.key == SortKey.TAG_COUNT:
        primary = _tag_count()
    else:
        primary = Task.id
    primary = primary.asc() if ordering.ascending else primary.desc()
    if ordering.key == SortKey.ID:
        return stmt.order_by(primary)
    return stmt.order_by(primary, Task.id.asc())


class TaskRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    # users

    async def user_exists(self, user_id: int) -> bool:
        res = await self.session.execute(select(exists().where(User.id == user_id)))
        return bool(res.scalar())

    # tasks

    async def add_task(self, user_id: int, title: str, description: str, created_date: datetime) -> Task:
        task = Task(user_id=user_id, title=title, description=description, created_date=created_date)
        self.session.add(task)
        await self.session.flush()
        return task

    async def get_task(self, user_id: int, task_id: int) -> Optional[Task]:
        res = await self.session.execute(
            select(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        return res.scalar_one_or_none()

    async def delete_task(self, task: Task) -> None:
        await self.remove_all_tag_links(task.id)
        await self.session.delete(task)
        await self.session.flush()

    async def count_tasks(self, user_id: int, filters: TaskFilters) -> int:
        stmt = _apply_filters(select(Task.id).where(Task.user_id == user_id), filters)
        res = await self.session.execute(select(func.count()).select_from(stmt.subquery()))
        return int(res.scalar() or 0)

    async def list_tasks(
        self,
        user_id: int,
        filters: TaskFilters,
        ordering: TaskOrdering,
        offset: int,
        limit: int,
    ) -> List[Task]:
        stmt = _apply_filters(select(Task).where(Task.user_id == user_id), filters)
        stmt = _apply_ordering(stmt, ordering).offset(offset).limit(limit)
        res = await self.session.execute(stmt)
        return list(res.scalars().all())

    # tags

    async def get_tag_names(self, task_id: int) -> Set[str]:
        res = await self.session.execute(
            select(Tag.name).join(TaskTag, TaskTag.tag_id == Tag.id).where(TaskTag.task_id == task_id)
        )
        return set(res.scalars().all())

    async def get_tag_names_for_tasks(self, task_ids: Iterable[int]) -> Dict[int, List[str]]:
        ids = list(task_ids)
        names: Dict[int, List[str]] = defaultdict(list)
        if not ids:
            return names
        res = await self.session.execute(
            select(TaskTag.task_id, Tag.name)
            .join(Tag, Tag.id == TaskTag.tag_id)
            .where(TaskTag.task_id.in_(ids))
            .order_by(Tag.name)
        )
        for task_id, name in res.all():
            if name not in names[task_id]:
                names[task_id].append(name)
        return names

    async def get_tag_ids(self, names: Iterable[str]) -> Dict[str, int]:
        wanted = list(names)
        if not wanted:
            return {}
        res = await self.session.execute(select(Tag.name, Tag.id).where(Tag.name.in_(wanted)))
        return {name: tag_id for name, tag_id in res.all()}

    async def add_tag(self, name: str) -> int:
        tag = Tag(name=name)
        self.session.add(tag)
        await self.session.flush()
        return tag.id

    async def add_tag_link(self, task_id: int, tag_id: int) -> None:
        self.session.add(TaskTag(task_id=task_id, tag_id=tag_id))
        await self.session.flush()

    async def remove_tag_links(self, task_id: int, names: Iterable[str]) -> None:
        doomed = list(names)
        if not doomed:
            return
        await self.session.execute(
            delete(TaskTag).where(
                TaskTag.task_id == task_id,
                TaskTag.tag_id.in_(select(Tag.id).where(Tag.name.in_(doomed))),
            ).execution_options(synchronize_session=False)
        )

    async def remove_all_tag_links(self, task_id: int) -> None:
        await self.session.execute(
            delete(TaskTag).where(TaskTag.task_id == task_id).execution_options(synchronize_session=False)
        )
