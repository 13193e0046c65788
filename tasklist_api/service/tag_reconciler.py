from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from tasklist_api.db.repositories.task_repo import TaskRepo


def normalize_tags(tags: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Trim and lower-case tag names, dropping blanks and repeats (first seen wins)."""
    seen: List[str] = []
    for tag in tags or ():
        if tag is None:
            continue
        name = tag.strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen


@dataclass
class TagDelta:
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class TagReconciler:
    """Brings a task's tag associations in line with a desired set of names.

    Nothing here commits; callers run it inside their own unit of work.
    """

    def __init__(self, repo: TaskRepo):
        self.repo = repo

    async def add_tags(self, task_id: int, tags: Optional[Iterable[Optional[str]]]) -> List[str]:
        names = normalize_tags(tags)
        await self._link(task_id, names)
        return names

    async def reconcile(self, task_id: int, tags: Optional[Iterable[Optional[str]]]) -> TagDelta:
        desired = normalize_tags(tags)
        existing = await self.repo.get_tag_names(task_id)

        if not desired:
            if existing:
                await self.repo.remove_all_tag_links(task_id)
            return TagDelta(removed=sorted(existing))

        to_remove = sorted(existing - set(desired))
        to_add = [name for name in desired if name not in existing]

        await self.repo.remove_tag_links(task_id, to_remove)
        await self._link(task_id, to_add)
        return TagDelta(added=to_add, removed=to_remove)

    async def _link(self, task_id: int, names: List[str]) -> None:
        if not names:
            return
        known = await self.repo.get_tag_ids(names)
        for name in names:
            tag_id = known.get(name)
            if tag_id is None:
                tag_id = await self.repo.add_tag(name)
                known[name] = tag_id
            await self.repo.add_tag_link(task_id, tag_id)
