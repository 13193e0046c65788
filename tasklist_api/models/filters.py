import enum
from dataclasses import dataclass
from typing import Optional


class SortKey(str, enum.Enum):
    ID = "id"
    TITLE = "title"
    TAG_COUNT = "tag_count"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        if not value:
            return cls.ID
        key = value.strip().lower().replace("-", "_")
        if key == "title":
            return cls.TITLE
        if key in ("tag_count", "tagcount", "tags"):
            return cls.TAG_COUNT
        return cls.ID


@dataclass(frozen=True)
class TaskFilters:
    tag: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class TaskOrdering:
    key: SortKey = SortKey.ID
    ascending: bool = True
