import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# larger page numbers overflow the OFFSET bind parameter
MAX_PAGE_NUMBER = 2**31 - 1


@dataclass(frozen=True)
class PageRequest:
    page_number: int
    page_size: int

    @classmethod
    def clamp(cls, page_number: int, page_size: int) -> "PageRequest":
        page_number = 1 if page_number <= 0 else min(page_number, MAX_PAGE_NUMBER)
        page_size = DEFAULT_PAGE_SIZE if page_size <= 0 else min(page_size, MAX_PAGE_SIZE)
        return cls(page_number=page_number, page_size=page_size)

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


def total_pages(total_count: int, page_size: int) -> int:
    if total_count <= 0:
        return 0
    return math.ceil(total_count / page_size)
