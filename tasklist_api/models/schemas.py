from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class AuthResponse(BaseModel):
    message: str = ""
    is_authenticated: bool = False
    email: str = ""
    access_token: str = ""
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    refresh_token_expires_on: Optional[datetime] = None


class RevokeResponse(BaseModel):
    revoked: bool


class TaskCreateRequest(BaseModel):
    title: str
    description: str
    tags: List[Optional[str]] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    task_id: int = 0
    title: str
    description: str
    tags: List[Optional[str]] = Field(default_factory=list)


class TaskListQuery(BaseModel):
    page_number: int = 1
    page_size: int = 10
    filter_by_tag: Optional[str] = None
    filter_by_title: Optional[str] = None
    filter_by_description: Optional[str] = None
    sort_by: Optional[str] = None
    is_ascending: bool = True


class TaskResponse(BaseModel):
    id: int
    title: str
    description: str
    created_date: datetime
    updated_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class TaskPage(BaseModel):
    items: List[TaskResponse] = Field(default_factory=list)
    current_page: int
    total_pages: int
    total_count: int
    page_size: int
    has_previous: bool
    has_next: bool
