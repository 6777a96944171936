# app/schemas/task.py
import math
from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.task import TaskStatus, TaskPriority


class TaskRequest(BaseModel):
    """Request bodies accept both camelCase and snake_case keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip_required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValueError(message)
    return value.strip()


class TaskCreate(TaskRequest):
    title: str
    employee_id: int
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    task_date: Optional[date] = None
    deadline: Optional[date] = None
    device_model: Optional[str] = None
    serial_number: Optional[str] = None
    reported_issue: Optional[str] = None

    @field_validator('title')
    @classmethod
    def title_required(cls, v):
        return _strip_required(v, 'Title is required')


class TaskUpdate(TaskRequest):
    """Partial update: only keys present in the request are applied.

    Nullable fields may be cleared with an explicit null; title, priority and
    employee cannot.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    task_date: Optional[date] = None
    deadline: Optional[date] = None
    device_model: Optional[str] = None
    serial_number: Optional[str] = None
    reported_issue: Optional[str] = None
    employee_id: Optional[int] = None

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, v):
        return _strip_required(v, 'Title cannot be empty')

    @field_validator('priority', 'employee_id')
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskStatusUpdate(TaskRequest):
    status: TaskStatus


class TaskCancel(TaskRequest):
    cancellation_reason: Optional[str] = None

    @model_validator(mode='after')
    def reason_required(self):
        self.cancellation_reason = _strip_required(self.cancellation_reason, 'Cancellation reason is required')
        return self


class TaskWorkReport(TaskRequest):
    work_report: Optional[str] = None

    @model_validator(mode='after')
    def report_required(self):
        self.work_report = _strip_required(self.work_report, 'Work report is required')
        return self


class TaskReassign(TaskRequest):
    employee_id: Optional[int] = None

    @model_validator(mode='after')
    def employee_required(self):
        if self.employee_id is None:
            raise ValueError('Employee ID is required')
        return self


class TaskFilters(BaseModel):
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    employee_id: Optional[int] = None
    creator_id: Optional[int] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    overdue: bool = False


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    task_date: Optional[date] = None
    deadline: Optional[date] = None
    device_model: Optional[str] = None
    serial_number: Optional[str] = None
    reported_issue: Optional[str] = None
    work_report: Optional[str] = None
    cancellation_reason: Optional[str] = None
    employee_id: int
    creator_id: int
    employee_name: Optional[str] = None
    creator_name: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
            total_items=total,
            items_per_page=limit,
        )


class TaskListOut(BaseModel):
    tasks: List[TaskOut]
    pagination: Pagination
