# app/routers/task.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import User, TaskStatus, TaskPriority
from app.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskStatusUpdate,
    TaskCancel,
    TaskWorkReport,
    TaskReassign,
    TaskFilters,
    TaskOut,
    TaskListOut,
)
from app.services.task_service import TaskService
from app.utils.auth import get_current_user

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.get("", response_model=TaskListOut)
def list_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    employee_id: Optional[int] = None,
    creator_id: Optional[int] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    overdue: bool = False,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """List tasks; employees only ever see tasks assigned to them"""
    filters = TaskFilters(
        status=status,
        priority=priority,
        employee_id=employee_id,
        creator_id=creator_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
        overdue=overdue,
    )
    tasks, pagination = service.list_tasks(current_user, filters, page, limit)
    return {"tasks": tasks, "pagination": pagination}


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_task(current_user, task_id)


@router.post("", response_model=TaskOut, status_code=201)
def create_task(
    task: TaskCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Create a task and notify the assignee - managers only"""
    return service.create_task(current_user, task)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Update the fields present in the request body - managers only"""
    return service.update_task(current_user, task_id, task_update)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    service.delete_task(current_user, task_id)
    return {"message": "Task deleted successfully"}


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Move a task to open, in_progress or completed"""
    return service.update_status(current_user, task_id, status_update.status)


@router.patch("/{task_id}/cancel", response_model=TaskOut)
def cancel_task(
    task_id: int,
    cancel: TaskCancel,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.cancel_task(current_user, task_id, cancel.cancellation_reason)


@router.patch("/{task_id}/report", response_model=TaskOut)
def add_work_report(
    task_id: int,
    report: TaskWorkReport,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.add_work_report(current_user, task_id, report.work_report)


@router.patch("/{task_id}/reassign", response_model=TaskOut)
def reassign_task(
    task_id: int,
    reassign: TaskReassign,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.reassign_task(current_user, task_id, reassign.employee_id)
