# app/services/task_service.py
"""
Task lifecycle: who may change a task, and what follows from each change.

Manager-only operations are refused from the actor's role before the task is
read. Operations an assignee may perform on their own task load the task
first (404) and then compare the assignee (403). Notifications are sent after
the task change is committed and never fail the operation.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Task, TaskStatus, User
from app.repositories.task_repository import TaskRepository
from app.repositories.user_repository import UserRepository
from app.schemas.task import TaskCreate, TaskUpdate, TaskFilters, Pagination
from app.services.notification_service import NotificationService
from app.utils.errors import ValidationError, NotFoundError, ForbiddenError, ConflictError

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.tasks = TaskRepository(db)
        self.users = UserRepository(db)
        self.notifications = notifications or NotificationService(db)
        self.clock = clock or datetime.utcnow

    # Permission helpers

    @staticmethod
    def _require_manager(actor: User, message: str):
        if not actor.is_manager:
            raise ForbiddenError(message)

    @staticmethod
    def _require_manager_or_assignee(actor: User, task: Task, message: str):
        if not actor.is_manager and task.employee_id != actor.id:
            raise ForbiddenError(message)

    def _get_task(self, task_id: int) -> Task:
        task = self.tasks.find_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _get_employee(self, employee_id: int) -> User:
        employee = self.users.find_by_id(employee_id)
        if not employee:
            raise ValidationError("Assigned employee not found")
        return employee

    # Queries

    def list_tasks(self, actor: User, filters: TaskFilters, page: int = 1, limit: Optional[int] = None) -> Tuple[List[Task], Pagination]:
        # Employees only ever see their own tasks
        if not actor.is_manager:
            filters = filters.model_copy(update={"employee_id": actor.id})

        page = max(page, 1)
        limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

        tasks, total = self.tasks.list(filters, page, limit, today=self.clock().date())
        return tasks, Pagination.build(page, limit, total)

    def get_task(self, actor: User, task_id: int) -> Task:
        task = self._get_task(task_id)
        self._require_manager_or_assignee(actor, task, "Access denied. You can only view your own tasks.")
        return task

    def recent_tasks(self, actor: User, limit: int = 5) -> List[Task]:
        employee_id = None if actor.is_manager else actor.id
        return self.tasks.recent(limit, employee_id=employee_id)

    # Manager-only mutations

    def create_task(self, actor: User, data: TaskCreate) -> Task:
        self._require_manager(actor, "Access denied. Manager role required.")
        self._get_employee(data.employee_id)

        now = self.clock()
        task = self.tasks.create(
            title=data.title,
            description=data.description,
            status=TaskStatus.OPEN.value,
            priority=data.priority.value,
            task_date=data.task_date,
            deadline=data.deadline,
            device_model=data.device_model,
            serial_number=data.serial_number,
            reported_issue=data.reported_issue,
            employee_id=data.employee_id,
            creator_id=actor.id,
            created_at=now,
            updated_at=now,
        )
        logger.info(f"Task {task.id} created by user {actor.id} for employee {task.employee_id}")

        self.notifications.task_assigned(task.id, task.employee_id, task.title, actor.full_name)
        return task

    def update_task(self, actor: User, task_id: int, data: TaskUpdate) -> Task:
        self._require_manager(actor, "Access denied. Manager role required.")

        changes = data.changes()
        if not changes:
            raise ValidationError("No fields to update")
        if "priority" in changes:
            changes["priority"] = changes["priority"].value

        task = self._get_task(task_id)

        old_employee_id = task.employee_id
        new_employee = None
        if "employee_id" in changes and changes["employee_id"] != old_employee_id:
            new_employee = self._get_employee(changes["employee_id"])

        task = self.tasks.update(task, changes, self.clock())
        logger.info(f"Task {task.id} updated by user {actor.id}: {sorted(changes)}")

        if new_employee is not None:
            self._notify_reassignment(task, old_employee_id, new_employee, actor)
        return task

    def delete_task(self, actor: User, task_id: int) -> None:
        self._require_manager(actor, "Access denied. Manager role required.")
        task = self._get_task(task_id)
        self.tasks.delete(task)
        logger.info(f"Task {task_id} deleted by user {actor.id}")

    def cancel_task(self, actor: User, task_id: int, cancellation_reason: str) -> Task:
        self._require_manager(actor, "Access denied. Manager role required.")
        if not cancellation_reason or not cancellation_reason.strip():
            raise ValidationError("Cancellation reason is required")

        task = self._get_task(task_id)
        task = self.tasks.update(task, {
            "status": TaskStatus.CANCELLED.value,
            "cancellation_reason": cancellation_reason.strip(),
        }, self.clock())
        logger.info(f"Task {task.id} cancelled by user {actor.id}")
        return task

    def reassign_task(self, actor: User, task_id: int, employee_id: int) -> Task:
        self._require_manager(actor, "Access denied. Manager role required.")

        task = self._get_task(task_id)
        new_employee = self._get_employee(employee_id)
        old_employee_id = task.employee_id

        task = self.tasks.update(task, {"employee_id": new_employee.id}, self.clock())
        logger.info(f"Task {task.id} reassigned from user {old_employee_id} to user {new_employee.id}")

        if old_employee_id != new_employee.id:
            self._notify_reassignment(task, old_employee_id, new_employee, actor)
        return task

    def _notify_reassignment(self, task: Task, old_employee_id: int, new_employee: User, actor: User):
        self.notifications.task_reassigned_from(
            task.id, old_employee_id, task.title, new_employee.full_name, actor.full_name
        )
        self.notifications.task_reassigned_to(task.id, new_employee.id, task.title, actor.full_name)

    # Mutations open to the assignee

    def update_status(self, actor: User, task_id: int, new_status: TaskStatus) -> Task:
        if new_status == TaskStatus.CANCELLED:
            raise ValidationError("Cancelling requires a cancellation reason; use the cancel operation")

        task = self._get_task(task_id)
        self._require_manager_or_assignee(actor, task, "Access denied. You can only update your own tasks.")

        if task.status == TaskStatus.CANCELLED.value:
            raise ConflictError("Cancelled tasks cannot change status")

        old_status = task.status
        now = self.clock()
        changes = {"status": new_status.value}

        if new_status == TaskStatus.IN_PROGRESS:
            # First start only; pausing and resuming keeps the original start
            changes["actual_start_time"] = func.coalesce(Task.actual_start_time, now)
        elif new_status == TaskStatus.COMPLETED:
            changes["actual_end_time"] = now

        task = self.tasks.update(task, changes, now)
        logger.info(f"Task {task.id} status {old_status} -> {task.status} by user {actor.id}")

        if new_status == TaskStatus.COMPLETED:
            self.notifications.task_completed(task.id, task.creator_id, task.title, actor.full_name)
        elif old_status != new_status.value:
            self.notifications.status_changed(
                task.id, task.creator_id, task.title, old_status, new_status.value, actor.full_name
            )
        return task

    def add_work_report(self, actor: User, task_id: int, work_report: str) -> Task:
        if not work_report or not work_report.strip():
            raise ValidationError("Work report is required")

        task = self._get_task(task_id)
        self._require_manager_or_assignee(actor, task, "Access denied. You can only add reports to your own tasks.")

        task = self.tasks.update(task, {"work_report": work_report.strip()}, self.clock())
        logger.info(f"Work report added to task {task.id} by user {actor.id}")

        self.notifications.work_report_added(task.id, task.creator_id, task.title, actor.full_name)
        return task
