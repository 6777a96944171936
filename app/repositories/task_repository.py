# app/repositories/task_repository.py
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, desc, exists, or_
from sqlalchemy.orm import Session, joinedload

from app.models import Task, Notification, ACTIVE_STATUSES, CLOSED_STATUSES
from app.schemas.task import TaskFilters


class TaskRepository:
    """Queries over the tasks table. Authorization is the caller's job."""

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Task).options(
            joinedload(Task.employee),
            joinedload(Task.creator),
        )

    def create(self, **fields) -> Task:
        task = Task(**fields)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def find_by_id(self, task_id: int) -> Optional[Task]:
        return self._base_query().filter(Task.id == task_id).first()

    def _filter_conditions(self, filters: TaskFilters, today: date) -> list:
        conditions = []

        if filters.status:
            conditions.append(Task.status == filters.status.value)
        if filters.priority:
            conditions.append(Task.priority == filters.priority.value)
        if filters.employee_id:
            conditions.append(Task.employee_id == filters.employee_id)
        if filters.creator_id:
            conditions.append(Task.creator_id == filters.creator_id)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(or_(
                Task.title.ilike(pattern),
                Task.description.ilike(pattern),
                Task.device_model.ilike(pattern),
                Task.serial_number.ilike(pattern),
            ))
        if filters.start_date:
            conditions.append(Task.task_date >= filters.start_date)
        if filters.end_date:
            conditions.append(Task.task_date <= filters.end_date)
        if filters.overdue:
            conditions.append(Task.deadline < today)
            conditions.append(Task.status.notin_(CLOSED_STATUSES))

        return conditions

    def list(self, filters: TaskFilters, page: int, limit: int, today: date) -> Tuple[List[Task], int]:
        """Return one page of tasks and the total matching the same filters"""
        conditions = self._filter_conditions(filters, today)

        total = self.db.query(Task).filter(*conditions).count()

        tasks = (
            self._base_query()
            .filter(*conditions)
            .order_by(desc(Task.created_at), desc(Task.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return tasks, total

    def recent(self, limit: int, employee_id: Optional[int] = None) -> List[Task]:
        query = self._base_query()
        if employee_id:
            query = query.filter(Task.employee_id == employee_id)
        return query.order_by(desc(Task.created_at), desc(Task.id)).limit(limit).all()

    def update(self, task: Task, changes: dict, now: datetime) -> Task:
        """Apply only the given fields; values may be SQL expressions"""
        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = now

        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        # Keep notifications readable after the task is gone
        self.db.query(Notification).filter(Notification.task_id == task.id).update(
            {Notification.task_id: None}, synchronize_session=False
        )
        self.db.delete(task)
        self.db.commit()

    def is_user_referenced(self, user_id: int) -> bool:
        return self.db.query(
            exists().where(or_(Task.employee_id == user_id, Task.creator_id == user_id))
        ).scalar()

    def find_deadline_candidates(
        self,
        notification_type: str,
        notified_since: datetime,
        deadline_after: Optional[date] = None,
        deadline_until: Optional[date] = None,
    ) -> List[Task]:
        """Active tasks due after `deadline_after` and up to `deadline_until` with no
        recent notification of this type.

        The de-duplication check is part of the candidate query so two sweeps
        cannot both see a task as un-notified between a separate read and write.
        """
        recently_notified = exists().where(and_(
            Notification.task_id == Task.id,
            Notification.type == notification_type,
            Notification.created_at > notified_since,
        ))

        query = self._base_query().filter(
            Task.status.in_(ACTIVE_STATUSES),
            Task.deadline.isnot(None),
            ~recently_notified,
        )
        if deadline_after is not None:
            query = query.filter(Task.deadline > deadline_after)
        if deadline_until is not None:
            query = query.filter(Task.deadline <= deadline_until)

        return query.order_by(Task.deadline, Task.id).all()
