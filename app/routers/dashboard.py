# app/routers/dashboard.py
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, desc, func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import User, UserRole, Task, TaskStatus, TaskPriority, ACTIVE_STATUSES, CLOSED_STATUSES
from app.schemas.dashboard import (
    ChartData,
    DailyCount,
    DashboardStats,
    EmployeePerformance,
    EmployeeStats,
    PriorityCount,
    PriorityCounts,
    StatusCount,
    TaskCounts,
    TimelinePoint,
    TodayCounts,
    UserCounts,
    UserPerformance,
)
from app.schemas.task import TaskOut
from app.services.task_service import TaskService
from app.utils.auth import get_current_user, require_manager
from app.utils.errors import ForbiddenError

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_COMPLETED_DAYS = 7
DAILY_CHART_DAYS = 7
TIMELINE_MONTHS = 3
TOP_PERFORMERS = 10
PRIORITY_ORDER = [p.value for p in (TaskPriority.URGENT, TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW)]


def _count_when(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _overdue_condition(today: date):
    return (Task.deadline < today) & Task.status.notin_(CLOSED_STATUSES)


def _task_counts(db: Session, employee_id: Optional[int] = None) -> TaskCounts:
    today = datetime.utcnow().date()
    recent_since = datetime.combine(today - timedelta(days=RECENT_COMPLETED_DAYS), datetime.min.time())

    query = db.query(
        func.count(Task.id),
        _count_when(Task.status == TaskStatus.OPEN.value),
        _count_when(Task.status == TaskStatus.IN_PROGRESS.value),
        _count_when(Task.status == TaskStatus.COMPLETED.value),
        _count_when(Task.status == TaskStatus.CANCELLED.value),
        _count_when(_overdue_condition(today)),
        _count_when((Task.status == TaskStatus.COMPLETED.value) & (Task.updated_at >= recent_since)),
    )
    if employee_id is not None:
        query = query.filter(Task.employee_id == employee_id)

    total, open_, in_progress, completed, cancelled, overdue, recent_completed = query.one()
    return TaskCounts(
        total=total,
        open=open_,
        in_progress=in_progress,
        completed=completed,
        cancelled=cancelled,
        overdue=overdue,
        recent_completed=recent_completed,
    )


def _priority_counts(db: Session, employee_id: Optional[int] = None) -> PriorityCounts:
    """Priorities of tasks still being worked on"""
    query = db.query(
        _count_when(Task.priority == TaskPriority.URGENT.value),
        _count_when(Task.priority == TaskPriority.HIGH.value),
        _count_when(Task.priority == TaskPriority.MEDIUM.value),
        _count_when(Task.priority == TaskPriority.LOW.value),
    ).filter(Task.status.notin_(CLOSED_STATUSES))
    if employee_id is not None:
        query = query.filter(Task.employee_id == employee_id)

    urgent, high, medium, low = query.one()
    return PriorityCounts(urgent=urgent, high=high, medium=medium, low=low)


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Organisation-wide task and user statistics"""
    total, managers, employees = db.query(
        func.count(User.id),
        _count_when(User.role == UserRole.MANAGER.value),
        _count_when(User.role == UserRole.EMPLOYEE.value),
    ).one()

    return DashboardStats(
        tasks=_task_counts(db),
        priority=_priority_counts(db),
        users=UserCounts(total=total, managers=managers, employees=employees),
    )


@router.get("/my-stats", response_model=DashboardStats)
def get_my_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Personal statistics for the signed-in employee"""
    if current_user.is_manager:
        raise ForbiddenError("Access denied. Employee role required.")

    return DashboardStats(
        tasks=_task_counts(db, employee_id=current_user.id),
        priority=_priority_counts(db, employee_id=current_user.id),
    )


@router.get("/employee-stats", response_model=List[EmployeeStats])
def get_employee_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    today = datetime.utcnow().date()
    total_tasks = func.count(Task.id).label("total_tasks")

    rows = (
        db.query(
            User.id,
            User.full_name,
            User.username,
            total_tasks,
            _count_when(Task.status == TaskStatus.OPEN.value).label("open_tasks"),
            _count_when(Task.status == TaskStatus.IN_PROGRESS.value).label("in_progress_tasks"),
            _count_when(Task.status == TaskStatus.COMPLETED.value).label("completed_tasks"),
            _count_when(_overdue_condition(today)).label("overdue_tasks"),
        )
        .outerjoin(Task, Task.employee_id == User.id)
        .filter(User.role == UserRole.EMPLOYEE.value)
        .group_by(User.id, User.full_name, User.username)
        .order_by(desc(total_tasks), User.id)
        .all()
    )
    return [EmployeeStats(**row._asdict()) for row in rows]


@router.get("/recent-tasks", response_model=List[TaskOut])
def get_recent_tasks(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest tasks; employees see only their own"""
    return TaskService(db).recent_tasks(current_user, limit)


# Chart data

def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _months_back(day: date, months: int) -> date:
    """First day of the month `months` before the month of `day`"""
    year, month = day.year, day.month - months
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, 1)


def _as_date(value) -> date:
    # func.date() gives a date on PostgreSQL and an ISO string on SQLite
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _scoped(query, employee_id: Optional[int]):
    if employee_id is not None:
        query = query.filter(Task.employee_id == employee_id)
    return query


def _status_chart(db: Session, employee_id: Optional[int] = None, since: Optional[datetime] = None) -> List[StatusCount]:
    count = func.count(Task.id).label("count")
    query = _scoped(db.query(Task.status, count), employee_id)
    if since is not None:
        query = query.filter(Task.created_at >= since)

    rows = query.group_by(Task.status).order_by(desc(count), Task.status).all()
    return [StatusCount(status=status, count=total) for status, total in rows]


def _priority_chart(db: Session, employee_id: Optional[int] = None) -> List[PriorityCount]:
    """Active tasks per priority, most urgent first"""
    query = _scoped(
        db.query(Task.priority, func.count(Task.id)).filter(Task.status.in_(ACTIVE_STATUSES)),
        employee_id,
    )
    counts = dict(query.group_by(Task.priority).all())
    return [PriorityCount(priority=p, count=counts[p]) for p in PRIORITY_ORDER if p in counts]


def _daily_chart(db: Session, today: date, employee_id: Optional[int] = None) -> List[DailyCount]:
    """Tasks created per day, zero-filled, ending today"""
    first_day = today - timedelta(days=DAILY_CHART_DAYS - 1)
    created_on = func.date(Task.created_at)

    rows = (
        _scoped(db.query(created_on, func.count(Task.id)), employee_id)
        .filter(Task.created_at >= _start_of(first_day))
        .group_by(created_on)
        .all()
    )
    counts = {_as_date(value): total for value, total in rows}

    days = [first_day + timedelta(days=i) for i in range(DAILY_CHART_DAYS)]
    return [DailyCount(day=day, count=counts.get(day, 0)) for day in days]


def _today_counts(db: Session, today: date, employee_id: Optional[int] = None) -> TodayCounts:
    query = _scoped(
        db.query(
            func.count(Task.id),
            _count_when(Task.status == TaskStatus.OPEN.value),
            _count_when(Task.status == TaskStatus.IN_PROGRESS.value),
            _count_when(Task.status == TaskStatus.COMPLETED.value),
        ).filter(
            Task.created_at >= _start_of(today),
            Task.created_at < _start_of(today + timedelta(days=1)),
        ),
        employee_id,
    )
    total, open_, in_progress, completed = query.one()
    return TodayCounts(total=total, open=open_, in_progress=in_progress, completed=completed)


def _timeline_chart(db: Session, today: date) -> List[TimelinePoint]:
    """Tasks by status for the current month and the ones before it"""
    months = [_months_back(today, n) for n in range(TIMELINE_MONTHS - 1, -1, -1)]
    points = {(m.year, m.month): TimelinePoint(month=m.strftime("%b")) for m in months}

    rows = db.query(Task.created_at, Task.status).filter(Task.created_at >= _start_of(months[0])).all()
    for created_at, status in rows:
        point = points.get((created_at.year, created_at.month))
        if point is not None:
            setattr(point, status, getattr(point, status) + 1)

    return [points[(m.year, m.month)] for m in months]


def _employee_performance(db: Session, today: date) -> List[EmployeePerformance]:
    week_start = today - timedelta(days=today.weekday())
    completed_tasks = _count_when(Task.status == TaskStatus.COMPLETED.value).label("completed_tasks")

    rows = (
        db.query(
            User.id,
            User.full_name,
            func.count(Task.id).label("total_tasks"),
            _count_when(Task.status == TaskStatus.OPEN.value).label("open_tasks"),
            _count_when(Task.status == TaskStatus.IN_PROGRESS.value).label("in_progress_tasks"),
            completed_tasks,
            _count_when(Task.created_at >= _start_of(week_start)).label("this_week_tasks"),
            _count_when(Task.created_at >= _start_of(today)).label("today_tasks"),
        )
        .outerjoin(Task, Task.employee_id == User.id)
        .filter(User.role == UserRole.EMPLOYEE.value)
        .group_by(User.id, User.full_name)
        .order_by(desc(completed_tasks), User.id)
        .all()
    )

    performance = []
    for row in rows:
        values = row._asdict()
        total = values["total_tasks"]
        values["completion_rate"] = round(values["completed_tasks"] / total * 100, 1) if total else 0.0
        performance.append(EmployeePerformance(**values))
    return performance


def _user_performance(db: Session) -> List[UserPerformance]:
    """Completed against still-open work for the busiest employees"""
    completed = _count_when(Task.status == TaskStatus.COMPLETED.value).label("completed")

    rows = (
        db.query(
            User.full_name.label("name"),
            completed,
            _count_when(Task.status.in_(ACTIVE_STATUSES)).label("incomplete"),
        )
        .outerjoin(Task, Task.employee_id == User.id)
        .filter(User.role == UserRole.EMPLOYEE.value)
        .group_by(User.id, User.full_name)
        .having(func.count(Task.id) > 0)
        .order_by(desc(completed), User.id)
        .limit(TOP_PERFORMERS)
        .all()
    )
    return [UserPerformance(**row._asdict()) for row in rows]


def _chart_data(db: Session, employee_id: Optional[int] = None) -> ChartData:
    today = datetime.utcnow().date()
    week_start = today - timedelta(days=today.weekday())

    return ChartData(
        status_chart=_status_chart(db, employee_id),
        priority_chart=_priority_chart(db, employee_id),
        daily_chart=_daily_chart(db, today, employee_id),
        weekly_tasks=_status_chart(db, employee_id, since=_start_of(week_start)),
        today_tasks=_today_counts(db, today, employee_id),
    )


@router.get("/chart-data", response_model=ChartData)
def get_chart_data(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Organisation-wide chart series, including the monthly timeline and employee performance"""
    today = datetime.utcnow().date()

    charts = _chart_data(db)
    charts.timeline_chart = _timeline_chart(db, today)
    charts.employee_performance = _employee_performance(db, today)
    charts.user_performance_chart = _user_performance(db)
    return charts


@router.get("/my-chart-data", response_model=ChartData)
def get_my_chart_data(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_manager:
        raise ForbiddenError("Access denied. Employee role required.")

    return _chart_data(db, employee_id=current_user.id)
