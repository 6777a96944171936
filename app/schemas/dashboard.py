from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class TaskCounts(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    overdue: int = 0
    recent_completed: int = 0


class PriorityCounts(BaseModel):
    urgent: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class UserCounts(BaseModel):
    total: int = 0
    managers: int = 0
    employees: int = 0


class DashboardStats(BaseModel):
    tasks: TaskCounts
    priority: PriorityCounts
    users: Optional[UserCounts] = None


class EmployeeStats(BaseModel):
    id: int
    full_name: str
    username: str
    total_tasks: int
    open_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    overdue_tasks: int


# Chart data

class StatusCount(BaseModel):
    status: str
    count: int


class PriorityCount(BaseModel):
    priority: str
    count: int


class DailyCount(BaseModel):
    day: date
    count: int


class TodayCounts(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    completed: int = 0


class TimelinePoint(BaseModel):
    month: str
    open: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0


class EmployeePerformance(BaseModel):
    id: int
    full_name: str
    total_tasks: int
    open_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    this_week_tasks: int
    today_tasks: int
    completion_rate: float


class UserPerformance(BaseModel):
    name: str
    completed: int
    incomplete: int


class ChartData(BaseModel):
    """Aggregates behind the dashboard charts.

    The timeline and performance series are organisation-wide and only
    filled for managers.
    """
    status_chart: List[StatusCount]
    priority_chart: List[PriorityCount]
    daily_chart: List[DailyCount]
    weekly_tasks: List[StatusCount]
    today_tasks: TodayCounts
    timeline_chart: Optional[List[TimelinePoint]] = None
    employee_performance: Optional[List[EmployeePerformance]] = None
    user_performance_chart: Optional[List[UserPerformance]] = None
