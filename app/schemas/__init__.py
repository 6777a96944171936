from .user import UserCreate, UserLogin, UserUpdate, UserRoleUpdate, UserPasswordUpdate, UserOut, UserListOut
from .tokens import Token
from .task import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskCancel, TaskWorkReport, TaskReassign, TaskFilters, TaskOut, TaskListOut, Pagination
from .notification import NotificationOut, UnreadCount, NotificationBulkResult, NotificationMarkAllResult
from .dashboard import DashboardStats, EmployeeStats, TaskCounts, PriorityCounts, UserCounts
