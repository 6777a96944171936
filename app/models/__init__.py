from .user import User, UserRole
from .task import Task, TaskStatus, TaskPriority, ACTIVE_STATUSES, CLOSED_STATUSES
from .notification import Notification, NotificationType, NotificationPriority
