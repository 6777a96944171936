from .task_repository import TaskRepository
from .notification_repository import NotificationRepository
from .user_repository import UserRepository
