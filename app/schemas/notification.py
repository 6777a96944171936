# app/schemas/notification.py
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict

from app.models.notification import NotificationType, NotificationPriority


class NotificationOut(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    task_id: Optional[int] = None
    task_title: Optional[str] = None
    priority: NotificationPriority
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    count: int


class NotificationBulkResult(BaseModel):
    message: str
    updated_count: int = 0
    deleted_count: int = 0


class NotificationMarkAllResult(NotificationBulkResult):
    notifications: List[NotificationOut] = []
