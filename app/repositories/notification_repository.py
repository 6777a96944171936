# app/repositories/notification_repository.py
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from app.models import Notification, NotificationPriority


class NotificationRepository:
    """Notification rows. Ownership is part of every lookup predicate."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        task_id: Optional[int] = None,
        priority: str = NotificationPriority.NORMAL.value,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            task_id=task_id,
            priority=priority,
            is_read=False,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def _owned(self, notification_id: int, user_id: int):
        return self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )

    def find_for_user(
        self,
        user_id: int,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False,
    ) -> List[Notification]:
        query = (
            self.db.query(Notification)
            .options(joinedload(Notification.task))
            .filter(Notification.user_id == user_id)
        )
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712

        return (
            query.order_by(desc(Notification.created_at), desc(Notification.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def unread_count(self, user_id: int) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).count()

    def mark_as_read(self, notification_id: int, user_id: int, now: datetime) -> Optional[Notification]:
        """Mark one notification read; read_at keeps its first value"""
        notification = self._owned(notification_id, user_id).first()
        if not notification:
            return None

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = now
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, user_id: int, now: datetime) -> List[Notification]:
        notifications = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).all()

        for notification in notifications:
            notification.is_read = True
            notification.read_at = now

        self.db.commit()
        return notifications

    def delete(self, notification_id: int, user_id: int) -> bool:
        deleted = self._owned(notification_id, user_id).delete(synchronize_session=False)
        self.db.commit()
        return deleted > 0

    def delete_all(self, user_id: int) -> int:
        deleted = self.db.query(Notification).filter(
            Notification.user_id == user_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def delete_old_read(self, days_old: int, now: datetime) -> int:
        cutoff = now - timedelta(days=days_old)
        deleted = self.db.query(Notification).filter(
            Notification.is_read == True,  # noqa: E712
            Notification.read_at < cutoff,
        ).delete(synchronize_session=False)
        self.db.commit()
        return deleted
