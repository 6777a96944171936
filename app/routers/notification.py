# app/routers/notification.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.repositories.notification_repository import NotificationRepository
from app.schemas.notification import (
    NotificationOut,
    UnreadCount,
    NotificationBulkResult,
    NotificationMarkAllResult,
)
from app.utils.auth import get_current_user
from app.utils.errors import NotFoundError

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationOut])
def get_user_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get notifications for the current user, newest first"""
    return NotificationRepository(db).find_for_user(
        current_user.id, limit=limit, offset=offset, unread_only=unread_only
    )


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"count": NotificationRepository(db).unread_count(current_user.id)}


# Registered before /{notification_id}/read so the literal path wins
@router.patch("/mark-all-read", response_model=NotificationMarkAllResult)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notifications = NotificationRepository(db).mark_all_as_read(current_user.id, datetime.utcnow())
    return {
        "message": "All notifications marked as read",
        "updated_count": len(notifications),
        "notifications": notifications,
    }


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark one notification as read; repeating the call is harmless"""
    notification = NotificationRepository(db).mark_as_read(notification_id, current_user.id, datetime.utcnow())
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


@router.delete("", response_model=NotificationBulkResult)
def delete_all_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = NotificationRepository(db).delete_all(current_user.id)
    return {"message": "All notifications deleted", "deleted_count": deleted}


@router.delete("/{notification_id}", response_model=NotificationBulkResult)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Another user's notification is indistinguishable from a missing one
    if not NotificationRepository(db).delete(notification_id, current_user.id):
        raise NotFoundError("Notification not found")
    return {"message": "Notification deleted successfully", "deleted_count": 1}
