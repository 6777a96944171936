import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.notification import Notification, NotificationType, NotificationPriority
from app.repositories.notification_repository import NotificationRepository
from app.schemas.notification import NotificationOut
from app.services.websocket_manager import websocket_manager
from app.utils.notifications import render_notification, status_label, REASSIGNED_FROM, REASSIGNED_TO

logger = logging.getLogger(__name__)

# publish(user_id, event, payload)
Publisher = Callable[[int, str, dict], None]


class NotificationService:
    """Turns task events into persisted notifications and live pushes.

    Every method writes exactly one row for one recipient. Failures are logged
    and swallowed: by the time this runs the task change is already committed.
    """

    def __init__(self, db: Session, publisher: Optional[Publisher] = None, locale: Optional[str] = None):
        self.db = db
        self.repository = NotificationRepository(db)
        self.publisher = publisher or websocket_manager.publish
        self.locale = locale or settings.NOTIFICATION_LOCALE

    def _dispatch(
        self,
        user_id: int,
        notification_type: NotificationType,
        template_key: str,
        task_id: Optional[int],
        priority: NotificationPriority = NotificationPriority.NORMAL,
        **params,
    ) -> Optional[Notification]:
        try:
            title, message = render_notification(template_key, self.locale, **params)
            notification = self.repository.create(
                user_id=user_id,
                notification_type=notification_type.value,
                title=title,
                message=message,
                task_id=task_id,
                priority=priority.value,
            )
        except Exception:
            logger.exception(f"Could not create {notification_type.value} notification for user {user_id}")
            self.db.rollback()
            return None

        logger.info(f"Notification {notification.id} ({notification_type.value}) created for user {user_id}")

        try:
            payload = NotificationOut.model_validate(notification).model_dump(mode="json")
            self.publisher(user_id, "notification", payload)
        except Exception:
            logger.exception(f"Could not push notification {notification.id} to user {user_id}")

        return notification

    def task_assigned(self, task_id: int, employee_id: int, task_title: str, assigned_by: str):
        return self._dispatch(
            employee_id,
            NotificationType.TASK_ASSIGNED,
            NotificationType.TASK_ASSIGNED.value,
            task_id,
            task_title=task_title,
            actor=assigned_by,
        )

    def task_completed(self, task_id: int, creator_id: int, task_title: str, completed_by: str):
        return self._dispatch(
            creator_id,
            NotificationType.TASK_COMPLETED,
            NotificationType.TASK_COMPLETED.value,
            task_id,
            task_title=task_title,
            actor=completed_by,
        )

    def status_changed(
        self,
        task_id: int,
        creator_id: int,
        task_title: str,
        old_status: str,
        new_status: str,
        changed_by: str,
    ):
        return self._dispatch(
            creator_id,
            NotificationType.STATUS_CHANGED,
            NotificationType.STATUS_CHANGED.value,
            task_id,
            task_title=task_title,
            old_status=status_label(old_status, self.locale),
            new_status=status_label(new_status, self.locale),
            actor=changed_by,
        )

    def work_report_added(self, task_id: int, creator_id: int, task_title: str, reported_by: str):
        return self._dispatch(
            creator_id,
            NotificationType.WORK_REPORT_ADDED,
            NotificationType.WORK_REPORT_ADDED.value,
            task_id,
            task_title=task_title,
            actor=reported_by,
        )

    def task_reassigned_from(
        self,
        task_id: int,
        old_employee_id: int,
        task_title: str,
        new_employee_name: str,
        reassigned_by: str,
    ):
        return self._dispatch(
            old_employee_id,
            NotificationType.TASK_REASSIGNED,
            REASSIGNED_FROM,
            task_id,
            task_title=task_title,
            new_employee=new_employee_name,
            actor=reassigned_by,
        )

    def task_reassigned_to(self, task_id: int, new_employee_id: int, task_title: str, reassigned_by: str):
        return self._dispatch(
            new_employee_id,
            NotificationType.TASK_REASSIGNED,
            REASSIGNED_TO,
            task_id,
            task_title=task_title,
            actor=reassigned_by,
        )

    def deadline_approaching(self, task_id: int, user_id: int, task_title: str, deadline: date):
        return self._dispatch(
            user_id,
            NotificationType.DEADLINE_APPROACHING,
            NotificationType.DEADLINE_APPROACHING.value,
            task_id,
            priority=NotificationPriority.HIGH,
            task_title=task_title,
            deadline=deadline.isoformat(),
        )

    def task_overdue(self, task_id: int, user_id: int, task_title: str, deadline: date):
        return self._dispatch(
            user_id,
            NotificationType.TASK_OVERDUE,
            NotificationType.TASK_OVERDUE.value,
            task_id,
            priority=NotificationPriority.URGENT,
            task_title=task_title,
            deadline=deadline.isoformat(),
        )
