from datetime import date, datetime, timedelta

from app.models import Notification, NotificationPriority
from app.repositories.notification_repository import NotificationRepository
from app.services.notification_service import NotificationService
from app.utils.notifications import render_notification, status_label


def test_each_dispatch_writes_one_row_and_one_publish(db, notifications, publisher, employee):
    notification = notifications.task_assigned(None, employee.id, "Fix printer", "Maria Manager")

    assert db.query(Notification).count() == 1
    assert notification.user_id == employee.id
    assert notification.is_read is False
    assert notification.priority == NotificationPriority.NORMAL.value
    assert notification.message == 'Task "Fix printer" was assigned to you by Maria Manager'

    [(user_id, event, payload)] = publisher.events
    assert (user_id, event) == (employee.id, "notification")
    assert payload["id"] == notification.id
    assert payload["type"] == "task_assigned"


def test_deadline_notifications_carry_priority(notifications, employee):
    approaching = notifications.deadline_approaching(None, employee.id, "Fix printer", date(2024, 3, 1))
    overdue = notifications.task_overdue(None, employee.id, "Fix printer", date(2024, 3, 1))

    assert approaching.priority == NotificationPriority.HIGH.value
    assert overdue.priority == NotificationPriority.URGENT.value
    assert "2024-03-01" in overdue.message


def test_messages_render_in_configured_locale(db, publisher, employee):
    service = NotificationService(db, publisher=publisher, locale="fa")

    notification = service.status_changed(None, employee.id, "چاپگر", "open", "completed", "مریم")

    assert status_label("completed", "fa") in notification.message
    assert "چاپگر" in notification.message


def test_unknown_locale_falls_back_to_english():
    title, message = render_notification("task_completed", "de", task_title="X", actor="Y")
    assert title == "Task completed"
    assert message == 'Task "X" was completed by Y'


def test_mark_as_read_is_idempotent(db, notifications, employee):
    notification = notifications.task_assigned(None, employee.id, "Fix printer", "Maria Manager")
    repo = NotificationRepository(db)

    first_read = datetime(2024, 3, 1, 10, 0)
    marked = repo.mark_as_read(notification.id, employee.id, first_read)
    again = repo.mark_as_read(notification.id, employee.id, first_read + timedelta(hours=1))

    assert marked.is_read is True
    assert again.read_at == first_read


def test_lookups_are_scoped_to_recipient(db, notifications, employee, other_employee):
    notification = notifications.task_assigned(None, employee.id, "Fix printer", "Maria Manager")
    repo = NotificationRepository(db)

    assert repo.mark_as_read(notification.id, other_employee.id, datetime.utcnow()) is None
    assert repo.delete(notification.id, other_employee.id) is False
    assert repo.delete(notification.id, employee.id) is True


def test_delete_old_read_only_removes_read_past_retention(db, notifications, employee):
    now = datetime(2024, 6, 1, 0, 0)
    old_read = notifications.task_assigned(None, employee.id, "old read", "M")
    recent_read = notifications.task_assigned(None, employee.id, "recent read", "M")
    old_unread = notifications.task_assigned(None, employee.id, "old unread", "M")

    repo = NotificationRepository(db)
    repo.mark_as_read(old_read.id, employee.id, now - timedelta(days=45))
    repo.mark_as_read(recent_read.id, employee.id, now - timedelta(days=3))

    deleted = repo.delete_old_read(30, now)

    assert deleted == 1
    remaining = {n.message for n in repo.find_for_user(employee.id)}
    assert 'Task "old read" was assigned to you by M' not in remaining
    assert len(remaining) == 2
    assert old_unread.id in {n.id for n in repo.find_for_user(employee.id, unread_only=True)}
