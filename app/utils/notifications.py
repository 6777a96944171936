# app/utils/notifications.py
"""
Localized title/message templates for notifications.

Messages are rendered once, when the notification is created, in the locale
configured by NOTIFICATION_LOCALE. Unknown locales fall back to English.
"""

from typing import Dict, Tuple

from app.models.notification import NotificationType

DEFAULT_LOCALE = "en"

STATUS_LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "open": "Open",
        "in_progress": "In progress",
        "completed": "Completed",
        "cancelled": "Cancelled",
    },
    "fa": {
        "open": "باز",
        "in_progress": "در حال انجام",
        "completed": "تکمیل شده",
        "cancelled": "لغو شده",
    },
}

# Reassignment has two templates sharing one notification type
REASSIGNED_FROM = "task_reassigned_from"
REASSIGNED_TO = "task_reassigned_to"

TEMPLATES: Dict[str, Dict[str, Tuple[str, str]]] = {
    "en": {
        NotificationType.TASK_ASSIGNED.value: (
            "New task assigned",
            'Task "{task_title}" was assigned to you by {actor}',
        ),
        NotificationType.TASK_COMPLETED.value: (
            "Task completed",
            'Task "{task_title}" was completed by {actor}',
        ),
        NotificationType.STATUS_CHANGED.value: (
            "Task status changed",
            'Status of task "{task_title}" changed from {old_status} to {new_status} by {actor}',
        ),
        NotificationType.WORK_REPORT_ADDED.value: (
            "New work report",
            '{actor} submitted a work report for task "{task_title}"',
        ),
        REASSIGNED_FROM: (
            "Task reassigned away from you",
            'Task "{task_title}" was reassigned from you to {new_employee} by {actor}',
        ),
        REASSIGNED_TO: (
            "Task reassigned to you",
            'Task "{task_title}" was reassigned to you by {actor}',
        ),
        NotificationType.DEADLINE_APPROACHING.value: (
            "Task deadline approaching",
            'Task "{task_title}" reaches its deadline on {deadline}',
        ),
        NotificationType.TASK_OVERDUE.value: (
            "Task overdue",
            'Task "{task_title}" passed its deadline ({deadline}) and needs immediate attention',
        ),
    },
    "fa": {
        NotificationType.TASK_ASSIGNED.value: (
            "تسک جدید به شما اختصاص یافت",
            'تسک "{task_title}" توسط {actor} به شما تخصیص داده شد',
        ),
        NotificationType.TASK_COMPLETED.value: (
            "تسک تکمیل شد",
            'تسک "{task_title}" توسط {actor} تکمیل شد',
        ),
        NotificationType.STATUS_CHANGED.value: (
            "تغییر وضعیت تسک",
            'وضعیت تسک "{task_title}" از {old_status} به {new_status} توسط {actor} تغییر کرد',
        ),
        NotificationType.WORK_REPORT_ADDED.value: (
            "گزارش کار جدید",
            '{actor} گزارش کار برای تسک "{task_title}" را ثبت کرد',
        ),
        REASSIGNED_FROM: (
            "تسک از شما منتقل شد",
            'تسک "{task_title}" از شما به {new_employee} توسط {actor} منتقل شد',
        ),
        REASSIGNED_TO: (
            "تسک جدید به شما منتقل شد",
            'تسک "{task_title}" توسط {actor} به شما منتقل شد',
        ),
        NotificationType.DEADLINE_APPROACHING.value: (
            "تسک به deadline نزدیک است",
            'تسک "{task_title}" در تاریخ {deadline} به deadline می‌رسد',
        ),
        NotificationType.TASK_OVERDUE.value: (
            "تسک از deadline گذشته است",
            'تسک "{task_title}" از deadline ({deadline}) گذشته است و نیاز به توجه فوری دارد',
        ),
    },
}


def status_label(status: str, locale: str = DEFAULT_LOCALE) -> str:
    labels = STATUS_LABELS.get(locale, STATUS_LABELS[DEFAULT_LOCALE])
    return labels.get(status, status)


def render_notification(template_key: str, locale: str = DEFAULT_LOCALE, **params) -> Tuple[str, str]:
    """
    Render the (title, message) pair for a notification

    Args:
        template_key: Notification type value, or one of the reassignment keys
        locale: Locale code such as "en" or "fa"
        **params: Values for the template placeholders

    Returns:
        Tuple of title and message
    """
    templates = TEMPLATES.get(locale, TEMPLATES[DEFAULT_LOCALE])
    title, message = templates[template_key]
    return title, message.format(**params)
