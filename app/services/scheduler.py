# app/services/scheduler.py
"""
Scheduler service for deadline reminders and notification clean-up

A deadline is a date and counts as reached at 00:00 of that day.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
import logging

from app.config.settings import settings
from app.database import SessionLocal
from app.models import NotificationType, Task
from app.repositories.notification_repository import NotificationRepository
from app.repositories.task_repository import TaskRepository
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _latest_reached_deadline(moment: datetime) -> date:
    """Latest deadline date whose 00:00 lies strictly before `moment`"""
    day = moment.date()
    if moment > datetime.combine(day, time.min):
        return day
    return day - timedelta(days=1)


def _notify_recipients(task: Task, send) -> int:
    """Notify the assignee and, when recorded, the creator; one dispatch each"""
    sent = 0
    for user_id in (task.employee_id, task.creator_id):
        if user_id is None:
            continue
        if send(task.id, user_id, task.title, task.deadline) is not None:
            sent += 1
    return sent


def check_approaching_deadlines(
    db: Session,
    now: Optional[datetime] = None,
    notifications: Optional[NotificationService] = None,
) -> int:
    """Notify tasks whose deadline falls within the next window.

    A deadline qualifies when `now < deadline 00:00 <= now + window`, so with
    the default 24 hours a task due tomorrow is warned about today.
    Returns the number of matched tasks.
    """
    now = now or datetime.utcnow()
    notifications = notifications or NotificationService(db)
    config = settings.SCHEDULER

    window_end = now + timedelta(hours=config['deadline_window_hours'])
    tasks = TaskRepository(db).find_deadline_candidates(
        NotificationType.DEADLINE_APPROACHING.value,
        notified_since=now - timedelta(hours=config['dedup_window_hours']),
        deadline_after=now.date(),
        deadline_until=window_end.date(),
    )

    logger.info(f"Found {len(tasks)} tasks with approaching deadlines")
    for task in tasks:
        _notify_recipients(task, notifications.deadline_approaching)
    return len(tasks)


def check_overdue_tasks(
    db: Session,
    now: Optional[datetime] = None,
    notifications: Optional[NotificationService] = None,
) -> int:
    """Notify tasks whose deadline (00:00) has passed. Returns the number of matched tasks."""
    now = now or datetime.utcnow()
    notifications = notifications or NotificationService(db)

    tasks = TaskRepository(db).find_deadline_candidates(
        NotificationType.TASK_OVERDUE.value,
        notified_since=now - timedelta(hours=settings.SCHEDULER['dedup_window_hours']),
        deadline_until=_latest_reached_deadline(now),
    )

    logger.info(f"Found {len(tasks)} overdue tasks")
    for task in tasks:
        _notify_recipients(task, notifications.task_overdue)
    return len(tasks)


def run_deadline_scans(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Run the approaching and overdue scans.

    The scans are independent: a failure in one is logged and the other
    still runs.
    """
    now = now or datetime.utcnow()
    result: Dict[str, Any] = {"approaching": 0, "overdue": 0, "errors": []}

    for name, scan in (("approaching", check_approaching_deadlines), ("overdue", check_overdue_tasks)):
        try:
            result[name] = scan(db, now=now)
        except Exception as e:
            logger.exception(f"Error during {name} deadline scan")
            db.rollback()
            result["errors"].append(f"{name}: {e}")

    result["ran_at"] = now.isoformat()
    logger.info(f"Deadline sweep finished: {result['approaching']} approaching, {result['overdue']} overdue")
    return result


class TaskScheduler:
    """Scheduler for deadline sweeps and notification retention"""

    SWEEP_JOB_ID = 'deadline_sweep'

    def __init__(self, session_factory=SessionLocal):
        self.scheduler = AsyncIOScheduler()
        self.session_factory = session_factory
        self.is_running = False
        self.last_run: Optional[Dict[str, Any]] = None

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return

        config = settings.SCHEDULER

        # Hourly sweep; a run that overlaps the next tick is skipped, not stacked
        self.scheduler.add_job(
            self.run_deadline_sweep,
            trigger=IntervalTrigger(minutes=config['sweep_interval_minutes']),
            id=self.SWEEP_JOB_ID,
            name='Deadline Sweep',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        # One sweep shortly after startup
        self.scheduler.add_job(
            self.run_deadline_sweep,
            trigger=DateTrigger(run_date=datetime.now() + timedelta(seconds=config['initial_delay_seconds'])),
            id='initial_deadline_sweep',
            name='Initial Deadline Sweep',
            replace_existing=True,
        )

        # Clean up read notifications daily at midnight
        self.scheduler.add_job(
            self.cleanup_old_notifications,
            trigger=CronTrigger(hour=0, minute=0),
            id='cleanup_notifications',
            name='Cleanup Old Notifications',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        self.is_running = True
        logger.info("Task scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Task scheduler stopped")

    def sweep(self, db: Optional[Session] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Run both deadline scans, in a fresh session unless one is given"""
        own_session = db is None
        if own_session:
            db = self.session_factory()
        try:
            result = run_deadline_scans(db, now)
        finally:
            if own_session:
                db.close()

        self.last_run = result
        return result

    def run_deadline_sweep(self):
        """Scheduled entry point; never raises. Runs in the scheduler thread pool."""
        logger.info("Running deadline sweep...")
        try:
            self.sweep()
        except Exception:
            logger.exception("Deadline sweep failed")

    def cleanup_old_notifications(self):
        """Delete read notifications older than the retention window"""
        logger.info("Cleaning up old notifications...")

        db = self.session_factory()
        try:
            count = NotificationRepository(db).delete_old_read(
                settings.NOTIFICATION_RETENTION_DAYS, datetime.utcnow()
            )
            logger.info(f"Cleaned up {count} old notifications")
        except Exception:
            logger.exception("Error cleaning up notifications")
            db.rollback()
        finally:
            db.close()

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": [], "last_run": self.last_run}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running",
            "jobs": jobs,
            "last_run": self.last_run,
        }

# Global scheduler instance
task_scheduler = TaskScheduler()
