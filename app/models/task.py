import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.database import Base


class TaskStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, enum.Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Tasks in these states are still being worked on
ACTIVE_STATUSES = (TaskStatus.OPEN.value, TaskStatus.IN_PROGRESS.value)
CLOSED_STATUSES = (TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Task properties
    status = Column(String(20), default=TaskStatus.OPEN.value, nullable=False, index=True)
    priority = Column(String(20), default=TaskPriority.MEDIUM.value, nullable=False)

    # Dates (date only, no time component)
    task_date = Column(Date, nullable=True)
    deadline = Column(Date, nullable=True, index=True)

    # Device being serviced
    device_model = Column(String(255), nullable=True)
    serial_number = Column(String(255), nullable=True)
    reported_issue = Column(Text, nullable=True)

    work_report = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Relationships
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Work timestamps
    actual_start_time = Column(DateTime, nullable=True)
    actual_end_time = Column(DateTime, nullable=True)

    # System dates
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    employee = relationship("User", foreign_keys=[employee_id], back_populates="assigned_tasks")
    creator = relationship("User", foreign_keys=[creator_id], back_populates="created_tasks")
    notifications = relationship("Notification", back_populates="task")

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None

    @property
    def creator_name(self):
        return self.creator.full_name if self.creator else None

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"
