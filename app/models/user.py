# app/models/user.py
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from app.database import Base


class UserRole(str, enum.Enum):
    MANAGER = "manager"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_tasks = relationship("Task", back_populates="creator", foreign_keys="Task.creator_id")
    assigned_tasks = relationship("Task", back_populates="employee", foreign_keys="Task.employee_id")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER.value

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
