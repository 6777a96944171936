# app/routers/user.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.database import get_db
from app.models.user import User, UserRole
from app.repositories.task_repository import TaskRepository
from app.repositories.user_repository import UserRepository
from app.schemas.task import Pagination
from app.schemas.user import (
    UserCreate,
    UserUpdate,
    UserRoleUpdate,
    UserPasswordUpdate,
    UserOut,
    UserListOut,
)
from app.utils.auth import require_manager
from app.utils.errors import NotFoundError, ValidationError, ConflictError
from app.utils.security import hash_password

logger = logging.getLogger(__name__)

# Every user-administration route is manager only
router = APIRouter(prefix="/users", tags=["users"])


def _get_user_or_404(users: UserRepository, user_id: int) -> User:
    user = users.find_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=UserListOut)
def get_all_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    limit = min(limit, settings.MAX_PAGE_SIZE)
    users, total = UserRepository(db).list(
        search=search,
        role=role.value if role else None,
        page=page,
        limit=limit,
    )
    return {"users": users, "pagination": Pagination.build(page, limit, total)}


@router.get("/assignable", response_model=List[UserOut])
def get_assignable_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Everyone a task can be assigned to, managers included"""
    return UserRepository(db).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    return _get_user_or_404(UserRepository(db), user_id)


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    users = UserRepository(db)
    if users.username_exists(user.username):
        raise ConflictError("Username already exists")

    db_user = users.create(
        full_name=user.full_name,
        username=user.username,
        hashed_password=hash_password(user.password),
        role=user.role.value,
    )
    logger.info(f"User {db_user.id} ({db_user.role}) created by user {current_user.id}")
    return db_user


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    users = UserRepository(db)
    db_user = _get_user_or_404(users, user_id)

    changes = user_update.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")

    if "username" in changes:
        if users.username_exists(changes["username"], exclude_id=user_id):
            raise ConflictError("Username already exists")
    if "role" in changes:
        changes["role"] = changes["role"].value

    db_user = users.update(db_user, changes)
    logger.info(f"User {user_id} updated by user {current_user.id}: {sorted(changes)}")
    return db_user


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    users = UserRepository(db)
    db_user = _get_user_or_404(users, user_id)

    if db_user.id == current_user.id:
        raise ValidationError("You cannot delete yourself")
    if TaskRepository(db).is_user_referenced(user_id):
        raise ConflictError("User is assigned to or created tasks; reassign or delete them first")

    users.delete(db_user)
    logger.info(f"User {user_id} deleted by user {current_user.id}")
    return {"message": "User deleted successfully"}


@router.patch("/{user_id}/role", response_model=UserOut)
def change_user_role(
    user_id: int,
    role_update: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    users = UserRepository(db)
    db_user = _get_user_or_404(users, user_id)
    db_user = users.update(db_user, {"role": role_update.role.value})
    logger.info(f"User {user_id} role changed to {db_user.role} by user {current_user.id}")
    return db_user


@router.patch("/{user_id}/password")
def change_user_password(
    user_id: int,
    password_update: UserPasswordUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    users = UserRepository(db)
    db_user = _get_user_or_404(users, user_id)
    users.update(db_user, {"hashed_password": hash_password(password_update.new_password)})
    logger.info(f"Password of user {user_id} changed by user {current_user.id}")
    return {"message": "Password updated successfully"}
