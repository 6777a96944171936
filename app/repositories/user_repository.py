from typing import List, Optional, Tuple

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from app.models import User


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def username_exists(self, username: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(User).filter(User.username == username)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def list(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(or_(User.full_name.ilike(pattern), User.username.ilike(pattern)))
        if role:
            conditions.append(User.role == role)

        total = self.db.query(User).filter(*conditions).count()
        users = (
            self.db.query(User)
            .filter(*conditions)
            .order_by(desc(User.created_at), desc(User.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def all(self) -> List[User]:
        return self.db.query(User).order_by(User.full_name).all()

    def create(self, full_name: str, username: str, hashed_password: str, role: str) -> User:
        user = User(
            full_name=full_name,
            username=username,
            hashed_password=hashed_password,
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: User, changes: dict) -> User:
        for key, value in changes.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()
