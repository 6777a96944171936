# create_tables.py
import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.config.settings import settings
from app.database import Base, engine, SessionLocal
from app.models import User, UserRole, Task, Notification  # noqa: F401  (registers the tables)
from app.repositories.user_repository import UserRepository
from app.utils.security import hash_password


def create_tables(drop: bool = False):
    """Create all tables, optionally dropping existing ones first"""
    try:
        if drop:
            Base.metadata.drop_all(bind=engine)
            print("Existing tables dropped")

        Base.metadata.create_all(bind=engine)
        print("✅ All tables created successfully!")

        create_default_manager()

    except SQLAlchemyError as e:
        print(f"❌ Error creating tables: {e}")
        raise


def create_default_manager():
    """Create the default manager account if it does not exist"""
    account = settings.DEFAULT_MANAGER

    db = SessionLocal()
    try:
        users = UserRepository(db)
        if users.username_exists(account["username"]):
            print("ℹ️  Manager user already exists")
            return

        users.create(
            full_name=account["full_name"],
            username=account["username"],
            hashed_password=hash_password(account["password"]),
            role=UserRole.MANAGER.value,
        )
        print("✅ Default manager user created!")
        print(f"   Username: {account['username']}")
        print(f"   Password: {account['password']}")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the database schema")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    create_tables(drop=args.drop)
