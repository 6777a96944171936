# app/config/settings.py
# Application configuration read from the environment

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Settings:
    """Configuration for the application"""

    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./tasks.db')
    DB_SSLMODE = os.getenv('DB_SSLMODE')  # e.g. "require" on managed PostgreSQL

    # Authentication
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    ALGORITHM = os.getenv('ALGORITHM', 'HS256')
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 7 * 24 * 60))  # 7 days
    BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', 10))

    # Default manager account created by create_tables.py
    DEFAULT_MANAGER = {
        'full_name': os.getenv('DEFAULT_MANAGER_NAME', 'System Manager'),
        'username': os.getenv('DEFAULT_MANAGER_USERNAME', 'admin'),
        'password': os.getenv('DEFAULT_MANAGER_PASSWORD', 'admin123'),
    }

    # Notifications
    NOTIFICATION_LOCALE = os.getenv('NOTIFICATION_LOCALE', 'en')
    NOTIFICATION_RETENTION_DAYS = int(os.getenv('NOTIFICATION_RETENTION_DAYS', 30))

    # Deadline sweep
    SCHEDULER = {
        'enabled': _env_bool('SCHEDULER_ENABLED', 'true'),
        'sweep_interval_minutes': int(os.getenv('SWEEP_INTERVAL_MINUTES', 60)),
        'initial_delay_seconds': int(os.getenv('SWEEP_INITIAL_DELAY_SECONDS', 5)),
        'deadline_window_hours': int(os.getenv('DEADLINE_WINDOW_HOURS', 24)),
        'dedup_window_hours': int(os.getenv('DEDUP_WINDOW_HOURS', 24)),
    }

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', 10))
    MAX_PAGE_SIZE = int(os.getenv('MAX_PAGE_SIZE', 100))

    # Server
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', '8000'))
    RELOAD = _env_bool('RELOAD', 'false')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        """Allowed CORS origins from a comma separated list"""
        raw = os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173')
        return [origin.strip() for origin in raw.split(',') if origin.strip()]

    @classmethod
    def get_connect_args(cls) -> dict:
        """Driver arguments for the configured database"""
        if cls.DATABASE_URL.startswith('sqlite'):
            return {'check_same_thread': False}
        if cls.DB_SSLMODE:
            return {'sslmode': cls.DB_SSLMODE}
        return {}


settings = Settings()
