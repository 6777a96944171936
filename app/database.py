from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.config.settings import settings

# On PostgreSQL hosts such as Render set DB_SSLMODE=require
engine = create_engine(
    settings.DATABASE_URL,
    connect_args=settings.get_connect_args(),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Imported wherever a DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
