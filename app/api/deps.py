from typing import Generator

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.core.notifications import EmailClient, NotificationDispatcher
from app.core.storage import FileStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_file_store() -> FileStore:
    return FileStore()


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(session_factory=SessionLocal, mailer=EmailClient())
