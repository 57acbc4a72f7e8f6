import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import PhotoShareError
from app.db.session import SessionLocal
from app.schemas.notification import Notification
from app.schemas.user import CurrentUser

logger = logging.getLogger(__name__)


class Notifier:
    """Collects the transient notifications shown to the user."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, title: str, description: Optional[str] = None, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        return notification

    def error(self, title: str, error: PhotoShareError) -> Notification:
        logger.error(f"{title}: {error.message}")
        return self.notify(title, error.message, variant="destructive")

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class AppContext:
    """Explicit per-shell context handed to each flow at construction."""

    def __init__(self,
                 current_user: Optional[CurrentUser] = None,
                 session_factory: Callable[[], Session] = SessionLocal,
                 notifier: Optional[Notifier] = None):
        self.current_user = current_user
        self.session_factory = session_factory
        self.notifier = notifier or Notifier()

    @contextmanager
    def db_session(self):
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()
