"""Transient user-facing notices."""

from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List

from pydantic import BaseModel, Field

from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notice(BaseModel):
    title: str
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True


NoticeListener = Callable[[Notice], None]


class Notifier:
    """Keeps the most recent notices and pushes new ones to listeners"""

    def __init__(self, history_size: int = 20):
        self._history: Deque[Notice] = deque(maxlen=history_size)
        self._listeners: List[NoticeListener] = []

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(
        self,
        title: str,
        description: str = "",
        variant: NoticeVariant = NoticeVariant.DEFAULT
    ) -> Notice:
        notice = Notice(title=title, description=description, variant=variant)
        self._history.append(notice)

        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception as e:
                logger.error(f"Notice listener failed: {str(e)}")

        return notice

    def error(self, title: str, description: str = "") -> Notice:
        return self.notify(title, description, NoticeVariant.DESTRUCTIVE)

    def recent(self) -> List[Notice]:
        """Notices oldest first"""
        return list(self._history)
