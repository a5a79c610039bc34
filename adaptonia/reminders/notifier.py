"""
User-facing dispatch signals ("reminder sent" / "will retry later").

Each reminder id is announced at most once per process. The seen-set lives
in memory only and is lost on restart.
"""
import logging
import threading
from collections import deque
from typing import Optional

from .config import settings

logger = logging.getLogger(__name__)


class DispatchNotifier:
    def __init__(self, capacity: int = 10000):
        self.capacity = capacity
        self._seen = set()
        self._order = deque()
        self._lock = threading.Lock()

    def _first_time(self, reminder_id: str) -> bool:
        with self._lock:
            if reminder_id in self._seen:
                return False
            self._seen.add(reminder_id)
            self._order.append(reminder_id)
            # Oldest ids fall out once capacity is reached
            while len(self._order) > self.capacity:
                self._seen.discard(self._order.popleft())
            return True

    def has_announced(self, reminder_id: str) -> bool:
        with self._lock:
            return reminder_id in self._seen

    def announce_sent(self, reminder_id: str, title: str) -> bool:
        if not self._first_time(reminder_id):
            return False
        logger.info(f'Goal reminder sent! For your goal: "{title}"')
        return True

    def announce_failure(self, reminder_id: str, title: str, error: Optional[str] = None) -> bool:
        if not self._first_time(reminder_id):
            return False
        logger.warning(f'Failed to send reminder. Will retry for "{title}" later. ({error or "unknown error"})')
        return True

    def reset(self) -> None:
        with self._lock:
            self._seen.clear()
            self._order.clear()


reminder_notifier = DispatchNotifier(capacity=settings.NOTIFIER_CAPACITY)
