import logging
import threading
from abc import ABC, abstractmethod

from photoman.constants import FIRST_CHILD_UID
from photoman.model.uid import UID

logger = logging.getLogger(__name__)


# ABSTRACT CLASS UidGenerator
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class UidGenerator(ABC):
    def __init__(self):
        pass

    @abstractmethod
    def next_uid(self) -> UID:
        pass

    @abstractmethod
    def ensure_next_uid_greater_than(self, uid: UID):
        pass


# CLASS AtomicIntUidGenerator
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class AtomicIntUidGenerator(UidGenerator):
    """Hands out UIDs in increasing order starting at FIRST_CHILD_UID (ROOT_UID is never generated).
    Nothing is persisted here: after a restart, the cache replays its table and calls ensure_next_uid_greater_than()
    with the largest UID it saw."""

    def __init__(self):
        super().__init__()
        self._next_value: int = int(FIRST_CHILD_UID)
        self._lock = threading.Lock()

    def next_uid(self) -> UID:
        with self._lock:
            uid = UID(self._next_value)
            self._next_value += 1
            return uid

    def ensure_next_uid_greater_than(self, uid: int):
        with self._lock:
            if uid >= self._next_value:
                self._next_value = uid + 1
                logger.debug(f'Set next_uid to {self._next_value}')
            else:
                logger.debug(f'Ignoring request to set next_uid ({uid}); it is smaller than the present value ({self._next_value})')
