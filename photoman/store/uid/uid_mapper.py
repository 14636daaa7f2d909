import logging
import threading
from typing import Dict, Optional

from photoman.constants import GoogID
from photoman.model.uid import UID
from photoman.store.uid.uid_generator import UidGenerator
from photoman.util.ensure import ensure_uid

logger = logging.getLogger(__name__)


class UidGoogIdMapper:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS UidGoogIdMapper

    Bidirectionally maps a UID (int) to a GoogId (hash string). Each GoogID maps to exactly one UID, and mappings are never
    removed. The mapper is not persisted by itself: the entry table is the durable copy, and it is replayed into here
    at startup via add_mapping().
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, uid_generator: UidGenerator):
        self.uid_generator: UidGenerator = uid_generator

        self._uid_lock = threading.Lock()
        self._uid_forward_dict: Dict[GoogID, UID] = {}
        self._uid_reverse_dict: Dict[UID, GoogID] = {}

    def __len__(self):
        return len(self._uid_forward_dict)

    def _add(self, goog_id: GoogID, uid: UID):
        self._uid_forward_dict[goog_id] = uid
        self._uid_reverse_dict[uid] = goog_id

    def add_mapping(self, goog_id: GoogID, uid: UID):
        """Records an existing mapping (e.g. one read back from disk). Also makes sure the generator never reissues this UID."""
        if not goog_id:
            raise RuntimeError(f'add_mapping(): goog_id is empty!')
        uid = ensure_uid(uid)

        with self._uid_lock:
            existing_uid = self._uid_forward_dict.get(goog_id, None)
            if existing_uid is not None and existing_uid != uid:
                raise RuntimeError(f'GoogID "{goog_id}" is already mapped to {existing_uid}; cannot remap to {uid}')
            existing_goog_id = self._uid_reverse_dict.get(uid, None)
            if existing_goog_id is not None and existing_goog_id != goog_id:
                raise RuntimeError(f'UID {uid} is already mapped to GoogID "{existing_goog_id}"; cannot remap to "{goog_id}"')
            self._add(goog_id, uid)

        self.uid_generator.ensure_next_uid_greater_than(uid)

    def resolve(self, goog_id: GoogID) -> Optional[UID]:
        with self._uid_lock:
            return self._uid_forward_dict.get(goog_id, None)

    def assign(self, goog_id: GoogID) -> UID:
        """Idempotent: returns the existing UID for goog_id if there is one, otherwise allocates the next UID and records it."""
        if not goog_id:
            raise RuntimeError(f'assign(): goog_id is empty!')

        if not isinstance(goog_id, str):
            raise RuntimeError(f'assign(): goog_id is not str: {goog_id}')

        with self._uid_lock:
            uid = self._uid_forward_dict.get(goog_id, None)
            if uid is None:
                uid = self.uid_generator.next_uid()
                logger.debug(f'New UID generated: {uid} = "{goog_id}"')
                self._add(goog_id, uid)
        return uid

    def get_goog_id_for_uid(self, uid: UID) -> Optional[GoogID]:
        with self._uid_lock:
            return self._uid_reverse_dict.get(uid, None)
