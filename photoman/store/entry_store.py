import logging
from typing import Dict, Iterable, List

from photoman.error import EntryNotFoundError, InvalidOperationError
from photoman.model.entry import Entry
from photoman.model.uid import UID
from photoman.store.uid.uid_mapper import UidGoogIdMapper

logger = logging.getLogger(__name__)


# CLASS EntryMemoryStore
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
class EntryMemoryStore:
    """The live, in-memory view of the entry tree (UID -> Entry). Not thread-safe: TreeCache serializes access."""

    def __init__(self, uid_mapper: UidGoogIdMapper):
        self._uid_mapper: UidGoogIdMapper = uid_mapper
        self._entry_dict: Dict[UID, Entry] = {}

    def __len__(self):
        return len(self._entry_dict)

    def __contains__(self, uid: UID):
        return uid in self._entry_dict

    def get_all(self) -> List[Entry]:
        return list(self._entry_dict.values())

    def create(self, entry: Entry) -> UID:
        """Assigns a UID to the new entry via the mapper, and adds it. If entry.uid was already filled in (because it was
        reserved before writing to disk), it must agree with the mapper."""
        existing_uid = self._uid_mapper.resolve(entry.goog_id)
        if existing_uid is not None and existing_uid in self._entry_dict:
            raise InvalidOperationError(f'create(): entry already exists for goog_id "{entry.goog_id}" (uid={existing_uid})')

        uid = self._uid_mapper.assign(entry.goog_id)
        if entry.uid is not None and entry.uid != uid:
            raise RuntimeError(f'create(): entry has uid {entry.uid} but mapper assigned {uid} for goog_id "{entry.goog_id}"')
        entry.uid = uid
        self._entry_dict[uid] = entry
        logger.debug(f'Created entry: {entry}')
        return uid

    def add_loaded_entry(self, entry: Entry):
        """For replaying an entry read back from disk. Its UID is already final."""
        self._uid_mapper.add_mapping(entry.goog_id, entry.uid)
        self._entry_dict[entry.uid] = entry

    def get(self, uid: UID) -> Entry:
        entry = self._entry_dict.get(uid, None)
        if entry is None:
            raise EntryNotFoundError(uid)
        return entry

    def is_fully_loaded(self, uid: UID) -> bool:
        return self.get(uid).is_fully_loaded()

    def set_children(self, uid: UID, child_uids: Iterable[UID]):
        self.get(uid).set_children(child_uids)

    def clear_children(self, uid: UID):
        self.get(uid).clear_children()

    def set_content_path(self, uid: UID, path: str):
        self.get(uid).set_content_path(path)

    def clear_content_path(self, uid: UID):
        self.get(uid).clear_content_path()
