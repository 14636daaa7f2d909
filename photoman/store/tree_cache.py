import logging
import os
import threading
from typing import Dict, List, Optional

from photoman.constants import GoogID, ROOT_GOOG_ID, ROOT_UID
from photoman.error import InvalidOperationError
from photoman.model.entry import Entry
from photoman.model.gdrive_meta import GDriveMeta
from photoman.model.uid import UID
from photoman.store.entry_store import EntryMemoryStore
from photoman.store.sqlite.entry_db import EntryDatabase
from photoman.store.uid.uid_generator import AtomicIntUidGenerator, UidGenerator
from photoman.store.uid.uid_mapper import UidGoogIdMapper
from photoman.util import file_util
from photoman.util.stopwatch_sec import Stopwatch

logger = logging.getLogger(__name__)


class TreeCache:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS TreeCache

    Composes the UID mapper, the in-memory entry store and the entry database. Every mutation is written to disk and
    committed first, and only then applied in memory: if the disk write fails, memory is left as it was.

    The cache does not talk to Google Drive. It only records what the caller learned from it.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, db_path: str, uid_generator: Optional[UidGenerator] = None):
        self.db_path: str = db_path
        if not uid_generator:
            uid_generator = AtomicIntUidGenerator()
        self.uid_mapper = UidGoogIdMapper(uid_generator)
        self._memstore = EntryMemoryStore(self.uid_mapper)
        self._db: Optional[EntryDatabase] = None
        self._lock = threading.RLock()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    # LIFECYCLE
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def start(self):
        logger.debug(f'[{self.__class__.__name__}] Startup started')
        with self._lock:
            sw = Stopwatch()
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                file_util.make_dirs(db_dir)
            self._db = EntryDatabase(self.db_path)
            entry_list: List[Entry] = self._db.load_all()
            for entry in entry_list:
                self._memstore.add_loaded_entry(entry)

            if ROOT_UID not in self._memstore:
                self._create_root()

            self._reconcile()
            logger.info(f'[{self.__class__.__name__}] {sw} Loaded {len(entry_list)} entries from disk cache ({self.db_path})')
        logger.debug(f'[{self.__class__.__name__}] Startup done')

    def shutdown(self):
        logger.debug(f'[{self.__class__.__name__}] Shutdown started')
        with self._lock:
            if self._db:
                self._db.close()
                self._db = None
        logger.debug(f'[{self.__class__.__name__}] Shutdown done')

    def _create_root(self):
        root = Entry.make_root()
        if self.uid_mapper.resolve(ROOT_GOOG_ID) is not None:
            raise RuntimeError(f'Disk cache has an entry for goog_id "{ROOT_GOOG_ID}" which is not handle {ROOT_UID}!')
        stored_uid = self._db.append(root)
        assert stored_uid == ROOT_UID, f'Root stored under unexpected handle: {stored_uid}'
        self._memstore.add_loaded_entry(root)
        logger.debug(f'Created root entry: {root}')

    def _reconcile(self):
        """Repairs anything on disk which breaks the cache's invariants, by putting the affected entry back into the
        not-loaded state (so that it will be fetched again), rather than trusting it."""
        for entry in self._memstore.get_all():
            if entry.is_dir():
                if not entry.children.is_loaded:
                    continue
                for child_uid in entry.children.value:
                    if child_uid not in self._memstore:
                        logger.warning(f'Folder {entry.uid} lists child {child_uid} which is not in the cache: will reload its children')
                        break
                    child = self._memstore.get(child_uid)
                    if child.is_root():
                        logger.warning(f'Folder {entry.uid} lists the root as a child: will reload its children')
                        break
                    if child.parent_uid != entry.uid:
                        logger.warning(f'Folder {entry.uid} lists child {child_uid} which belongs to another parent: will reload its children')
                        break
                else:
                    continue
                self._db.clear_children(entry.uid)
                entry.clear_children()
            elif entry.content_path.is_loaded and not os.path.isfile(entry.content_path.value):
                logger.warning(f'Content for {entry.uid} is missing from disk ("{entry.content_path.value}"): will fetch it again')
                self._db.clear_content_path(entry.uid)
                entry.clear_content_path()

    # READ
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_entry(self, uid: UID) -> Entry:
        with self._lock:
            return self._memstore.get(uid)

    def get_all_entries(self) -> List[Entry]:
        with self._lock:
            return self._memstore.get_all()

    def resolve(self, goog_id: GoogID) -> Optional[UID]:
        uid = self.uid_mapper.resolve(goog_id)
        if uid is not None and uid in self._memstore:
            return uid
        return None

    def is_fully_loaded(self, uid: UID) -> bool:
        with self._lock:
            return self._memstore.is_fully_loaded(uid)

    def children_of(self, uid: UID) -> List[UID]:
        with self._lock:
            entry = self._memstore.get(uid)
            if not entry.is_dir():
                raise InvalidOperationError(f'children_of() on non-folder {uid}')
            return sorted(entry.get_child_uids())

    def content_path_of(self, uid: UID) -> str:
        with self._lock:
            entry = self._memstore.get(uid)
            if entry.is_dir():
                raise InvalidOperationError(f'content_path_of() on folder {uid}')
            if not entry.content_path.is_loaded:
                raise RuntimeError(f'Content not loaded for {uid}')
            return entry.content_path.value

    def get_name(self, uid: UID) -> str:
        return self.get_entry(uid).name

    def get_goog_id(self, uid: UID) -> GoogID:
        return self.get_entry(uid).goog_id

    def get_mime_type(self, uid: UID) -> str:
        return self.get_entry(uid).mime_type

    def get_parent_uid(self, uid: UID) -> UID:
        return self.get_entry(uid).parent_uid

    def is_dir(self, uid: UID) -> bool:
        return self.get_entry(uid).is_dir()

    # WRITE
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def record_children(self, parent_uid: UID, child_meta_list: List[GDriveMeta]) -> List[UID]:
        """Resolves or creates an entry for each listed child, then marks the parent's children as loaded with that set.
        Returns the parent's children, in listing order.

        A goog_id which is already cached under a different parent keeps its UID and its parent, and is left out of this
        parent's children."""
        with self._lock:
            parent = self._memstore.get(parent_uid)
            if not parent.is_dir():
                raise InvalidOperationError(f'record_children() on non-folder {parent_uid}')

            new_entry_dict: Dict[UID, Entry] = {}
            child_uid_list: List[UID] = []
            for meta in child_meta_list:
                # Idempotent. If the disk write below fails, the reserved UID is reused on the next attempt
                uid = self.uid_mapper.assign(meta.goog_id)
                if uid in child_uid_list:
                    continue

                if uid in self._memstore:
                    existing = self._memstore.get(uid)
                    if existing.parent_uid != parent_uid:
                        # Drive allows one file in several folders, but an entry has one parent. The file shows up
                        # under the first folder that listed it, and this folder's listing omits it
                        logger.warning(f'Child "{meta.goog_id}" of {parent_uid} is already cached as {uid} under parent '
                                       f'{existing.parent_uid}: leaving it there')
                        continue
                elif uid not in new_entry_dict:
                    new_entry_dict[uid] = Entry(uid=uid, name=meta.name, goog_id=meta.goog_id, mime_type=meta.mime_type,
                                                parent_uid=parent_uid)
                child_uid_list.append(uid)

            new_entry_list = list(new_entry_dict.values())
            stored_uid_list = self._db.append_children(parent_uid, new_entry_list, child_uid_list)
            for entry, stored_uid in zip(new_entry_list, stored_uid_list):
                # Adopt the handle the disk cache stored it under
                entry.uid = stored_uid
                self._memstore.create(entry)

            self._memstore.set_children(parent_uid, child_uid_list)
            logger.debug(f'Recorded {len(child_uid_list)} children for {parent_uid} ({len(new_entry_list)} new)')
            return child_uid_list

    def clear_children(self, uid: UID):
        with self._lock:
            entry = self._memstore.get(uid)
            if not entry.is_dir():
                raise InvalidOperationError(f'clear_children() on non-folder {uid}')
            self._db.clear_children(uid)
            entry.clear_children()
            logger.debug(f'Cleared children for {uid}')

    def record_content(self, uid: UID, path: str):
        with self._lock:
            entry = self._memstore.get(uid)
            if entry.is_dir():
                raise InvalidOperationError(f'record_content() on folder {uid}')
            self._db.update_content_path(uid, path)
            entry.set_content_path(path)
            logger.debug(f'Recorded content for {uid}: "{path}"')

    def clear_content(self, uid: UID):
        """Puts the entry's content back into the not-loaded state, and deletes the local file."""
        with self._lock:
            entry = self._memstore.get(uid)
            if entry.is_dir():
                raise InvalidOperationError(f'clear_content() on folder {uid}')
            if not entry.content_path.is_loaded:
                return
            old_path = entry.content_path.value
            self._db.clear_content_path(uid)
            entry.clear_content_path()
            file_util.delete_file(old_path)
            logger.debug(f'Cleared content for {uid} (was: "{old_path}")')
