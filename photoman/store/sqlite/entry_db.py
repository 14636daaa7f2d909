import logging
from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple

from photoman.constants import CHILDREN_LIST_SEPARATOR
from photoman.error import PersistenceError
from photoman.model.entry import Entry, is_folder_mime_type
from photoman.model.load_state import Loaded, LoadState, NOT_LOADED
from photoman.model.uid import UID
from photoman.store.sqlite.base_db import LiveTable, MetaDatabase, Table

logger = logging.getLogger(__name__)


def _serialize_children(children: LoadState) -> Optional[str]:
    if not children.is_loaded:
        return None
    # Empty string = loaded with no children. NULL = never loaded
    return CHILDREN_LIST_SEPARATOR.join(str(uid) for uid in sorted(children.value))


def _parse_children(uid: int, children_str: Optional[str]) -> LoadState:
    if children_str is None:
        return NOT_LOADED
    if children_str == '':
        return Loaded(frozenset())
    try:
        return Loaded(frozenset(UID(int(token)) for token in children_str.split(CHILDREN_LIST_SEPARATOR)))
    except ValueError:
        logger.warning(f'Could not parse children column for handle {uid} ("{children_str}"): treating as not loaded')
        return NOT_LOADED


def _serialize_content_path(content_path: LoadState) -> Optional[str]:
    if not content_path.is_loaded:
        return None
    return content_path.value


def _parse_content_path(content_path: Optional[str]) -> LoadState:
    if not content_path:
        return NOT_LOADED
    return Loaded(content_path)


def _entry_to_tuple(entry: Entry) -> Tuple:
    return entry.uid, entry.name, entry.goog_id, entry.mime_type, entry.parent_uid, entry.is_dir(), \
        _serialize_children(entry.children), _serialize_content_path(entry.content_path)


def _tuple_to_entry(row: Tuple) -> Entry:
    uid_int, name, goog_id, mime_type, parent_uid, is_directory, children_str, content_path = row

    entry = Entry(uid=UID(uid_int), name=name, goog_id=goog_id, mime_type=mime_type, parent_uid=UID(parent_uid))
    if bool(is_directory) != entry.is_dir():
        logger.warning(f'Handle {uid_int}: is_directory column ({is_directory}) disagrees with kind "{mime_type}"; going with kind')

    # Only the column which matters for this kind of entry is read back
    if entry.is_dir():
        entry.children = _parse_children(uid_int, children_str)
    else:
        entry.content_path = _parse_content_path(content_path)
    return entry


# CLASS EntryDatabase
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class EntryDatabase(MetaDatabase):
    """The durable copy of the entry tree. Read in full at startup; written through (and committed) on every mutation."""

    TABLE_ENTRY = Table(name='entry',
                        cols=OrderedDict([
                            ('handle', 'INTEGER PRIMARY KEY'),
                            ('name', 'TEXT'),
                            ('remote_id', 'TEXT'),
                            ('kind', 'TEXT'),
                            ('parent', 'INTEGER'),
                            ('is_directory', 'INTEGER'),
                            ('children', 'TEXT'),
                            ('content_path', 'TEXT')
                        ]))

    def __init__(self, db_path):
        super().__init__(db_path)
        self.table_entry = LiveTable(EntryDatabase.TABLE_ENTRY, self.conn, _entry_to_tuple, _tuple_to_entry)
        with self.transaction('create schema'):
            self.table_entry.create_table_if_not_exist()

    # READ
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def load_all(self) -> List[Entry]:
        return self.table_entry.select_object_list(where_clause='ORDER BY handle')

    # WRITE
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def _insert(self, entry: Entry) -> UID:
        if entry.uid is None:
            raise PersistenceError(f'Cannot insert entry without a handle: {entry}')
        return UID(self.table_entry.insert_object(entry))

    def _update_one(self, uid: UID, col_name: str, value):
        count = self.table_entry.update_for_uid(uid, col_names=[col_name], values=(value,), uid_col_name='handle')
        if count != 1:
            raise PersistenceError(f'Expected to update exactly 1 row for handle {uid} but updated {count}')

    def append(self, entry: Entry) -> UID:
        """Inserts a new row for entry and returns the handle it was stored under."""
        with self.transaction(f'append {entry.uid}'):
            return self._insert(entry)

    def append_children(self, parent_uid: UID, new_entries: Iterable[Entry], child_uids: Iterable[UID]) -> List[UID]:
        """Inserts the rows for newly seen children and marks the parent's children as loaded, in one transaction.
        Returns the handles the new rows were stored under, in order."""
        with self.transaction(f'append children of {parent_uid}'):
            stored_uids = [self._insert(entry) for entry in new_entries]
            self._update_one(parent_uid, 'children', _serialize_children(Loaded(frozenset(child_uids))))
        logger.debug(f'Stored {len(stored_uids)} new entries as children of {parent_uid}')
        return stored_uids

    def update_children(self, uid: UID, child_uids: Iterable[UID]):
        with self.transaction(f'update children of {uid}'):
            self._update_one(uid, 'children', _serialize_children(Loaded(frozenset(child_uids))))

    def clear_children(self, uid: UID):
        with self.transaction(f'clear children of {uid}'):
            self._update_one(uid, 'children', None)

    def update_content_path(self, uid: UID, path: str):
        with self.transaction(f'update content_path of {uid}'):
            self._update_one(uid, 'content_path', path)

    def clear_content_path(self, uid: UID):
        with self.transaction(f'clear content_path of {uid}'):
            self._update_one(uid, 'content_path', None)
