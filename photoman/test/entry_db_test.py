import logging
import os
import tempfile
import unittest

from photoman.constants import MIME_TYPE_FOLDER, ROOT_UID
from photoman.error import PersistenceError
from photoman.model.entry import Entry
from photoman.model.load_state import Loaded, NOT_LOADED
from photoman.model.uid import UID
from photoman.store.sqlite.entry_db import EntryDatabase

logger = logging.getLogger(__name__)


class EntryDatabaseTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmp_dir.name, 'photoman.db')
        self.db = EntryDatabase(self.db_path)

    def tearDown(self) -> None:
        self.db.close()
        self._tmp_dir.cleanup()

    def _reopen(self) -> EntryDatabase:
        self.db.close()
        self.db = EntryDatabase(self.db_path)
        return self.db

    def test_empty(self):
        self.assertEqual([], self.db.load_all())

    def test_append_returns_supplied_handle(self):
        stored_uid = self.db.append(Entry.make_root())
        self.assertEqual(ROOT_UID, stored_uid)
        stored_uid = self.db.append(Entry(UID(7), 'a.jpg', 'f1', 'image/jpeg', ROOT_UID))
        self.assertEqual(UID(7), stored_uid)

    def test_round_trip(self):
        root = Entry.make_root()
        folder = Entry(UID(1), 'Pics', 'd1', MIME_TYPE_FOLDER, ROOT_UID)
        photo = Entry(UID(2), 'a.jpg', 'f1', 'image/jpeg', ROOT_UID)
        for entry in [root, folder, photo]:
            self.db.append(entry)
        self.db.update_children(ROOT_UID, [UID(2), UID(1)])
        self.db.update_content_path(UID(2), 'cache/2.jpg')

        entry_list = self._reopen().load_all()
        self.assertEqual([ROOT_UID, UID(1), UID(2)], [e.uid for e in entry_list])

        loaded_root, loaded_folder, loaded_photo = entry_list
        self.assertTrue(loaded_root.is_dir())
        self.assertEqual(Loaded(frozenset({UID(1), UID(2)})), loaded_root.children)
        self.assertEqual(NOT_LOADED, loaded_folder.children)
        self.assertFalse(loaded_photo.is_dir())
        self.assertEqual(Loaded('cache/2.jpg'), loaded_photo.content_path)
        self.assertEqual('f1', loaded_photo.goog_id)
        self.assertEqual(ROOT_UID, loaded_photo.parent_uid)

    def test_empty_children_is_not_unknown(self):
        self.db.append(Entry.make_root())
        self.db.update_children(ROOT_UID, [])
        root = self._reopen().load_all()[0]
        self.assertTrue(root.children.is_loaded)
        self.assertEqual(frozenset(), root.children.value)

        self.db.clear_children(ROOT_UID)
        root = self._reopen().load_all()[0]
        self.assertFalse(root.children.is_loaded)

    def test_unparseable_children_is_unknown(self):
        self.db.append(Entry.make_root())
        self.db.conn.execute("UPDATE entry SET children = 'garbage,3' WHERE handle = 0")
        self.db.commit()
        root = self._reopen().load_all()[0]
        self.assertEqual(NOT_LOADED, root.children)

    def test_empty_content_path_is_unknown(self):
        self.db.append(Entry(UID(2), 'a.jpg', 'f1', 'image/jpeg', ROOT_UID))
        self.db.conn.execute("UPDATE entry SET content_path = '' WHERE handle = 2")
        self.db.commit()
        photo = self._reopen().load_all()[0]
        self.assertEqual(NOT_LOADED, photo.content_path)

    def test_append_children_is_atomic(self):
        self.db.append(Entry.make_root())
        # Duplicate primary key on the 2nd insert: the whole batch must be rolled back
        new_entries = [Entry(UID(1), 'a.jpg', 'f1', 'image/jpeg', ROOT_UID),
                       Entry(UID(1), 'b.jpg', 'f2', 'image/jpeg', ROOT_UID)]
        with self.assertRaises(PersistenceError):
            self.db.append_children(ROOT_UID, new_entries, [UID(1)])

        entry_list = self._reopen().load_all()
        self.assertEqual([ROOT_UID], [e.uid for e in entry_list])
        self.assertEqual(NOT_LOADED, entry_list[0].children)

    def test_update_unknown_handle(self):
        with self.assertRaises(PersistenceError):
            self.db.update_content_path(UID(99), 'cache/99.jpg')
