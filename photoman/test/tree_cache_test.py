import logging
import os
import sqlite3

from photoman.constants import MIME_TYPE_FOLDER, ROOT_GOOG_ID, ROOT_UID
from photoman.error import EntryNotFoundError, InvalidOperationError, PersistenceError
from photoman.model.gdrive_meta import GDriveMeta
from photoman.model.uid import UID
from photoman.test.gdrive_test_base import GDriveTestBase, INITIAL_DRIVE_TREE, MIME_TYPE_JPEG

logger = logging.getLogger(__name__)


class TreeCacheTest(GDriveTestBase):

    def test_bootstrap_creates_root(self):
        cache = self.start_cache()
        root = cache.get_entry(ROOT_UID)
        self.assertEqual(ROOT_GOOG_ID, root.goog_id)
        self.assertTrue(root.is_dir())
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))
        self.assertEqual(ROOT_UID, cache.resolve(ROOT_GOOG_ID))
        self.assertEqual(1, len(cache.get_all_entries()))

    def test_record_children(self):
        cache = self.start_cache()
        child_uid_list = cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])

        self.assertEqual(2, len(child_uid_list))
        self.assertNotIn(ROOT_UID, child_uid_list)
        self.assertTrue(cache.is_fully_loaded(ROOT_UID))
        self.assertEqual(sorted(child_uid_list), cache.children_of(ROOT_UID))
        for child_uid in child_uid_list:
            self.assertEqual(ROOT_UID, cache.get_parent_uid(child_uid))

        pics_uid = cache.resolve('d1')
        photo_uid = cache.resolve('f1')
        self.assertEqual([pics_uid, photo_uid], child_uid_list)
        self.assertTrue(cache.is_dir(pics_uid))
        self.assertFalse(cache.is_dir(photo_uid))
        self.assertEqual('Pics', cache.get_name(pics_uid))
        self.assertEqual(MIME_TYPE_JPEG, cache.get_mime_type(photo_uid))
        self.assertFalse(cache.is_fully_loaded(pics_uid))
        self.assertFalse(cache.is_fully_loaded(photo_uid))

    def test_record_empty_children(self):
        cache = self.start_cache()
        self.assertEqual([], cache.record_children(ROOT_UID, []))
        self.assertTrue(cache.is_fully_loaded(ROOT_UID))
        self.assertEqual([], cache.children_of(ROOT_UID))

    def test_duplicate_listing_items(self):
        cache = self.start_cache()
        meta = GDriveMeta('f1', 'a.jpg', MIME_TYPE_JPEG)
        child_uid_list = cache.record_children(ROOT_UID, [meta, meta])
        self.assertEqual(1, len(child_uid_list))
        self.assertEqual(2, len(cache.get_all_entries()))

    def test_child_already_under_other_parent(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        pics_uid = cache.resolve('d1')
        photo_uid = cache.resolve('f1')

        # "f1" shows up in a second folder: it stays where it was first seen
        child_uid_list = cache.record_children(pics_uid, [GDriveMeta('f1', 'a.jpg', MIME_TYPE_JPEG),
                                                          GDriveMeta('f9', 'b.jpg', MIME_TYPE_JPEG)])
        self.assertEqual([cache.resolve('f9')], child_uid_list)
        self.assertEqual(ROOT_UID, cache.get_parent_uid(photo_uid))
        self.assertIn(photo_uid, cache.children_of(ROOT_UID))

    def test_handles_stable_across_restart(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        pics_uid = cache.resolve('d1')
        cache.record_children(pics_uid, INITIAL_DRIVE_TREE['d1'])
        before = {e.goog_id: e.uid for e in cache.get_all_entries()}

        cache = self.start_cache()
        after = {e.goog_id: e.uid for e in cache.get_all_entries()}
        self.assertEqual(before, after)
        self.assertTrue(cache.is_fully_loaded(ROOT_UID))
        self.assertTrue(cache.is_fully_loaded(pics_uid))

        # New handles never collide with replayed ones
        new_uid_list = cache.record_children(cache.resolve('d2'), [GDriveMeta('f9', 'b.jpg', MIME_TYPE_JPEG)])
        self.assertGreater(new_uid_list[0], max(before.values()))

    def test_handles_are_unique(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        cache.record_children(cache.resolve('d1'), INITIAL_DRIVE_TREE['d1'])
        entry_list = cache.get_all_entries()
        self.assertEqual(len(entry_list), len({e.uid for e in entry_list}))
        self.assertEqual(len(entry_list), len({e.goog_id for e in entry_list}))

    def test_wrong_kind(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        photo_uid = cache.resolve('f1')
        with self.assertRaises(InvalidOperationError):
            cache.children_of(photo_uid)
        with self.assertRaises(InvalidOperationError):
            cache.record_children(photo_uid, [])
        with self.assertRaises(InvalidOperationError):
            cache.record_content(ROOT_UID, 'cache/0.jpg')
        with self.assertRaises(EntryNotFoundError):
            cache.get_entry(UID(999))

    def test_persistence_failure_leaves_memory_unchanged(self):
        cache = self.start_cache()
        # Make every insert fail at the SQLite level
        cache._db.conn.execute("CREATE TRIGGER no_insert BEFORE INSERT ON entry BEGIN SELECT RAISE(ABORT, 'disk full'); END")
        cache._db.commit()

        with self.assertRaises(PersistenceError):
            cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))
        self.assertEqual(1, len(cache.get_all_entries()))
        self.assertIsNone(cache.resolve('d1'))

        # Retry succeeds once the disk is writable again
        cache._db.conn.execute('DROP TRIGGER no_insert')
        cache._db.commit()
        child_uid_list = cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        self.assertEqual(2, len(child_uid_list))

    def test_record_and_clear_content(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        photo_uid = cache.resolve('f1')
        path = os.path.join(self.tmp_dir, f'{photo_uid}.jpg')
        with open(path, 'wb') as f:
            f.write(b'jpeg')

        cache.record_content(photo_uid, path)
        self.assertTrue(cache.is_fully_loaded(photo_uid))
        self.assertEqual(path, cache.content_path_of(photo_uid))

        cache = self.start_cache()
        self.assertEqual(path, cache.content_path_of(photo_uid))

        cache.clear_content(photo_uid)
        self.assertFalse(cache.is_fully_loaded(photo_uid))
        self.assertFalse(os.path.exists(path))
        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(photo_uid))

    def test_clear_children(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        cache.clear_children(ROOT_UID)
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))
        # the children themselves are still cached
        self.assertIsNotNone(cache.resolve('d1'))

        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))

    def test_reconcile_missing_content_file(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        photo_uid = cache.resolve('f1')
        cache.record_content(photo_uid, os.path.join(self.tmp_dir, 'gone.jpg'))

        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(photo_uid))

    def test_reconcile_dangling_child(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        cache.shutdown()
        self.cache = None

        conn = sqlite3.connect(self.db_path)
        conn.execute("UPDATE entry SET children = '1,2,77' WHERE handle = 0")
        conn.commit()
        conn.close()

        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))
        # repaired on disk too
        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))

    def test_kind_is_fixed(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, [GDriveMeta('d1', 'Pics', MIME_TYPE_FOLDER)])
        pics_uid = cache.resolve('d1')
        cache = self.start_cache()
        self.assertTrue(cache.is_dir(pics_uid))
        self.assertTrue(cache.get_entry(pics_uid).is_dir())

    def test_reconcile_root_listed_as_child(self):
        cache = self.start_cache()
        cache.record_children(ROOT_UID, INITIAL_DRIVE_TREE[ROOT_GOOG_ID])
        cache.shutdown()
        self.cache = None

        conn = sqlite3.connect(self.db_path)
        conn.execute("UPDATE entry SET children = '0,1,2' WHERE handle = 0")
        conn.commit()
        conn.close()

        cache = self.start_cache()
        self.assertFalse(cache.is_fully_loaded(ROOT_UID))
