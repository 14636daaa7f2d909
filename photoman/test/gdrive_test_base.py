import logging
import os
import subprocess
import tempfile
import unittest
from typing import Dict, List, Optional

from photoman.constants import GoogID, MIME_TYPE_FOLDER, MIME_TYPE_NIKON_NEF, ROOT_GOOG_ID
from photoman.error import GDriveError
from photoman.gdrive.gdrive_source import GDriveSource
from photoman.model.gdrive_meta import GDriveMeta
from photoman.photo.materializer import PhotoMaterializer
from photoman.photo.preview_extractor import PreviewExtractor
from photoman.store.tree_cache import TreeCache

logger = logging.getLogger(__name__)

MIME_TYPE_JPEG = 'image/jpeg'

# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
# Static stuff
# ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

# parent goog_id -> listing
INITIAL_DRIVE_TREE: Dict[GoogID, List[GDriveMeta]] = {
    ROOT_GOOG_ID: [
        GDriveMeta('d1', 'Pics', MIME_TYPE_FOLDER),
        GDriveMeta('f1', 'a.jpg', MIME_TYPE_JPEG),
    ],
    'd1': [
        GDriveMeta('f2', 'Mona-Lisa.jpeg', MIME_TYPE_JPEG),
        GDriveMeta('f3', 'dsc_0001.nef', MIME_TYPE_NIKON_NEF),
        GDriveMeta('d2', 'Empty', MIME_TYPE_FOLDER),
    ],
    'd2': [],
}

# goog_id -> file content
INITIAL_DRIVE_CONTENT: Dict[GoogID, bytes] = {
    'f1': b'\xff\xd8 a.jpg \xff\xd9',
    'f2': b'\xff\xd8 Mona-Lisa \xff\xd9',
    'f3': b'NEF raw bytes',
}

FAKE_PREVIEW_CONTENT = b'\xff\xd8 preview \xff\xd9'


# MOCK CLASS FakeGDriveSource
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class FakeGDriveSource(GDriveSource):
    """In-memory stand-in for Google Drive. Counts every call, and can be told to fail"""

    def __init__(self, tree: Optional[Dict[GoogID, List[GDriveMeta]]] = None, content: Optional[Dict[GoogID, bytes]] = None):
        if tree is None:
            tree = INITIAL_DRIVE_TREE
        if content is None:
            content = INITIAL_DRIVE_CONTENT
        self.tree: Dict[GoogID, List[GDriveMeta]] = dict(tree)
        self.content: Dict[GoogID, bytes] = dict(content)

        self.list_calls: List[GoogID] = []
        self.download_calls: List[GoogID] = []
        self.fail_next_call: bool = False

    def _maybe_fail(self):
        if self.fail_next_call:
            self.fail_next_call = False
            raise GDriveError('Simulated network failure')

    def get_all_children_for_parent(self, parent_goog_id: GoogID) -> List[GDriveMeta]:
        self.list_calls.append(parent_goog_id)
        self._maybe_fail()
        return list(self.tree.get(parent_goog_id, []))

    def download_file(self, goog_id: GoogID, dest_path: str) -> int:
        self.download_calls.append(goog_id)
        self._maybe_fail()
        data = self.content[goog_id]
        with open(dest_path, 'wb') as f:
            f.write(data)
        return len(data)


def fake_exiv2_run(cmd, **kwargs):
    """Stands in for subprocess.run() of "exiv2 -ep3 -l <dir> <raw_path>": writes "<dir>/<stem>-preview3.jpg" """
    output_dir = cmd[3]
    raw_path = cmd[4]
    stem = os.path.splitext(os.path.basename(raw_path))[0]
    with open(os.path.join(output_dir, f'{stem}-preview3.jpg'), 'wb') as f:
        f.write(FAKE_PREVIEW_CONTENT)
    return subprocess.CompletedProcess(cmd, 0, stdout=b'', stderr=b'')


# ABSTRACT CLASS GDriveTestBase
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class GDriveTestBase(unittest.TestCase):
    """Gives each test its own temp dir holding the disk cache and the photo cache dir"""

    def setUp(self) -> None:
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.tmp_dir: str = self._tmp_dir.name
        self.db_path: str = os.path.join(self.tmp_dir, 'photoman.db')
        self.cache_dir: str = os.path.join(self.tmp_dir, 'cache')
        self.gdrive_source = FakeGDriveSource()
        self.cache: Optional[TreeCache] = None

    def tearDown(self) -> None:
        if self.cache:
            self.cache.shutdown()
        self._tmp_dir.cleanup()

    def start_cache(self) -> TreeCache:
        if self.cache:
            self.cache.shutdown()
        self.cache = TreeCache(self.db_path)
        self.cache.start()
        return self.cache

    def build_materializer(self) -> PhotoMaterializer:
        materializer = PhotoMaterializer(self.cache, self.gdrive_source, cache_dir=self.cache_dir,
                                         preview_extractor=PreviewExtractor('exiv2'))
        materializer.start()
        return materializer
