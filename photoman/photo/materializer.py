import logging
import mimetypes
import os
import threading
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Set

import humanfriendly

from photoman.constants import DEFAULT_CACHE_DIR, DEFAULT_RAW_MIME_TYPES, PARTIAL_DOWNLOAD_SUFFIX, PREVIEW_EXTENSION
from photoman.error import CacheFileError, InvalidOperationError
from photoman.gdrive.gdrive_source import GDriveSource
from photoman.model.entry import Entry
from photoman.model.uid import UID
from photoman.photo.preview_extractor import PreviewExtractor
from photoman.store.tree_cache import TreeCache
from photoman.util import file_util
from photoman.util.stopwatch_sec import Stopwatch

logger = logging.getLogger(__name__)


class MaterializeState(IntEnum):
    UNLOADED = 1
    FETCHING = 2
    PLAIN = 3
    RAW_WITH_PREVIEW = 4
    LOADED = 5


class PhotoMaterializer:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS PhotoMaterializer

    Turns a cached, non-folder entry into a local file, at most once:

        UNLOADED -> FETCHING -> (PLAIN | RAW_WITH_PREVIEW) -> LOADED

    FETCHING: download into "{cache_dir}/{uid}.{ext}.part", then rename to "{cache_dir}/{uid}.{ext}" once complete.
    RAW_WITH_PREVIEW: for RAW containers, extract the embedded JPEG preview, rename it to "{cache_dir}/{uid}.jpg", and
    drop the RAW file. There is no fallback to the RAW bytes.
    LOADED: the final path has been committed to the TreeCache.

    On failure, every file this call created is deleted and the error is raised. Files left behind by a crash are
    removed by sweep_orphans().
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, cache: TreeCache, gdrive_source: GDriveSource, cache_dir: str = DEFAULT_CACHE_DIR,
                 preview_extractor: Optional[PreviewExtractor] = None, raw_mime_types: Optional[Iterable[str]] = None):
        self.cache: TreeCache = cache
        self.gdrive_source: GDriveSource = gdrive_source
        self.cache_dir: str = cache_dir
        if not preview_extractor:
            preview_extractor = PreviewExtractor()
        self.preview_extractor: PreviewExtractor = preview_extractor
        if raw_mime_types is None:
            raw_mime_types = DEFAULT_RAW_MIME_TYPES
        self.raw_mime_types: Set[str] = set(raw_mime_types)

        self._in_flight_dict: Dict[UID, MaterializeState] = {}
        self._state_lock = threading.Lock()

    def start(self):
        file_util.make_dirs(self.cache_dir)

    # PATHS
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    @staticmethod
    def get_extension(entry: Entry) -> Optional[str]:
        """From the name if it has one, else guessed from the MIME type, else None"""
        ext = file_util.get_extension(entry.name)
        if ext:
            return ext
        guessed = mimetypes.guess_extension(entry.mime_type) if entry.mime_type else None
        if guessed:
            return guessed.lstrip('.')
        return None

    def get_download_path(self, entry: Entry) -> str:
        ext = self.get_extension(entry)
        if ext:
            return os.path.join(self.cache_dir, f'{entry.uid}.{ext}')
        return os.path.join(self.cache_dir, f'{entry.uid}')

    def get_preview_path(self, uid: UID) -> str:
        return os.path.join(self.cache_dir, f'{uid}.{PREVIEW_EXTENSION}')

    def is_raw(self, entry: Entry) -> bool:
        return entry.mime_type in self.raw_mime_types

    # STATE
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_state(self, uid: UID) -> MaterializeState:
        with self._state_lock:
            state = self._in_flight_dict.get(uid, None)
        if state:
            return state
        if self.cache.is_fully_loaded(uid):
            return MaterializeState.LOADED
        return MaterializeState.UNLOADED

    def _set_state(self, uid: UID, state: Optional[MaterializeState]):
        with self._state_lock:
            if state is None:
                self._in_flight_dict.pop(uid, None)
            else:
                self._in_flight_dict[uid] = state
        if state:
            logger.debug(f'Materialize {uid}: -> {state.name}')

    # PIPELINE
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def materialize(self, uid: UID) -> str:
        """Returns the local path of the photo for uid, downloading (and normalizing) it first if needed"""
        entry = self.cache.get_entry(uid)
        if entry.is_dir():
            raise InvalidOperationError(f'materialize() on folder {uid}')

        if entry.is_fully_loaded():
            return entry.content_path.value

        sw = Stopwatch()
        created_files: List[str] = []
        try:
            self._set_state(uid, MaterializeState.FETCHING)
            path = self._fetch(entry, created_files)

            if self.is_raw(entry):
                self._set_state(uid, MaterializeState.RAW_WITH_PREVIEW)
                path = self._normalize(entry, path, created_files)
            else:
                self._set_state(uid, MaterializeState.PLAIN)

            self.cache.record_content(uid, path)
            self._set_state(uid, MaterializeState.LOADED)
        except Exception:
            logger.error(f'Failed to materialize {entry}: cleaning up {len(created_files)} file(s)')
            for created_file in created_files:
                file_util.delete_file(created_file)
            raise
        finally:
            self._set_state(uid, None)

        size_str = humanfriendly.format_size(os.path.getsize(path))
        logger.info(f'{sw} Materialized {uid} ("{entry.name}"): {size_str} at "{path}"')
        return path

    def _fetch(self, entry: Entry, created_files: List[str]) -> str:
        download_path = self.get_download_path(entry)
        part_path = download_path + PARTIAL_DOWNLOAD_SUFFIX
        created_files.append(part_path)
        self.gdrive_source.download_file(entry.goog_id, part_path)

        created_files.append(download_path)
        try:
            file_util.rename_file(part_path, download_path)
        except OSError as err:
            raise CacheFileError(download_path) from err
        return download_path

    def _normalize(self, entry: Entry, raw_path: str, created_files: List[str]) -> str:
        extracted_path = self.preview_extractor.get_preview_path(raw_path, self.cache_dir)
        # A stale preview from an earlier crash would otherwise block exiv2 from writing
        file_util.delete_file(extracted_path)
        created_files.append(extracted_path)
        self.preview_extractor.extract(raw_path, self.cache_dir)

        final_path = self.get_preview_path(entry.uid)
        created_files.append(final_path)
        try:
            file_util.rename_file(extracted_path, final_path)
        except OSError as err:
            raise CacheFileError(final_path) from err

        if final_path != raw_path:
            file_util.delete_file(raw_path)
        return final_path

    # RECONCILIATION
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def sweep_orphans(self) -> List[str]:
        """Deletes every file in the cache dir which no committed content_path points to. Returns the deleted paths"""
        if not os.path.isdir(self.cache_dir):
            return []

        referenced: Set[str] = set()
        for entry in self.cache.get_all_entries():
            if not entry.is_dir() and entry.content_path.is_loaded:
                referenced.add(os.path.abspath(entry.content_path.value))

        # The disk cache may live in the same dir (along with its "-journal" file)
        db_path = os.path.abspath(self.cache.db_path)

        deleted: List[str] = []
        for file_name in sorted(os.listdir(self.cache_dir)):
            path = os.path.join(self.cache_dir, file_name)
            abs_path = os.path.abspath(path)
            if not os.path.isfile(path) or abs_path in referenced or abs_path.startswith(db_path):
                continue
            logger.warning(f'Deleting orphaned cache file: "{path}"')
            file_util.delete_file(path)
            deleted.append(path)

        logger.debug(f'Orphan sweep of "{self.cache_dir}" removed {len(deleted)} file(s)')
        return deleted
