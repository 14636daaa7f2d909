import logging
import threading
from typing import List

from pydispatch import dispatcher

from photoman.constants import GoogID
from photoman.error import InvalidOperationError
from photoman.gdrive.gdrive_source import GDriveSource
from photoman.model.gdrive_meta import GDriveMeta
from photoman.model.uid import UID
from photoman.photo.materializer import MaterializeState, PhotoMaterializer
from photoman.signal_constants import ID_GDRIVE, Signal
from photoman.store.tree_cache import TreeCache
from photoman.util.ensure import ensure_uid
from photoman.util.stopwatch_sec import Stopwatch

logger = logging.getLogger(__name__)


class GoogleDrive:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS GoogleDrive

    The only thing a host application talks to. Lazily mirrors the user's Google Drive: a folder is listed the first time
    its children are asked for, and a photo is downloaded the first time its path is asked for. After that, the cache
    answers, including after a restart.

    Each call blocks until done (network and exiv2 included). One lock covers the whole check-load-commit sequence, so
    two callers asking for the same unloaded node cause only one remote call.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, cache: TreeCache, gdrive_source: GDriveSource, materializer: PhotoMaterializer,
                 sweep_orphans_on_startup: bool = True):
        self.cache: TreeCache = cache
        self.gdrive_source: GDriveSource = gdrive_source
        self.materializer: PhotoMaterializer = materializer
        self.sweep_orphans_on_startup: bool = sweep_orphans_on_startup
        self._load_lock = threading.RLock()

    def start(self):
        logger.debug(f'[{self.__class__.__name__}] Startup started')
        self.cache.start()
        self.materializer.start()
        if self.sweep_orphans_on_startup:
            self.materializer.sweep_orphans()
        logger.debug(f'[{self.__class__.__name__}] Startup done')

    def shutdown(self):
        logger.debug(f'[{self.__class__.__name__}] Shutdown started')
        self.cache.shutdown()
        shutdown_func = getattr(self.gdrive_source, 'shutdown', None)
        if shutdown_func:
            shutdown_func()
        logger.debug(f'[{self.__class__.__name__}] Shutdown done')

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    # FOLDERS
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_children(self, uid: UID) -> List[UID]:
        uid = ensure_uid(uid)
        if not self.cache.is_dir(uid):
            raise InvalidOperationError(f'get_children() on non-folder {uid}')

        with self._load_lock:
            if self.cache.is_fully_loaded(uid):
                return self.cache.children_of(uid)

            goog_id = self.cache.get_goog_id(uid)
            sw = Stopwatch()
            child_meta_list: List[GDriveMeta] = self.gdrive_source.get_all_children_for_parent(goog_id)
            child_uid_list = self.cache.record_children(uid, child_meta_list)
            logger.debug(f'{sw} Loaded {len(child_uid_list)} children for {uid} ("{goog_id}")')
            # Read before the signal goes out: a receiver may clear this listing
            result = self.cache.children_of(uid)

        dispatcher.send(signal=Signal.CHILDREN_LOADED, sender=ID_GDRIVE, uid=uid, child_uid_list=child_uid_list)
        return result

    def refresh_children(self, uid: UID) -> List[UID]:
        """Forgets the cached listing for the folder, then lists it again from Google Drive"""
        uid = ensure_uid(uid)
        with self._load_lock:
            self.cache.clear_children(uid)
            dispatcher.send(signal=Signal.CACHE_INVALIDATED, sender=ID_GDRIVE, uid=uid)
            return self.get_children(uid)

    # PHOTOS
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_photo_path(self, uid: UID) -> str:
        """Returns the path to the photo on disk, downloading it to the local cache first if it is not there yet"""
        uid = ensure_uid(uid)
        if self.cache.is_dir(uid):
            raise InvalidOperationError(f'get_photo_path() on folder {uid}')

        with self._load_lock:
            if self.cache.is_fully_loaded(uid):
                return self.cache.content_path_of(uid)
            path = self.materializer.materialize(uid)

        dispatcher.send(signal=Signal.PHOTO_LOADED, sender=ID_GDRIVE, uid=uid, path=path)
        return path

    get_content_path = get_photo_path

    def get_photo_state(self, uid: UID) -> MaterializeState:
        """Where the photo is in its download pipeline. Safe to call while another thread is loading it"""
        return self.materializer.get_state(ensure_uid(uid))

    def clear_content(self, uid: UID):
        """Deletes the local copy of the photo. The next get_photo_path() downloads it again"""
        uid = ensure_uid(uid)
        with self._load_lock:
            self.cache.clear_content(uid)
        dispatcher.send(signal=Signal.CACHE_INVALIDATED, sender=ID_GDRIVE, uid=uid)

    # ACCESSORS
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_name(self, uid: UID) -> str:
        return self.cache.get_name(ensure_uid(uid))

    def get_goog_id(self, uid: UID) -> GoogID:
        return self.cache.get_goog_id(ensure_uid(uid))

    def get_kind(self, uid: UID) -> str:
        """The Drive MIME type of the node"""
        return self.cache.get_mime_type(ensure_uid(uid))

    def get_parent(self, uid: UID) -> UID:
        return self.cache.get_parent_uid(ensure_uid(uid))

    def is_directory(self, uid: UID) -> bool:
        return self.cache.is_dir(ensure_uid(uid))

    def is_fully_loaded(self, uid: UID) -> bool:
        return self.cache.is_fully_loaded(ensure_uid(uid))
