import logging
import sys
from typing import Optional

from photoman.app_config import AppConfig
from photoman.constants import DEFAULT_CACHE_DIR, DEFAULT_PREVIEW_EXTRACTOR_EXE, DEFAULT_RAW_MIME_TYPES, ENTRY_INDEX_FILE_NAME, \
    ROOT_UID
from photoman.gdrive.client import GDriveClient
from photoman.gdrive.gdrive_source import GDriveSource
from photoman.google_drive import GoogleDrive
from photoman.photo.materializer import PhotoMaterializer
from photoman.photo.preview_extractor import PreviewExtractor
from photoman.store.tree_cache import TreeCache
from photoman.util.ensure import ensure_bool, ensure_uid

logger = logging.getLogger(__name__)


def build_google_drive(config: AppConfig, gdrive_source: Optional[GDriveSource] = None) -> GoogleDrive:
    """Wires up a GoogleDrive from the app config. The caller must call start() on the result"""
    cache_dir: str = config.get_config('cache.cache_dir', DEFAULT_CACHE_DIR, is_required=False)
    db_path: str = config.get_path('cache.db_file_path', f'{cache_dir}/{ENTRY_INDEX_FILE_NAME}', is_required=False)
    sweep_orphans = ensure_bool(config.get_config('cache.sweep_orphans_on_startup', True, is_required=False))
    exe_path: str = config.get_config('photo.preview_extractor.exe_path', DEFAULT_PREVIEW_EXTRACTOR_EXE, is_required=False)
    raw_mime_types = list(config.get_config('photo.raw_mime_types', DEFAULT_RAW_MIME_TYPES, is_required=False))

    if not gdrive_source:
        gdrive_source = GDriveClient(config)

    cache = TreeCache(db_path)
    materializer = PhotoMaterializer(cache, gdrive_source, cache_dir=cache_dir, preview_extractor=PreviewExtractor(exe_path),
                                     raw_mime_types=raw_mime_types)
    return GoogleDrive(cache, gdrive_source, materializer, sweep_orphans_on_startup=sweep_orphans)


# ENTRY POINT MAIN
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼


def main():
    """Usage: photoman [handle] [config_file_path]. Prints (handle, name) for each child of the folder (default: root)"""
    if sys.version_info[0] < 3:
        raise Exception("Python 3 or a more recent version is required.")

    uid = ROOT_UID
    if len(sys.argv) >= 2:
        uid = ensure_uid(sys.argv[1])

    if len(sys.argv) >= 3:
        config = AppConfig(sys.argv[2])
    else:
        config = AppConfig()

    gdrive = build_google_drive(config)
    gdrive.start()
    try:
        for child_uid in gdrive.get_children(uid):
            print((int(child_uid), gdrive.get_name(child_uid)))
    except KeyboardInterrupt:
        logger.info('Caught KeyboardInterrupt. Quitting')
    finally:
        gdrive.shutdown()


if __name__ == '__main__':
    main()
