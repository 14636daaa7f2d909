import errno
import logging
import os
import pathlib
from typing import Optional

logger = logging.getLogger(__name__)


def get_resource_path(rel_path: str, resolve_symlinks=False) -> str:
    """Returns the absolute path from the given relative path (relative to the project dir)"""

    if pathlib.PurePosixPath(rel_path).is_absolute():
        logger.debug(f'get_resource_path(): Already an absolute path: {rel_path}')
        return str(rel_path)
    dir_of_py_file = os.path.dirname(__file__)
    # go up 2 dirs
    project_dir = os.path.join(os.path.join(dir_of_py_file, os.pardir), os.pardir)
    rel_path_to_resource = os.path.join(project_dir, rel_path)
    if resolve_symlinks:
        abs_path_to_resource = os.path.realpath(rel_path_to_resource)
    else:
        abs_path_to_resource = os.path.abspath(rel_path_to_resource)
    logger.debug('Resource path: ' + abs_path_to_resource)
    return abs_path_to_resource


def get_extension(file_name: str) -> Optional[str]:
    """Returns the extension of file_name without the leading dot, or None if it has none"""
    ext = os.path.splitext(file_name)[1]
    if len(ext) > 1:
        return ext[1:]
    return None


def make_dirs(dir_path: str):
    try:
        os.makedirs(name=dir_path, exist_ok=True)
    except Exception:
        logger.error(f'Exception while making dir: {dir_path}')
        raise


def delete_file(tgt_path: str):
    try:
        if os.path.exists(tgt_path):
            logger.debug(f'Deleting file: {tgt_path}')
            os.remove(tgt_path)
    except OSError as err:
        if err.errno != errno.ENOENT:
            raise


def rename_file(src_path: str, dst_path: str):
    """Moves src_path to dst_path, replacing dst_path if it exists. Atomic on POSIX when both are on the same filesystem"""
    logger.debug(f'Renaming "{src_path}" -> "{dst_path}"')
    os.replace(src_path, dst_path)
