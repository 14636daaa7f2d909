import logging
from typing import FrozenSet, Iterable, Optional

from photoman.constants import GoogID, MIME_TYPE_FOLDER, ROOT_GOOG_ID, ROOT_NAME, ROOT_UID
from photoman.error import InvalidOperationError
from photoman.model.load_state import Loaded, LoadState, NOT_LOADED
from photoman.model.uid import UID
from photoman.util.ensure import ensure_uid

logger = logging.getLogger(__name__)


def is_folder_mime_type(mime_type: str) -> bool:
    return mime_type == MIME_TYPE_FOLDER


class Entry:
    """
    ◤━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◥
        CLASS Entry
    ◣━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◢

    One cached Google Drive node. is_dir is derived from mime_type once, at construction, and never changes.
    For folders, 'children' is meaningful; for everything else, 'content_path' is.
    """
    def __init__(self, uid: Optional[UID], name: str, goog_id: GoogID, mime_type: str, parent_uid: UID,
                 children: LoadState = NOT_LOADED, content_path: LoadState = NOT_LOADED):
        self.uid: Optional[UID] = ensure_uid(uid)
        self.name: str = name
        self.goog_id: GoogID = goog_id
        self.mime_type: str = mime_type
        self.parent_uid: UID = ensure_uid(parent_uid)
        self._is_dir: bool = is_folder_mime_type(mime_type)

        self.children: LoadState = children
        """NotLoaded, or Loaded(frozenset of child UIDs)"""

        self.content_path: LoadState = content_path
        """NotLoaded, or Loaded(local path of the materialized photo)"""

    @classmethod
    def make_root(cls) -> 'Entry':
        return Entry(uid=ROOT_UID, name=ROOT_NAME, goog_id=ROOT_GOOG_ID, mime_type=MIME_TYPE_FOLDER, parent_uid=ROOT_UID)

    def is_dir(self) -> bool:
        return self._is_dir

    def is_root(self) -> bool:
        return self.uid == ROOT_UID

    def is_fully_loaded(self) -> bool:
        if self._is_dir:
            return self.children.is_loaded
        else:
            return self.content_path.is_loaded

    def get_child_uids(self) -> FrozenSet[UID]:
        if not self._is_dir:
            raise InvalidOperationError(f'get_child_uids() on non-folder {self.uid}')
        if not self.children.is_loaded:
            raise RuntimeError(f'Children not loaded for folder: {self}')
        return self.children.value

    def set_children(self, child_uids: Iterable[UID]):
        if not self._is_dir:
            raise InvalidOperationError(f'set_children() on non-folder {self.uid}')
        self.children = Loaded(frozenset(child_uids))

    def clear_children(self):
        self.children = NOT_LOADED

    def set_content_path(self, path: str):
        if self._is_dir:
            raise InvalidOperationError(f'set_content_path() on folder {self.uid}')
        self.content_path = Loaded(path)

    def clear_content_path(self):
        self.content_path = NOT_LOADED

    def __eq__(self, other):
        if not isinstance(other, Entry):
            return False
        return self.uid == other.uid and self.name == other.name and self.goog_id == other.goog_id and \
            self.mime_type == other.mime_type and self.parent_uid == other.parent_uid and \
            self.children == other.children and self.content_path == other.content_path

    def __repr__(self):
        if self._is_dir:
            state = f'children={self.children}'
        else:
            state = f'content_path={self.content_path}'
        return f'Entry(uid={self.uid} name="{self.name}" goog_id="{self.goog_id}" mime_type="{self.mime_type}" ' \
               f'parent={self.parent_uid} {state})'
