from abc import ABC, abstractmethod
from typing import List

from photoman.constants import GoogID
from photoman.model.gdrive_meta import GDriveMeta


# ABSTRACT CLASS GDriveSource
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class GDriveSource(ABC):
    """The two things the cache needs from Google Drive. Implementations raise GDriveError on any transport or auth failure."""

    @abstractmethod
    def get_all_children_for_parent(self, parent_goog_id: GoogID) -> List[GDriveMeta]:
        """Non-trashed direct children of the given folder"""
        pass

    @abstractmethod
    def download_file(self, goog_id: GoogID, dest_path: str) -> int:
        """Writes the file's bytes to dest_path. Returns the number of bytes written"""
        pass
