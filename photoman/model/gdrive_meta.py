from photoman.constants import GoogID, MIME_TYPE_FOLDER


class GDriveMeta:
    """One item as returned by a Google Drive children listing: just enough to create an Entry from it."""

    def __init__(self, goog_id: GoogID, name: str, mime_type: str):
        self.goog_id: GoogID = goog_id
        self.name: str = name
        self.mime_type: str = mime_type

    def is_dir(self) -> bool:
        return self.mime_type == MIME_TYPE_FOLDER

    def __eq__(self, other):
        return isinstance(other, GDriveMeta) and self.goog_id == other.goog_id and self.name == other.name \
            and self.mime_type == other.mime_type

    def __repr__(self):
        return f'GDriveMeta(goog_id="{self.goog_id}" name="{self.name}" mime_type="{self.mime_type}")'
