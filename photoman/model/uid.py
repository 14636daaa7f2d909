class UID(int):
    """A local handle for a cached Google Drive node. Dense, and assigned in increasing order."""

    def __new__(cls, val, *args, **kwargs):
        return super(UID, cls).__new__(cls, val)
