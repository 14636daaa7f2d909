#    CLASS EntryNotFoundError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class EntryNotFoundError(RuntimeError):
    def __init__(self, uid, msg: str = None):
        if msg is None:
            msg = f'No entry found in cache for UID: {uid}'
        super(EntryNotFoundError, self).__init__(msg)
        self.uid = uid


#    CLASS InvalidOperationError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class InvalidOperationError(RuntimeError):
    def __init__(self, operation_name: str = None):
        if not operation_name:
            msg = f'Invalid operation!'
        else:
            msg = f'Invalid operation: "{operation_name}"'
        super(InvalidOperationError, self).__init__(msg)


#    CLASS GDriveError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class GDriveError(RuntimeError):
    """Transport or auth failure while talking to Google Drive. Never retried by us."""
    def __init__(self, msg: str = None):
        if msg is None:
            msg = f'Google Drive request failed!'
        super(GDriveError, self).__init__(msg)


#    CLASS CacheFileError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class CacheFileError(RuntimeError):
    def __init__(self, path: str, msg: str = None):
        if msg is None:
            msg = f'Could not write cache file: {path}'
        super(CacheFileError, self).__init__(msg)
        self.path = path


#    CLASS PreviewExtractionError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class PreviewExtractionError(RuntimeError):
    def __init__(self, raw_path: str, msg: str = None):
        if msg is None:
            msg = f'Failed to extract preview from: {raw_path}'
        super(PreviewExtractionError, self).__init__(msg)
        self.raw_path = raw_path


#    CLASS PersistenceError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class PersistenceError(RuntimeError):
    def __init__(self, msg: str = None):
        if msg is None:
            msg = f'Failed to write to disk cache!'
        super(PersistenceError, self).__init__(msg)
