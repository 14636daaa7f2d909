from enum import IntEnum

ID_GDRIVE = 'gdrive'


class Signal(IntEnum):
    """Signals sent through pydispatch. Informational only: nothing requires a listener."""

    CHILDREN_LOADED = 1
    PHOTO_LOADED = 2
    CACHE_INVALIDATED = 3
