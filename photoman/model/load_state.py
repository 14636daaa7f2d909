from typing import Generic, TypeVar, Union

T = TypeVar('T')


class NotLoaded:
    """
    ◤━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◥
        CLASS NotLoaded
    ◣━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◢
    Never queried. Distinct from Loaded with an empty value, which means "queried, and there was nothing".
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(NotLoaded, cls).__new__(cls)
        return cls._instance

    @property
    def is_loaded(self) -> bool:
        return False

    def __eq__(self, other):
        return isinstance(other, NotLoaded)

    def __hash__(self):
        return hash(NotLoaded)

    def __repr__(self):
        return 'NotLoaded'


NOT_LOADED = NotLoaded()


class Loaded(Generic[T]):
    """
    ◤━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◥
        CLASS Loaded
    ◣━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◢
    """
    __slots__ = ('value',)

    def __init__(self, value: T):
        self.value: T = value

    @property
    def is_loaded(self) -> bool:
        return True

    def __eq__(self, other):
        return isinstance(other, Loaded) and self.value == other.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f'Loaded({self.value!r})'


LoadState = Union[NotLoaded, Loaded[T]]
