import logging

from photoman.model.uid import UID

logger = logging.getLogger(__name__)


def ensure_int(val):
    try:
        if type(val) == str:
            return int(val)
    except ValueError:
        logger.error(f'Bad value: {val}')
    return val


def ensure_uid(val):
    try:
        if val is not None and not isinstance(val, UID):
            return UID(ensure_int(val))
    except ValueError:
        logger.error(f'Bad value: {val}')
    return val


def ensure_bool(val):
    try:
        return bool(val)
    except ValueError:
        pass
    return val

