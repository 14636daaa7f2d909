import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

from photoman.util.ensure import ensure_bool

logger = logging.getLogger(__name__)

LEVEL_OVERRIDE_KEYS = {
    'logging.loglevel_info': logging.INFO,
    # Google API client, OAuth and urllib3 are very chatty at DEBUG
    'logging.loglevel_warning': logging.WARNING,
}

# Handlers added by configure_logging(), so that a second call replaces them instead of doubling every line
_installed_handlers: List[logging.Handler] = []


class PerLaunchFileHandler(logging.FileHandler):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS PerLaunchFileHandler

    Debug log for one run of photoman: "{log_dir}/{filename_base}{UTC launch time}-{pid}.log". The pid keeps two
    processes started in the same second (e.g. a host app plus the CLI) out of each other's file.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, log_dir: str, filename_base: str, mode: str = 'a'):
        self.log_dir: str = log_dir
        self.log_path: str = os.path.join(log_dir, self.build_filename(filename_base))
        super().__init__(self.log_path, mode=mode, encoding='utf-8')

    @staticmethod
    def build_filename(filename_base: str, launch_time: Optional[datetime] = None, pid: Optional[int] = None) -> str:
        if not launch_time:
            launch_time = datetime.now(tz=timezone.utc)
        if not pid:
            pid = os.getpid()
        return f'{filename_base}{launch_time.strftime("%Y-%m-%d_%H%M%S")}-{pid}.log'


def _build_formatter(app_config, section: str) -> logging.Formatter:
    return logging.Formatter(fmt=app_config.get_config(f'{section}.format'),
                             datefmt=app_config.get_config(f'{section}.datetime_format'))


def _install(handler: logging.Handler, app_config, section: str):
    handler.setLevel(logging.getLevelName(app_config.get_config(f'{section}.level')))
    handler.setFormatter(_build_formatter(app_config, section))
    logging.getLogger().addHandler(handler)
    _installed_handlers.append(handler)


def remove_handlers():
    """Detaches and closes every handler that configure_logging() installed"""
    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()


def configure_logging(app_config) -> Optional[str]:
    """Sets up the debug log file and the console from the "logging" block of the config.
    Returns the path of the debug log, or None if it is disabled."""
    remove_handlers()
    logging.getLogger().setLevel(logging.DEBUG)

    log_path = None
    if ensure_bool(app_config.get_config('logging.debug_log.enable', False, is_required=False)):
        log_dir = app_config.get_path('logging.debug_log.log_dir')
        try:
            os.makedirs(name=log_dir, exist_ok=True)
        except OSError:
            logger.error(f'Could not create log dir: "{log_dir}"')
            raise
        file_handler = PerLaunchFileHandler(log_dir=log_dir,
                                            filename_base=app_config.get_config('logging.debug_log.filename_base'),
                                            mode=app_config.get_config('logging.debug_log.filemode', 'a', is_required=False))
        _install(file_handler, app_config, 'logging.debug_log')
        log_path = file_handler.log_path

    if ensure_bool(app_config.get_config('logging.console.enable', False, is_required=False)):
        _install(logging.StreamHandler(), app_config, 'logging.console')

    for cfg_path, level in LEVEL_OVERRIDE_KEYS.items():
        for logger_name in app_config.get_config(cfg_path, [], is_required=False):
            logging.getLogger(logger_name).setLevel(level)

    if log_path:
        logger.info(f'Writing debug log to "{log_path}"')
    return log_path
