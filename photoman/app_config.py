import logging
from typing import Optional

import config

from photoman import logging_config
from photoman.constants import DEFAULT_CONFIG_PATH, PROJECT_DIR, PROJECT_DIR_TOKEN
from photoman.util.file_util import get_resource_path

logger = logging.getLogger(__name__)


class AppConfig:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS AppConfig

    Read-only view of the app's CFG file. Paths are looked up with dots ("cache.db_file_path"), and any string value
    containing "$PROJECT_DIR" has it replaced with the absolute path of the project dir.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, config_file_path: str = None, configure_logging: bool = True):
        self._project_dir = get_resource_path(PROJECT_DIR)

        if not config_file_path:
            config_file_path = get_resource_path(DEFAULT_CONFIG_PATH)
        self.config_file_path: str = config_file_path

        try:
            print(f'Reading config file: "{config_file_path}"')
            self._cfg = config.Config(config_file_path)
        except Exception as err:
            raise RuntimeError(f'Could not read config file ({config_file_path})') from err

        self.debug_log_path: Optional[str] = None
        if configure_logging:
            self.debug_log_path = logging_config.configure_logging(self)

    def get_config(self, cfg_path: str, default_val=None, is_required: bool = True):
        return self.get(cfg_path=cfg_path, default_val=default_val, required=is_required)

    def get(self, cfg_path: str, default_val=None, required: bool = True):
        try:
            val = self._cfg[cfg_path]
            if val is None and default_val is None and required:
                raise RuntimeError(f'Config entry not found but is required: "{cfg_path}"')

            if val is not None and type(val) == str:
                val = val.replace(PROJECT_DIR_TOKEN, self._project_dir)
            logger.debug(f'Read config entry "{cfg_path}" = "{val}"')
            return val
        except (KeyError, AttributeError, config.KeyNotFoundError):
            logger.debug(f'Path not found: {cfg_path}')

        # throw this outside the except block above (putting it in the block seems to print out 2 extra exceptions):
        if required:
            raise RuntimeError(f'Path not found but is required: "{cfg_path}"')
        return default_val

    def get_path(self, cfg_path: str, default_val: str = None, is_required: bool = True) -> str:
        """Same as get_config(), but a relative path is resolved against the project dir"""
        val = self.get_config(cfg_path, default_val, is_required)
        if val is None:
            return val
        return get_resource_path(val)
