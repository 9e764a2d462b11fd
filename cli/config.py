"""Configuration management for the chunked-upload CLI."""

import json
import os
import shutil
from pathlib import Path

from common.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_PARALLELISM,
    DEFAULT_RETRIES,
    DEFAULT_STAMP,
    DEFAULT_STORE_URL,
    DEFAULT_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger
from uploader.options import UploadOptions

logger = get_logger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "store_url": os.environ.get("STORE_API_URL", DEFAULT_STORE_URL),
        "stamp": os.environ.get("STAMP", DEFAULT_STAMP),
        "deferred": True,
        "parallelism": DEFAULT_PARALLELISM,
        "retries": DEFAULT_RETRIES,
        "retry_delay": 0.0,
        "timeout": DEFAULT_TIMEOUT_SECONDS,
        "cache_chunks_locally": False,
        "cache_dir": DEFAULT_CACHE_DIR,
        "cache_include_span": True,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.chunked-upload/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.chunked-upload' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Config file {self.config_path} unreadable ({e}), using defaults")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    logger.warning(f"Could not back up config to {backup_path}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError:
                logger.warning(f"Could not write default config to {self.config_path}")
            return config

    def get_store_url(self) -> str:
        """
        Get store base URL.

        Returns:
            Base URL string (e.g., "http://127.0.0.1:1633")
        """
        return self.data.get('store_url', DEFAULT_STORE_URL)

    def to_options(self, **overrides) -> UploadOptions:
        """
        Build validated upload options.

        Args:
            **overrides: Values taking precedence over the file (None values are ignored)

        Returns:
            UploadOptions instance

        Raises:
            pydantic.ValidationError: If a value is out of range
        """
        values = {key: self.data[key] for key in self.DEFAULT_CONFIG if key in self.data}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return UploadOptions(**values)
