"""Server configuration.

Settings are read from ``config.yaml`` inside the configuration directory
and may be overridden by ``LOCALBOX_*`` environment variables. The file is
only ever read, never written.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from mashumaro.mixins.dict import DataClassDictMixin

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"
DEFAULT_CONFIG_DIR = "config"


@dataclass
class ServerConfig(DataClassDictMixin):
    """Configuration for the LocalBox server."""

    host: str = "0.0.0.0"
    port: int = 4000
    storage_dir: str = "storage"
    """Base directory holding one folder per category plus the staging area."""

    static_dir: str | None = None
    """Directory with the built front end, served at / when set."""

    trace_log_file: str | None = None
    """When set, every request is appended to this file as a JSON line."""

    max_upload_size: int | None = None
    """Largest accepted Upload-Length in bytes, unlimited when unset."""

    cors_origin: str = "*"

    @property
    def storage_path(self) -> Path:
        return Path(self.storage_dir)

    @classmethod
    def load(cls, config_dir: Path | str | None = None) -> "ServerConfig":
        """Load configuration from disk and apply environment overrides."""
        if config_dir is None:
            config_dir = os.getenv("LOCALBOX_CONFIG_DIR", DEFAULT_CONFIG_DIR)
        config_file = Path(config_dir) / CONFIG_FILE_NAME

        data: dict = {}
        if config_file.exists():
            logger.info(f"Loading config from {config_file}")
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
        else:
            logger.info(f"No config file at {config_file}, using defaults")

        config = cls.from_dict(data)

        if host := os.getenv("LOCALBOX_HOST"):
            config.host = host
        if port := os.getenv("LOCALBOX_PORT"):
            config.port = int(port)
        if storage_dir := os.getenv("LOCALBOX_STORAGE_DIR"):
            config.storage_dir = storage_dir
        if static_dir := os.getenv("LOCALBOX_STATIC_DIR"):
            config.static_dir = static_dir
        if trace_log := os.getenv("LOCALBOX_TRACE_LOG"):
            config.trace_log_file = trace_log
        return config
