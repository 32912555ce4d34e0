"""
Service Configuration for the Staking API

Reads every runtime setting from the environment (a `.env` file is loaded by
the entry point with python-dotenv before this module is used).
"""

import os
from typing import Optional

DEFAULT_PORT = 3000
DEFAULT_LOG_FILE = os.path.join("logs", "staking_api.log")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class ServiceConfig:
    """Application level settings (listening port, logging, registry, refresh)"""

    def __init__(self):
        self.port = int(os.getenv("PORT") or DEFAULT_PORT)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_file = os.getenv("LOG_FILE", DEFAULT_LOG_FILE)
        self.auto_create_tables = _env_flag("AUTO_CREATE_TABLES", "true")

        # Empty means "use the files shipped with the package"
        self.protocol_registry_path = os.getenv("PROTOCOL_REGISTRY_PATH") or None
        self.token_registry_path = os.getenv("TOKEN_REGISTRY_PATH") or None

        self.refresh_max_workers = self._get_max_workers()

    def _get_max_workers(self) -> Optional[int]:
        """Thread pool size for refresh batches; None means one worker per entry"""
        raw = os.getenv("REFRESH_MAX_WORKERS")
        if not raw:
            return None
        value = int(raw)
        if value < 1:
            raise ValueError("REFRESH_MAX_WORKERS must be a positive integer")
        return value

    def get_config_info(self):
        """Get configuration information for debugging"""
        return {
            "port": self.port,
            "log_level": self.log_level,
            "log_file": self.log_file or None,
            "auto_create_tables": self.auto_create_tables,
            "protocol_registry_path": self.protocol_registry_path or "<packaged>",
            "token_registry_path": self.token_registry_path or "<packaged>",
            "refresh_max_workers": self.refresh_max_workers,
        }
