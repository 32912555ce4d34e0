"""
Database Configuration for the Staking API

Supports both SQLite (development) and PostgreSQL (production) environments,
or any SQLAlchemy URL given directly through DATABASE_URL.
"""

import os
from urllib.parse import quote_plus

from flask_sqlalchemy import SQLAlchemy

# Flask-SQLAlchemy extension object, bound to the app in create_app()
db = SQLAlchemy()


class DatabaseConfig:
    """Database configuration manager"""

    def __init__(self, database_url=None):
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.database_url = database_url or self._get_database_url()

    def _get_database_url(self):
        """Get database URL based on environment"""
        explicit_url = os.getenv("DATABASE_URL")
        if explicit_url:
            return explicit_url

        if self.environment == "production":
            # PostgreSQL configuration for production
            host = os.getenv("DB_HOST", "localhost")
            port = os.getenv("DB_PORT", "5432")
            name = os.getenv("DB_NAME", "staking")
            user = os.getenv("DB_USER", "postgres")
            password = os.getenv("DB_PASSWORD", "")

            # URL encode password to handle special characters
            encoded_password = quote_plus(password) if password else ""

            if encoded_password:
                return f"postgresql://{user}:{encoded_password}@{host}:{port}/{name}"
            else:
                return f"postgresql://{user}@{host}:{port}/{name}"
        else:
            # SQLite configuration for development
            db_path = os.path.join(os.getcwd(), "data", "staking.db")
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
            return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self):
        return self.database_url.startswith("sqlite")

    def get_engine_options(self, **kwargs):
        """Engine options passed to Flask-SQLAlchemy as SQLALCHEMY_ENGINE_OPTIONS"""
        engine_config = {}

        engine_config["echo"] = os.getenv("DB_ECHO", "false").lower() == "true"
        engine_config["pool_pre_ping"] = True

        if self.is_sqlite:
            # Refresh batches write from worker threads
            engine_config["connect_args"] = {"check_same_thread": False}
        else:
            engine_config["pool_size"] = int(os.getenv("DB_POOL_SIZE", "10"))
            engine_config["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "20"))
            engine_config["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT", "30"))
            engine_config["pool_recycle"] = int(os.getenv("DB_POOL_RECYCLE", "3600"))

        # Override with any provided kwargs
        engine_config.update(kwargs)
        return engine_config

    def get_connection_info(self):
        """Get connection information for debugging"""
        return {
            "environment": self.environment,
            "database_url": mask_database_url(self.database_url),
        }


def mask_database_url(url: str) -> str:
    """Mask credentials in a database URL for logging"""
    if "@" in url:
        protocol_and_creds, host_and_path = url.rsplit("@", 1)
        protocol = protocol_and_creds.split("://")[0]
        return f"{protocol}://***:***@{host_and_path}"
    return url
