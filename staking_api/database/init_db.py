"""
Database Initialization for the Staking API

Tests connectivity and creates the staking table when requested. Schema
changes in deployed databases go through Flask-Migrate
(`flask --app staking_api.main db upgrade`).
"""

import logging
import time
from typing import Dict

from sqlalchemy import inspect, text

from .config import db, mask_database_url

logger = logging.getLogger(__name__)


def _test_database_connection(engine) -> Dict:
    """
    Test database connectivity

    Returns:
        Connection test results
    """
    try:
        start_time = time.time()

        with engine.connect() as connection:
            test_value = connection.execute(text("SELECT 1 as test_value")).scalar()
            if test_value != 1:
                raise RuntimeError("Database test query returned unexpected result")

        return {
            "success": True,
            "connection_time_ms": int((time.time() - start_time) * 1000),
            "tables": inspect(engine).get_table_names(),
            "url_masked": mask_database_url(str(engine.url)),
        }
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return {
            "success": False,
            "error": str(e),
            "url_masked": mask_database_url(str(engine.url)),
        }


def initialize_database(create_tables: bool = True) -> Dict:
    """
    Connection test and optional table creation; needs an app context

    Args:
        create_tables: Whether to run `db.create_all()`

    Returns:
        Initialization results
    """
    logger.info("Starting database initialization")
    start_time = time.time()
    engine = db.engine

    connection_test = _test_database_connection(engine)
    if not connection_test["success"]:
        return {
            "success": False,
            "step": "connection_test",
            "error": connection_test["error"],
            "connection_test": connection_test,
        }

    try:
        if create_tables:
            # Import models so they are registered on db.metadata
            from ..models import staking  # noqa: F401

            db.create_all()
            logger.info("Database tables ensured")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        return {
            "success": False,
            "step": "create_tables",
            "error": str(e),
            "total_time_ms": int((time.time() - start_time) * 1000),
        }

    return {
        "success": True,
        "message": "Database initialized successfully",
        "total_time_ms": int((time.time() - start_time) * 1000),
        "connection_test": connection_test,
    }
