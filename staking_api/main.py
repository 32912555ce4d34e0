"""
Entry point of the Staking API.

Loads `.env`, configures logging and builds the module-level Flask app.
Run with `python -m staking_api.main` from the project root, or point a WSGI
server at `staking_api.main:app`.
"""

# ==============================================================================
# 1. IMPORTS
# ==============================================================================

# --- Standard Library Imports ---
import atexit
import logging

# --- Third-Party Imports ---
from dotenv import load_dotenv

load_dotenv()

# --- Local Application Imports ---
from staking_api.api.error_handling import LoggingManager
from staking_api.app import close_services, create_app
from staking_api.config import ServiceConfig

# ==============================================================================
# 2. CONFIGURATION AND LOGGING
# ==============================================================================

SERVICE_CONFIG = ServiceConfig()

# Initialize logging early to capture import-time issues
LoggingManager.setup_logging(
    log_level=SERVICE_CONFIG.log_level,
    log_file=SERVICE_CONFIG.log_file or None,
)
LOGGER = logging.getLogger(__name__)

# ==============================================================================
# 3. APPLICATION
# ==============================================================================

app = create_app(SERVICE_CONFIG)
atexit.register(close_services, app)


if __name__ == '__main__':
    LOGGER.info("======================================================")
    LOGGER.info("Starting Staking API")
    LOGGER.info(f"Configuration: {SERVICE_CONFIG.get_config_info()}")
    LOGGER.info(f"Server running on port {SERVICE_CONFIG.port}")
    LOGGER.info("======================================================")

    # Use a WSGI server like Gunicorn in production
    app.run(host='0.0.0.0', port=SERVICE_CONFIG.port)
