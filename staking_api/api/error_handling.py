"""
Error Handling and Logging for the Staking API

Provides the exception taxonomy shared by the chain reader, the record store
and the refresh orchestrator, the central logging configuration, and a small
context manager that logs the duration of every RPC call.
"""

import logging
import os
import sys
import time
from typing import Optional


# Custom exception classes for better error categorization
class StakingServiceError(Exception):
    """Base exception for staking service errors"""
    pass


class ChainCallError(StakingServiceError):
    """RPC endpoint unreachable, contract call reverted or output not decodable"""
    def __init__(self, message: str, rpc_url: str = "Unknown", contract_address: str = "Unknown"):
        super().__init__(message)
        self.rpc_url = rpc_url
        self.contract_address = contract_address


class StoreError(StakingServiceError):
    """Persistence errors from the staking record store"""
    def __init__(self, message: str, operation: str = "Unknown"):
        super().__init__(message)
        self.operation = operation


class RegistryError(StakingServiceError):
    """Static registry file missing or malformed"""
    def __init__(self, message: str, source: str = "Unknown"):
        super().__init__(message)
        self.source = source


class LoggingManager:
    """
    Centralized logging configuration and management
    """

    FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
        """
        Setup logging configuration

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional log file path
        """
        formatter = logging.Formatter(LoggingManager.FORMAT)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # web3 and urllib3 are chatty at DEBUG
        for noisy in ('web3', 'urllib3'):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    @staticmethod
    def get_api_logger(name: str) -> logging.Logger:
        """Get a configured logger for API components"""
        return logging.getLogger(f"staking_api.api.{name}")


def log_api_call(api_name: str, endpoint: str, duration: float, success: bool):
    """Log API call metrics"""
    logger = LoggingManager.get_api_logger('metrics')
    status = "SUCCESS" if success else "FAILED"
    logger.info(f"API_CALL - {api_name}:{endpoint} - {status} - {duration:.3f}s")


# Context manager for API call tracking
class APICallTracker:
    """Context manager to track API call metrics"""

    def __init__(self, api_name: str, endpoint: str):
        self.api_name = api_name
        self.endpoint = endpoint
        self.start_time: Optional[float] = None
        self.success = False

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            duration = time.time() - self.start_time
        else:
            duration = 0.0

        self.success = exc_type is None
        log_api_call(self.api_name, self.endpoint, duration, self.success)
        # Never suppress the exception
        return False
