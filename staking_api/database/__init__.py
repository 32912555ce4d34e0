"""Database configuration, initialization and the staking record store."""

from .config import db

__all__ = ['db']
