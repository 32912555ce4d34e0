"""
Database Models
This package contains the SQLAlchemy model for persisted staking state.
"""

from .staking import StakingRecord, build_protocol_id

__all__ = ['StakingRecord', 'build_protocol_id']
