"""
Staking API

HTTP service serving token metadata and the on-chain staking state (APY,
total staked) of a fixed registry of EDU Chain protocols.
"""

__version__ = "1.0.0"
