"""Conversion of raw staking contract outputs into API values."""

from decimal import Decimal

STAKED_TOKEN_DECIMALS = 18


def normalize_total_staked(total_staked: int, decimals: int = STAKED_TOKEN_DECIMALS) -> float:
    """Fixed-point base units -> token quantity (`total_staked / 10**decimals`)."""
    return float(Decimal(int(total_staked)).scaleb(-decimals))


def normalize_apy(apy) -> float:
    """APY as reported by the contract, without percentage scaling."""
    return float(apy)
