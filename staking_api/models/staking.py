"""
Database Models for the Staking API

One row per protocol deployment (project on a chain), refreshed in place from
the staking contract's on-chain state.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..database.config import db

STAKING_LOGO_URL = "https://s3.coinmarketcap.com/static-gravity/image/60f1fc5d85f2463881db170b6d740876.png"
STABLECOIN_SYMBOL = "EDU"


def build_protocol_id(name_project: str, chain: str) -> str:
    """Natural key of a staking record: `<project>_<chain>`"""
    return f"{name_project}_{chain}"


class StakingRecord(db.Model):
    """
    Last observed on-chain state of one staking contract.
    """

    __tablename__ = "staking"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_protocol: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Contracts
    address_token: Mapped[str] = mapped_column(String(64), nullable=False)
    address_staking: Mapped[str] = mapped_column(String(64), nullable=False)

    # Descriptive fields
    name_token: Mapped[str] = mapped_column(String(50), nullable=False)
    name_project: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    chain: Mapped[str] = mapped_column(String(100), nullable=False)

    # On-chain state; apy is stored exactly as the contract reports it
    apy: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tvl: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    stablecoin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    categories: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    logo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def to_dict(self):
        """Convert model to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "idProtocol": self.id_protocol,
            "addressToken": self.address_token,
            "addressStaking": self.address_staking,
            "nameToken": self.name_token,
            "nameProject": self.name_project,
            "chain": self.chain,
            "apy": self.apy,
            "tvl": self.tvl,
            "stablecoin": self.stablecoin,
            "categories": list(self.categories or []),
            "logo": self.logo,
            "createdAt": self.created_at.isoformat()
            if getattr(self, "created_at", None)
            else None,
            "updatedAt": self.updated_at.isoformat()
            if getattr(self, "updated_at", None)
            else None,
        }

    def __repr__(self):
        return f"<StakingRecord(id_protocol='{self.id_protocol}', apy={self.apy}, tvl={self.tvl})>"
