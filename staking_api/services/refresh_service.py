"""
Staking Refresh Service

Refreshes the persisted staking state of every registry entry from its
contract. Entries run concurrently in a thread pool; each one settles on its
own (fulfilled, rejected or skipped) and one entry's failure never stops the
others. There is no retry, no rollback across entries and no guard against
two overlapping batches.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..models.staking import STABLECOIN_SYMBOL, STAKING_LOGO_URL, build_protocol_id
from ..registry import ProtocolSource
from .normalizer import normalize_apy, normalize_total_staked

logger = logging.getLogger(__name__)

FULFILLED = "fulfilled"
REJECTED = "rejected"
SKIPPED = "skipped"


@dataclass
class RefreshOutcome:
    """Settlement of one registry entry"""

    index: int
    id_protocol: str
    name_project: str
    chain: str
    status: str
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "idProtocol": self.id_protocol,
            "nameProject": self.name_project,
            "chain": self.chain,
            "status": self.status,
            "reason": self.reason,
        }


@dataclass
class RefreshResult:
    """All outcomes of one batch, in registry order"""

    outcomes: List[RefreshOutcome] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def failed(self) -> List[RefreshOutcome]:
        return [o for o in self.outcomes if o.status == REJECTED]

    @property
    def succeeded(self) -> List[RefreshOutcome]:
        return [o for o in self.outcomes if o.status == FULFILLED]

    @property
    def skipped(self) -> List[RefreshOutcome]:
        return [o for o in self.outcomes if o.status == SKIPPED]


def build_create_fields(source: ProtocolSource, apy: float, tvl: float) -> Dict[str, Any]:
    """Columns of a record created for `source` on its first refresh"""
    is_stablecoin = source.name_token == STABLECOIN_SYMBOL
    return {
        "address_token": source.token,
        "address_staking": source.staking,
        "name_token": source.name_token,
        "name_project": source.name_project,
        "chain": source.chain,
        "apy": apy,
        "tvl": tvl,
        "stablecoin": is_stablecoin,
        # The empty tag for non-stablecoins is part of the published shape
        "categories": ["Staking", "Stablecoin" if is_stablecoin else ""],
        "logo": STAKING_LOGO_URL,
    }


class StakingRefreshService:
    """
    Orchestrates chain reads and store upserts for the protocol registry

    Collaborators are injected: `chain_reader` needs
    `read_staking_state(rpc_url, address)` and `repository` needs
    `upsert(key, update_fields, create_fields)`.
    """

    def __init__(
        self,
        registry: Sequence[ProtocolSource],
        chain_reader,
        repository,
        max_workers: Optional[int] = None,
    ):
        self.registry = list(registry)
        self.chain_reader = chain_reader
        self.repository = repository
        self.max_workers = max_workers

    def _outcome(self, index: int, source: ProtocolSource, status: str, reason: Optional[str] = None):
        return RefreshOutcome(
            index=index,
            id_protocol=build_protocol_id(source.name_project, source.chain),
            name_project=source.name_project,
            chain=source.chain,
            status=status,
            reason=reason,
        )

    def refresh_entry(self, index: int) -> RefreshOutcome:
        """
        Refresh one registry entry; never raises

        Returns:
            RefreshOutcome with status fulfilled, rejected or skipped
        """
        source = self.registry[index]

        if not source.rpc:
            logger.warning(f"Missing RPC URL for {source.name_project} on {source.chain}")
            return self._outcome(index, source, SKIPPED)

        try:
            raw = self.chain_reader.read_staking_state(source.rpc, source.staking)

            tvl = normalize_total_staked(raw.total_staked)
            apy = normalize_apy(raw.apy)

            self.repository.upsert(
                build_protocol_id(source.name_project, source.chain),
                update_fields={
                    "tvl": tvl,
                    "apy": apy,
                    "updated_at": datetime.utcnow(),
                },
                create_fields=build_create_fields(source, apy, tvl),
            )
        except Exception as e:
            logger.error(f"Error updating staking data for index {index} ({source.name_project}): {e}")
            return self._outcome(index, source, REJECTED, reason=str(e))

        logger.info(f"Updated staking data for {source.name_project} on {source.chain}")
        return self._outcome(index, source, FULFILLED)

    def refresh_all(self) -> RefreshResult:
        """
        Refresh every registry entry concurrently and wait for all of them

        Returns:
            RefreshResult with one outcome per entry, in registry order
        """
        start_time = time.time()
        total = len(self.registry)
        if total == 0:
            logger.info("Protocol registry is empty, nothing to refresh")
            return RefreshResult()

        workers = self.max_workers or total
        logger.info(f"Refreshing staking data for {total} protocols with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="staking-refresh") as executor:
            futures = [executor.submit(self.refresh_entry, index) for index in range(total)]
            # refresh_entry settles every failure itself; result() only re-raises
            # errors from outside it, which are left to the caller
            outcomes = [future.result() for future in futures]

        result = RefreshResult(outcomes=outcomes, duration_ms=int((time.time() - start_time) * 1000))

        if result.failed:
            logger.warning(f"Some updates failed: {len(result.failed)}")
        logger.info(
            f"Staking refresh finished in {result.duration_ms}ms: "
            f"{len(result.succeeded)} updated, {len(result.failed)} failed, {len(result.skipped)} skipped"
        )
        return result
