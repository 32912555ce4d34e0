"""
Chain Reader for the Staking API

Read-only access to staking contracts over JSON-RPC using web3.py. Each
contract exposes two zero-argument views, `fixedAPY()` and
`totalAmountStaked()`; the reader returns both raw values.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict

import requests
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import Web3Exception

from .error_handling import APICallTracker, ChainCallError

logger = logging.getLogger(__name__)

STAKING_ABI = [
    {
        "inputs": [],
        "name": "fixedAPY",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "totalAmountStaked",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class RawStakingState:
    """Raw contract outputs, before normalization"""

    apy: int
    total_staked: int


class Web3ChainReader:
    """
    Staking contract reader backed by web3.py HTTP providers

    One Web3 instance (with its own requests session) is kept per RPC URL and
    reused by every call to that endpoint. Instances are created lazily and
    the cache is guarded by a lock, so one reader can serve concurrent
    refresh workers. No retries are made and the HTTP client's default
    timeout applies.
    """

    def __init__(self):
        self._connections: Dict[str, Web3] = {}
        self._sessions: Dict[str, requests.Session] = {}
        self._lock = threading.Lock()

    def _get_web3(self, rpc_url: str) -> Web3:
        with self._lock:
            w3 = self._connections.get(rpc_url)
            if w3 is None:
                session = requests.Session()
                provider = Web3.HTTPProvider(
                    rpc_url,
                    session=session,
                    exception_retry_configuration=None,
                )
                w3 = Web3(provider)
                self._connections[rpc_url] = w3
                self._sessions[rpc_url] = session
                logger.debug(f"Opened JSON-RPC connection to {rpc_url}")
            return w3

    def _call_view(self, contract, function_name: str):
        with APICallTracker("rpc", function_name):
            return getattr(contract.functions, function_name)().call()

    def read_staking_state(self, rpc_url: str, staking_address: str) -> RawStakingState:
        """
        Read `fixedAPY()` and `totalAmountStaked()` from a staking contract

        Args:
            rpc_url: JSON-RPC endpoint of the contract's chain
            staking_address: Staking contract address (any letter case)

        Returns:
            RawStakingState with both raw integer outputs

        Raises:
            ChainCallError: Endpoint unreachable, invalid address, reverted call
                or undecodable output
        """
        if not rpc_url:
            raise ChainCallError("RPC URL is empty", rpc_url=rpc_url, contract_address=staking_address)

        try:
            w3 = self._get_web3(rpc_url)
            contract = w3.eth.contract(
                address=Web3.to_checksum_address(staking_address),
                abi=STAKING_ABI,
            )
            apy = self._call_view(contract, "fixedAPY")
            total_staked = self._call_view(contract, "totalAmountStaked")
        except (Web3Exception, requests.RequestException, DecodingError, TypeError, ValueError) as e:
            raise ChainCallError(
                f"Call to staking contract {staking_address} via {rpc_url} failed: {e}",
                rpc_url=rpc_url,
                contract_address=staking_address,
            ) from e

        if not isinstance(apy, int) or not isinstance(total_staked, int):
            raise ChainCallError(
                f"Unexpected output from staking contract {staking_address}: "
                f"fixedAPY={apy!r}, totalAmountStaked={total_staked!r}",
                rpc_url=rpc_url,
                contract_address=staking_address,
            )

        logger.debug(f"Read staking state of {staking_address}: apy={apy}, totalStaked={total_staked}")
        return RawStakingState(apy=apy, total_staked=total_staked)

    def close(self):
        """Close every cached HTTP session"""
        with self._lock:
            for session in self._sessions.values():
                session.close()
            self._sessions.clear()
            self._connections.clear()
