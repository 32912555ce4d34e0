"""
Shared test doubles for the Staking API test suite.

Kept out of the package: the fakes stand in for the JSON-RPC chain and the
record store so tests never need a network or a real database server.
"""

import os
import sys
import threading

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from staking_api.api.chain_reader import RawStakingState
from staking_api.api.error_handling import ChainCallError
from staking_api.models.staking import StakingRecord
from staking_api.registry import ProtocolSource

TEST_RPC = "http://rpc.test.invalid"

ONE_THOUSAND_TOKENS = 1000 * 10 ** 18


def make_registry(rpc=TEST_RPC):
    """The five EDU Chain Testnet protocols, all pointing at `rpc`"""
    return [
        ProtocolSource("BlendFinance", "EDU", "0x13BFA5eaE397e36593E788176C2FddcFffEC5075",
                       "0x91F048130C88C1f759A9bdC19883559d3Dc275a6", "EDU Chain Testnet", rpc),
        ProtocolSource("SailFish", "WEDU", "0x89159C2A782ba2caE40Ec25C39A1f38397f1EED5",
                       "0xD95d2F7C38bfA2f9d7A618474Bc619470f01001F", "EDU Chain Testnet", rpc),
        ProtocolSource("Camelot", "EDU", "0x13BFA5eaE397e36593E788176C2FddcFffEC5075",
                       "0x763A03a3328e475f75EE2Dd0329b27F02EeD2443", "EDU Chain Testnet", rpc),
        ProtocolSource("EdBank", "EDU", "0x13BFA5eaE397e36593E788176C2FddcFffEC5075",
                       "0x4399B055b86C65bC2E91333D9118F98B974F052C", "EDU Chain Testnet", rpc),
        ProtocolSource("MoveFlow", "WEDU", "0x89159C2A782ba2caE40Ec25C39A1f38397f1EED5",
                       "0xf8C1cfD46A543EfB13305b041Fc573550207FA79", "EDU Chain Testnet", rpc),
    ]


class FakeChainReader:
    """
    In-memory chain: every contract reports `apy` and `total_staked` unless
    its address is listed in `failing` (raises ChainCallError).
    """

    def __init__(self, apy=12, total_staked=ONE_THOUSAND_TOKENS, failing=(), barrier=None):
        self.apy = apy
        self.total_staked = total_staked
        self.failing = set(failing)
        self.barrier = barrier
        self.calls = []
        self._lock = threading.Lock()

    def read_staking_state(self, rpc_url, staking_address):
        with self._lock:
            self.calls.append((rpc_url, staking_address))
        if self.barrier is not None:
            self.barrier.wait()
        if staking_address in self.failing:
            raise ChainCallError("connection refused", rpc_url=rpc_url, contract_address=staking_address)
        return RawStakingState(apy=self.apy, total_staked=self.total_staked)


class FakeRepository:
    """Dict-backed store with the repository's upsert semantics"""

    def __init__(self, fail_on=()):
        self.records = {}
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def upsert(self, key, update_fields, create_fields):
        from staking_api.api.error_handling import StoreError

        if key in self.fail_on:
            raise StoreError(f"write of {key} failed", operation="upsert")
        with self._lock:
            record = self.records.get(key)
            if record is not None:
                for field, value in update_fields.items():
                    setattr(record, field, value)
            else:
                record = StakingRecord(**{**create_fields, "id_protocol": key})
                self.records[key] = record
            return record

    def find_all(self):
        return list(self.records.values())

    def find_by_id_protocol(self, id_protocol):
        record = self.records.get(id_protocol)
        return [record] if record is not None else []

    def count(self):
        return len(self.records)
