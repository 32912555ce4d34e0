import unittest
from unittest.mock import MagicMock, patch

import requests
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import ContractLogicError

from staking_api.api.chain_reader import STAKING_ABI, RawStakingState, Web3ChainReader
from staking_api.api.error_handling import ChainCallError

RPC = "http://rpc.test.invalid"
STAKING = "0x91F048130C88C1f759A9bdC19883559d3Dc275a6"


def make_web3(apy=7, total_staked=10 ** 21):
    """MagicMock Web3 whose staking contract returns the given outputs"""
    w3 = MagicMock()
    functions = w3.eth.contract.return_value.functions
    functions.fixedAPY.return_value.call.return_value = apy
    functions.totalAmountStaked.return_value.call.return_value = total_staked
    return w3


class TestWeb3ChainReader(unittest.TestCase):
    def setUp(self):
        self.reader = Web3ChainReader()

    def tearDown(self):
        self.reader.close()

    def test_reads_both_views(self):
        w3 = make_web3(apy=7, total_staked=10 ** 21)
        with patch.object(self.reader, "_get_web3", return_value=w3) as get_web3:
            state = self.reader.read_staking_state(RPC, STAKING.lower())

        self.assertEqual(state, RawStakingState(apy=7, total_staked=10 ** 21))
        get_web3.assert_called_once_with(RPC)
        w3.eth.contract.assert_called_once_with(
            address=Web3.to_checksum_address(STAKING), abi=STAKING_ABI
        )

    def test_unreachable_endpoint_raises_chain_call_error(self):
        w3 = make_web3()
        w3.eth.contract.return_value.functions.fixedAPY.return_value.call.side_effect = (
            requests.ConnectionError("connection refused")
        )
        with patch.object(self.reader, "_get_web3", return_value=w3):
            with self.assertRaises(ChainCallError) as ctx:
                self.reader.read_staking_state(RPC, STAKING)

        self.assertEqual(ctx.exception.rpc_url, RPC)
        self.assertEqual(ctx.exception.contract_address, STAKING)
        self.assertIn("connection refused", str(ctx.exception))

    def test_reverted_call_raises_chain_call_error(self):
        w3 = make_web3()
        w3.eth.contract.return_value.functions.totalAmountStaked.return_value.call.side_effect = (
            ContractLogicError("execution reverted")
        )
        with patch.object(self.reader, "_get_web3", return_value=w3):
            with self.assertRaises(ChainCallError):
                self.reader.read_staking_state(RPC, STAKING)

    def test_null_rpc_result_raises_chain_call_error(self):
        # web3 fails with a bare TypeError when eth_call returns "result": null
        w3 = make_web3()
        w3.eth.contract.return_value.functions.fixedAPY.return_value.call.side_effect = (
            TypeError("Cannot convert None of type <class 'NoneType'> to bytes")
        )
        with patch.object(self.reader, "_get_web3", return_value=w3):
            with self.assertRaises(ChainCallError) as ctx:
                self.reader.read_staking_state(RPC, STAKING)

        self.assertIsInstance(ctx.exception.__cause__, TypeError)

    def test_undecodable_output_raises_chain_call_error(self):
        w3 = make_web3()
        w3.eth.contract.return_value.functions.totalAmountStaked.return_value.call.side_effect = (
            DecodingError("not enough data")
        )
        with patch.object(self.reader, "_get_web3", return_value=w3):
            with self.assertRaises(ChainCallError):
                self.reader.read_staking_state(RPC, STAKING)

    def test_invalid_address_raises_chain_call_error(self):
        with patch.object(self.reader, "_get_web3", return_value=make_web3()):
            with self.assertRaises(ChainCallError):
                self.reader.read_staking_state(RPC, "not-an-address")

    def test_non_integer_output_raises_chain_call_error(self):
        with patch.object(self.reader, "_get_web3", return_value=make_web3(total_staked=b"\x00")):
            with self.assertRaises(ChainCallError):
                self.reader.read_staking_state(RPC, STAKING)

    def test_empty_rpc_url_raises_chain_call_error(self):
        with self.assertRaises(ChainCallError):
            self.reader.read_staking_state("", STAKING)

    def test_connection_is_reused_per_endpoint(self):
        first = self.reader._get_web3(RPC)
        again = self.reader._get_web3(RPC)
        other = self.reader._get_web3("http://other.test.invalid")

        self.assertIs(first, again)
        self.assertIsNot(first, other)

    def test_close_forgets_connections(self):
        first = self.reader._get_web3(RPC)
        self.reader.close()

        self.assertIsNot(self.reader._get_web3(RPC), first)


if __name__ == "__main__":
    unittest.main()
