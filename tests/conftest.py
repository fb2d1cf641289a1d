"""
Pytest fixtures: a scripted L1 + L2 pair standing in for AsyncWeb3 transports.
"""

from typing import Dict, Iterable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode
from hexbytes import HexBytes

from batch_slot_proof.abi import BLOCK_COMMIT_TOPIC, COMMIT_ENCODINGS, SUPPORTED_COMMIT_ENCODING_VERSION
from batch_slot_proof.abi import COMMIT_BATCH_INFO_TUPLE, STORED_BATCH_INFO_TUPLE
from batch_slot_proof.provider import StorageProofProvider

DIAMOND = "0x32400084c286cf3e17e7b677ea9583e60a000324"
VERIFIER = "0x5490d0fe20e9f93a847c1907f7fd2adf217bf534"
ACCOUNT = "0x0000000000000000000000000000000000008003"
STORAGE_KEY = "0x8b65c0cf1012ea9f393197eb24619fd814379b298b238285649e14f936a5eb12"
COMMIT_TX = "0x" + "c0" * 32
PROVE_TX = "0x" + "d0" * 32
L2_LOGS_ROOT = b"\x22" * 32


def word(n: int, tag: int) -> bytes:
    """Deterministic distinct 32-byte value per (batch, field)."""
    return bytes([tag]) + n.to_bytes(31, "big")


def commit_tuple(n: int) -> tuple:
    return (
        n,                   # batchNumber
        1_700_000_000 + n,   # timestamp
        1_000 + n,           # indexRepeatedStorageChanges
        word(n, 0x01),       # newStateRoot
        n % 7,               # numberOfLayer1Txs
        word(n, 0x02),       # priorityOperationsHash
        word(n, 0x03),       # bootloaderHeapInitialContentsHash
        word(n, 0x04),       # eventsQueueStateHash
        b"system-logs-%d" % n,
        b"pubdata-%d" % n,
    )


def last_committed_tuple(n: int) -> tuple:
    return (n, word(n, 0x01), 1_000 + n, 0, word(n, 0x02), word(n, 0x05), 1_700_000_000 + n, word(n, 0x06))


def commit_calldata(batch_numbers: Iterable[int], abi_version: str = "shared_bridge", chain_id: int = 324) -> bytes:
    numbers = list(batch_numbers)
    batches = [commit_tuple(n) for n in numbers]
    last = last_committed_tuple(numbers[0] - 1 if numbers else 0)
    enc = COMMIT_ENCODINGS[abi_version]
    if abi_version == "legacy":
        args = [last, batches]
    elif abi_version == "shared_bridge":
        args = [chain_id, last, batches]
    else:
        packed = bytes([SUPPORTED_COMMIT_ENCODING_VERSION]) + encode(
            [STORED_BATCH_INFO_TUPLE, COMMIT_BATCH_INFO_TUPLE + "[]"], [last, batches]
        )
        args = [chain_id, numbers[0], numbers[-1], packed]
    return enc.selector + encode(list(enc.arg_types), args)


def commitment(n: int) -> bytes:
    return word(n, 0xCC)


def block_commit_log(n: int, address: str = DIAMOND) -> dict:
    return {
        "address": address,
        "topics": [HexBytes(BLOCK_COMMIT_TOPIC), HexBytes(n.to_bytes(32, "big")),
                   HexBytes(word(n, 0x01)), HexBytes(commitment(n))],
        "data": HexBytes("0x"),
    }


def unrelated_log(i: int) -> dict:
    return {
        "address": "0x" + "%040x" % (0xABC0 + i),
        "topics": [HexBytes(b"\xee" * 32), HexBytes(i.to_bytes(32, "big"))],
        "data": HexBytes(b"\x01" * 32),
    }


def rpc_proof_entry(key: str, n: int) -> dict:
    return {
        "key": key,
        "proof": ["0x" + word(n, 0x10 + i).hex() for i in range(3)],
        "value": "0x" + (42).to_bytes(32, "big").hex(),
        "index": 77,
    }


def make_contract(**results) -> MagicMock:
    contract = MagicMock()
    for name, value in results.items():
        getattr(contract.functions, name).return_value.call = AsyncMock(return_value=value)
    return contract


class FakeChain:
    """Scripted L1/L2 state for one commit transaction."""

    def __init__(
        self,
        batches: Iterable[int] = (100, 101),
        abi_version: str = "shared_bridge",
        logs: Optional[List[dict]] = None,
        latest: int = 1_000,
        details: Optional[Dict[str, Optional[str]]] = None,
        verified: bool = True,
    ):
        self.batches = list(batches)
        self.latest = latest
        self.details = details if details is not None else {"commitTxHash": COMMIT_TX, "proveTxHash": PROVE_TX}
        self.logs = logs if logs is not None else [block_commit_log(n) for n in self.batches]

        self.l1 = MagicMock()
        self.l1.eth.get_transaction = AsyncMock(return_value={"hash": COMMIT_TX, "input": HexBytes(commit_calldata(self.batches, abi_version))})
        self.l1.eth.get_transaction_receipt = AsyncMock(return_value={"transactionHash": COMMIT_TX, "logs": self.logs})
        self.diamond = make_contract(l2LogsRootHash=L2_LOGS_ROOT, storedBatchHash=b"\x00" * 32)
        self.verifier = make_contract(verify=verified)
        self.l1.eth.contract = MagicMock(side_effect=self._contract)

        self.l2 = MagicMock()
        self.l2.manager.coro_request = AsyncMock(side_effect=self._l2_request)

    def _contract(self, address, abi):
        return self.diamond if address.lower() == DIAMOND else self.verifier

    async def _l2_request(self, method, params):
        if method == "zks_L1BatchNumber":
            return hex(self.latest)
        if method == "zks_getL1BatchDetails":
            return dict(self.details, number=params[0])
        if method == "zks_getProof":
            account, keys, n = params
            return {"address": account, "storageProof": [rpc_proof_entry(k, n) for k in keys]}
        raise AssertionError(f"unexpected L2 call {method}")

    def l2_methods(self) -> List[str]:
        return [c.args[0] for c in self.l2.manager.coro_request.call_args_list]

    def provider(self, **kwargs) -> StorageProofProvider:
        kwargs.setdefault("verifier_address", VERIFIER)
        return StorageProofProvider(self.l1, self.l2, DIAMOND, **kwargs)


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def provider(chain: FakeChain) -> StorageProofProvider:
    return chain.provider()
