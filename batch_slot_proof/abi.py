"""Settlement (diamond) and storage verifier ABIs.

The commit call changed shape across settlement contract upgrades, so the calldata
layout is picked from ``COMMIT_ENCODINGS`` by ABI version instead of being guessed.
"""

from dataclasses import dataclass
from typing import List, Tuple

from eth_abi import decode
from web3 import Web3

from .errors import CommitCalldataMismatch, ConfigurationError

STORED_BATCH_INFO_TUPLE = "(uint64,bytes32,uint64,uint256,bytes32,bytes32,uint256,bytes32)"
COMMIT_BATCH_INFO_TUPLE = "(uint64,uint64,uint64,bytes32,uint256,bytes32,bytes32,bytes32,bytes,bytes)"

# leading byte of the packed commit data; only this layout is understood
SUPPORTED_COMMIT_ENCODING_VERSION = 0

BLOCK_COMMIT_EVENT = "BlockCommit(uint256,bytes32,bytes32)"
BLOCK_COMMIT_TOPIC = Web3.keccak(text=BLOCK_COMMIT_EVENT)


@dataclass(frozen=True)
class CommitEncoding:
    """One known layout of the batch-commit call."""
    function: str
    arg_types: Tuple[str, ...]
    batches_arg: int
    packed: bool = False

    @property
    def signature(self) -> str:
        return f"{self.function}({','.join(self.arg_types)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    def decode_batches(self, calldata: bytes) -> List[Tuple]:
        """Return the raw CommitBatchInfo tuples carried by ``calldata``."""
        calldata = bytes(calldata)
        if calldata[:4] != self.selector:
            raise CommitCalldataMismatch(
                f"Calldata selector 0x{calldata[:4].hex()} is not {self.signature} (0x{self.selector.hex()})"
            )
        args = decode(list(self.arg_types), calldata[4:])
        batches = args[self.batches_arg]
        if self.packed:
            batches = _decode_packed_commit_data(batches)
        return list(batches)


def _decode_packed_commit_data(commit_data: bytes) -> Tuple:
    if not commit_data:
        raise CommitCalldataMismatch("Empty packed commit data")
    if commit_data[0] != SUPPORTED_COMMIT_ENCODING_VERSION:
        raise CommitCalldataMismatch(f"Unsupported commit data encoding version {commit_data[0]}")
    _, batches = decode([STORED_BATCH_INFO_TUPLE, COMMIT_BATCH_INFO_TUPLE + "[]"], commit_data[1:])
    return batches


COMMIT_ENCODINGS = {
    # commitBatches(StoredBatchInfo lastCommitted, CommitBatchInfo[] newBatches)
    "legacy": CommitEncoding(
        "commitBatches", (STORED_BATCH_INFO_TUPLE, COMMIT_BATCH_INFO_TUPLE + "[]"), batches_arg=1,
    ),
    # commitBatchesSharedBridge(uint256 chainId, StoredBatchInfo lastCommitted, CommitBatchInfo[] newBatches)
    "shared_bridge": CommitEncoding(
        "commitBatchesSharedBridge", ("uint256", STORED_BATCH_INFO_TUPLE, COMMIT_BATCH_INFO_TUPLE + "[]"), batches_arg=2,
    ),
    # commitBatchesSharedBridge(uint256 chainId, uint256 from, uint256 to, bytes commitData)
    "packed": CommitEncoding(
        "commitBatchesSharedBridge", ("uint256", "uint256", "uint256", "bytes"), batches_arg=3, packed=True,
    ),
}

DEFAULT_COMMIT_ABI_VERSION = "shared_bridge"


def commit_encoding(version: str) -> CommitEncoding:
    try:
        return COMMIT_ENCODINGS[version]
    except KeyError:
        raise ConfigurationError(
            f"Unknown commit ABI version {version!r}; expected one of {sorted(COMMIT_ENCODINGS)}"
        ) from None


def _fn(name, inputs, outputs, mutability="view"):
    return {"type": "function", "name": name, "inputs": inputs, "outputs": outputs, "stateMutability": mutability}


DIAMOND_ABI = [
    _fn("l2LogsRootHash", [{"name": "_batchNumber", "type": "uint256"}], [{"name": "", "type": "bytes32"}]),
    _fn("storedBatchHash", [{"name": "", "type": "uint256"}], [{"name": "", "type": "bytes32"}]),
    {
        "type": "event",
        "name": "BlockCommit",
        "anonymous": False,
        "inputs": [
            {"name": "batchNumber", "type": "uint256", "indexed": True},
            {"name": "batchHash", "type": "bytes32", "indexed": True},
            {"name": "commitment", "type": "bytes32", "indexed": True},
        ],
    },
]

BATCH_METADATA_COMPONENTS = [
    {"name": "batchNumber", "type": "uint64"},
    {"name": "indexRepeatedStorageChanges", "type": "uint64"},
    {"name": "numberOfLayer1Txs", "type": "uint256"},
    {"name": "priorityOperationsHash", "type": "bytes32"},
    {"name": "l2LogsTreeRoot", "type": "bytes32"},
    {"name": "timestamp", "type": "uint256"},
    {"name": "commitment", "type": "bytes32"},
]

STORAGE_VERIFIER_ABI = [
    _fn(
        "verify",
        [{
            "name": "proof",
            "type": "tuple",
            "components": [
                {"name": "metadata", "type": "tuple", "components": BATCH_METADATA_COMPONENTS},
                {"name": "account", "type": "address"},
                {"name": "key", "type": "uint256"},
                {"name": "value", "type": "bytes32"},
                {"name": "path", "type": "bytes32[]"},
                {"name": "index", "type": "uint64"},
            ],
        }],
        [{"name": "", "type": "bool"}],
    ),
]
