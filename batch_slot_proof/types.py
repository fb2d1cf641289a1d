"""Records passed between the pipeline stages.

Hashes are 0x-prefixed hex strings, counters are ints and opaque blobs stay bytes.
Everything is frozen: a record is built once per request and never mutated.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

from eth_abi import encode
from web3 import Web3

from .utils import to_hex, to_word

STORED_BATCH_INFO_TYPES = ["uint64", "bytes32", "uint64", "uint256", "bytes32", "bytes32", "uint256", "bytes32"]


def _camel_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for name, value in d.items():
        head, *rest = name.split("_")
        out[head + "".join(w.capitalize() for w in rest)] = value
    return out


@dataclass(frozen=True)
class CommitBatchInfo:
    """Struct passed to the settlement contract by the sequencer for each batch."""
    batch_number: int
    timestamp: int
    index_repeated_storage_changes: int
    new_state_root: str
    number_of_layer1_txs: int
    priority_operations_hash: str
    bootloader_heap_initial_contents_hash: str
    events_queue_state_hash: str
    system_logs: bytes
    total_l2_to_l1_pubdata: bytes

    @classmethod
    def from_abi_tuple(cls, batch: Tuple) -> "CommitBatchInfo":
        (number, timestamp, index_repeated, state_root, l1_txs,
         priority_hash, heap_hash, events_hash, system_logs, pubdata) = batch
        return cls(
            batch_number=number,
            timestamp=timestamp,
            index_repeated_storage_changes=index_repeated,
            new_state_root=to_hex(state_root),
            number_of_layer1_txs=l1_txs,
            priority_operations_hash=to_hex(priority_hash),
            bootloader_heap_initial_contents_hash=to_hex(heap_hash),
            events_queue_state_hash=to_hex(events_hash),
            system_logs=bytes(system_logs),
            total_l2_to_l1_pubdata=bytes(pubdata),
        )


@dataclass(frozen=True)
class StoredBatchInfo:
    """Batch as the settlement contract stores it once committed."""
    batch_number: int
    batch_hash: str
    index_repeated_storage_changes: int
    number_of_layer1_txs: int
    priority_operations_hash: str
    l2_logs_tree_root: str
    timestamp: int
    commitment: str

    def abi_tuple(self) -> Tuple:
        return (
            self.batch_number,
            to_word(self.batch_hash),
            self.index_repeated_storage_changes,
            self.number_of_layer1_txs,
            to_word(self.priority_operations_hash),
            to_word(self.l2_logs_tree_root),
            self.timestamp,
            to_word(self.commitment),
        )


@dataclass(frozen=True)
class BatchMetadata:
    """StoredBatchInfo without the batch hash: the struct the verifier takes."""
    batch_number: int
    index_repeated_storage_changes: int
    number_of_layer1_txs: int
    priority_operations_hash: str
    l2_logs_tree_root: str
    timestamp: int
    commitment: str

    def abi_tuple(self) -> Tuple:
        return (
            self.batch_number,
            self.index_repeated_storage_changes,
            self.number_of_layer1_txs,
            to_word(self.priority_operations_hash),
            to_word(self.l2_logs_tree_root),
            self.timestamp,
            to_word(self.commitment),
        )


@dataclass(frozen=True)
class RpcProof:
    """Storage proof for one key as returned by the L2 node."""
    account: str
    key: str
    path: Tuple[str, ...]
    value: str
    index: int


@dataclass(frozen=True)
class StorageProof:
    metadata: BatchMetadata
    account: str
    key: str
    path: Tuple[str, ...]
    value: str
    index: int

    @classmethod
    def from_rpc(cls, metadata: BatchMetadata, proof: RpcProof) -> "StorageProof":
        return cls(metadata=metadata, account=proof.account, key=proof.key,
                   path=proof.path, value=proof.value, index=proof.index)

    def verifier_args(self) -> Tuple:
        """Proof struct as the verifier contract's ``verify`` expects it."""
        return (
            self.metadata.abi_tuple(),
            Web3.to_checksum_address(self.account),
            int(self.key, 16),
            to_word(self.value),
            [to_word(p) for p in self.path],
            self.index,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape with the verifier ABI's camelCase field names."""
        d = _camel_keys(asdict(self))
        d["metadata"] = _camel_keys(d["metadata"])
        d["path"] = list(self.path)
        return d


@dataclass(frozen=True)
class StorageProofBatch:
    """Proofs for several keys of one account, all against the same batch."""
    metadata: BatchMetadata
    proofs: Tuple[RpcProof, ...]

    def storage_proofs(self) -> Tuple[StorageProof, ...]:
        return tuple(StorageProof.from_rpc(self.metadata, p) for p in self.proofs)


def format_stored_batch_info(info: StoredBatchInfo) -> BatchMetadata:
    """Omits batch hash from stored batch info."""
    return BatchMetadata(
        batch_number=info.batch_number,
        index_repeated_storage_changes=info.index_repeated_storage_changes,
        number_of_layer1_txs=info.number_of_layer1_txs,
        priority_operations_hash=info.priority_operations_hash,
        l2_logs_tree_root=info.l2_logs_tree_root,
        timestamp=info.timestamp,
        commitment=info.commitment,
    )


def hash_stored_batch_info(info: StoredBatchInfo) -> str:
    """keccak256(abi.encode(StoredBatchInfo)), matching ``storedBatchHash`` on L1."""
    return to_hex(Web3.keccak(encode(STORED_BATCH_INFO_TYPES, list(info.abi_tuple()))))
