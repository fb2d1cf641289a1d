# Decode the L1 batch-commit transaction and pull out one batch's CommitBatchInfo.
import logging
from typing import Iterable, List, Optional

from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound as Web3TransactionNotFound

from .abi import DEFAULT_COMMIT_ABI_VERSION, commit_encoding
from .errors import BatchNotFoundInCalldata, CommitCalldataMismatch, TransactionNotFound
from .types import CommitBatchInfo

logger = logging.getLogger(__name__)


def decode_commit_batches(calldata: bytes, abi_version: str = DEFAULT_COMMIT_ABI_VERSION) -> List[CommitBatchInfo]:
    return [CommitBatchInfo.from_abi_tuple(b) for b in commit_encoding(abi_version).decode_batches(calldata)]


def find_commit_batch(
    batches: Iterable[CommitBatchInfo], batch_number: int, tx_hash: Optional[str] = None
) -> CommitBatchInfo:
    """First record whose batch number equals ``batch_number``.

    A commit call may carry several consecutive batches starting anywhere, so the
    match is on the value, never on the position.
    """
    for batch in batches:
        if batch.batch_number == batch_number:
            return batch
    raise BatchNotFoundInCalldata(batch_number, tx_hash)


class CommitTransactionDecoder:
    def __init__(self, l1: AsyncWeb3, abi_version: str = DEFAULT_COMMIT_ABI_VERSION):
        commit_encoding(abi_version)  # fail fast on unknown versions
        self.l1 = l1
        self.abi_version = abi_version

    async def decode(self, tx_hash: str, batch_number: int) -> CommitBatchInfo:
        logger.debug("Fetching commit tx %s for batch %d", tx_hash, batch_number)
        try:
            tx = await self.l1.eth.get_transaction(tx_hash)
        except Web3TransactionNotFound:
            tx = None
        if not tx:
            raise TransactionNotFound(tx_hash, batch_number)

        try:
            batches = decode_commit_batches(tx["input"], self.abi_version)
        except CommitCalldataMismatch as exc:
            raise CommitCalldataMismatch(f"{exc} in tx {tx_hash} (batch {batch_number})", batch_number, tx_hash) from exc
        logger.debug("Commit tx %s carries batches %s", tx_hash, [b.batch_number for b in batches])
        return find_commit_batch(batches, batch_number, tx_hash)
