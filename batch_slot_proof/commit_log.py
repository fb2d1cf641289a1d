# Find the BlockCommit event for a batch in the commit receipt and read its commitment.
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound as Web3TransactionNotFound

from .abi import BLOCK_COMMIT_TOPIC
from .errors import CommitLogNotFound, ReceiptNotFound
from .utils import checksum, to_hex

logger = logging.getLogger(__name__)

# topic0 plus the three indexed arguments
BLOCK_COMMIT_TOPIC_COUNT = 4


def block_commit_filter_topics(batch_number: int) -> List[HexBytes]:
    """Topics of ``BlockCommit`` filtered by its first indexed argument."""
    return [HexBytes(BLOCK_COMMIT_TOPIC), HexBytes(batch_number.to_bytes(32, "big"))]


def _matches(log: Mapping[str, Any], address: str, topics: List[HexBytes]) -> bool:
    if Web3.to_checksum_address(log["address"]) != address:
        return False
    log_topics = log["topics"]
    if len(log_topics) < max(len(topics), BLOCK_COMMIT_TOPIC_COUNT):
        return False
    return all(HexBytes(t) == expected for t, expected in zip(log_topics, topics))


def find_commit_log(
    logs: Iterable[Mapping[str, Any]], diamond_address: str, batch_number: int
) -> Optional[Mapping[str, Any]]:
    """First log emitted by the diamond whose topics start with the BlockCommit filter."""
    address = checksum(diamond_address)
    topics = block_commit_filter_topics(batch_number)
    return next((log for log in logs if _matches(log, address, topics)), None)


def decode_block_commit(log: Mapping[str, Any]) -> Tuple[int, str, str]:
    # every BlockCommit argument is indexed, the data section is empty
    _, number, batch_hash, commitment = [HexBytes(t) for t in log["topics"][:4]]
    return int.from_bytes(number, "big"), to_hex(batch_hash), to_hex(commitment)


class CommitmentLogResolver:
    def __init__(self, l1: AsyncWeb3, diamond_address: str):
        self.l1 = l1
        self.diamond_address = checksum(diamond_address)

    async def resolve(self, tx_hash: str, batch_number: int) -> str:
        """Return the commitment emitted for ``batch_number`` by ``tx_hash``."""
        logger.debug("Fetching receipt of commit tx %s for batch %d", tx_hash, batch_number)
        try:
            receipt = await self.l1.eth.get_transaction_receipt(tx_hash)
        except Web3TransactionNotFound:
            receipt = None
        if not receipt:
            raise ReceiptNotFound(tx_hash, batch_number)

        log = find_commit_log(receipt["logs"], self.diamond_address, batch_number)
        if log is None:
            raise CommitLogNotFound(batch_number, tx_hash)
        _, _, commitment = decode_block_commit(log)
        return commitment
