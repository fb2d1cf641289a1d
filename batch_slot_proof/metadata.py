"""Rebuild a batch's StoredBatchInfo from L1 and L2 state.

The result must hash to the value the settlement contract stored for the batch,
otherwise the verifier rejects every proof built on top of it.
"""

import logging

from web3 import AsyncWeb3

from .abi import DEFAULT_COMMIT_ABI_VERSION, DIAMOND_ABI
from .commit_log import CommitmentLogResolver
from .decoder import CommitTransactionDecoder
from .errors import BatchNotCommitted, BatchNotProved, StoredBatchHashMismatch, TransportFailure
from .types import BatchMetadata, StoredBatchInfo, format_stored_batch_info, hash_stored_batch_info
from .utils import checksum, rpc_request, to_hex

logger = logging.getLogger(__name__)


class BatchMetadataAssembler:
    def __init__(
        self,
        l1: AsyncWeb3,
        l2: AsyncWeb3,
        diamond_address: str,
        abi_version: str = DEFAULT_COMMIT_ABI_VERSION,
        check_batch_hash: bool = False,
    ):
        self.l1 = l1
        self.l2 = l2
        self.diamond_address = checksum(diamond_address)
        self.abi_version = abi_version
        self.check_batch_hash = check_batch_hash
        self.decoder = CommitTransactionDecoder(l1, abi_version)
        self.resolver = CommitmentLogResolver(l1, self.diamond_address)
        self.diamond = l1.eth.contract(address=self.diamond_address, abi=DIAMOND_ABI)

    async def _diamond_call(self, fn: str, batch_number: int) -> str:
        try:
            result = await getattr(self.diamond.functions, fn)(batch_number).call()
        except Exception as e:
            raise TransportFailure(f"{fn}({batch_number}) call failed: {e}", batch_number) from e
        return to_hex(result)

    async def get_l2_logs_root_hash(self, batch_number: int) -> str:
        """Logs root hash stored in the L1 contract."""
        return await self._diamond_call("l2LogsRootHash", batch_number)

    async def get_stored_batch_hash(self, batch_number: int) -> str:
        return await self._diamond_call("storedBatchHash", batch_number)

    async def get_commit_tx_hash(self, batch_number: int) -> str:
        """Commit tx of a batch that has been both committed and proved on L1."""
        details = await rpc_request(self.l2, "zks_getL1BatchDetails", [batch_number], batch_number=batch_number)
        if not details:
            raise BatchNotCommitted(batch_number, "is unknown to the L2 node")
        commit_tx_hash = details.get("commitTxHash")
        if commit_tx_hash is None:
            raise BatchNotCommitted(batch_number)
        if details.get("proveTxHash") is None:
            raise BatchNotProved(batch_number, commit_tx_hash)
        return commit_tx_hash

    async def get_stored_batch_info(self, batch_number: int) -> StoredBatchInfo:
        commit_tx_hash = await self.get_commit_tx_hash(batch_number)
        logger.debug("Batch %d committed in %s", batch_number, commit_tx_hash)

        commit_info = await self.decoder.decode(commit_tx_hash, batch_number)
        commitment = await self.resolver.resolve(commit_tx_hash, batch_number)
        l2_logs_tree_root = await self.get_l2_logs_root_hash(batch_number)

        info = StoredBatchInfo(
            batch_number=commit_info.batch_number,
            batch_hash=commit_info.new_state_root,
            index_repeated_storage_changes=commit_info.index_repeated_storage_changes,
            number_of_layer1_txs=commit_info.number_of_layer1_txs,
            priority_operations_hash=commit_info.priority_operations_hash,
            l2_logs_tree_root=l2_logs_tree_root,
            timestamp=commit_info.timestamp,
            commitment=commitment,
        )
        if self.check_batch_hash:
            await self.check_stored_batch_hash(info)
        return info

    async def get_batch_metadata(self, batch_number: int) -> BatchMetadata:
        return format_stored_batch_info(await self.get_stored_batch_info(batch_number))

    async def check_stored_batch_hash(self, info: StoredBatchInfo) -> str:
        """Compare the rebuilt struct's hash with ``storedBatchHash`` on L1."""
        computed = hash_stored_batch_info(info)
        stored = await self.get_stored_batch_hash(info.batch_number)
        if computed != stored:
            raise StoredBatchHashMismatch(info.batch_number, computed, stored)
        return computed
