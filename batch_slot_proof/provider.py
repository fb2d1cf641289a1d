"""Storage proof provider: batch metadata from L1 + Merkle proof from L2."""

import asyncio
import logging
from typing import Optional, Sequence

from web3 import AsyncWeb3

from .abi import DEFAULT_COMMIT_ABI_VERSION, STORAGE_VERIFIER_ABI
from .config import DEFAULT_BATCH_QUERY_OFFSET, ProviderConfig
from .errors import BatchNotCommitted, TransportFailure, VerifierAddressMissing
from .l2_proof import L2ProofFetcher, normalise_request
from .metadata import BatchMetadataAssembler
from .types import BatchMetadata, StorageProof, StorageProofBatch, StoredBatchInfo
from .utils import checksum, connect, rpc_request

logger = logging.getLogger(__name__)


class StorageProofProvider:
    """Builds storage proofs that a verifier holding only L1 state can check.

    Parameters
    ----------
    l1_provider, l2_provider: AsyncWeb3
        Transports for the settlement chain and the rollup node. Both are shared
        by concurrent requests and hold no per-request state.
    diamond_address: str
        Settlement (diamond) contract on L1.
    verifier_address: str, optional
        Storage verifier contract on L1; only ``verify_on_chain`` needs it.
    batch_query_offset: int
        Batches subtracted from the latest L2 batch when no batch is requested.
    """

    def __init__(
        self,
        l1_provider: AsyncWeb3,
        l2_provider: AsyncWeb3,
        diamond_address: str,
        verifier_address: Optional[str] = None,
        batch_query_offset: int = DEFAULT_BATCH_QUERY_OFFSET,
        commit_abi_version: str = DEFAULT_COMMIT_ABI_VERSION,
        check_batch_hash: bool = False,
    ):
        self.diamond_address = checksum(diamond_address)
        self.verifier_address = checksum(verifier_address) if verifier_address else None
        self.batch_query_offset = batch_query_offset
        self.commit_abi_version = commit_abi_version
        self.check_batch_hash = check_batch_hash
        self.l1_provider = l1_provider
        self.l2_provider = l2_provider
        self._bind()

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "StorageProofProvider":
        return cls(
            connect(config.l1_rpc_url, config.request_timeout),
            connect(config.l2_rpc_url, config.request_timeout),
            config.diamond_address,
            verifier_address=config.verifier_address,
            batch_query_offset=config.batch_query_offset,
            commit_abi_version=config.commit_abi_version,
            check_batch_hash=config.check_batch_hash,
        )

    def _bind(self):
        self.metadata = BatchMetadataAssembler(
            self.l1_provider, self.l2_provider, self.diamond_address,
            abi_version=self.commit_abi_version, check_batch_hash=self.check_batch_hash,
        )
        self.l2_proofs = L2ProofFetcher(self.l2_provider)

    def set_l1_provider(self, provider: AsyncWeb3):
        self.l1_provider = provider
        self._bind()

    def set_l2_provider(self, provider: AsyncWeb3):
        self.l2_provider = provider
        self._bind()

    async def get_latest_batch_number(self) -> int:
        result = await rpc_request(self.l2_provider, "zks_L1BatchNumber", [])
        return result if isinstance(result, int) else int(result, 16)

    async def resolve_batch_number(self, batch_number: Optional[int] = None) -> int:
        if batch_number is not None:
            return batch_number
        latest = await self.get_latest_batch_number()
        resolved = latest - self.batch_query_offset
        if resolved < 0:
            raise BatchNotCommitted(resolved, f"is below genesis (latest {latest}, offset {self.batch_query_offset})")
        logger.info("No batch requested; using #%d (latest %d - offset %d)", resolved, latest, self.batch_query_offset)
        return resolved

    async def get_stored_batch_info(self, batch_number: int) -> StoredBatchInfo:
        return await self.metadata.get_stored_batch_info(batch_number)

    async def get_batch_metadata(self, batch_number: int) -> BatchMetadata:
        return await self.metadata.get_batch_metadata(batch_number)

    async def get_proofs(
        self, address: str, storage_keys: Sequence[str], batch_number: Optional[int] = None
    ) -> StorageProofBatch:
        """Proofs for ``storage_keys`` of ``address``, all against one batch.

        Metadata assembly and the L2 proof query share no data and run
        concurrently; either failing fails the whole call. A malformed address or
        key raises ``InvalidProofRequest`` before any RPC call.
        """
        address, storage_keys = normalise_request(address, storage_keys)
        batch_number = await self.resolve_batch_number(batch_number)
        logger.debug("Getting %d proof(s) for %s at batch #%d", len(storage_keys), address, batch_number)
        metadata, proofs = await asyncio.gather(
            self.metadata.get_batch_metadata(batch_number),
            self.l2_proofs.fetch(address, storage_keys, batch_number),
        )
        return StorageProofBatch(metadata=metadata, proofs=tuple(proofs))

    async def get_proof(self, address: str, storage_key: str, batch_number: Optional[int] = None) -> StorageProof:
        batch = await self.get_proofs(address, [storage_key], batch_number)
        return batch.storage_proofs()[0]

    async def verify_on_chain(self, proof: StorageProof) -> bool:
        """Read-only ``verify`` call on the storage verifier contract."""
        if self.verifier_address is None:
            raise VerifierAddressMissing()
        verifier = self.l1_provider.eth.contract(address=self.verifier_address, abi=STORAGE_VERIFIER_ABI)
        batch_number = proof.metadata.batch_number
        try:
            ok = await verifier.functions.verify(proof.verifier_args()).call()
        except Exception as e:
            raise TransportFailure(f"verify() call failed for batch {batch_number}: {e}", batch_number) from e
        logger.debug("verify(%s, %s) at batch #%d -> %s", proof.account, proof.key, batch_number, ok)
        return bool(ok)
