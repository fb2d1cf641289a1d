# Storage proofs from the L2 node (zks_getProof).
import logging
from typing import List, Sequence, Tuple

from web3 import AsyncWeb3

from .errors import InvalidProofRequest, L2ProofQueryFailed
from .types import RpcProof
from .utils import checksum, parse_storage_key, rpc_request

logger = logging.getLogger(__name__)


def normalise_request(account: str, storage_keys: Sequence[str]) -> Tuple[str, List[str]]:
    """Checksummed account and 32-byte keys; raises before anything hits the network."""
    try:
        return checksum(account), [parse_storage_key(k) for k in storage_keys]
    except ValueError as e:
        raise InvalidProofRequest(str(e)) from e


class L2ProofFetcher:
    def __init__(self, l2: AsyncWeb3):
        self.l2 = l2

    async def fetch(self, account: str, storage_keys: Sequence[str], batch_number: int) -> List[RpcProof]:
        """One ``zks_getProof`` call for all keys; paths are passed through untouched.

        Account proofs don't exist on the rollup, only storage proofs, and the
        per-key entries don't echo the account back, so it is attached here.
        """
        account, keys = normalise_request(account, storage_keys)
        logger.debug("zks_getProof %s keys=%d batch=%d", account, len(keys), batch_number)
        response = await rpc_request(self.l2, "zks_getProof", [account, keys, batch_number],
                                     error=L2ProofQueryFailed, batch_number=batch_number)
        try:
            entries = response["storageProof"]
            return [
                RpcProof(
                    account=account,
                    key=entry["key"],
                    path=tuple(entry["proof"]),
                    value=entry["value"],
                    index=int(entry["index"]),
                )
                for entry in entries
            ]
        except (KeyError, TypeError) as e:
            raise L2ProofQueryFailed(f"Malformed zks_getProof response for batch {batch_number}: {e}", batch_number) from e
