"""Error taxonomy for proof retrieval.

Every failure aborts the request. Errors carry the batch number and, where one is
involved, the L1 transaction hash so callers can decide whether to wait, pick an
older batch, or fix their configuration.
"""

from typing import Optional


class StorageProofError(Exception):
    """Base class for all proof retrieval failures."""

    def __init__(self, message: str, batch_number: Optional[int] = None, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.batch_number = batch_number
        self.tx_hash = tx_hash


# Remote state does not (yet) contain what we looked for.

class NotFoundError(StorageProofError):
    pass


class TransactionNotFound(NotFoundError):
    def __init__(self, tx_hash: str, batch_number: Optional[int] = None):
        super().__init__(f"Commit transaction {tx_hash} for batch {batch_number} not found", batch_number, tx_hash)


class ReceiptNotFound(NotFoundError):
    def __init__(self, tx_hash: str, batch_number: Optional[int] = None):
        super().__init__(f"Receipt for commit tx {tx_hash} (batch {batch_number}) not found", batch_number, tx_hash)


class CommitLogNotFound(NotFoundError):
    def __init__(self, batch_number: int, tx_hash: Optional[str] = None):
        super().__init__(f"Commit log for batch {batch_number} not found in tx {tx_hash}", batch_number, tx_hash)


class BatchNotFoundInCalldata(NotFoundError):
    def __init__(self, batch_number: int, tx_hash: Optional[str] = None):
        super().__init__(f"Batch {batch_number} not found in calldata of tx {tx_hash}", batch_number, tx_hash)


# Batch exists on L2 but has not progressed far enough on L1.

class NotReadyError(StorageProofError):
    pass


class BatchNotCommitted(NotReadyError):
    def __init__(self, batch_number: int, reason: str = "is not committed"):
        super().__init__(f"Batch {batch_number} {reason}", batch_number)


class BatchNotProved(NotReadyError):
    def __init__(self, batch_number: int, tx_hash: Optional[str] = None):
        super().__init__(f"Batch {batch_number} is not proved (committed in {tx_hash})", batch_number, tx_hash)


class TransportFailure(StorageProofError):
    """An RPC call failed; the original exception is chained as ``__cause__``."""


class L2ProofQueryFailed(TransportFailure):
    pass


class InvalidProofRequest(StorageProofError, ValueError):
    """Malformed account address or storage key in a proof request."""


class ConfigurationError(StorageProofError):
    pass


class VerifierAddressMissing(ConfigurationError):
    def __init__(self):
        super().__init__("Verifier address is not provided")


class CommitCalldataMismatch(ConfigurationError):
    """Commit calldata does not match the configured ABI version."""


class StoredBatchHashMismatch(StorageProofError):
    def __init__(self, batch_number: int, computed: str, stored: str):
        super().__init__(
            f"Stored batch hash mismatch for batch {batch_number}: computed {computed}, contract has {stored}",
            batch_number,
        )
        self.computed = computed
        self.stored = stored
