"""Storage proofs for rollup (L2) state, anchored to batches committed on L1."""

from .config import NETWORKS, ProviderConfig
from .errors import (
    BatchNotCommitted,
    BatchNotFoundInCalldata,
    BatchNotProved,
    CommitCalldataMismatch,
    CommitLogNotFound,
    ConfigurationError,
    InvalidProofRequest,
    L2ProofQueryFailed,
    NotFoundError,
    NotReadyError,
    ReceiptNotFound,
    StorageProofError,
    StoredBatchHashMismatch,
    TransactionNotFound,
    TransportFailure,
    VerifierAddressMissing,
)
from .provider import StorageProofProvider
from .types import (
    BatchMetadata,
    CommitBatchInfo,
    RpcProof,
    StorageProof,
    StorageProofBatch,
    StoredBatchInfo,
    format_stored_batch_info,
    hash_stored_batch_info,
)

__version__ = "0.1.0"
