"""Caller-built configuration for a StorageProofProvider.

Environment variables (read only by ``ProviderConfig.from_env``):
  L1_RPC_URL, L2_RPC_URL, DIAMOND_ADDRESS, VERIFIER_ADDRESS,
  BATCH_QUERY_OFFSET, COMMIT_ABI_VERSION
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .abi import DEFAULT_COMMIT_ABI_VERSION, commit_encoding
from .errors import ConfigurationError
from .utils import checksum

# Estimated gap between the latest L2 batch and the latest batch proved on L1:
# roughly a 30 hour delay at ~12 minutes per batch.
DEFAULT_BATCH_QUERY_OFFSET = 150
DEFAULT_REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class NetworkPreset:
    l1_rpc_url: str
    l2_rpc_url: str
    diamond_address: str
    verifier_address: Optional[str] = None


NETWORKS: Dict[str, NetworkPreset] = {
    "mainnet": NetworkPreset(
        l1_rpc_url="https://eth.llamarpc.com",
        l2_rpc_url="https://mainnet.era.zksync.io",
        diamond_address="0x32400084c286cf3e17e7b677ea9583e60a000324",
    ),
    "sepolia": NetworkPreset(
        l1_rpc_url="https://ethereum-sepolia.publicnode.com",
        l2_rpc_url="https://sepolia.era.zksync.dev",
        diamond_address="0x9a6de0f62aa270a8bcb1e2610078650d539b1ef9",
        verifier_address="0x5490d0fe20e9f93a847c1907f7fd2adf217bf534",
    ),
}


@dataclass(frozen=True)
class ProviderConfig:
    l1_rpc_url: str
    l2_rpc_url: str
    diamond_address: str
    verifier_address: Optional[str] = None
    batch_query_offset: int = DEFAULT_BATCH_QUERY_OFFSET
    commit_abi_version: str = DEFAULT_COMMIT_ABI_VERSION
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    check_batch_hash: bool = False

    def __post_init__(self):
        try:
            object.__setattr__(self, "diamond_address", checksum(self.diamond_address))
            if self.verifier_address:
                object.__setattr__(self, "verifier_address", checksum(self.verifier_address))
            else:
                object.__setattr__(self, "verifier_address", None)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if self.batch_query_offset < 0:
            raise ConfigurationError(f"batch_query_offset must be >= 0, got {self.batch_query_offset}")
        commit_encoding(self.commit_abi_version)

    @classmethod
    def for_network(cls, name: str, **overrides) -> "ProviderConfig":
        try:
            preset = NETWORKS[name]
        except KeyError:
            raise ConfigurationError(f"Unknown network {name!r}; expected one of {sorted(NETWORKS)}") from None
        # explicit None overrides mean "use the preset"
        values = {k: v for k, v in overrides.items() if v is not None}
        return cls(
            l1_rpc_url=values.pop("l1_rpc_url", preset.l1_rpc_url),
            l2_rpc_url=values.pop("l2_rpc_url", preset.l2_rpc_url),
            diamond_address=values.pop("diamond_address", preset.diamond_address),
            verifier_address=values.pop("verifier_address", preset.verifier_address),
            **values,
        )

    @classmethod
    def from_env(cls, network: Optional[str] = None) -> "ProviderConfig":
        overrides = {
            "l1_rpc_url": os.getenv("L1_RPC_URL") or None,
            "l2_rpc_url": os.getenv("L2_RPC_URL") or None,
            "diamond_address": os.getenv("DIAMOND_ADDRESS") or None,
            "verifier_address": os.getenv("VERIFIER_ADDRESS") or None,
            "commit_abi_version": os.getenv("COMMIT_ABI_VERSION") or None,
        }
        offset = os.getenv("BATCH_QUERY_OFFSET")
        if offset:
            try:
                overrides["batch_query_offset"] = int(offset)
            except ValueError:
                raise ConfigurationError(f"BATCH_QUERY_OFFSET must be an integer, got {offset!r}") from None
        if network:
            return cls.for_network(network, **overrides)

        missing = [k.upper() for k in ("l1_rpc_url", "l2_rpc_url", "diamond_address") if not overrides[k]]
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")
        return cls(**{k: v for k, v in overrides.items() if v is not None})

    def with_overrides(self, **changes) -> "ProviderConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
