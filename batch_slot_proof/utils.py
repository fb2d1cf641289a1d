# Normalisation helpers and RPC connection shared by the pipeline and the CLI.
from typing import Any, Optional, Union

from aiohttp import ClientTimeout
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from .errors import TransportFailure

def checksum(addr: str) -> str:
    if not Web3.is_address(addr):
        raise ValueError(f"Invalid address: {addr!r}")
    return Web3.to_checksum_address(addr)

def parse_storage_key(key: Union[str, int]) -> str:
    """Return a storage key as a 0x-prefixed 32-byte hex word.

    Accepts ints, decimal strings and 0xHEX strings.
    """
    v = key if isinstance(key, int) else int(str(key).strip(), 0)
    if v < 0 or v >= 2**256:
        raise ValueError(f"Storage key out of range [0, 2^256): {key!r}")
    return to_hex(v.to_bytes(32, "big"))

def to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()

def to_word(value: Union[str, bytes]) -> bytes:
    # bytes32 slots: left-pad short values the way eth_getStorageAt results are
    return bytes(HexBytes(value)).rjust(32, b"\x00")

def connect(url: str, timeout: float = 30) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(url, request_kwargs={"timeout": ClientTimeout(total=timeout)}))

async def rpc_request(w3: AsyncWeb3, method: str, params: list, error=TransportFailure, batch_number: Optional[int] = None) -> Any:
    """Raw JSON-RPC call (rollup ``zks_*`` namespace has no web3 wrapper).

    Failures are re-raised as ``error`` with the original exception chained.
    """
    try:
        return await w3.manager.coro_request(method, params)
    except Exception as e:
        raise error(f"{method} failed for batch {batch_number}: {e}", batch_number) from e
