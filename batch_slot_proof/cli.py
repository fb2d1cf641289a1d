# Fetch (and optionally verify on L1) storage proofs for an L2 account at a committed batch,
# then write them as JSON.
import argparse
import asyncio
import json
import logging
import sys
import time

from .config import NETWORKS, ProviderConfig
from .errors import ConfigurationError, StorageProofError
from .provider import StorageProofProvider
from .utils import checksum, parse_storage_key

def build_config(args) -> ProviderConfig:
    return ProviderConfig.for_network(
        args.network,
        l1_rpc_url=args.l1_rpc,
        l2_rpc_url=args.l2_rpc,
        diamond_address=args.diamond,
        verifier_address=args.verifier,
        batch_query_offset=args.offset,
        commit_abi_version=args.abi_version,
        check_batch_hash=args.check_batch_hash or None,
    )

async def run(args, config: ProviderConfig) -> dict:
    provider = StorageProofProvider.from_config(config)
    batch = await provider.get_proofs(args.address, args.keys, args.batch)
    print(f"📦 Batch #{batch.metadata.batch_number} commitment={batch.metadata.commitment}", file=sys.stderr)

    proofs = []
    for proof in batch.storage_proofs():
        entry = proof.to_dict()
        if args.verify:
            entry["verified"] = await provider.verify_on_chain(proof)
            print(f"{'✅' if entry['verified'] else '❌'} {proof.key} value={proof.value}", file=sys.stderr)
        proofs.append(entry)
    return {"batchNumber": batch.metadata.batch_number, "proofs": proofs}

def main(argv=None):
    ap = argparse.ArgumentParser(description="Fetch L2 storage proofs anchored to an L1-committed batch.")
    ap.add_argument("address", help="L2 account address (0x...)")
    ap.add_argument("keys", nargs="+", help="Storage keys (decimal or 0xHEX)")
    ap.add_argument("--batch", type=int, help="L1 batch number (default: latest - offset)")
    ap.add_argument("--network", default="mainnet", choices=sorted(NETWORKS), help="Network preset")
    ap.add_argument("--l1-rpc", help="L1 RPC URL (overrides preset)")
    ap.add_argument("--l2-rpc", help="L2 RPC URL (overrides preset)")
    ap.add_argument("--diamond", help="Settlement contract address (overrides preset)")
    ap.add_argument("--verifier", help="Storage verifier contract address (overrides preset)")
    ap.add_argument("--offset", type=int, help="Batch query offset when --batch is omitted")
    ap.add_argument("--abi-version", help="Commit calldata ABI version (legacy, shared_bridge, packed)")
    ap.add_argument("--check-batch-hash", action="store_true", help="Compare rebuilt batch hash with storedBatchHash")
    ap.add_argument("--verify", action="store_true", help="Call the verifier contract for each proof")
    ap.add_argument("--out", help="Output JSON path (default: stdout)")
    ap.add_argument("--compact", action="store_true", help="Write compact JSON without indentation")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        args.address = checksum(args.address)
        args.keys = [parse_storage_key(k) for k in args.keys]
        config = build_config(args)
    except (ValueError, ConfigurationError) as e:
        print(f"❌ {e}", file=sys.stderr); sys.exit(2)

    t0 = time.monotonic()
    try:
        result = asyncio.run(run(args, config))
    except StorageProofError as e:
        print(f"❌ {e}", file=sys.stderr); sys.exit(1)

    text = json.dumps(result, indent=None if args.compact else 2,
                      separators=(",", ":") if args.compact else None, sort_keys=True)
    if args.out:
        with open(args.out, "w") as f:
            f.write(text + "\n")
        print(f"📝 Wrote {len(result['proofs'])} proof(s) → {args.out}", file=sys.stderr)
    else:
        print(text)
    print(f"⏱️ Elapsed: {time.monotonic() - t0:.2f}s", file=sys.stderr)

if __name__ == "__main__":
    main()
