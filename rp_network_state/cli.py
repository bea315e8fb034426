"""CLI and main logic."""

import argparse
import os
import sys

from rp_network_state.beacon import BeaconClient
from rp_network_state.console import print_effective_stakes, print_network_summary
from rp_network_state.constants import DEFAULT_TIMEOUT, ROCKET_STORAGE_MAINNET, THREAD_LIMIT
from rp_network_state.errors import ConfigurationError, NetworkStateError, StakeCalculationError
from rp_network_state.execution import Web3ExecutionReader
from rp_network_state.logs import NullLogger, StderrLogger
from rp_network_state.state import create_network_state


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description="Build a Rocket Pool network state snapshot at a Beacon slot and compute effective RPL stakes."
    )
    p.add_argument(
        "--rpc-url",
        default=None,
        help="Execution-layer RPC URL (archive node). Required if ETH_RPC_URL environment variable is not set.",
    )
    p.add_argument(
        "--beacon-url",
        default=None,
        help="Beacon node API URL. Required if BEACON_API_URL environment variable is not set.",
    )
    p.add_argument(
        "--storage",
        default=ROCKET_STORAGE_MAINNET,
        help="RocketStorage address (resolves all other contract addresses). Default: mainnet.",
    )
    p.add_argument(
        "--slot",
        type=int,
        default=None,
        help="Beacon slot to snapshot. Default: the latest finalized slot.",
    )
    p.add_argument(
        "--no-scale",
        action="store_true",
        help="Do not scale effective stakes by each node's participation in the current interval.",
    )
    p.add_argument(
        "--threads",
        type=int,
        default=THREAD_LIMIT,
        help=f"Number of nodes evaluated concurrently. Default: {THREAD_LIMIT}.",
    )
    p.add_argument(
        "--top",
        type=int,
        default=20,
        help="Number of nodes to list (0 lists all). Default: 20.",
    )
    p.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable caching for this run (fetch all data fresh from network).",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output on stderr.",
    )
    return p.parse_args(argv)


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)

    use_cache = not args.no_cache

    from web3 import Web3

    rpc_url = args.rpc_url or os.getenv("ETH_RPC_URL")
    beacon_url = args.beacon_url or os.getenv("BEACON_API_URL")
    if not rpc_url or not beacon_url:
        print(
            "Error: both an execution RPC URL (--rpc-url / ETH_RPC_URL) and a Beacon API URL "
            "(--beacon-url / BEACON_API_URL) are required.",
            file=sys.stderr,
        )
        return 2

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_TIMEOUT}))
    if not w3.is_connected():
        print(f"Error: failed to connect to RPC at {rpc_url}", file=sys.stderr)
        return 2

    logger = NullLogger() if args.quiet else StderrLogger()
    execution = Web3ExecutionReader(w3, args.storage, use_cache=use_cache, progress=not args.quiet)
    beacon = BeaconClient(beacon_url, timeout_s=DEFAULT_TIMEOUT, use_cache=use_cache)

    try:
        beacon_config = beacon.get_beacon_config()
        slot = args.slot if args.slot is not None else beacon.get_finalized_slot()
    except RuntimeError as ex:
        print(f"Error: failed to query Beacon node at {beacon_url}: {ex}", file=sys.stderr)
        return 2

    try:
        state = create_network_state(execution, beacon, slot, beacon_config, logger=logger)
        stakes = state.calculate_effective_stakes(not args.no_scale, thread_limit=args.threads)
    except ConfigurationError as ex:
        print(f"Error: invalid configuration: {ex}", file=sys.stderr)
        return 2
    except (NetworkStateError, StakeCalculationError) as ex:
        print(f"Error: {ex}", file=sys.stderr)
        return 1

    print_network_summary(state)
    print_effective_stakes(state, stakes, top=args.top or None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
