"""Rocket Pool network state snapshots and effective stake calculation."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the rp-network-state script."""
    import sys

    from rp_network_state.cli import main

    raise SystemExit(main(sys.argv[1:]))


def _clear_cache_entry_point() -> NoReturn:
    """Entry point for clearing the cache."""
    from rp_network_state.cache import clear_cache

    clear_cache()
    raise SystemExit(0)
