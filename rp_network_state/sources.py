"""Interfaces of the data sources a snapshot is built from.

Every execution-layer read is pinned to an explicit block number; every
consensus-layer read is pinned to an explicit slot. Implementations are free
to cache, retry or time out, but must return exact integers.
"""

from collections.abc import Iterable
from typing import Protocol

from rp_network_state.models import BeaconConfig, MinipoolDetails, NodeDetails, ValidatorStatus


class ExecutionReader(Protocol):
    """Historical Rocket Pool state on the execution layer."""

    def get_node_details(self, block: int) -> list[NodeDetails]: ...

    def get_minipool_details(self, block: int) -> list[MinipoolDetails]: ...

    def get_rpl_price(self, block: int) -> int: ...

    def get_min_collateral_fraction(self, block: int) -> int: ...

    def get_max_collateral_fraction(self, block: int) -> int: ...

    def get_reward_index(self, block: int) -> int: ...

    def get_interval_duration(self, reward_index: int, block: int) -> int:
        """Rewards interval length in seconds."""
        ...

    def get_reward_share_percentages(self, reward_index: int, block: int) -> tuple[int, int, int]:
        """(node operator, trusted node operator, protocol DAO) shares of the interval's rewards."""
        ...

    def get_pending_rpl_rewards(self, reward_index: int, block: int) -> int: ...


class BeaconReader(Protocol):
    """Historical validator state on the consensus layer."""

    def get_execution_block_number(self, slot: int) -> int | None:
        """Execution block included at `slot`, or None if the slot is empty."""
        ...

    def get_validator_statuses(self, pubkeys: Iterable[str], slot: int) -> dict[str, ValidatorStatus]:
        """Statuses keyed by pubkey. Pubkeys unknown to the chain are absent from the result."""
        ...

    def get_beacon_config(self) -> BeaconConfig: ...

    def get_finalized_slot(self) -> int: ...
