"""Point-in-time snapshots of Rocket Pool network state.

A snapshot pins one Beacon slot and the execution block included in it, and
reads everything else at exactly that block/slot pair so that independent
operators building a snapshot for the same slot end up with identical data.
"""

import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, TypeVar

from rp_network_state.constants import THREAD_LIMIT
from rp_network_state.errors import NetworkStateError, SlotNotFoundError
from rp_network_state.indexing import NetworkIndexes, build_indexes
from rp_network_state.logs import LineLogger, NullLogger, ensure_logger
from rp_network_state.models import (
    BeaconConfig,
    EffectiveStakes,
    MinipoolDetails,
    NetworkDetails,
    NodeDetails,
    ValidatorStatus,
)
from rp_network_state.sources import BeaconReader, ExecutionReader
from rp_network_state.stakes import calculate_effective_stakes

T = TypeVar("T")


@dataclass(frozen=True)
class NetworkState:
    """Immutable snapshot of the network at one execution block / Beacon slot."""

    el_block_number: int
    beacon_slot_number: int
    beacon_config: BeaconConfig
    network_details: NetworkDetails
    node_details: tuple[NodeDetails, ...]
    minipool_details: tuple[MinipoolDetails, ...]
    validator_details: Mapping[str, ValidatorStatus]
    indexes: NetworkIndexes
    logger: LineLogger = field(default_factory=NullLogger, repr=False, compare=False)

    @property
    def node_details_by_address(self) -> Mapping[str, NodeDetails]:
        return self.indexes.node_by_address

    @property
    def minipool_details_by_address(self) -> Mapping[str, MinipoolDetails]:
        return self.indexes.minipool_by_address

    @property
    def minipool_details_by_node(self) -> Mapping[str, tuple[MinipoolDetails, ...]]:
        return self.indexes.minipools_by_node

    @property
    def slot_time(self) -> int:
        """Unix timestamp of the snapshot slot."""
        return self.beacon_config.slot_time(self.beacon_slot_number)

    @property
    def epoch(self) -> int:
        """Epoch containing the snapshot slot."""
        return self.beacon_config.epoch_of(self.beacon_slot_number)

    def minipools_of(self, node_address: str) -> tuple[MinipoolDetails, ...]:
        return self.indexes.minipools_by_node.get(node_address, ())

    def calculate_effective_stakes(
        self, scale_by_participation: bool, *, thread_limit: int = THREAD_LIMIT
    ) -> EffectiveStakes:
        """Calculate the effective RPL stake of every node in this snapshot."""
        return calculate_effective_stakes(
            self, scale_by_participation, thread_limit=thread_limit, logger=self.logger
        )


def _read(what: str, slot: int, block: int, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except Exception as ex:
        raise NetworkStateError(f"error getting {what} at EL block {block} (slot {slot}): {ex}") from ex


def read_network_details(execution: ExecutionReader, *, slot: int, block: int) -> NetworkDetails:
    """Read the protocol parameters at `block`. Any failed read aborts."""
    rpl_price = _read("RPL price ratio", slot, block, lambda: execution.get_rpl_price(block))
    min_fraction = _read(
        "minimum per minipool stake", slot, block, lambda: execution.get_min_collateral_fraction(block)
    )
    max_fraction = _read(
        "maximum per minipool stake", slot, block, lambda: execution.get_max_collateral_fraction(block)
    )
    reward_index = _read("reward index", slot, block, lambda: execution.get_reward_index(block))
    interval_duration = _read(
        "interval duration", slot, block, lambda: execution.get_interval_duration(reward_index, block)
    )
    node_percent, trusted_percent, pdao_percent = _read(
        "rewards percentages", slot, block, lambda: execution.get_reward_share_percentages(reward_index, block)
    )
    pending_rewards = _read(
        "pending RPL rewards", slot, block, lambda: execution.get_pending_rpl_rewards(reward_index, block)
    )
    return NetworkDetails(
        rpl_price=rpl_price,
        min_collateral_fraction=min_fraction,
        max_collateral_fraction=max_fraction,
        reward_index=reward_index,
        interval_duration=interval_duration,
        node_operator_rewards_percent=node_percent,
        trusted_node_operator_rewards_percent=trusted_percent,
        protocol_dao_rewards_percent=pdao_percent,
        pending_rpl_rewards=pending_rewards,
    )


def create_network_state(
    execution: ExecutionReader,
    beacon: BeaconReader,
    slot: int,
    beacon_config: BeaconConfig,
    *,
    logger: LineLogger | None = None,
) -> NetworkState:
    """
    Build a snapshot of the network as of Beacon slot `slot`.

    All execution-layer reads are pinned to the block included in that slot.
    Either a fully populated NetworkState is returned or an exception is raised.
    """
    log = ensure_logger(logger)

    try:
        block = beacon.get_execution_block_number(slot)
    except Exception as ex:
        raise NetworkStateError(f"error getting Beacon block for slot {slot}: {ex}") from ex
    if block is None:
        raise SlotNotFoundError(slot)

    details = read_network_details(execution, slot=slot, block=block)

    log.log_line("Getting network state for EL block %d, Beacon slot %d", block, slot)
    start = time.monotonic()

    # Nodes and minipools are independent reads; fan out, then join before indexing.
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="network-state") as pool:
        nodes_future = pool.submit(execution.get_node_details, block)
        minipools_future = pool.submit(execution.get_minipool_details, block)
        nodes = tuple(_read("node details", slot, block, nodes_future.result))
        log.log_line("1/4 - Retrieved node details (%.2fs so far)", time.monotonic() - start)
        minipools = tuple(_read("minipool details", slot, block, minipools_future.result))
        log.log_line("2/4 - Retrieved minipool details (%.2fs so far)", time.monotonic() - start)

    indexes = build_indexes(nodes, minipools)
    log.log_line("3/4 - Created lookups (%.2fs so far)", time.monotonic() - start)

    statuses = _read(
        "validator statuses", slot, block, lambda: beacon.get_validator_statuses(indexes.pubkeys, slot)
    )
    log.log_line("4/4 - Retrieved validator details (total time: %.2fs)", time.monotonic() - start)

    return NetworkState(
        el_block_number=block,
        beacon_slot_number=slot,
        beacon_config=beacon_config,
        network_details=details,
        node_details=nodes,
        minipool_details=minipools,
        validator_details=MappingProxyType(dict(statuses)),
        indexes=indexes,
        logger=log,
    )
