"""Data models for network state snapshots."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum

from rp_network_state.constants import EMPTY_PUBKEY, FAR_FUTURE_EPOCH


@dataclass(frozen=True)
class BeaconConfig:
    """Consensus-layer timing parameters."""

    genesis_time: int
    seconds_per_slot: int
    slots_per_epoch: int

    def slot_time(self, slot: int) -> int:
        """Unix timestamp at the start of `slot`."""
        return self.genesis_time + slot * self.seconds_per_slot

    def epoch_of(self, slot: int) -> int:
        """Epoch containing `slot`."""
        return slot // self.slots_per_epoch


@dataclass(frozen=True)
class NetworkDetails:
    """Protocol parameters read at the pinned execution block."""

    # RPL/ETH ratio, scaled by 1e18.
    rpl_price: int
    # Per-minipool collateral bounds as fractions of borrowed/bonded ETH, scaled by 1e18.
    min_collateral_fraction: int
    max_collateral_fraction: int
    reward_index: int
    # Length of a rewards interval, in whole seconds.
    interval_duration: int
    node_operator_rewards_percent: int
    trusted_node_operator_rewards_percent: int
    protocol_dao_rewards_percent: int
    pending_rpl_rewards: int


@dataclass(frozen=True)
class NodeDetails:
    """A registered node operator."""

    node_address: str
    rpl_stake: int
    registration_time: int


class MinipoolStatus(IntEnum):
    """Minipool lifecycle status, as encoded on chain."""

    INITIALIZED = 0
    PRELAUNCH = 1
    STAKING = 2
    WITHDRAWABLE = 3
    DISSOLVED = 4


@dataclass(frozen=True)
class MinipoolDetails:
    """A minipool (delegated validator slot) owned by a node."""

    minipool_address: str
    node_address: str
    # 0x-prefixed lowercase hex, or EMPTY_PUBKEY if not assigned yet.
    pubkey: str
    exists: bool
    status: MinipoolStatus
    # ETH borrowed from the deposit pool, in wei.
    user_deposit_balance: int
    # ETH bonded by the node operator, in wei.
    node_deposit_balance: int

    @property
    def has_pubkey(self) -> bool:
        return self.pubkey != EMPTY_PUBKEY


@dataclass(frozen=True)
class ValidatorStatus:
    """Validator state on the Beacon chain as of a given slot."""

    pubkey: str
    index: int
    status: str
    balance: int
    effective_balance: int
    slashed: bool
    activation_epoch: int
    exit_epoch: int = FAR_FUTURE_EPOCH
    withdrawable_epoch: int = FAR_FUTURE_EPOCH


@dataclass(frozen=True)
class EffectiveStakes:
    """Effective RPL stake of every node, plus the network-wide total."""

    by_node: Mapping[str, int]
    total: int
