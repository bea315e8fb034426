from collections.abc import Iterable

import pytest

from rp_network_state.constants import FAR_FUTURE_EPOCH, FRACTION_SCALE, WEI_PER_ETH
from rp_network_state.indexing import build_indexes
from rp_network_state.models import (
    BeaconConfig,
    MinipoolDetails,
    MinipoolStatus,
    NetworkDetails,
    NodeDetails,
    ValidatorStatus,
)
from rp_network_state.state import NetworkState

ETH = WEI_PER_ETH

# 12s slots, 32 slots per epoch; slot 3200 is the first slot of epoch 100.
BEACON_CONFIG = BeaconConfig(genesis_time=1_606_824_023, seconds_per_slot=12, slots_per_epoch=32)
SLOT = 3200
BLOCK = 17_000_000
INTERVAL = 28 * 86400


def make_pubkey(n: int) -> str:
    return "0x" + f"{n:096x}"


def make_details(**overrides) -> NetworkDetails:
    values = {
        "rpl_price": FRACTION_SCALE,  # 1 RPL == 1 ETH
        "min_collateral_fraction": FRACTION_SCALE // 10,  # 10%
        "max_collateral_fraction": FRACTION_SCALE * 3 // 2,  # 150%
        "reward_index": 12,
        "interval_duration": INTERVAL,
        "node_operator_rewards_percent": 70 * FRACTION_SCALE // 100,
        "trusted_node_operator_rewards_percent": 5 * FRACTION_SCALE // 100,
        "protocol_dao_rewards_percent": 25 * FRACTION_SCALE // 100,
        "pending_rpl_rewards": 1000 * ETH,
    }
    values.update(overrides)
    return NetworkDetails(**values)


def make_node(address: str, rpl_stake: int, *, registered_ago: int = 10 * INTERVAL) -> NodeDetails:
    return NodeDetails(
        node_address=address,
        rpl_stake=rpl_stake,
        registration_time=BEACON_CONFIG.slot_time(SLOT) - registered_ago,
    )


def make_minipool(
    address: str,
    node_address: str,
    pubkey: str,
    *,
    user: int = 16 * ETH,
    bond: int = 8 * ETH,
    status: MinipoolStatus = MinipoolStatus.STAKING,
    exists: bool = True,
) -> MinipoolDetails:
    return MinipoolDetails(
        minipool_address=address,
        node_address=node_address,
        pubkey=pubkey,
        exists=exists,
        status=status,
        user_deposit_balance=user,
        node_deposit_balance=bond,
    )


def make_validator(pubkey: str, *, activation: int = 10, exit_epoch: int = FAR_FUTURE_EPOCH) -> ValidatorStatus:
    return ValidatorStatus(
        pubkey=pubkey,
        index=int(pubkey, 16) % 1_000_000,
        status="active_ongoing",
        balance=32 * 10**9,
        effective_balance=32 * 10**9,
        slashed=False,
        activation_epoch=activation,
        exit_epoch=exit_epoch,
    )


def make_state(
    nodes: Iterable[NodeDetails],
    minipools: Iterable[MinipoolDetails],
    validators: Iterable[ValidatorStatus],
    *,
    details: NetworkDetails | None = None,
    slot: int = SLOT,
) -> NetworkState:
    nodes = tuple(nodes)
    minipools = tuple(minipools)
    return NetworkState(
        el_block_number=BLOCK,
        beacon_slot_number=slot,
        beacon_config=BEACON_CONFIG,
        network_details=details or make_details(),
        node_details=nodes,
        minipool_details=minipools,
        validator_details={v.pubkey: v for v in validators},
        indexes=build_indexes(nodes, minipools),
    )


class FakeExecution:
    """In-memory ExecutionReader recording the blocks it was asked about."""

    def __init__(self, nodes, minipools, details: NetworkDetails | None = None, fail: str | None = None):
        self.nodes = list(nodes)
        self.minipools = list(minipools)
        self.details = details or make_details()
        self.fail = fail
        self.blocks: list[int] = []

    def _get(self, name: str, block: int, value):
        self.blocks.append(block)
        if self.fail == name:
            raise RuntimeError(f"{name} unavailable")
        return value

    def get_node_details(self, block):
        return self._get("nodes", block, list(self.nodes))

    def get_minipool_details(self, block):
        return self._get("minipools", block, list(self.minipools))

    def get_rpl_price(self, block):
        return self._get("rpl_price", block, self.details.rpl_price)

    def get_min_collateral_fraction(self, block):
        return self._get("min_fraction", block, self.details.min_collateral_fraction)

    def get_max_collateral_fraction(self, block):
        return self._get("max_fraction", block, self.details.max_collateral_fraction)

    def get_reward_index(self, block):
        return self._get("reward_index", block, self.details.reward_index)

    def get_interval_duration(self, reward_index, block):
        return self._get("interval_duration", block, self.details.interval_duration)

    def get_reward_share_percentages(self, reward_index, block):
        d = self.details
        return self._get(
            "percentages",
            block,
            (
                d.node_operator_rewards_percent,
                d.trusted_node_operator_rewards_percent,
                d.protocol_dao_rewards_percent,
            ),
        )

    def get_pending_rpl_rewards(self, reward_index, block):
        return self._get("pending_rewards", block, self.details.pending_rpl_rewards)


class FakeBeacon:
    """In-memory BeaconReader."""

    def __init__(self, validators, blocks: dict[int, int] | None = None, fail_statuses: bool = False):
        self.validators = {v.pubkey: v for v in validators}
        self.blocks = {SLOT: BLOCK} if blocks is None else blocks
        self.fail_statuses = fail_statuses
        self.requested: list[tuple[tuple[str, ...], int]] = []

    def get_execution_block_number(self, slot):
        return self.blocks.get(slot)

    def get_validator_statuses(self, pubkeys, slot):
        pubkeys = tuple(pubkeys)
        self.requested.append((pubkeys, slot))
        if self.fail_statuses:
            raise RuntimeError("beacon node unavailable")
        return {pk: self.validators[pk] for pk in pubkeys if pk in self.validators}

    def get_beacon_config(self):
        return BEACON_CONFIG

    def get_finalized_slot(self):
        return SLOT


class RecordingLogger:
    def __init__(self):
        self.lines: list[str] = []

    def log_line(self, fmt, *args):
        self.lines.append(fmt % args)


@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return tmp_path / "cache"
