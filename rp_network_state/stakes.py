"""Effective RPL stake calculation.

A node's effective stake is its RPL stake clamped to the collateral bounds
implied by its eligible minipools, optionally scaled by how much of the current
rewards interval the node has been registered for. All arithmetic is integer
arithmetic with truncating division, multiplying fully before dividing once,
so every operator computing stakes for the same snapshot gets identical values.
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from rp_network_state.constants import THREAD_LIMIT
from rp_network_state.errors import ConfigurationError, StakeCalculationError
from rp_network_state.logs import LineLogger, ensure_logger
from rp_network_state.models import EffectiveStakes, MinipoolDetails, MinipoolStatus, NodeDetails

if TYPE_CHECKING:
    from rp_network_state.state import NetworkState  # pragma: no cover


def is_minipool_eligible(state: "NetworkState", mp: MinipoolDetails, logger: LineLogger) -> bool:
    """Whether a minipool's validator is live for the whole snapshot epoch."""
    # It must exist and be staking
    if not mp.exists or mp.status != MinipoolStatus.STAKING:
        return False

    # Doesn't exist on Beacon yet
    validator = state.validator_details.get(mp.pubkey)
    if validator is None:
        logger.log_line(
            "NOTE: minipool %s (pubkey %s) didn't exist, ignoring it in effective RPL calculation",
            mp.minipool_address,
            mp.pubkey,
        )
        return False

    interval_end_epoch = state.epoch

    # Starts too late
    if validator.activation_epoch > interval_end_epoch:
        logger.log_line(
            "NOTE: minipool %s starts on epoch %d which is after interval epoch %d so it's not eligible for RPL rewards",
            mp.minipool_address,
            validator.activation_epoch,
            interval_end_epoch,
        )
        return False

    # Already exited
    if validator.exit_epoch <= interval_end_epoch:
        logger.log_line(
            "NOTE: minipool %s exited on epoch %d which is not after interval epoch %d so it's not eligible for RPL rewards",
            mp.minipool_address,
            validator.exit_epoch,
            interval_end_epoch,
        )
        return False

    return True


def collateral_bounds(
    eligible_borrowed: int,
    eligible_bonded: int,
    *,
    rpl_price: int,
    min_collateral_fraction: int,
    max_collateral_fraction: int,
) -> tuple[int, int]:
    """
    (min, max) RPL collateral for the given eligible borrowed/bonded ETH.

    The fractions and the price share the same 1e18 scale, so multiplying by one
    and dividing by the other needs no separate normalization.
    """
    if rpl_price <= 0:
        raise ConfigurationError(f"RPL price must be > 0, got {rpl_price}")
    min_collateral = eligible_borrowed * min_collateral_fraction // rpl_price
    max_collateral = eligible_bonded * max_collateral_fraction // rpl_price
    return min_collateral, max_collateral


def clamp_stake(rpl_stake: int, min_collateral: int, max_collateral: int) -> int:
    """Zero below the minimum, capped at the maximum, unchanged in between."""
    if rpl_stake < min_collateral:
        return 0
    if rpl_stake > max_collateral:
        return max_collateral
    return rpl_stake


def scale_by_participation_time(stake: int, *, registration_time: int, slot_time: int, interval_duration: int) -> int:
    """Scale `stake` by the fraction of the interval the node was registered for."""
    eligible_seconds = slot_time - registration_time
    if eligible_seconds < 0:
        raise ValueError(f"registered at {registration_time}, after the snapshot time {slot_time}")
    if eligible_seconds < interval_duration:
        return stake * eligible_seconds // interval_duration
    return stake


def calculate_node_effective_stake(
    state: "NetworkState",
    node: NodeDetails,
    scale_by_participation: bool,
    logger: LineLogger | None = None,
) -> int:
    """Effective stake of a single node. Depends only on the snapshot and the node."""
    log = ensure_logger(logger)
    details = state.network_details

    eligible_borrowed = 0
    eligible_bonded = 0
    for mp in state.minipools_of(node.node_address):
        if is_minipool_eligible(state, mp, log):
            eligible_borrowed += mp.user_deposit_balance
            eligible_bonded += mp.node_deposit_balance

    min_collateral, max_collateral = collateral_bounds(
        eligible_borrowed,
        eligible_bonded,
        rpl_price=details.rpl_price,
        min_collateral_fraction=details.min_collateral_fraction,
        max_collateral_fraction=details.max_collateral_fraction,
    )
    stake = clamp_stake(node.rpl_stake, min_collateral, max_collateral)

    if scale_by_participation:
        try:
            stake = scale_by_participation_time(
                stake,
                registration_time=node.registration_time,
                slot_time=state.slot_time,
                interval_duration=details.interval_duration,
            )
        except ValueError as ex:
            raise StakeCalculationError(node.node_address, str(ex)) from ex

    return stake


def _check_configuration(state: "NetworkState", scale_by_participation: bool, thread_limit: int) -> None:
    if thread_limit < 1:
        raise ConfigurationError(f"thread_limit must be >= 1, got {thread_limit}")
    if state.network_details.rpl_price <= 0:
        raise ConfigurationError(
            f"RPL price must be > 0, got {state.network_details.rpl_price} (EL block {state.el_block_number})"
        )
    if scale_by_participation and state.network_details.interval_duration <= 0:
        raise ConfigurationError(
            f"interval duration must be > 0 to scale by participation, got {state.network_details.interval_duration}"
        )


def calculate_effective_stakes(
    state: "NetworkState",
    scale_by_participation: bool,
    *,
    thread_limit: int = THREAD_LIMIT,
    logger: LineLogger | None = None,
) -> EffectiveStakes:
    """
    Calculate the effective stake of every node in `state` and their total.

    Nodes are evaluated on a fixed-size thread pool. Each task writes only to its
    own slot of a pre-sized result list, so the result does not depend on
    scheduling or on `thread_limit`. If any node fails, the first failure (by
    node order) is raised and no partial result is returned.
    """
    _check_configuration(state, scale_by_participation, thread_limit)
    log = ensure_logger(logger)

    nodes = state.node_details
    results: list[int | None] = [None] * len(nodes)

    def work(i: int) -> None:
        node = nodes[i]
        try:
            results[i] = calculate_node_effective_stake(state, node, scale_by_participation, log)
        except StakeCalculationError:
            raise
        except Exception as ex:
            raise StakeCalculationError(node.node_address, str(ex)) from ex

    with ThreadPoolExecutor(max_workers=thread_limit, thread_name_prefix="effective-stake") as pool:
        futures = [pool.submit(work, i) for i in range(len(nodes))]
        _, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        # Stop scheduling new work; tasks already running are allowed to finish.
        for f in not_done:
            f.cancel()

    for f in futures:
        error = None if f.cancelled() else f.exception()
        if error is not None:
            raise error

    # Tally everything up and make the node stake map
    by_node: dict[str, int] = {}
    total = 0
    for node, stake in zip(nodes, results, strict=True):
        assert stake is not None
        by_node[node.node_address] = stake
        total += stake

    return EffectiveStakes(by_node=by_node, total=total)
