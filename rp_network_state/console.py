"""Console output formatting."""

from datetime import datetime, timezone

from rp_network_state.formatters import format_duration, format_eth, format_fraction, format_rpl, short_address
from rp_network_state.models import EffectiveStakes
from rp_network_state.state import NetworkState


def print_network_summary(state: NetworkState) -> None:
    """Print the snapshot's pinned height and protocol parameters."""
    details = state.network_details
    ts = datetime.fromtimestamp(state.slot_time, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    print("=" * 70)
    print("📊 ROCKET POOL NETWORK STATE")
    print(f"   🕐 {ts}  •  slot={state.beacon_slot_number}  •  epoch={state.epoch}  •  block={state.el_block_number}")
    print("=" * 70)
    print(f"   Reward interval:     #{details.reward_index} ({format_duration(details.interval_duration)})")
    print(f"   RPL price:           {format_eth(details.rpl_price, decimals=6)}")
    print(f"   Collateral bounds:   {format_fraction(details.min_collateral_fraction)} – "
          f"{format_fraction(details.max_collateral_fraction)}")
    print("   Reward shares:")
    print(f"      • Node operators:   {format_fraction(details.node_operator_rewards_percent)}")
    print(f"      • Oracle DAO:       {format_fraction(details.trusted_node_operator_rewards_percent)}")
    print(f"      • Protocol DAO:     {format_fraction(details.protocol_dao_rewards_percent)}")
    print(f"   Pending RPL rewards: {format_rpl(details.pending_rpl_rewards)}")
    print(f"   Nodes: {len(state.node_details)}  •  Minipools: {len(state.minipool_details)}  •  "
          f"Validators on Beacon: {len(state.validator_details)}")
    print("")


def print_effective_stakes(state: NetworkState, stakes: EffectiveStakes, *, top: int | None = None) -> None:
    """Print per-node effective stakes, largest first."""
    ranked = sorted(stakes.by_node.items(), key=lambda kv: (-kv[1], kv[0].lower()))
    eligible = sum(1 for _, v in ranked if v > 0)
    print("🏦 EFFECTIVE RPL STAKE")
    print(f"   Total: {format_rpl(stakes.total)}  •  Eligible nodes: {eligible}/{len(ranked)}")
    print("   " + "─" * 60)
    shown = ranked if top is None else ranked[:top]
    for address, stake in shown:
        node = state.node_details_by_address[address]
        share = f"{stake * 100 / stakes.total:.3f}%" if stakes.total > 0 else "-"
        print(f"   {short_address(address)}  {format_rpl(stake):>22}  (raw {format_rpl(node.rpl_stake)})  {share}")
    if top is not None and len(ranked) > top:
        print(f"   ... {len(ranked) - top} more")
    print("")
