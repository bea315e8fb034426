"""Lookup indexes over the entity lists of a snapshot."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from rp_network_state.models import MinipoolDetails, NodeDetails


@dataclass(frozen=True)
class NetworkIndexes:
    """Read-only lookups mirroring the snapshot's node and minipool lists."""

    node_by_address: Mapping[str, NodeDetails]
    minipool_by_address: Mapping[str, MinipoolDetails]
    # Minipools of each node, in snapshot order. Nodes without minipools are absent.
    minipools_by_node: Mapping[str, tuple[MinipoolDetails, ...]]
    # Distinct assigned pubkeys, in order of first appearance.
    pubkeys: tuple[str, ...]


def build_indexes(nodes: Iterable[NodeDetails], minipools: Iterable[MinipoolDetails]) -> NetworkIndexes:
    """Index nodes and minipools by address and group minipools by node."""
    node_by_address: dict[str, NodeDetails] = {}
    for node in nodes:
        node_by_address[node.node_address] = node

    minipool_by_address: dict[str, MinipoolDetails] = {}
    grouped: dict[str, list[MinipoolDetails]] = {}
    pubkeys: dict[str, None] = {}
    for mp in minipools:
        minipool_by_address[mp.minipool_address] = mp
        grouped.setdefault(mp.node_address, []).append(mp)
        if mp.has_pubkey:
            pubkeys[mp.pubkey] = None

    return NetworkIndexes(
        node_by_address=MappingProxyType(node_by_address),
        minipool_by_address=MappingProxyType(minipool_by_address),
        minipools_by_node=MappingProxyType({k: tuple(v) for k, v in grouped.items()}),
        pubkeys=tuple(pubkeys),
    )
