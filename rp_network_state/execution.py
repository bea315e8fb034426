"""Execution-layer reads of Rocket Pool state through web3."""

import sys
import threading
from typing import TYPE_CHECKING, Any

from tqdm import tqdm

from rp_network_state.cache import cache_key, get_cached, set_cached
from rp_network_state.constants import (
    CLAIM_DAO,
    CLAIM_NODE,
    CLAIM_TRUSTED_NODE,
    ROCKET_DAO_PROTOCOL_SETTINGS_NODE,
    ROCKET_DAO_PROTOCOL_SETTINGS_NODE_ABI,
    ROCKET_MINIPOOL_ABI,
    ROCKET_MINIPOOL_MANAGER,
    ROCKET_MINIPOOL_MANAGER_ABI,
    ROCKET_NETWORK_PRICES,
    ROCKET_NETWORK_PRICES_ABI,
    ROCKET_NODE_MANAGER,
    ROCKET_NODE_MANAGER_ABI,
    ROCKET_NODE_STAKING,
    ROCKET_NODE_STAKING_ABI,
    ROCKET_REWARDS_POOL,
    ROCKET_REWARDS_POOL_ABI,
    ROCKET_STORAGE_ABI,
    ZERO_ADDRESS,
)
from rp_network_state.formatters import as_int, normalize_pubkey
from rp_network_state.models import MinipoolDetails, MinipoolStatus, NodeDetails

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def contract_address_key(contract_name: str) -> bytes:
    """RocketStorage key under which a network contract's address is stored."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    return Web3.solidity_keccak(["string", "string"], ["contract.address", contract_name])


class Web3ExecutionReader:
    """
    ExecutionReader over Rocket Pool contracts.

    Every contract address is resolved through RocketStorage at the block being
    read, so upgrades between blocks are handled transparently.
    """

    def __init__(
        self,
        w3: "Web3",
        storage_address: str,
        *,
        use_cache: bool = True,
        progress: bool = True,
    ):
        self.w3 = w3
        self.storage = w3.eth.contract(address=w3.to_checksum_address(storage_address), abi=ROCKET_STORAGE_ABI)
        self.use_cache = use_cache
        self.progress = progress
        self._addresses: dict[tuple[str, int], str] = {}
        self._lock = threading.Lock()

    # Contract resolution

    def contract_address(self, name: str, block: int) -> str:
        with self._lock:
            cached = self._addresses.get((name, block))
        if cached is not None:
            return cached
        address = self.storage.functions.getAddress(contract_address_key(name)).call(block_identifier=block)
        if address.lower() == ZERO_ADDRESS:
            raise RuntimeError(f"contract {name} is not registered in RocketStorage at block {block}")
        with self._lock:
            self._addresses[(name, block)] = address
        return address

    def contract(self, name: str, abi: list[dict], block: int) -> Any:
        return self.w3.eth.contract(address=self.contract_address(name, block), abi=abi)

    # Network parameters

    def get_rpl_price(self, block: int) -> int:
        prices = self.contract(ROCKET_NETWORK_PRICES, ROCKET_NETWORK_PRICES_ABI, block)
        return as_int(prices.functions.getRPLPrice().call(block_identifier=block))

    def get_min_collateral_fraction(self, block: int) -> int:
        settings = self.contract(ROCKET_DAO_PROTOCOL_SETTINGS_NODE, ROCKET_DAO_PROTOCOL_SETTINGS_NODE_ABI, block)
        return as_int(settings.functions.getMinimumPerMinipoolStake().call(block_identifier=block))

    def get_max_collateral_fraction(self, block: int) -> int:
        settings = self.contract(ROCKET_DAO_PROTOCOL_SETTINGS_NODE, ROCKET_DAO_PROTOCOL_SETTINGS_NODE_ABI, block)
        return as_int(settings.functions.getMaximumPerMinipoolStake().call(block_identifier=block))

    def get_reward_index(self, block: int) -> int:
        pool = self.contract(ROCKET_REWARDS_POOL, ROCKET_REWARDS_POOL_ABI, block)
        return as_int(pool.functions.getRewardIndex().call(block_identifier=block))

    def get_interval_duration(self, reward_index: int, block: int) -> int:
        # Settings live at `block` are the ones governing interval `reward_index`.
        pool = self.contract(ROCKET_REWARDS_POOL, ROCKET_REWARDS_POOL_ABI, block)
        return as_int(pool.functions.getClaimIntervalTime().call(block_identifier=block))

    def get_reward_share_percentages(self, reward_index: int, block: int) -> tuple[int, int, int]:
        pool = self.contract(ROCKET_REWARDS_POOL, ROCKET_REWARDS_POOL_ABI, block)
        node, trusted, pdao = (
            as_int(pool.functions.getClaimingContractPerc(name).call(block_identifier=block))
            for name in (CLAIM_NODE, CLAIM_TRUSTED_NODE, CLAIM_DAO)
        )
        return node, trusted, pdao

    def get_pending_rpl_rewards(self, reward_index: int, block: int) -> int:
        pool = self.contract(ROCKET_REWARDS_POOL, ROCKET_REWARDS_POOL_ABI, block)
        return as_int(pool.functions.getPendingRPLRewards().call(block_identifier=block))

    # Entity lists

    def _iter_addresses(self, contract: Any, count_fn: str, at_fn: str, block: int, desc: str) -> list[str]:
        count = as_int(getattr(contract.functions, count_fn)().call(block_identifier=block))
        return [
            getattr(contract.functions, at_fn)(i).call(block_identifier=block)
            for i in tqdm(range(count), desc=desc, unit="addr", file=sys.stderr, disable=not self.progress, leave=False)
        ]

    def get_node_details(self, block: int) -> list[NodeDetails]:
        key = cache_key("nodes", self.storage.address, block)
        if self.use_cache:
            cached = get_cached(key)
            if cached is not None:
                return [NodeDetails(**d) for d in cached]

        manager = self.contract(ROCKET_NODE_MANAGER, ROCKET_NODE_MANAGER_ABI, block)
        staking = self.contract(ROCKET_NODE_STAKING, ROCKET_NODE_STAKING_ABI, block)
        addresses = self._iter_addresses(manager, "getNodeCount", "getNodeAt", block, "🔍 Reading nodes")

        out: list[NodeDetails] = []
        for address in tqdm(addresses, desc="📥 Node details", unit="node", file=sys.stderr, disable=not self.progress):
            out.append(
                NodeDetails(
                    node_address=address,
                    rpl_stake=as_int(staking.functions.getNodeRPLStake(address).call(block_identifier=block)),
                    registration_time=as_int(
                        manager.functions.getNodeRegistrationTime(address).call(block_identifier=block)
                    ),
                )
            )

        if self.use_cache:
            set_cached(key, [d.__dict__ for d in out])
        return out

    def get_minipool_details(self, block: int) -> list[MinipoolDetails]:
        key = cache_key("minipools", self.storage.address, block)
        if self.use_cache:
            cached = get_cached(key)
            if cached is not None:
                return [MinipoolDetails(**{**d, "status": MinipoolStatus(d["status"])}) for d in cached]

        manager = self.contract(ROCKET_MINIPOOL_MANAGER, ROCKET_MINIPOOL_MANAGER_ABI, block)
        addresses = self._iter_addresses(manager, "getMinipoolCount", "getMinipoolAt", block, "🔍 Reading minipools")

        out: list[MinipoolDetails] = []
        for address in tqdm(
            addresses, desc="📥 Minipool details", unit="minipool", file=sys.stderr, disable=not self.progress
        ):
            mp = self.w3.eth.contract(address=address, abi=ROCKET_MINIPOOL_ABI)
            out.append(
                MinipoolDetails(
                    minipool_address=address,
                    node_address=mp.functions.getNodeAddress().call(block_identifier=block),
                    pubkey=normalize_pubkey(manager.functions.getMinipoolPubkey(address).call(block_identifier=block)),
                    exists=bool(manager.functions.getMinipoolExists(address).call(block_identifier=block)),
                    status=MinipoolStatus(as_int(mp.functions.getStatus().call(block_identifier=block))),
                    user_deposit_balance=as_int(mp.functions.getUserDepositBalance().call(block_identifier=block)),
                    node_deposit_balance=as_int(mp.functions.getNodeDepositBalance().call(block_identifier=block)),
                )
            )

        if self.use_cache:
            set_cached(key, [{**d.__dict__, "status": int(d.status)} for d in out])
        return out
