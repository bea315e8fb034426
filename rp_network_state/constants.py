"""Constants and configuration for network state snapshots."""

# Maximum number of nodes whose effective stake is evaluated concurrently.
THREAD_LIMIT = 4

# Exit epoch reported by the Beacon API for validators that have not exited.
FAR_FUTURE_EPOCH = 2**64 - 1

# A minipool pubkey that has not been assigned yet reads back as 48 zero bytes.
PUBKEY_LENGTH = 48
EMPTY_PUBKEY = ""

ZERO_ADDRESS = "0x" + "00" * 20

# Internal defaults (overridable from the CLI)
DEFAULT_TIMEOUT = 30
DEFAULT_VALIDATOR_BATCH_SIZE = 100

CACHE_DIR_NAME = "rp-network-state"
CACHE_VERSION = "1"

# RocketStorage is the single entry point for resolving all Rocket Pool contract addresses.
# Use --storage to override for testnets.
ROCKET_STORAGE_MAINNET = "0x1d8f8f00cfa6758d7bE78336684788Fb0ee0Fa46"

ROCKET_NETWORK_PRICES = "rocketNetworkPrices"
ROCKET_DAO_PROTOCOL_SETTINGS_NODE = "rocketDAOProtocolSettingsNode"
ROCKET_REWARDS_POOL = "rocketRewardsPool"
ROCKET_NODE_MANAGER = "rocketNodeManager"
ROCKET_NODE_STAKING = "rocketNodeStaking"
ROCKET_MINIPOOL_MANAGER = "rocketMinipoolManager"

# Claiming contracts whose share of each interval's RPL inflation is tracked by the rewards pool.
CLAIM_NODE = "rocketClaimNode"
CLAIM_TRUSTED_NODE = "rocketClaimTrustedNode"
CLAIM_DAO = "rocketClaimDAO"

# Fixed-point scale of prices, fractions and percentages on chain (1e18 == 100%).
FRACTION_SCALE = 10**18
WEI_PER_ETH = 10**18


def _view(name: str, inputs: list[tuple[str, str]], output: str) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": output}],
    }


# Minimal ABIs - only the view functions needed to build a snapshot.
ROCKET_STORAGE_ABI: list[dict] = [
    _view("getAddress", [("_key", "bytes32")], "address"),
]

ROCKET_NETWORK_PRICES_ABI: list[dict] = [
    _view("getRPLPrice", [], "uint256"),
]

ROCKET_DAO_PROTOCOL_SETTINGS_NODE_ABI: list[dict] = [
    _view("getMinimumPerMinipoolStake", [], "uint256"),
    _view("getMaximumPerMinipoolStake", [], "uint256"),
]

ROCKET_REWARDS_POOL_ABI: list[dict] = [
    _view("getRewardIndex", [], "uint256"),
    _view("getClaimIntervalTime", [], "uint256"),
    _view("getClaimingContractPerc", [("_claimingContract", "string")], "uint256"),
    _view("getPendingRPLRewards", [], "uint256"),
]

ROCKET_NODE_MANAGER_ABI: list[dict] = [
    _view("getNodeCount", [], "uint256"),
    _view("getNodeAt", [("_index", "uint256")], "address"),
    _view("getNodeRegistrationTime", [("_nodeAddress", "address")], "uint256"),
]

ROCKET_NODE_STAKING_ABI: list[dict] = [
    _view("getNodeRPLStake", [("_nodeAddress", "address")], "uint256"),
]

ROCKET_MINIPOOL_MANAGER_ABI: list[dict] = [
    _view("getMinipoolCount", [], "uint256"),
    _view("getMinipoolAt", [("_index", "uint256")], "address"),
    _view("getMinipoolExists", [("_minipoolAddress", "address")], "bool"),
    _view("getMinipoolPubkey", [("_minipoolAddress", "address")], "bytes"),
]

ROCKET_MINIPOOL_ABI: list[dict] = [
    _view("getNodeAddress", [], "address"),
    _view("getStatus", [], "uint8"),
    _view("getUserDepositBalance", [], "uint256"),
    _view("getNodeDepositBalance", [], "uint256"),
]
