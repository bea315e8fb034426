"""Exceptions raised while building snapshots and calculating stakes."""


class NetworkStateError(RuntimeError):
    """A snapshot could not be built because an input was unavailable."""


class SlotNotFoundError(NetworkStateError):
    """The requested Beacon slot has no block (empty or skipped slot)."""

    def __init__(self, slot: int):
        super().__init__(f"slot {slot} did not have a Beacon block")
        self.slot = slot


class ConfigurationError(ValueError):
    """A protocol parameter or option makes the calculation meaningless."""


class StakeCalculationError(RuntimeError):
    """The effective stake of a node could not be calculated."""

    def __init__(self, node_address: str, message: str):
        super().__init__(f"node {node_address}: {message}")
        self.node_address = node_address
