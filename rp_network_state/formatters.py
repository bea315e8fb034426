"""Formatting and conversion utilities."""

from decimal import Decimal

from rp_network_state.constants import EMPTY_PUBKEY, FRACTION_SCALE, PUBKEY_LENGTH, WEI_PER_ETH


def as_int(value, *, default: int = 0) -> int:
    """Convert value to int, handling various types."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.startswith("0x"):
            return int(v, 16)
        return int(v)
    return int(value)


def normalize_hex_str(value) -> str:
    """Normalize hex string to 0x-prefixed lowercase format."""
    if isinstance(value, (bytes, bytearray)):
        return f"0x{value.hex()}"
    if hasattr(value, "hex") and not isinstance(value, str):
        hex_str = value.hex()
        return hex_str.lower() if hex_str.startswith("0x") else f"0x{hex_str}".lower()
    s = str(value).strip().lower()
    if s.startswith("0x"):
        return s
    return f"0x{s}"


def normalize_pubkey(value) -> str:
    """
    Normalize a validator pubkey to 0x-prefixed lowercase hex.

    Missing and all-zero keys (minipools without a validator yet) map to EMPTY_PUBKEY.
    """
    if value is None:
        return EMPTY_PUBKEY
    pubkey = normalize_hex_str(value)
    digits = pubkey[2:]
    if not digits or set(digits) == {"0"}:
        return EMPTY_PUBKEY
    if len(digits) != PUBKEY_LENGTH * 2:
        raise ValueError(f"invalid validator pubkey length: {pubkey}")
    return pubkey


def format_rpl(value_wei: int, *, decimals: int = 4) -> str:
    """Format an 18-decimal token amount as RPL."""
    rpl = Decimal(value_wei) / WEI_PER_ETH
    s = f"{rpl:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{s} RPL"


def format_eth(value_wei: int, *, decimals: int = 4) -> str:
    """Format wei value as ETH."""
    eth = Decimal(value_wei) / WEI_PER_ETH
    s = f"{eth:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{s} ETH"


def format_fraction(value: int) -> str:
    """Format a 1e18-scaled fraction as a percentage."""
    return f"{(Decimal(value) * 100 / FRACTION_SCALE):.2f}%"


def format_duration(seconds: int) -> str:
    """Format seconds as `1d 2h 3m 4s`, omitting leading zero units."""
    if seconds < 0:
        return f"-{format_duration(-seconds)}"
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    parts = [(days, "d"), (hours, "h"), (minutes, "m")]
    while parts and parts[0][0] == 0:
        parts.pop(0)
    return " ".join(f"{v}{u}" for v, u in parts + [(secs, "s")])


def short_address(address: str) -> str:
    """Shorten an address to `0x1234abcd...5678ef`."""
    if len(address) <= 18:
        return address
    return f"{address[:10]}...{address[-6:]}"
