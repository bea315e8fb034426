"""Consensus-layer reads through the standard Beacon node REST API."""

from collections.abc import Iterable
from typing import Any

import requests

from rp_network_state.cache import cache_key, get_cached, set_cached
from rp_network_state.constants import DEFAULT_TIMEOUT, DEFAULT_VALIDATOR_BATCH_SIZE, FAR_FUTURE_EPOCH
from rp_network_state.formatters import as_int, normalize_pubkey
from rp_network_state.models import BeaconConfig, ValidatorStatus


def parse_validator_status(entry: dict[str, Any]) -> ValidatorStatus:
    """Parse one item of a `/eth/v1/beacon/states/{state_id}/validators` response."""
    validator = entry["validator"]
    return ValidatorStatus(
        pubkey=normalize_pubkey(validator["pubkey"]),
        index=as_int(entry["index"]),
        status=str(entry["status"]),
        balance=as_int(entry["balance"]),
        effective_balance=as_int(validator["effective_balance"]),
        slashed=bool(validator["slashed"]),
        activation_epoch=as_int(validator["activation_epoch"], default=FAR_FUTURE_EPOCH),
        exit_epoch=as_int(validator["exit_epoch"], default=FAR_FUTURE_EPOCH),
        withdrawable_epoch=as_int(validator["withdrawable_epoch"], default=FAR_FUTURE_EPOCH),
    )


class BeaconClient:
    """BeaconReader over a Beacon node's HTTP API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: int = DEFAULT_TIMEOUT,
        batch_size: int = DEFAULT_VALIDATOR_BATCH_SIZE,
        use_cache: bool = True,
        session: requests.Session | None = None,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.batch_size = batch_size
        self.use_cache = use_cache
        self.session = session or requests.Session()

    def _get(self, path: str, *, params: dict[str, str] | None = None, allow_missing: bool = False) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout_s)
        except requests.RequestException as ex:
            raise RuntimeError(f"Beacon request to {path} failed: {ex}") from ex
        if allow_missing and resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
        except requests.HTTPError as ex:
            raise RuntimeError(f"Beacon request to {path} failed with HTTP {resp.status_code}: {resp.text}") from ex
        return resp.json()["data"]

    def get_execution_block_number(self, slot: int) -> int | None:
        key = cache_key("slot_block", self.base_url, slot)
        if self.use_cache:
            cached = get_cached(key)
            if cached is not None:
                return cached["block"]

        data = self._get(f"/eth/v2/beacon/blocks/{slot}", allow_missing=True)
        if data is None:
            return None
        payload = data["message"]["body"].get("execution_payload")
        if payload is None:
            raise RuntimeError(f"Beacon block at slot {slot} has no execution payload (pre-merge slot?)")
        block = as_int(payload["block_number"])

        if self.use_cache:
            set_cached(key, {"block": block})
        return block

    def _get_validator_batch(self, pubkeys: list[str], slot: int) -> list[dict[str, Any]]:
        key = cache_key("validators", self.base_url, slot, ",".join(pubkeys))
        if self.use_cache:
            cached = get_cached(key)
            if cached is not None:
                return cached

        # Unknown pubkeys are simply missing from the response
        data = self._get(f"/eth/v1/beacon/states/{slot}/validators", params={"id": ",".join(pubkeys)})

        if self.use_cache:
            set_cached(key, data)
        return data

    def get_validator_statuses(self, pubkeys: Iterable[str], slot: int) -> dict[str, ValidatorStatus]:
        keys = list(dict.fromkeys(pubkeys))
        out: dict[str, ValidatorStatus] = {}
        for offset in range(0, len(keys), self.batch_size):
            for entry in self._get_validator_batch(keys[offset : offset + self.batch_size], slot):
                status = parse_validator_status(entry)
                out[status.pubkey] = status
        return out

    def get_beacon_config(self) -> BeaconConfig:
        genesis = self._get("/eth/v1/beacon/genesis")
        spec = self._get("/eth/v1/config/spec")
        return BeaconConfig(
            genesis_time=as_int(genesis["genesis_time"]),
            seconds_per_slot=as_int(spec["SECONDS_PER_SLOT"]),
            slots_per_epoch=as_int(spec["SLOTS_PER_EPOCH"]),
        )

    def get_finalized_slot(self) -> int:
        data = self._get("/eth/v1/beacon/headers/finalized")
        return as_int(data["header"]["message"]["slot"])
