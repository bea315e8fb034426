from conftest import ETH, INTERVAL, SLOT, make_minipool, make_node, make_pubkey, make_state, make_validator

from rp_network_state.cli import main, parse_args
from rp_network_state.console import print_effective_stakes, print_network_summary
from rp_network_state.constants import ROCKET_STORAGE_MAINNET, THREAD_LIMIT


def test_parse_args_defaults():
    args = parse_args([])
    assert args.rpc_url is None
    assert args.beacon_url is None
    assert args.storage == ROCKET_STORAGE_MAINNET
    assert args.slot is None
    assert args.threads == THREAD_LIMIT
    assert not args.no_scale
    assert not args.no_cache


def test_parse_args_overrides():
    args = parse_args(["--slot", "123", "--threads", "1", "--no-scale", "--no-cache", "--quiet", "--top", "0"])
    assert args.slot == 123
    assert args.threads == 1
    assert args.no_scale and args.no_cache and args.quiet
    assert args.top == 0


def test_main_requires_both_urls(monkeypatch, capsys):
    monkeypatch.delenv("ETH_RPC_URL", raising=False)
    monkeypatch.delenv("BEACON_API_URL", raising=False)
    assert main(["--rpc-url", "http://localhost:8545"]) == 2
    assert "Beacon API URL" in capsys.readouterr().err


def _state():
    pks = [make_pubkey(1), make_pubkey(2)]
    return make_state(
        [make_node("0xNodeA", 20 * ETH), make_node("0xNodeB", 4 * ETH, registered_ago=INTERVAL // 2)],
        [make_minipool("0xMp1", "0xNodeA", pks[0]), make_minipool("0xMp2", "0xNodeB", pks[1])],
        [make_validator(pks[0]), make_validator(pks[1])],
    )


def test_print_network_summary(capsys):
    print_network_summary(_state())
    out = capsys.readouterr().out
    assert f"slot={SLOT}" in out
    assert "epoch=100" in out
    assert "10.00% – 150.00%" in out
    assert "Nodes: 2  •  Minipools: 2  •  Validators on Beacon: 2" in out


def test_print_effective_stakes_ranks_nodes(capsys):
    state = _state()
    stakes = state.calculate_effective_stakes(True)
    assert stakes.by_node == {"0xNodeA": 12 * ETH, "0xNodeB": 2 * ETH}

    print_effective_stakes(state, stakes, top=1)
    out = capsys.readouterr().out
    assert "Total: 14 RPL" in out
    assert "Eligible nodes: 2/2" in out
    assert "0xNodeA" in out
    assert "0xNodeB" not in out
    assert "1 more" in out
