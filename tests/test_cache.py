from rp_network_state.cache import cache_key, clear_cache, get_cache_dir, get_cached, set_cached


def test_cache_dir_follows_xdg_cache_home(isolated_cache):
    assert get_cache_dir() == isolated_cache / "rp-network-state"
    assert get_cache_dir().is_dir()


def test_cache_key_is_deterministic():
    assert cache_key("nodes", "0xStorage", 1) == cache_key("nodes", "0xStorage", 1)
    assert cache_key("nodes", "0xStorage", 1) != cache_key("nodes", "0xStorage", 2)
    assert cache_key("nodes", 1) != cache_key("minipools", 1)


def test_set_and_get_roundtrip():
    key = cache_key("test", "roundtrip")
    assert get_cached(key) is None
    set_cached(key, [{"rpl_stake": 10**30}])
    assert get_cached(key) == [{"rpl_stake": 10**30}]
    assert not list(get_cache_dir().glob("*.tmp"))


def test_corrupted_entry_is_a_miss():
    key = cache_key("test", "corrupt")
    (get_cache_dir() / f"{key}.json").write_text("{not json", encoding="utf-8")
    assert get_cached(key) is None


def test_clear_cache(capsys):
    set_cached(cache_key("test", "clear"), 1)
    clear_cache()
    assert "Cache cleared" in capsys.readouterr().err
    assert get_cached(cache_key("test", "clear")) is None
