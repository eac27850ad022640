import pytest

from sku_lookup.config import ENV_KEYS, STOCK_ORIGIN, VENDOR_ORIGIN, Config
from sku_lookup.navigate import browser_ws_endpoint


def test_defaults():
    cfg = Config.load_from_env({})
    assert cfg.vendor_origin == VENDOR_ORIGIN
    assert cfg.stock_origin == STOCK_ORIGIN
    assert cfg.lang == "fr"
    assert cfg.timeout_s == 30.0
    assert cfg == Config()


def test_overrides_and_trailing_slashes():
    cfg = Config.load_from_env({
        "SKU_LOOKUP_VENDOR_ORIGIN": "https://staging.example.com/",
        "SKU_LOOKUP_TIMEOUT": "5",
        "LOG_LEVEL": "debug",
    })
    assert cfg.vendor_origin == "https://staging.example.com"
    assert cfg.timeout_s == 5.0
    assert cfg.log_level == "DEBUG"


def test_bad_timeout():
    with pytest.raises(RuntimeError):
        Config.load_from_env({"SKU_LOOKUP_TIMEOUT": "soon"})
    with pytest.raises(RuntimeError):
        Config.load_from_env({"SKU_LOOKUP_TIMEOUT": "0"})


def test_describe_hides_token():
    lines = Config(browser_token="s3cret").describe()
    assert not any("s3cret" in line for line in lines)
    assert any("browser_token: set" in line for line in lines)


def test_env_keys_cover_config():
    assert len({k for k, _ in ENV_KEYS}) == len(ENV_KEYS) == 8


def test_browser_ws_endpoint():
    assert browser_ws_endpoint(base_url="http://host:3000", token="t") == "ws://host:3000?token=t"
    assert browser_ws_endpoint(base_url="https://host", token="t") == "wss://host?token=t"
    assert browser_ws_endpoint(base_url="ws://host?stealth=1", token="t") == "ws://host?stealth=1&token=t"
    assert browser_ws_endpoint(base_url="ws://host?token=x", token="t") == "ws://host?token=x"
    assert browser_ws_endpoint(base_url="ws://host:9222") == "ws://host:9222"
