import pytest
from pydantic import ValidationError

from e2catalog import main as main_module
from e2catalog.config import CustomSettings, get_settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in (
        "ENIGMA2_IP",
        "ENIGMA2_PORT",
        "ENIGMA2_STREAM_PORT",
        "ENIGMA2_PICONS",
        "PREFIX_CATALOG",
        "IGNORE_BOUQUETS",
        "IGNORE_EMPTY_BOUQUETS",
        "ADDON_PORT",
        "PRELOAD_CRON",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env):
    clean_env.setenv("ENIGMA2_IP", "10.0.0.2")

    settings = CustomSettings(_env_file=None)

    assert settings.enigma2_ip == "10.0.0.2"
    assert settings.enigma2_port == 80
    assert settings.enigma2_stream_port == 8002
    assert settings.enigma2_picons is True
    assert settings.prefix_catalog == "E2 - "
    assert settings.ignore_bouquets == []
    assert settings.ignore_empty_bouquets is True
    assert settings.addon_port == 7000
    assert settings.cache_ttl_sec == 300
    assert settings.preload_batch_size == 15
    assert settings.preload_misfire_grace_sec == 3600
    assert settings.stream_base_url == "http://10.0.0.2:8002"
    assert settings.openwebif_url == "http://10.0.0.2:80"


def test_environment_overrides(clean_env):
    clean_env.setenv("ENIGMA2_IP", "box.local")
    clean_env.setenv("ENIGMA2_PICONS", "no")
    clean_env.setenv("IGNORE_BOUQUETS", "userbouquet.radio, , userbouquet.adult ")
    clean_env.setenv("IGNORE_EMPTY_BOUQUETS", "NO")
    clean_env.setenv("PREFIX_CATALOG", "Box: ")
    clean_env.setenv("ENIGMA2_STREAM_PORT", "8001")

    settings = CustomSettings(_env_file=None)

    assert settings.enigma2_picons is False
    assert settings.ignore_bouquets == ["userbouquet.radio", "userbouquet.adult"]
    assert settings.ignore_empty_bouquets is False
    assert settings.prefix_catalog == "Box: "
    assert settings.enigma2_stream_port == 8001


def test_unrecognized_flag_means_no(clean_env):
    settings = CustomSettings(_env_file=None, enigma2_ip="box", enigma2_picons="maybe")

    assert settings.enigma2_picons is False


@pytest.mark.parametrize("value, expected", [
    ("YES", True),
    ("yes", True),
    (" Yes ", True),
    ("TRUE", False),
    ("1", False),
    ("Y", False),
    ("on", False),
])
def test_only_yes_enables_flags(clean_env, value, expected):
    settings = CustomSettings(
        _env_file=None,
        enigma2_ip="box",
        enigma2_picons=value,
        ignore_empty_bouquets=value,
    )

    assert settings.enigma2_picons is expected
    assert settings.ignore_empty_bouquets is expected


def test_missing_host_is_rejected(clean_env):
    with pytest.raises(ValidationError):
        CustomSettings(_env_file=None)

    with pytest.raises(ValidationError):
        CustomSettings(_env_file=None, enigma2_ip="   ")


@pytest.mark.parametrize("field, value", [
    ("preload_cron", "not a cron"),
    ("preload_batch_size", 0),
    ("picon_timeout_sec", 0),
    ("preload_misfire_grace_sec", 0),
    ("addon_port", 70000),
    ("log_level", "LOUD"),
])
def test_invalid_values_are_rejected(clean_env, field, value):
    with pytest.raises(ValidationError):
        CustomSettings(_env_file=None, enigma2_ip="box", **{field: value})


def test_run_exits_when_host_missing(clean_env):
    get_settings.cache_clear()
    try:
        with pytest.raises(SystemExit) as exc_info:
            main_module.run()
    finally:
        get_settings.cache_clear()

    assert exc_info.value.code == 1
