import pytest

from client.config import CLIENT_CONFIG, DEFAULT_CONFIG, _coerce_type, load_config, parse_ladder, validate_ladder
from server.config import DEFAULT_SERVER_CONFIG, SERVER_CONFIG, load_server_config
from client.main import main as client_main
from server.main import main as server_main
from shared.settings import ConfigError, normalize_log_level


@pytest.fixture(autouse=True)
def reset_configs():
    CLIENT_CONFIG.clear()
    CLIENT_CONFIG.update(DEFAULT_CONFIG)
    SERVER_CONFIG.clear()
    SERVER_CONFIG.update(DEFAULT_SERVER_CONFIG)
    yield
    CLIENT_CONFIG.clear()
    CLIENT_CONFIG.update(DEFAULT_CONFIG)
    SERVER_CONFIG.clear()
    SERVER_CONFIG.update(DEFAULT_SERVER_CONFIG)


def test_parse_ladder():
    assert parse_ladder("128, 256,1024") == (128, 256, 1024)
    assert parse_ladder([1, 2]) == (1, 2)
    with pytest.raises(ConfigError):
        parse_ladder("128,lots")


@pytest.mark.parametrize("sizes", [(), (128, 128), (256, 128), (-1, 5), (128, 100_000_000)])
def test_validate_ladder_rejects(sizes):
    with pytest.raises(ConfigError):
        validate_ladder(sizes)


def test_default_ladder_is_valid():
    validate_ladder(DEFAULT_CONFIG["size_ladder"])
    assert DEFAULT_CONFIG["size_ladder"][0] == 128
    assert DEFAULT_CONFIG["size_ladder"][-1] == 65536000


def test_coerce_type():
    assert _coerce_type("false", bool) is False
    assert _coerce_type("yes", bool) is True
    assert _coerce_type("2.5", float) == 2.5
    assert _coerce_type("64,128", tuple) == (64, 128)
    with pytest.raises(ConfigError):
        _coerce_type("many", int)


def test_load_config_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIENT_SERVER_HOST", "bench.example")
    monkeypatch.setenv("CLIENT_SERIES", "3")
    monkeypatch.setenv("CLIENT_SIZE_LADDER", "64,128")
    config = load_config(str(tmp_path / "missing.env"))
    assert config["server_host"] == "bench.example"
    assert config["series"] == 3
    assert config["size_ladder"] == (64, 128)
    assert config["server_port"] == DEFAULT_CONFIG["server_port"]


def test_load_config_from_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("CLIENT_WARMUP_SECONDS", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("CLIENT_WARMUP_SECONDS=1.5\n")
    try:
        config = load_config(str(env_file))
    finally:
        monkeypatch.delenv("CLIENT_WARMUP_SECONDS", raising=False)
    assert config["warmup_seconds"] == 1.5


def test_load_config_keeps_preset_values(tmp_path):
    CLIENT_CONFIG["server_port"] = 4000
    assert load_config(str(tmp_path / "missing.env"))["server_port"] == 4000


def test_load_config_rejects_bad_values(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIENT_SERIES", "0")
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.env"))


def test_load_server_config(monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "0")
    monkeypatch.setenv("SERVER_MAX_CONNECTIONS", "4")
    monkeypatch.setenv("SERVER_TCP_NODELAY", "off")
    config = load_server_config()
    assert config["port"] == 0
    assert config["max_connections"] == 4
    assert config["tcp_nodelay"] is False


@pytest.mark.parametrize("name, value", [("SERVER_PORT", "http"), ("SERVER_PORT", "70000"), ("SERVER_IO_TIMEOUT", "-1")])
def test_load_server_config_rejects(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_server_config()


def test_largest_header_length_is_a_valid_ladder_step():
    validate_ladder((128, 99_999_999))


def test_normalize_log_level():
    assert normalize_log_level("debug") == "DEBUG"
    with pytest.raises(ConfigError):
        normalize_log_level("loud")


def test_load_config_rejects_unknown_log_level(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIENT_LOG_LEVEL", "loud")
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.env"))


def test_load_server_config_normalizes_log_level(monkeypatch):
    monkeypatch.setenv("SERVER_LOG_LEVEL", "warning")
    assert load_server_config()["log_level"] == "WARNING"


def test_entry_points_exit_with_error_on_bad_log_level(monkeypatch):
    monkeypatch.setenv("CLIENT_LOG_LEVEL", "loud")
    monkeypatch.setenv("SERVER_LOG_LEVEL", "loud")
    assert client_main(["127.0.0.1"]) == 1
    assert server_main(["0"]) == 1
