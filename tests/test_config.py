"""Tests for configuration loading."""

import pytest

from bonsai.shared.config import DashboardConfig, RemoteConfig, load_config
from bonsai.shared.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BONSAI_CONFIG", "BONSAI_CSV_PATH", "LOG_LEVEL", "SUPABASE_URL", "SUPABASE_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = DashboardConfig.from_dict({})

    assert config.source.type == "csv"
    assert config.refresh_interval == 5.0
    assert config.fetch_timeout == 10.0
    assert config.units.pressure_divisor == 1000.0
    assert config.units.battery_divisor == 1000.0
    assert config.date_filter is None


def test_load_yaml_file(tmp_path):
    path = tmp_path / "bonsai.yaml"
    path.write_text(
        "source:\n"
        "  type: remote\n"
        "  relation: sensor_data_est\n"
        "  order_column: timestamp_est\n"
        "refresh_interval: 30\n"
        "date_filter: today\n"
        "units:\n"
        "  battery_divisor: 1\n"
        "log_level: debug\n"
    )

    config = load_config(path, load_env=False)

    assert config.source.type == "remote"
    assert config.source.relation == "sensor_data_est"
    assert config.source.order_column == "timestamp_est"
    assert config.refresh_interval == 30.0
    assert config.date_filter == "today"
    assert config.units.battery_divisor == 1.0
    assert config.units.pressure_divisor == 1000.0
    assert config.log_level == "debug"


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("source:\n  path: /data/export.csv\n")
    monkeypatch.setenv("BONSAI_CONFIG", str(path))

    config = load_config(load_env=False)

    assert config.source.path == "/data/export.csv"


def test_environment_overrides(tmp_path, monkeypatch):
    path = tmp_path / "bonsai.yaml"
    path.write_text("log_level: INFO\n")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("BONSAI_CSV_PATH", "/tmp/sensor.csv")

    config = load_config(path, load_env=False)

    assert config.log_level == "WARNING"
    assert config.source.path == "/tmp/sensor.csv"


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml", load_env=False)


@pytest.mark.parametrize(
    "body",
    [
        "source:\n  type: ftp\n",
        "date_filter: yesterday\n",
        "units:\n  pressure_divisor: 0\n",
        "- just\n- a list\n",
        "source: [unclosed\n",
        "source: csv\n",
        "timestamp_format: pattern\n",
        "timestamp_format: locale\n",
        "refresh_interval: soon\n",
        "refresh_interval: 0\n",
        "refresh_interval: .nan\n",
        "fetch_timeout: -1\n",
        "recent_rows: 0\n",
        "recent_rows: many\n",
        "units:\n  battery_divisor: volts\n",
        "units:\n  battery_divisor: true\n",
    ],
)
def test_invalid_config_values(tmp_path, body):
    path = tmp_path / "bonsai.yaml"
    path.write_text(body)

    with pytest.raises(ConfigurationError):
        load_config(path, load_env=False)


def test_remote_config_from_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", " https://example.supabase.co/ ")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")

    remote = RemoteConfig.from_env()

    assert remote.url == "https://example.supabase.co"
    assert remote.key == "anon-key"


def test_remote_config_missing_key_is_loud(monkeypatch, caplog):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")

    with pytest.raises(ConfigurationError) as excinfo:
        RemoteConfig.from_env()

    assert "SUPABASE_KEY" in str(excinfo.value)
    assert "SUPABASE_URL" not in str(excinfo.value)
    assert any(record.levelname == "ERROR" for record in caplog.records)


def test_pattern_format_with_pattern(tmp_path):
    path = tmp_path / "bonsai.yaml"
    path.write_text(
        "timestamp_format: pattern\n"
        "timestamp_pattern: '%m/%d/%Y, %I:%M:%S %p'\n"
        "recent_rows: 3\n"
        "fetch_timeout: 2.5\n"
    )

    config = load_config(path, load_env=False)

    assert config.timestamp_format == "pattern"
    assert config.timestamp_pattern == "%m/%d/%Y, %I:%M:%S %p"
    assert config.recent_rows == 3
    assert config.fetch_timeout == 2.5
