"""
Tests for the configuration provider.

Tests cover:
- Go-style duration parsing
- JSON and YAML config files
- Required key validation and optional defaults
- Environment overrides
"""

import json
from datetime import timedelta

import pytest
import yaml

from modelprobe.config import DictConfigProvider, FileConfigProvider, parse_duration
from modelprobe.errors import ConfigError

MINIMAL = {"db_type": "sqlite", "db_dsn": "one-api.db", "time_period": "10m"}


def write_json(tmp_path, data, name="config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("45s", 45),
            ("10m", 600),
            ("1h30m", 5400),
            ("1.5h", 5400),
            ("300ms", 0.3),
            ("2h0m5s", 7205),
            ("90", 90),
        ],
    )
    def test_valid(self, text, seconds):
        assert parse_duration(text) == timedelta(seconds=seconds)

    def test_number(self):
        assert parse_duration(30) == timedelta(seconds=30)

    @pytest.mark.parametrize("text", ["", "ten minutes", "10x", "m10", "-5m", "0s", "5m garbage"])
    def test_invalid(self, text):
        with pytest.raises(ConfigError):
            parse_duration(text)

    def test_bool_is_rejected(self):
        with pytest.raises(ConfigError):
            parse_duration(True)


class TestDictConfigProvider:
    def test_defaults(self):
        config = DictConfigProvider(dict(MINIMAL)).load()

        assert config.probe.exclude_channel_ids == frozenset()
        assert config.probe.exclude_model_names == frozenset()
        assert config.probe.fixed_models == ()
        assert config.probe.force_fixed_models is False
        assert config.probe.probe_concurrency == 1
        assert config.database.db_type == "sqlite"
        assert config.schedule.poll_interval == timedelta(minutes=10)
        assert config.log_level == "INFO"

    def test_full(self):
        raw = dict(
            MINIMAL,
            exclude_channel=[3, "7"],
            exclude_model=["whisper-1"],
            models=["gpt-a", "gpt-b"],
            force_models=True,
            probe_concurrency=4,
            log_level="debug",
        )
        config = DictConfigProvider(raw).load()

        assert config.probe.exclude_channel_ids == frozenset({3, 7})
        assert config.probe.exclude_model_names == frozenset({"whisper-1"})
        assert config.probe.fixed_models == ("gpt-a", "gpt-b")
        assert config.probe.force_fixed_models is True
        assert config.probe.probe_concurrency == 4
        assert config.log_level == "DEBUG"

    def test_missing_required_keys_are_all_reported(self):
        with pytest.raises(ConfigError) as exc_info:
            DictConfigProvider({"db_type": "mysql"})

        message = str(exc_info.value)
        assert "db_dsn" in message
        assert "time_period" in message
        assert "db_type" not in message.split(":")[1]

    def test_null_lists_mean_empty(self):
        config = DictConfigProvider(dict(MINIMAL, exclude_channel=None, models=None)).load()

        assert config.probe.exclude_channel_ids == frozenset()
        assert config.probe.fixed_models == ()

    def test_bad_exclude_channel(self):
        provider = DictConfigProvider(dict(MINIMAL, exclude_channel=["abc"]))
        with pytest.raises(ConfigError):
            provider.get_probe_config()

    def test_bad_concurrency(self):
        provider = DictConfigProvider(dict(MINIMAL, probe_concurrency=0))
        with pytest.raises(ConfigError):
            provider.get_probe_config()

    def test_bad_time_period(self):
        provider = DictConfigProvider(dict(MINIMAL, time_period="soon"))
        with pytest.raises(ConfigError):
            provider.load()


class TestFileConfigProvider:
    def test_json_file(self, tmp_path):
        path = write_json(tmp_path, dict(MINIMAL, exclude_channel=[1]))

        config = FileConfigProvider(str(path), environ={}).load()

        assert config.probe.exclude_channel_ids == frozenset({1})
        assert config.source == str(path)

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(dict(MINIMAL, models=["m1"])), encoding="utf-8")

        config = FileConfigProvider(str(path), environ={}).load()

        assert config.probe.fixed_models == ("m1",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            FileConfigProvider(str(tmp_path / "absent.json"), environ={})

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError):
            FileConfigProvider(str(path), environ={})

    def test_non_mapping(self, tmp_path):
        path = write_json(tmp_path, ["a", "b"])

        with pytest.raises(ConfigError):
            FileConfigProvider(str(path), environ={})

    def test_environment_overrides(self, tmp_path):
        path = write_json(tmp_path, MINIMAL)
        environ = {
            "MODELPROBE_DB_TYPE": "mysql",
            "MODELPROBE_DB_DSN": "root:pw@tcp(db:3306)/oneapi",
            "MODELPROBE_TIME_PERIOD": "1h",
            "MODELPROBE_FORCE_MODELS": "true",
            "LOG_LEVEL": "warning",
        }

        config = FileConfigProvider(str(path), environ=environ).load()

        assert config.database.db_type == "mysql"
        assert config.database.db_dsn == "root:pw@tcp(db:3306)/oneapi"
        assert config.schedule.poll_interval == timedelta(hours=1)
        assert config.probe.force_fixed_models is True
        assert config.log_level == "WARNING"

    def test_environment_supplies_missing_keys(self, tmp_path):
        path = write_json(tmp_path, {"time_period": "5m"})
        environ = {"MODELPROBE_DB_TYPE": "sqlite", "MODELPROBE_DB_DSN": "x.db"}

        config = FileConfigProvider(str(path), environ=environ).load()

        assert config.database.db_dsn == "x.db"
