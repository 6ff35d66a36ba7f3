"""Configuration provider following Black Box Design principles."""
import json
import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Protocol, Tuple

import yaml

from modelprobe.errors import ConfigError


# Configuration Contract: Required and Optional Keys
# Key names match the config.json files already deployed next to the prober.

REQUIRED_CONFIG_KEYS = {
    "db_type": "Database type (mysql, postgres, sqlite, sqlserver)",
    "db_dsn": "Database DSN in the driver's native format or as a SQLAlchemy URL",
    "time_period": "Interval between passes as a duration string, e.g. 10m",
}

OPTIONAL_CONFIG_KEYS = {
    "exclude_channel": {
        "description": "Channel IDs that are never probed",
        "default": [],
    },
    "exclude_model": {
        "description": "Model names dropped from live discovery results",
        "default": [],
    },
    "models": {
        "description": "Fixed model list used when discovery is forced off or unavailable",
        "default": [],
    },
    "force_models": {
        "description": "Skip discovery and always probe the fixed model list",
        "default": False,
    },
    "discovery_timeout": {
        "description": "Timeout in seconds for the GET /v1/models call",
        "default": 10.0,
    },
    "probe_concurrency": {
        "description": "Parallel health checks within one channel (1 = sequential)",
        "default": 1,
    },
    "log_level": {
        "description": "Logging level (DEBUG, INFO, WARNING, ERROR)",
        "default": "INFO",
    },
}

# Environment variable -> config key. Applied after the file is read.
ENV_OVERRIDES = {
    "MODELPROBE_DB_TYPE": "db_type",
    "MODELPROBE_DB_DSN": "db_dsn",
    "MODELPROBE_TIME_PERIOD": "time_period",
    "MODELPROBE_FORCE_MODELS": "force_models",
    "LOG_LEVEL": "log_level",
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> timedelta:
    """
    Parse a Go-style duration string ("90s", "10m", "1h30m", "1.5h").

    Bare numbers are taken as seconds. The result must be positive.

    Raises:
        ConfigError: If the value is malformed or not positive
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ConfigError(f"invalid duration: {value!r}")

    if seconds <= 0:
        raise ConfigError(f"duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProbeConfig:
    """Channel and model selection policy."""
    exclude_channel_ids: FrozenSet[int] = frozenset()
    exclude_model_names: FrozenSet[str] = frozenset()
    fixed_models: Tuple[str, ...] = ()
    force_fixed_models: bool = False
    discovery_timeout: float = 10.0
    probe_concurrency: int = 1


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    db_type: str
    db_dsn: str


@dataclass(frozen=True)
class ScheduleConfig:
    """Pass scheduling configuration."""
    poll_interval: timedelta


@dataclass(frozen=True)
class AppConfig:
    """Everything the process needs, loaded once at startup."""
    probe: ProbeConfig
    database: DatabaseConfig
    schedule: ScheduleConfig
    log_level: str = "INFO"
    source: Optional[str] = field(default=None, compare=False)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_probe_config(self) -> ProbeConfig:
        """Get probing policy."""
        ...

    def get_database_config(self) -> DatabaseConfig:
        """Get database configuration."""
        ...

    def get_schedule_config(self) -> ScheduleConfig:
        """Get scheduling configuration."""
        ...


class DictConfigProvider:
    """
    Configuration provider over an already-parsed mapping.

    Validates the required keys once, fills optional defaults, and builds the
    typed config sections on demand.
    """

    def __init__(self, raw: Dict[str, Any], source: Optional[str] = None):
        self.source = source
        self._raw = self._with_defaults(raw)
        self._validate_required_keys()

    @staticmethod
    def _with_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
        merged = {key: spec["default"] for key, spec in OPTIONAL_CONFIG_KEYS.items()}
        merged.update({k: v for k, v in raw.items() if v is not None})
        return merged

    def _validate_required_keys(self) -> None:
        missing_keys = [
            key for key in REQUIRED_CONFIG_KEYS
            if self._raw.get(key) in (None, "")
        ]
        if missing_keys:
            raise ConfigError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check the config file and MODELPROBE_* environment variables."
            )

    def get_probe_config(self) -> ProbeConfig:
        """Build the probing policy from the raw mapping."""
        try:
            exclude_ids = frozenset(int(v) for v in self._raw["exclude_channel"] or [])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"exclude_channel must be a list of integers: {e}") from e

        try:
            discovery_timeout = float(self._raw["discovery_timeout"])
            concurrency = int(self._raw["probe_concurrency"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e
        if discovery_timeout <= 0:
            raise ConfigError("discovery_timeout must be positive")
        if concurrency < 1:
            raise ConfigError("probe_concurrency must be at least 1")

        return ProbeConfig(
            exclude_channel_ids=exclude_ids,
            exclude_model_names=frozenset(str(m) for m in self._raw["exclude_model"] or []),
            fixed_models=tuple(str(m) for m in self._raw["models"] or []),
            force_fixed_models=_parse_bool(self._raw["force_models"]),
            discovery_timeout=discovery_timeout,
            probe_concurrency=concurrency,
        )

    def get_database_config(self) -> DatabaseConfig:
        """Build the database section."""
        return DatabaseConfig(
            db_type=str(self._raw["db_type"]).strip().lower(),
            db_dsn=str(self._raw["db_dsn"]).strip(),
        )

    def get_schedule_config(self) -> ScheduleConfig:
        """Build the scheduling section."""
        return ScheduleConfig(poll_interval=parse_duration(self._raw["time_period"]))

    def get_log_level(self) -> str:
        return str(self._raw["log_level"]).upper()

    def load(self) -> AppConfig:
        """Build every section at once, failing fast on the first bad value."""
        return AppConfig(
            probe=self.get_probe_config(),
            database=self.get_database_config(),
            schedule=self.get_schedule_config(),
            log_level=self.get_log_level(),
            source=self.source,
        )


class FileConfigProvider(DictConfigProvider):
    """
    File-based configuration provider with environment overrides.

    ``.json`` files are parsed with json, anything else with PyYAML.
    """

    def __init__(self, path: str, environ: Optional[Dict[str, str]] = None):
        self.path = Path(path)
        raw = self._read_file(self.path)
        raw.update(self._env_overrides(os.environ if environ is None else environ))
        super().__init__(raw, source=str(self.path))

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e

        try:
            if path.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot parse config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        return dict(data)

    @staticmethod
    def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
        return {
            key: environ[env_name]
            for env_name, key in ENV_OVERRIDES.items()
            if environ.get(env_name)
        }
