"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: FileConfigProvider.load(), parse_duration()
Hidden: File formats, environment overrides, validation logic
"""

from .provider import (
    OPTIONAL_CONFIG_KEYS,
    REQUIRED_CONFIG_KEYS,
    AppConfig,
    ConfigProvider,
    DatabaseConfig,
    DictConfigProvider,
    FileConfigProvider,
    ProbeConfig,
    ScheduleConfig,
    parse_duration,
)

__all__ = [
    "OPTIONAL_CONFIG_KEYS",
    "REQUIRED_CONFIG_KEYS",
    "AppConfig",
    "ConfigProvider",
    "DatabaseConfig",
    "DictConfigProvider",
    "FileConfigProvider",
    "ProbeConfig",
    "ScheduleConfig",
    "parse_duration",
]
