"""Exception hierarchy shared by all modelprobe modules."""

from typing import Optional


class ModelProbeError(Exception):
    """Base class for every error raised by modelprobe."""


class ConfigError(ModelProbeError):
    """Configuration is missing, malformed or inconsistent. Fatal at startup."""


class UnsupportedDatabaseError(ConfigError):
    """The configured db_type has no known SQLAlchemy dialect."""

    def __init__(self, db_type: str):
        super().__init__(f"unsupported database type: {db_type}")
        self.db_type = db_type


class StoreError(ModelProbeError):
    """A store operation failed."""


class StoreReadError(StoreError):
    """Reading channels or abilities failed."""


class StoreWriteError(StoreError):
    """Updating channels or writing abilities failed."""

    def __init__(self, message: str, channel_id: Optional[int] = None):
        super().__init__(message)
        self.channel_id = channel_id


class TransportError(ModelProbeError):
    """An outbound HTTP call failed before a response was received."""


class ParseError(ModelProbeError):
    """A response body could not be decoded into the expected shape."""


class UnsupportedEndpointError(ModelProbeError):
    """A channel's base URL cannot be turned into a probe endpoint."""

    def __init__(self, base_url: str, channel_id: Optional[int] = None):
        super().__init__(f"unsupported endpoint {base_url!r}")
        self.base_url = base_url
        self.channel_id = channel_id
