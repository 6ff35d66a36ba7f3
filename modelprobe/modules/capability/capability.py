"""
Capability Module for modelprobe.

This module is the only place that talks SQL. It reads the channel catalog
and reads, deletes and inserts ability rows (one per channel/model pair the
proxy may route to).

Design Principles:
- Every read failure surfaces as StoreReadError, every write failure as
  StoreWriteError; callers never see SQLAlchemy exceptions
- Write operations accept an optional connection so a caller can group them
  into one transaction
- ChannelConfig lookup never raises; it degrades to the defaults
"""

import logging
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from modelprobe.errors import StoreReadError, StoreWriteError
from modelprobe.modules.storage import abilities, channels

logger = logging.getLogger("modelprobe.capability")

DEFAULT_GROUP = "default"
DEFAULT_PRIORITY = 0
DEFAULT_WEIGHT = 1


@dataclass
class Channel:
    """A configured upstream gateway."""

    id: int
    type: int
    name: str = ""
    base_url: str = ""
    key: str = ""
    status: int = 1
    models: str = ""

    @property
    def model_list(self) -> List[str]:
        """Stored models split on commas, blanks dropped."""
        return [m.strip() for m in self.models.split(",") if m.strip()]

    def label(self) -> str:
        """Name and ID, as used in log lines."""
        return f"{self.name}(ID:{self.id})"

    @classmethod
    def from_row(cls, row: Any) -> "Channel":
        """Create from a result row; NULL text columns become empty strings."""
        data = row._mapping
        return cls(
            id=int(data["id"]),
            type=int(data["type"]),
            name=data["name"] or "",
            base_url=data["base_url"] or "",
            key=data["key"] or "",
            status=int(data["status"]) if data["status"] is not None else 0,
            models=data["models"] or "",
        )


@dataclass(frozen=True)
class ChannelConfig:
    """Priority and weight stamped onto newly created ability rows."""

    priority: int = DEFAULT_PRIORITY
    weight: int = DEFAULT_WEIGHT


@dataclass
class Ability:
    """One (channel, model) routing record."""

    model: str
    channel_id: int
    group: str = DEFAULT_GROUP
    enabled: bool = True
    priority: int = DEFAULT_PRIORITY
    weight: int = DEFAULT_WEIGHT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a column -> value mapping for insertion."""
        return asdict(self)

    @classmethod
    def from_row(cls, row: Any) -> "Ability":
        data = row._mapping
        return cls(
            model=data["model"],
            channel_id=int(data["channel_id"]),
            group=data["group"],
            enabled=bool(data["enabled"]),
            priority=int(data["priority"] or 0),
            weight=int(data["weight"] if data["weight"] is not None else DEFAULT_WEIGHT),
        )


class CapabilityStore:
    """
    Gateway over the channels and abilities tables.

    Receives the engine in __init__ and never creates its own.
    """

    def __init__(self, engine: Engine):
        """
        Initialize the gateway.

        Args:
            engine: SQLAlchemy engine from the storage module
        """
        self.engine = engine

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Open a transaction that commits on success and rolls back on error.

        Raises:
            StoreWriteError: If the transaction cannot begin or commit
        """
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise StoreWriteError(f"transaction failed: {e}") from e

    @contextmanager
    def _writer(self, conn: Optional[Connection]) -> Iterator[Connection]:
        if conn is not None:
            yield conn
        else:
            with self.engine.begin() as own:
                yield own

    def list_channels(self, types: Iterable[int]) -> List[Channel]:
        """
        Read every non-soft-deleted channel whose type is in ``types``.

        Returns:
            Channels ordered by ID

        Raises:
            StoreReadError: On any database failure
        """
        stmt = (
            select(
                channels.c.id,
                channels.c.type,
                channels.c.name,
                channels.c.base_url,
                channels.c["key"],
                channels.c.status,
                channels.c.models,
            )
            .where(channels.c.deleted_at.is_(None))
            .where(channels.c.type.in_(list(types)))
            .order_by(channels.c.id)
        )
        try:
            with self.engine.connect() as conn:
                return [Channel.from_row(row) for row in conn.execute(stmt)]
        except SQLAlchemyError as e:
            raise StoreReadError(f"failed to query channels: {e}") from e

    def find_one_ability(self, channel_id: int) -> Optional[Ability]:
        """
        Fetch an arbitrary ability row of the channel.

        Raises:
            StoreReadError: On any database failure
        """
        stmt = select(abilities).where(abilities.c.channel_id == channel_id).limit(1)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as e:
            raise StoreReadError(f"failed to query abilities for channel {channel_id}: {e}") from e
        return Ability.from_row(row) if row is not None else None

    def list_abilities(self, channel_id: int) -> List[Ability]:
        """All ability rows of the channel, ordered by model name."""
        stmt = (
            select(abilities)
            .where(abilities.c.channel_id == channel_id)
            .order_by(abilities.c.model)
        )
        try:
            with self.engine.connect() as conn:
                return [Ability.from_row(row) for row in conn.execute(stmt)]
        except SQLAlchemyError as e:
            raise StoreReadError(f"failed to query abilities for channel {channel_id}: {e}") from e

    def default_config_for(self, channel_id: int) -> ChannelConfig:
        """
        Priority/weight to reuse for the channel's new ability rows.

        Samples one existing row. Missing rows and read errors both give
        the defaults (priority 0, weight 1).
        """
        try:
            ability = self.find_one_ability(channel_id)
        except StoreReadError as e:
            logger.warning(f"Failed to read channel config for ID:{channel_id}: {e}, using defaults")
            return ChannelConfig()

        if ability is None:
            return ChannelConfig()
        return ChannelConfig(priority=ability.priority, weight=ability.weight)

    def delete_abilities(self, channel_id: int, conn: Optional[Connection] = None) -> int:
        """
        Delete every ability row of the channel.

        Returns:
            Number of rows deleted

        Raises:
            StoreWriteError: On any database failure
        """
        stmt = delete(abilities).where(abilities.c.channel_id == channel_id)
        try:
            with self._writer(conn) as c:
                count = c.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StoreWriteError(f"failed to delete abilities: {e}", channel_id) from e
        logger.debug(f"Deleted {count} abilities of channel ID:{channel_id}")
        return count

    def insert_ability(self, ability: Ability, conn: Optional[Connection] = None) -> None:
        """
        Insert one ability row.

        Raises:
            StoreWriteError: On any database failure (including duplicates)
        """
        try:
            with self._writer(conn) as c:
                c.execute(insert(abilities).values(**ability.to_dict()))
        except SQLAlchemyError as e:
            raise StoreWriteError(
                f"failed to add ability {ability.model}: {e}", ability.channel_id
            ) from e

    def update_channel_models(
        self, channel_id: int, models: str, conn: Optional[Connection] = None
    ) -> None:
        """
        Overwrite the channel's comma-joined models column.

        Raises:
            StoreWriteError: On any database failure
        """
        stmt = update(channels).where(channels.c.id == channel_id).values(models=models)
        try:
            with self._writer(conn) as c:
                c.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"failed to update channel models: {e}", channel_id) from e
