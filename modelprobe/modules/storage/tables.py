"""
Table definitions for the routing store.

The prober does not own these tables; they belong to the LLM proxy whose
routing table it maintains. Only the columns the prober reads or writes are
declared.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

channels = Table(
    "channels",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("type", Integer, nullable=False, default=0),
    Column("name", String(255)),
    Column("base_url", String(255)),
    Column("key", Text),
    Column("status", Integer, default=1),
    Column("models", Text),
    Column("deleted_at", DateTime, nullable=True),
)

abilities = Table(
    "abilities",
    metadata,
    Column("group", String(32), primary_key=True),
    Column("model", String(255), primary_key=True),
    Column("channel_id", Integer, primary_key=True, index=True),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("priority", BigInteger, default=0),
    Column("weight", BigInteger, default=1),
)
