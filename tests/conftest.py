"""
Shared pytest fixtures for modelprobe tests.

This module provides common fixtures including:
- A temporary sqlite routing store with the channels/abilities schema
- StoreSeeder: insert channels and abilities in one line
- UpstreamMock: answer model listings and completions per URL and model
"""

import json
import os
import sys
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import httpx
import pytest
from sqlalchemy import insert, select

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modelprobe.config import ProbeConfig
from modelprobe.modules.capability import CapabilityStore
from modelprobe.modules.storage import StorageModule, abilities, channels, create_schema


# =============================================================================
# Routing Store
# =============================================================================


class StoreSeeder:
    """Insert and read raw rows without going through the gateway."""

    def __init__(self, engine):
        self.engine = engine

    def channel(
        self,
        id: int,
        type: int = 1,
        name: Optional[str] = None,
        base_url: Optional[str] = "https://upstream.test",
        key: Optional[str] = "sk-test",
        models: Optional[str] = "",
        status: int = 1,
        deleted: bool = False,
    ) -> int:
        with self.engine.begin() as conn:
            conn.execute(
                insert(channels).values(
                    id=id,
                    type=type,
                    name=name if name is not None else f"channel-{id}",
                    base_url=base_url,
                    key=key,
                    status=status,
                    models=models,
                    deleted_at=datetime(2024, 1, 1) if deleted else None,
                )
            )
        return id

    def ability(self, channel_id: int, model: str, priority: int = 0, weight: int = 1, group: str = "default"):
        with self.engine.begin() as conn:
            conn.execute(
                insert(abilities).values(
                    group=group,
                    model=model,
                    channel_id=channel_id,
                    enabled=True,
                    priority=priority,
                    weight=weight,
                )
            )

    def abilities_of(self, channel_id: int) -> List[Tuple[str, str, bool, int, int]]:
        """(group, model, enabled, priority, weight) rows sorted by model."""
        stmt = (
            select(
                abilities.c["group"],
                abilities.c.model,
                abilities.c.enabled,
                abilities.c.priority,
                abilities.c.weight,
            )
            .where(abilities.c.channel_id == channel_id)
            .order_by(abilities.c.model)
        )
        with self.engine.connect() as conn:
            return [(r[0], r[1], bool(r[2]), r[3], r[4]) for r in conn.execute(stmt)]

    def models_of(self, channel_id: int) -> Optional[str]:
        stmt = select(channels.c.models).where(channels.c.id == channel_id)
        with self.engine.connect() as conn:
            return conn.execute(stmt).scalar_one()


@pytest.fixture
def engine(tmp_path):
    """Engine over a fresh sqlite file with the routing schema."""
    storage = StorageModule("sqlite", str(tmp_path / "routing.db"))
    engine = storage.connect()
    create_schema(engine)
    yield engine
    storage.disconnect()


@pytest.fixture
def store(engine):
    return CapabilityStore(engine)


@pytest.fixture
def seed(engine):
    return StoreSeeder(engine)


@pytest.fixture
def probe_config():
    """Default probing policy: discovery on, no exclusions, a small fixed list."""
    return ProbeConfig(fixed_models=("fixed-a", "fixed-b"))


# =============================================================================
# Upstream HTTP Mocking
# =============================================================================


class UpstreamMock:
    """
    Canned answers for GET {base}/v1/models and POST {url} completions.

    Unregistered listings fail with a connection error; unregistered
    completions answer 404.

    Usage:
        def test_probe(upstream, http_client):
            upstream.serve_models("https://x.com", ["gpt-a"])
            upstream.answer("https://x.com/v1/chat/completions", "gpt-a")
    """

    def __init__(self):
        self._listings: Dict[str, dict] = {}
        self._completions: Dict[Tuple[str, str], dict] = {}
        self.requests: List[httpx.Request] = []

    def serve_models(self, base_url: str, ids: Optional[List[str]] = None, status: int = 200,
                     body: Optional[str] = None, error: Optional[type] = None) -> "UpstreamMock":
        self._listings[base_url] = {"ids": ids or [], "status": status, "body": body, "error": error}
        return self

    def answer(self, url: str, model: str, status: int = 200, error: Optional[type] = None) -> "UpstreamMock":
        self._completions[(url, model)] = {"status": status, "error": error}
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if request.method == "GET" and url.endswith("/v1/models"):
            spec = self._listings.get(url[: -len("/v1/models")])
            if spec is None or spec["error"] is not None:
                error = spec["error"] if spec else httpx.ConnectError
                raise error("upstream unreachable", request=request)
            if spec["body"] is not None:
                return httpx.Response(spec["status"], text=spec["body"])
            return httpx.Response(
                spec["status"],
                json={"object": "list", "data": [{"id": i, "object": "model"} for i in spec["ids"]]},
            )

        if request.method == "POST":
            model = json.loads(request.content)["model"]
            spec = self._completions.get((url, model))
            if spec is None:
                return httpx.Response(404, json={"error": {"message": f"model {model} not found"}})
            if spec["error"] is not None:
                raise spec["error"]("probe failed", request=request)
            return httpx.Response(
                spec["status"],
                json={"choices": [{"message": {"role": "assistant", "content": "Hi"}}]},
            )

        return httpx.Response(405)

    @property
    def listing_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def completion_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def probed_models(self) -> List[str]:
        return [json.loads(r.content)["model"] for r in self.completion_requests]


@pytest.fixture
def upstream():
    return UpstreamMock()


@pytest.fixture
def http_client(upstream):
    client = httpx.Client(transport=httpx.MockTransport(upstream.handler))
    yield client
    client.close()
