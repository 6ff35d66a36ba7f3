"""
Model Prober for modelprobe.

For one channel this module works out which models to try and then sends
each of them a minimal chat completion. A model counts as verified only if
the upstream answers 200 within the probe timeout.

Candidate resolution, first applicable rule wins:
1. force_fixed_models: the configured fixed list, no discovery call
2. GET {base_url}/v1/models, minus excluded model names
3. discovery failed: the channel's stored models, else the fixed list
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List

import httpx
from pydantic import ValidationError

from modelprobe.config import ProbeConfig
from modelprobe.errors import ParseError, TransportError, UnsupportedEndpointError
from modelprobe.modules.api import ChatCompletionRequest, ModelListResponse
from modelprobe.modules.capability import Channel

logger = logging.getLogger("modelprobe.prober")

# Per-model health check timeout in seconds. Not configurable.
PROBE_TIMEOUT = 5.0

COMPLETIONS_PATH = "/v1/chat/completions"

# Bytes of a failed answer kept for the log line.
ERROR_BODY_LIMIT = 200


def completions_url(base_url: str) -> str:
    """
    Build the chat completions endpoint from a channel base URL.

    Only missing segments are appended, so the result is stable under
    repeated application:
        https://api.example.com         -> https://api.example.com/v1/chat/completions
        https://api.example.com/v1      -> https://api.example.com/v1/chat/completions
        https://api.example.com/v1/chat -> https://api.example.com/v1/chat/completions
    """
    url = base_url.rstrip("/")
    if COMPLETIONS_PATH in url:
        return url
    if not url.endswith("/chat"):
        if not url.endswith("/v1"):
            url += "/v1"
        url += "/chat"
    return url + "/completions"


def _unique(models: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for model in models:
        model = model.strip()
        if model and model not in seen:
            seen.add(model)
            result.append(model)
    return result


class ModelProber:
    """Discovers and health-checks the models of one channel at a time."""

    def __init__(self, client: httpx.Client, config: ProbeConfig, probe_timeout: float = PROBE_TIMEOUT):
        """
        Initialize prober.

        Args:
            client: Shared HTTP client
            config: Probing policy (fixed list, exclusions, concurrency)
            probe_timeout: Per-model health check timeout in seconds
        """
        self.client = client
        self.config = config
        self.probe_timeout = probe_timeout

    @staticmethod
    def _headers(channel: Channel) -> dict:
        # "Bearer " alone is not a legal header value
        if not channel.key:
            return {}
        return {"Authorization": f"Bearer {channel.key}"}

    @staticmethod
    def _validate_base_url(channel: Channel) -> str:
        base_url = channel.base_url.strip().rstrip("/")
        try:
            url = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            raise UnsupportedEndpointError(base_url, channel.id) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise UnsupportedEndpointError(base_url, channel.id)
        return base_url

    def discover_models(self, channel: Channel) -> List[str]:
        """
        List the models the channel advertises, minus excluded names.

        Raises:
            TransportError: Request failed or returned a non-200 status
            ParseError: Body is not a model listing
        """
        url = f"{channel.base_url.strip().rstrip('/')}/v1/models"
        try:
            response = self.client.get(
                url, headers=self._headers(channel), timeout=self.config.discovery_timeout
            )
        except (httpx.HTTPError, UnicodeEncodeError) as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise TransportError(f"GET {url} returned status {response.status_code}")

        try:
            listing = ModelListResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise ParseError(f"invalid model listing from {url}: {e}") from e

        models = []
        for model in listing.model_ids():
            if model in self.config.exclude_model_names:
                logger.info(f"Model {model} is in the exclusion list, skipping")
                continue
            models.append(model)
        return models

    def resolve_candidates(self, channel: Channel) -> List[str]:
        """Candidate models for the channel, de-duplicated, in source order."""
        if self.config.force_fixed_models:
            logger.info("Using the fixed model list (force_models is set)")
            return _unique(self.config.fixed_models)

        try:
            return _unique(self.discover_models(channel))
        except (TransportError, ParseError) as e:
            logger.warning(f"Model discovery for channel {channel.label()} failed: {e}")

        stored = channel.model_list
        if stored:
            logger.info(f"Using the stored model list of channel {channel.label()}: {channel.models}")
            return _unique(stored)

        logger.info(f"Channel {channel.label()} has no stored models, using the fixed model list")
        return _unique(self.config.fixed_models)

    def check_model(self, channel: Channel, url: str, model: str) -> bool:
        """
        Send one probe completion. Never raises for HTTP failures.

        The probe timeout is a total deadline: the status line and the whole
        body must arrive within it, however the upstream paces its bytes.

        Returns:
            True if the upstream answered 200 before the deadline
        """
        payload = ChatCompletionRequest.probe(model).model_dump()
        headers = self._headers(channel)
        headers["Content-Type"] = "application/json"

        logger.info(f"Testing model {model} of channel {channel.label()}")
        deadline = time.monotonic() + self.probe_timeout
        body = b""
        try:
            with self.client.stream(
                "POST", url, json=payload, headers=headers, timeout=self.probe_timeout
            ) as response:
                for chunk in response.iter_bytes():
                    if len(body) < ERROR_BODY_LIMIT:
                        body += chunk
                    if time.monotonic() > deadline:
                        break
        except (httpx.HTTPError, UnicodeEncodeError) as e:
            logger.warning(f"Request for model {model} of channel {channel.label()} failed: {e}")
            return False

        if time.monotonic() > deadline:
            logger.warning(
                f"Model {model} of channel {channel.label()} did not answer within {self.probe_timeout:g}s"
            )
            return False

        if response.status_code == httpx.codes.OK:
            logger.info(f"Model {model} of channel {channel.label()} is available")
            return True

        logger.warning(
            f"Model {model} of channel {channel.label()} failed with status "
            f"{response.status_code}: {body[:ERROR_BODY_LIMIT].decode('utf-8', 'replace')}"
        )
        return False

    def probe_channel(self, channel: Channel) -> List[str]:
        """
        Determine the verified models of a channel.

        Returns:
            Verified model names in candidate order (may be empty)

        Raises:
            UnsupportedEndpointError: base_url is not an absolute http(s) URL
        """
        base_url = self._validate_base_url(channel)
        candidates = self.resolve_candidates(channel)
        if not candidates:
            logger.info(f"Channel {channel.label()} has no candidate models")
            return []

        url = completions_url(base_url)
        workers = min(self.config.probe_concurrency, len(candidates))

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
                results = list(pool.map(lambda m: self.check_model(channel, url, m), candidates))
        else:
            results = [self.check_model(channel, url, model) for model in candidates]

        return [model for model, ok in zip(candidates, results) if ok]
