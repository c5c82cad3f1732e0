import json
import logging
from time import monotonic
from typing import Any, Dict

import httpx

from .config import Settings

logger = logging.getLogger(__name__)


class QuoteServiceError(Exception):
    """Base class for failures of the quote proxy."""


class QuoteNotConfiguredError(QuoteServiceError):
    """Raised when the upstream credentials or endpoint are not configured."""

    def __init__(self, setting: str):
        super().__init__(f"Server Not Configured. Missing {setting}")
        self.setting = setting


class QuoteUpstreamError(QuoteServiceError):
    """Raised when the upstream API cannot be reached or returns unusable data."""


def build_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=settings.quote_timeout_seconds)


def latest_quotes_url(settings: Settings) -> str:
    missing = settings.missing_quote_setting()
    if missing:
        raise QuoteNotConfiguredError(missing)
    return f"{settings.cmc_base_url}{settings.cmc_latest_quotes_path}"


def fetch_latest_quotes(
    client: httpx.Client, settings: Settings, symbol: str
) -> Dict[str, Any]:
    """Fetch the upstream "latest quotes" document for `symbol`, untouched.

    The API key never leaves the server except in the upstream request header.
    The upstream status code is not inspected: whatever JSON object comes
    back is relayed.

    `quote_timeout_seconds` bounds the whole call, body included, not just
    each network read.
    """
    url = latest_quotes_url(settings)
    headers = {
        "X-CMC_PRO_API_KEY": settings.cmc_api_key,
        "Accept": "application/json",
    }
    timeout = settings.quote_timeout_seconds
    deadline = monotonic() + timeout

    try:
        with client.stream(
            "GET", url, params={"symbol": symbol}, headers=headers, timeout=timeout
        ) as response:
            chunks = []
            for chunk in response.iter_bytes():
                if monotonic() > deadline:
                    logger.warning("Quote upstream too slow for %s", symbol)
                    raise QuoteUpstreamError(
                        f"upstream did not respond within {timeout:g}s"
                    )
                chunks.append(chunk)
    except httpx.HTTPError as exc:
        logger.warning("Quote upstream request failed for %s: %s", symbol, exc)
        raise QuoteUpstreamError(str(exc) or exc.__class__.__name__) from exc

    try:
        payload = json.loads(b"".join(chunks))
    except ValueError as exc:
        logger.warning("Quote upstream returned malformed JSON for %s", symbol)
        raise QuoteUpstreamError(str(exc)) from exc

    if not isinstance(payload, dict):
        raise QuoteUpstreamError(
            f"upstream returned {type(payload).__name__}, expected a JSON object"
        )
    return payload
