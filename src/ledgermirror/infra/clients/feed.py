from __future__ import annotations

import asyncio
from collections.abc import Sequence
import json
from typing import Any, cast
import urllib.error
import urllib.parse
import urllib.request

import loguru
from loguru import logger
from pydantic import ValidationError

from ledgermirror.models.transaction import FeedPage

PAGINATED_TRANSACTIONS_METHOD = "transaction.getPaginatedTransactions"


class FeedClientError(Exception):
    """Base error for feed client failures."""


class FeedClientLogger:
    """Handles all logging for FeedClient."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def request(self, method: str, cursor: Any) -> None:
        label = "initial" if cursor is None else cursor
        self._logger.bind(method=method, cursor=label).debug(
            "Querying {} (cursor: {})", method, label
        )

    def error(self, method: str, message: str) -> None:
        self._logger.bind(method=method).warning(
            "Feed query {} failed: {}", method, message
        )


class FeedClient:
    """HTTP client for the remote tRPC transaction feed.

    Implements the TransactionFeed protocol. Queries are GET requests of the
    form ``{base_url}/{method}?input=<json>``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        if not base_url:
            raise FeedClientError("Feed base URL must not be empty")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = headers or {}
        self._logger = FeedClientLogger()

    def _build_url(self, method: str, params: dict[str, Any]) -> str:
        query = urllib.parse.urlencode({"input": json.dumps(params)})
        return f"{self._base_url}/{urllib.parse.quote(method)}?{query}"

    def _parse_json_response(self, body: str) -> dict[str, Any]:
        """Parse JSON response from the feed.

        Raises:
            FeedClientError: If JSON parsing fails or the body is not an object
        """
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError as e:
            raise FeedClientError(
                f"Failed to parse feed response as JSON: {e}: {body}"
            ) from e
        if not isinstance(parsed, dict):
            raise FeedClientError(f"Unexpected feed response: {body}")
        return cast(dict[str, Any], parsed)

    @staticmethod
    def _unwrap(payload: dict[str, Any]) -> dict[str, Any]:
        """Strip the tRPC ``result.data`` (and optional ``json``) envelope."""
        if "error" in payload:
            raise FeedClientError(f"Feed returned an error: {payload['error']}")
        data: Any = payload
        if isinstance(data.get("result"), dict):
            data = data["result"].get("data", {})
        if isinstance(data, dict) and isinstance(data.get("json"), dict):
            data = data["json"]
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FeedClientError(f"Unexpected feed payload: {data!r}")
        return cast(dict[str, Any], data)

    def query(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run a tRPC query and return its unwrapped data."""
        url = self._build_url(method, params)
        req = urllib.request.Request(  # noqa: S310
            url,
            headers={"Accept": "application/json", **self._headers},
            method="GET",
        )

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # noqa: S310
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            err_body = e.read().decode("utf-8", "ignore")
            self._logger.error(method, f"HTTP {e.code}")
            raise FeedClientError(f"Feed API error ({e.code}): {err_body}") from e
        except urllib.error.URLError as e:
            self._logger.error(method, str(e.reason))
            raise FeedClientError(f"Network error calling feed API: {e}") from e
        except TimeoutError as e:
            self._logger.error(method, "timed out")
            raise FeedClientError(f"Timed out calling feed API: {e}") from e

        return self._unwrap(self._parse_json_response(body))

    def get_page(
        self,
        user_id: str,
        *,
        types: Sequence[str],
        limit: int,
        cursor: Any,
    ) -> FeedPage:
        """Fetch one page of transactions, newest first."""
        self._logger.request(PAGINATED_TRANSACTIONS_METHOD, cursor)
        data = self.query(
            PAGINATED_TRANSACTIONS_METHOD,
            {
                "userId": user_id,
                "transactionType": list(types),
                "limit": limit,
                "cursor": cursor,
            },
        )
        try:
            return FeedPage.parse(data)
        except ValidationError as e:
            raise FeedClientError(f"Malformed transaction page: {e}") from e

    async def fetch_page(
        self,
        user_id: str,
        *,
        types: Sequence[str],
        limit: int,
        cursor: Any,
    ) -> FeedPage:
        return await asyncio.to_thread(
            self.get_page, user_id, types=types, limit=limit, cursor=cursor
        )
