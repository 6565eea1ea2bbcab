"""aiohttp implementation of :class:`TransactionStore`.

Talks to the ``/transactions`` REST resource.  Transport failures become
:class:`NetworkFailure`; any ``>= 400`` response (and a body that cannot be
read as transactions) becomes :class:`ServerRejected`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import aiohttp

from findash import config
from findash.application.interfaces import FetchedPage
from findash.domain.models.core import Transaction
from findash.domain.models.query import TransactionQuery, to_params
from findash.errors import InvalidRecordError, NetworkFailure, ServerRejected

LOGGER = logging.getLogger(__name__)


class RestTransactionStore:
    """Remote transaction collection behind a JSON API.

    Pass an existing ``aiohttp.ClientSession`` to share its connection pool;
    otherwise one is created lazily and closed by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = config.REQUEST_TIMEOUT_SEC,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> RestTransactionStore:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # -- TransactionStore ---------------------------------------------------

    async def fetch_page(
        self, query: Optional[TransactionQuery], page: int, limit: int
    ) -> FetchedPage:
        params = to_params(query, page, limit)
        LOGGER.debug("GET %s %s", self._url(), params)
        payload = await self._request("GET", self._url(), params=params)
        try:
            return parse_page(payload)
        except (InvalidRecordError, TypeError, ValueError) as exc:
            raise ServerRejected(200, f"Malformed transaction page: {exc}") from exc

    async def create(self, payload: Dict[str, Any]) -> Transaction:
        body = await self._request("POST", self._url(), json=payload)
        return self._single(body)

    async def update(self, transaction_id: str, payload: Dict[str, Any]) -> Transaction:
        body = await self._request("PUT", self._url(transaction_id), json=payload)
        return self._single(body)

    async def delete(self, transaction_id: str) -> None:
        await self._request("DELETE", self._url(transaction_id))

    # -- internal -----------------------------------------------------------

    def _url(self, transaction_id: Optional[str] = None) -> str:
        url = f"{self._base_url}/{config.TRANSACTIONS_ENDPOINT}"
        if transaction_id is not None:
            url = f"{url}/{transaction_id}"
        return url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        session = self._client()
        try:
            async with session.request(
                method, url, headers=self._headers(), timeout=self._timeout, **kwargs
            ) as resp:
                if resp.status >= 400:
                    message = await _error_message(resp)
                    LOGGER.warning("%s %s rejected with %d: %s", method, url, resp.status, message)
                    raise ServerRejected(resp.status, message)
                if resp.status == 204:
                    return None
                try:
                    return await resp.json(content_type=None)
                except ValueError as exc:
                    raise ServerRejected(resp.status, "Response body is not JSON") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            LOGGER.warning("%s %s failed: %s", method, url, exc)
            raise NetworkFailure(f"{method} {url} failed: {str(exc) or type(exc).__name__}") from exc

    @staticmethod
    def _single(body: Any) -> Transaction:
        # {"data": {...}}, {"data": {"transaction": {...}}} or the bare record.
        if isinstance(body, Mapping) and isinstance(body.get("data"), Mapping):
            body = body["data"]
        if isinstance(body, Mapping) and isinstance(body.get("transaction"), Mapping):
            body = body["transaction"]
        if not isinstance(body, Mapping):
            raise ServerRejected(200, "Expected a transaction object in the response")
        try:
            return Transaction.from_payload(body)
        except InvalidRecordError as exc:
            raise ServerRejected(200, str(exc)) from exc


def parse_page(payload: Any) -> FetchedPage:
    """Read one page out of the envelopes the API has been seen to return.

    Accepted shapes: a bare list; ``{"data": [...], "meta": {"pagination":
    {"total": N}}}``; and flat ``{"data"|"transactions": [...], "total"|
    "totalCount": N}``.  A missing total falls back to the page length.
    """
    if isinstance(payload, list):
        records = _records(payload)
        return FetchedPage(records=records, total=len(records))
    if not isinstance(payload, Mapping):
        raise TypeError(f"Unexpected page payload: {type(payload).__name__}")

    raw = payload.get("data")
    if raw is None:
        raw = payload.get("transactions", [])
    if not isinstance(raw, list):
        raise TypeError("Page payload has no list of transactions")
    records = _records(raw)

    total = _reported_total(payload)
    if total is None:
        total = len(records)
    if total < 0:
        raise ValueError(f"Negative total {total}")
    return FetchedPage(records=records, total=total)


def _records(raw: List[Any]) -> List[Transaction]:
    return [Transaction.from_payload(item) for item in raw]


def _reported_total(payload: Mapping[str, Any]) -> Optional[int]:
    meta = payload.get("meta")
    if isinstance(meta, Mapping):
        pagination = meta.get("pagination")
        if isinstance(pagination, Mapping) and pagination.get("total") is not None:
            return int(pagination["total"])
    pagination = payload.get("pagination")
    if isinstance(pagination, Mapping) and pagination.get("total") is not None:
        return int(pagination["total"])
    for key in ("totalCount", "total"):
        if payload.get(key) is not None:
            return int(payload[key])
    return None


async def _error_message(resp: aiohttp.ClientResponse) -> Optional[str]:
    try:
        body = await resp.json(content_type=None)
    except (ValueError, aiohttp.ClientError):
        return None
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return None
