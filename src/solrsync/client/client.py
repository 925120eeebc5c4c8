"""HTTP client for the Solr update and select handlers."""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator, Mapping, Optional, Union
from urllib.parse import unquote_plus

import httpx

from solrsync.config.models import ConnectionSettings
from solrsync.errors import ArgumentError, SolrConnectionError, SolrResponseError

from .wire import (
    encode_add,
    encode_command,
    encode_delete_id,
    encode_delete_query,
    encode_params,
    param_pairs,
    strip_control_chars,
)

LOGGER = logging.getLogger(__name__)

_PRE_BLOCK = re.compile(r"<pre>(.+?)(?:</pre>|$)", re.MULTILINE)
_UPDATE_HEADERS = {"Content-Type": "text/xml; charset=utf-8"}
_EXCERPT_LIMIT = 200


def _one_line(text: str, limit: int = _EXCERPT_LIMIT) -> str:
    flattened = " ".join(text.split())
    return flattened if len(flattened) <= limit else flattened[: limit - 3] + "..."


def _body_excerpt(body: str) -> str:
    match = _PRE_BLOCK.search(body)
    if match:
        return match.group(1).strip()
    return _one_line(body)


class SearchClient:
    """Blocking client for a single Solr core.

    Every request is attempted once; failures surface immediately as
    ``SolrConnectionError`` or ``SolrResponseError``. When auto-commit is on,
    each add, delete and delete-all is followed by a bare commit.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8982/solr",
        *,
        timeout: float = 10.0,
        optimize_timeout: float = 300.0,
        auto_commit: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.optimize_timeout = optimize_timeout
        self._auto_commit = auto_commit
        self._auto_commit_override: ContextVar[Optional[bool]] = ContextVar(
            f"solrsync_auto_commit_{id(self)}", default=None
        )
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: ConnectionSettings, **kwargs: Any) -> "SearchClient":
        """Build a client from connection settings."""
        return cls(
            settings.base_url,
            timeout=settings.timeout_seconds,
            optimize_timeout=settings.optimize_timeout_seconds,
            auto_commit=settings.auto_commit,
            **kwargs,
        )

    # Auto-commit ---------------------------------------------------------

    @property
    def auto_commit(self) -> bool:
        override = self._auto_commit_override.get()
        return self._auto_commit if override is None else override

    @auto_commit.setter
    def auto_commit(self, value: bool) -> None:
        self._auto_commit = value

    @contextmanager
    def disable_auto_commit(self) -> Iterator[None]:
        """Suspend auto-commit for the current context, restoring the prior value on exit."""
        token = self._auto_commit_override.set(False)
        try:
            yield
        finally:
            self._auto_commit_override.reset(token)

    # Update handler ------------------------------------------------------

    def add(self, documents: Iterable[Mapping[str, Any]]) -> None:
        """Send all ``documents`` in one ``<add>`` request."""
        batch = list(documents)
        if not batch:
            return
        self._update(encode_add(batch))
        if self.auto_commit:
            self.commit()

    def delete(self, solr_ids: Iterable[str]) -> None:
        """Delete documents by id, issuing one request per id."""
        ids = list(solr_ids)
        if not ids:
            return
        for solr_id in ids:
            self._update(encode_delete_id(solr_id))
        if self.auto_commit:
            self.commit()

    def delete_all(self, query: Optional[str] = None) -> None:
        """Delete every document matching ``query`` (all documents by default)."""
        self._update(encode_delete_query(query or "*:*"))
        if self.auto_commit:
            self.commit()

    def commit(self, *, wait_flush: Optional[bool] = None, wait_searcher: Optional[bool] = None) -> None:
        """Make pending changes visible.

        Args:
            wait_flush: Block until changes are flushed to disk. Engine default when None.
            wait_searcher: Block until a new searcher is registered. Engine default when None.
        """
        self._update(
            encode_command("commit", {"waitFlush": wait_flush, "waitSearcher": wait_searcher})
        )

    def optimize(self, *, wait_flush: Optional[bool] = None, wait_searcher: Optional[bool] = None) -> None:
        """Merge index segments.

        This can run for minutes on a large index, so it uses ``optimize_timeout``
        and belongs in maintenance jobs rather than request paths.
        """
        self._update(
            encode_command("optimize", {"waitFlush": wait_flush, "waitSearcher": wait_searcher}),
            timeout=self.optimize_timeout,
        )

    # Select handler ------------------------------------------------------

    def select(self, params: Union[Mapping[str, Any], str, None] = None) -> dict[str, Any]:
        """Run a select request and return the decoded JSON body.

        Args:
            params: Request parameters, list values sent as repeated keys. A
                string is sent as the ``q`` parameter and None matches every
                document.

        Returns:
            dict[str, Any]: Decoded response body.

        Raises:
            ArgumentError: If ``params`` is not a mapping, a string or None.
            SolrConnectionError: If Solr cannot be reached.
            SolrResponseError: If Solr answers with a non-2xx status or a body
                that is not JSON.
        """
        if params is None:
            params = {"q": "*:*"}
        elif isinstance(params, str):
            params = {"q": params}
        elif not isinstance(params, Mapping):
            raise ArgumentError(
                f"select accepts a mapping, a string or None, got {type(params).__name__}"
            )
        summary = unquote_plus(encode_params(params))
        response = self._send("select", "GET", "/select", summary, params=param_pairs(params))
        try:
            payload = response.json()
        except ValueError as exc:
            raise SolrResponseError(response.status_code, "Response body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise SolrResponseError(response.status_code, "Response body is not a JSON object")
        return payload

    def responds(self) -> bool:
        """Return True if the Solr server answers a HEAD request on the core path."""
        start = time.perf_counter()
        try:
            response = self._http.head("")
        except httpx.TransportError as exc:
            elapsed = time.perf_counter() - start
            LOGGER.info("Solr ping (%.4fs) [unreachable] %s: %s", elapsed, self.base_url, exc)
            return False
        elapsed = time.perf_counter() - start
        LOGGER.info("Solr ping (%.4fs) [%s] %s", elapsed, response.status_code, self.base_url)
        return response.status_code < 500

    # Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SearchClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Internal helpers ----------------------------------------------------

    def _update(self, body: str, *, timeout: Optional[float] = None) -> None:
        payload = strip_control_chars(body)
        self._send(
            "update",
            "POST",
            "/update",
            _one_line(payload),
            content=payload.encode("utf-8"),
            headers=_UPDATE_HEADERS,
            timeout=timeout if timeout is not None else self.timeout,
        )

    def _send(self, action: str, method: str, path: str, summary: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        start = time.perf_counter()
        outcome = "failed"
        try:
            try:
                response = self._http.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                raise SolrConnectionError(url, f"Unable to reach Solr at {url}: {exc}") from exc
            outcome = str(response.status_code)
            if not response.is_success:
                raise SolrResponseError(response.status_code, _body_excerpt(response.text))
            return response
        finally:
            LOGGER.info(
                "Solr %s (%.4fs) [%s] %s", action, time.perf_counter() - start, outcome, summary
            )


__all__ = ["SearchClient"]
