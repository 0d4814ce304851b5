"""HTTP transport for the search domain's search and document endpoints."""

from __future__ import annotations

import json
import random
import time
from typing import Any, Final, Mapping, Sequence

import requests

from SearchSync.errors import DocumentUploadError, SearchError
from SearchSync.utils.log import log

DEFAULT_API_VERSION = "2013-01-01"
DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 0.8
MAX_SLEEP = 8.0
RETRYABLE_STATUS: Final[set[int]] = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": "search-sync/0.1",
    "Accept": "application/json",
}

# compiled request key -> HTTP query parameter
_PARAM_NAMES: Final[dict[str, str]] = {
    "query": "q",
    "queryParser": "q.parser",
    "queryOptions": "q.options",
    "filterQuery": "fq",
    "return": "return",
    "size": "size",
    "start": "start",
    "cursor": "cursor",
    "sort": "sort",
}


def normalize_endpoint(url: str) -> str:
    """Add a scheme when missing and drop trailing slashes.

    Raises:
        ValueError: If url is empty.
    """
    url = url.strip()
    if not url:
        raise ValueError("search endpoint cannot be empty")
    if "://" not in url:
        url = "https://" + url
    return url.rstrip("/")


def document_endpoint_for(search_endpoint: str) -> str:
    """Derive the document endpoint from a ``search-`` domain endpoint.

    Domains expose ``search-<domain>`` for queries and ``doc-<domain>`` for
    uploads; endpoints without that prefix are returned unchanged.
    """
    url = normalize_endpoint(search_endpoint)
    scheme, _, host = url.partition("://")
    if host.startswith("search-"):
        host = "doc-" + host[len("search-"):]
    return f"{scheme}://{host}"


def to_http_params(request: Mapping[str, Any]) -> dict[str, str]:
    """Map a compiled request onto the search endpoint's query parameters.

    The JSON-valued `facet`, `expr` and `stats` entries are expanded into
    one ``facet.FIELD`` / ``expr.NAME`` / ``stats.FIELD`` parameter per key.

    Args:
        request: Output of `StructuredQuery.compile()`.

    Returns:
        Flat parameter mapping.
    """
    params: dict[str, str] = {}
    for key, value in request.items():
        if key in _PARAM_NAMES:
            params[_PARAM_NAMES[key]] = str(value)
        elif key == "facet":
            for field, spec in json.loads(value).items():
                params[f"facet.{field}"] = json.dumps(spec, separators=(",", ":"))
        elif key == "expr":
            for name, formula in json.loads(value).items():
                params[f"expr.{name}"] = formula
        elif key == "stats":
            for field in json.loads(value):
                params[f"stats.{field}"] = "{}"
        else:
            params[key] = str(value)
    return params


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e.get("message", e)) if isinstance(e, Mapping) else str(e) for e in errors)
    return f"HTTP {response.status_code}"


class HttpSearchTransport:
    """Low-level HTTP client for a search domain."""

    def __init__(
        self,
        endpoint: str,
        *,
        document_endpoint: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the transport with a reusable HTTP session.

        Args:
            endpoint: Search endpoint of the domain.
            document_endpoint: Upload endpoint; derived from `endpoint` when omitted.
            api_version: API version path segment.
            timeout: Request timeout in seconds.
            session: Optional preconfigured session (auth, proxies).
        """
        self.search_url = f"{normalize_endpoint(endpoint)}/{api_version}/search"
        doc_base = normalize_endpoint(document_endpoint) if document_endpoint else document_endpoint_for(endpoint)
        self.documents_url = f"{doc_base}/{api_version}/documents/batch"
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def search(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Execute a compiled search request.

        Args:
            request: Output of `StructuredQuery.compile()`.

        Returns:
            Decoded response envelope.

        Raises:
            SearchError: If the backend rejects the request or is unreachable.
        """
        response = self._send("GET", self.search_url, params=to_http_params(request))
        if response.status_code >= 400:
            raise SearchError(_error_message(response), response.status_code)
        return self._decode(response)

    def upload_documents(self, documents: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        """Upload a batch of add/delete document operations.

        Args:
            documents: Document operations (`{"type", "id", "fields"?}`).

        Returns:
            Decoded upload envelope (``status``, ``adds``, ``deletes``).

        Raises:
            DocumentUploadError: If the backend rejects the batch.
            SearchError: If the backend is unreachable.
        """
        response = self._send(
            "POST",
            self.documents_url,
            data=json.dumps(list(documents)),
            headers={"Content-Type": "application/json"},
        )
        payload = self._decode(response) if response.status_code < 400 else {}
        if response.status_code >= 400 or payload.get("status") == "error":
            raise DocumentUploadError(
                _error_message(response),
                response.status_code,
                errors=payload.get("errors") or [],
            )
        return payload

    def _decode(self, response: requests.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as error:
            raise SearchError(f"Invalid JSON response: {error}", response.status_code) from error
        if not isinstance(payload, dict):
            raise SearchError("Unexpected response envelope", response.status_code)
        return payload

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue a request with retries for transient failures."""
        headers = dict(HEADERS)
        headers.update(kwargs.pop("headers", {}))
        last_error: Exception | None = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                response = self._session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
                if response.status_code not in RETRYABLE_STATUS:
                    return response
                last_error = SearchError(_error_message(response), response.status_code)
            except (requests.Timeout, requests.ConnectionError) as error:
                last_error = error
            if attempt < MAX_ATTEMPTS:
                delay = min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.3), MAX_SLEEP)
                log.debug("Search retry attempt=%d/%d delay=%.2fs error=%s", attempt, MAX_ATTEMPTS, delay, last_error)
                time.sleep(delay)

        assert last_error is not None
        if isinstance(last_error, SearchError):
            raise last_error
        raise SearchError(f"Search backend unreachable: {last_error}") from last_error
