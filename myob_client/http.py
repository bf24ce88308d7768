from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)


class ApiHttpError(RuntimeError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(ValueError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class HttpConnection:
    """GET/POST/PUT/DELETE over a ``requests.Session``.

    Headers and query parameters given to a call apply to that call only;
    the session defaults are never modified after construction.
    """

    def __init__(
        self,
        session: requests.Session,
        base_url: str | None = None,
        timeout_seconds: int = 30,
    ):
        self._session = session
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    @property
    def base_url(self) -> str | None:
        return self._base_url

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        body: str | bytes | None = None,
    ) -> requests.Response:
        target = self._resolve_url(url)
        logger.debug("%s %s", method, target)

        response = self._session.request(
            method,
            target,
            headers=dict(headers) if headers else None,
            params=dict(params) if params else None,
            data=body,
            timeout=self._timeout_seconds,
        )

        if not response.ok:
            message = response.text[:500]
            raise ApiHttpError(
                status_code=response.status_code,
                message=f"HTTP {response.status_code}: {message}",
            )
        return response

    def get(self, url: str, headers=None, params=None) -> requests.Response:
        return self.request("GET", url, headers=headers, params=params)

    def post(self, url: str, headers=None, body=None, params=None) -> requests.Response:
        return self.request("POST", url, headers=headers, params=params, body=body)

    def put(self, url: str, headers=None, body=None, params=None) -> requests.Response:
        return self.request("PUT", url, headers=headers, params=params, body=body)

    def delete(self, url: str, headers=None, params=None) -> requests.Response:
        return self.request("DELETE", url, headers=headers, params=params)

    def close(self) -> None:
        self._session.close()

    def _resolve_url(self, url: str) -> str:
        if self._base_url and not url.startswith(("http://", "https://")):
            return urljoin(self._base_url, url)
        return url


class LocalConnection(HttpConnection):
    """Direct connection to a self-hosted AccountRight API server."""

    def __init__(self, base_url: str, timeout_seconds: int = 30):
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        super().__init__(session, base_url=base_url, timeout_seconds=timeout_seconds)


def parse_json(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as error:
        raise ResponseParseError(
            status_code=response.status_code,
            message=f"Invalid JSON in response body: {response.text[:200]}",
        ) from error
