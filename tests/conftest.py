from __future__ import annotations

import json
import os
from typing import Any

import pytest

from myob_client import Client

API_URL = "https://api.myob.com/accountright/"
COMPANY_FILE_ID = "cf-0001"
COMPANY_FILE_URI = f"https://ar1.api.myob.com/accountright/{COMPANY_FILE_ID}"

COMPANY_FILES = [
    {"Id": COMPANY_FILE_ID, "Name": "Acme", "Uri": COMPANY_FILE_URI},
    {"Id": "cf-0002", "Name": "Globex", "Uri": "https://ar2.api.myob.com/accountright/cf-0002"},
]

MYOB_ENV_VARS = [
    "MYOB_API_KEY",
    "MYOB_API_SECRET",
    "MYOB_ACCESS_TOKEN",
    "MYOB_REFRESH_TOKEN",
    "MYOB_REDIRECT_URI",
    "MYOB_SCOPE",
    "MYOB_API_URL",
    "MYOB_SERVER_URL",
    "MYOB_COMPANY_FILE_NAME",
    "MYOB_COMPANY_FILE_ID",
    "MYOB_COMPANY_FILE_TOKEN",
    "MYOB_COMPANY_FILE_USERNAME",
    "MYOB_COMPANY_FILE_PASSWORD",
    "MYOB_TIMEOUT_SECONDS",
    "MYOB_LOG_LEVEL",
    "MYOB_ENV_FILE",
]


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None, headers=None):
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeConnection:
    """Replays queued responses and records every call made through it."""

    def __init__(self, *responses: Any):
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: Any) -> None:
        self._responses.extend(responses)

    def _next(self, method: str, url: str, headers=None, body=None) -> FakeResponse:
        self.calls.append({"method": method, "url": url, "headers": dict(headers or {}), "body": body})
        if not self._responses:
            raise AssertionError(f"Unexpected {method} {url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, FakeResponse):
            return response
        return FakeResponse(200, response)

    def get(self, url, headers=None, params=None):
        return self._next("GET", url, headers)

    def post(self, url, headers=None, body=None, params=None):
        return self._next("POST", url, headers, body)

    def put(self, url, headers=None, body=None, params=None):
        return self._next("PUT", url, headers, body)

    def delete(self, url, headers=None, params=None):
        return self._next("DELETE", url, headers)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def client(connection: FakeConnection) -> Client:
    return Client(api_key="consumer-key", api_secret="consumer-secret", access_token="at", connection=connection)


@pytest.fixture
def selected_client(client: Client, connection: FakeConnection) -> Client:
    connection.queue(COMPANY_FILES)
    client.select_company_file({"name": "Acme", "username": "Administrator", "password": ""})
    connection.calls.clear()
    return client


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run with no MYOB_* variables, in an empty working directory."""
    # .env loading writes straight into os.environ
    environ = {key: value for key, value in os.environ.items() if key not in MYOB_ENV_VARS}
    monkeypatch.setattr(os, "environ", environ)
    monkeypatch.chdir(tmp_path)
    return tmp_path
