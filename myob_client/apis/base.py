from __future__ import annotations

from datetime import date
import json
import logging
from typing import TYPE_CHECKING, Any, Mapping
from urllib.parse import quote

import requests

from myob_client.http import parse_json
from myob_client.models import Record

if TYPE_CHECKING:
    from myob_client.client import Client

logger = logging.getLogger(__name__)

QUERY_OPTIONS = ("orderby", "top", "skip", "filter")
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class NoNextPageError(RuntimeError):
    pass


class UnexpectedResponseError(ValueError):
    pass


class ResourceApi:
    """Queries and persists one kind of AccountRight resource.

    Paginated responses are JSON objects whose ``"Items"`` element holds the
    records and whose ``"NextPageLink"`` element, when present, is the URL of
    the following page. Records are the plain decoded JSON objects.

    The pagination cursor belongs to the instance and tracks only the most
    recent query, so an instance must not be shared between threads.
    """

    id_field = "UID"

    def __init__(self, client: "Client", model_name: str, route: str | None = None):
        self._client = client
        self._model_name = model_name
        self._route = model_name if route is None else route
        self._next_page_link: str | None = None

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def model_route(self) -> str:
        """Path of the resource below the company file, e.g. ``Contact/Customer``."""
        return self._route

    @property
    def is_root(self) -> bool:
        return self._route == ""

    # Queries

    def all(self, params: Mapping[str, Any] | None = None) -> Any:
        """Fetch the first page of records.

        Afterwards :meth:`has_next_page` reports whether :meth:`next_page`
        can fetch more.
        """
        return self._perform_request(self.url(None, params))

    get = all

    def records(self, params: Mapping[str, Any] | None = None) -> Any:
        """Like :meth:`all`, unwrapped down to ``"Items"`` when the response has it."""
        response = self.all(params)
        if isinstance(response, dict) and "Items" in response:
            return response["Items"]
        return response

    def has_next_page(self) -> bool:
        return self._next_page_link is not None

    def next_page(self) -> Any:
        if self._next_page_link is None:
            raise NoNextPageError(f"No further pages of {self._model_name} to fetch")
        return self._perform_request(self._next_page_link)

    def all_items(self, params: Mapping[str, Any] | None = None) -> list[Any]:
        """Fetch every page and return the concatenated ``"Items"``.

        Keeps following ``NextPageLink`` until the server stops sending one.
        """
        results = list(self._page_items(self.all(params)))
        while self.has_next_page():
            results.extend(self._page_items(self.next_page()))
        return results

    def find(self, uid: str) -> Any:
        return self._perform_request(self.url({self.id_field: uid}))

    def first(self, params: Mapping[str, Any] | None = None) -> Any:
        response = self.all(params)
        if not isinstance(response, list):
            raise UnexpectedResponseError(
                f"Expected a list of {self._model_name} records, got {type(response).__name__}"
            )
        return response[0] if response else None

    # Persistence

    def save(self, record: Record) -> requests.Response:
        """Create ``record`` if it has never been saved, otherwise update it."""
        return self.create(record) if self.is_new_record(record) else self.update(record)

    def create(self, record: Record) -> requests.Response:
        payload = self.typecast(record)
        return self._client.connection().post(
            self.url(),
            headers=self._client.headers(),
            body=json.dumps(payload),
        )

    def update(self, record: Record) -> requests.Response:
        payload = self.typecast(record)
        return self._client.connection().put(
            self.url(record),
            headers=self._client.headers(),
            body=json.dumps(payload),
        )

    def destroy(self, record: Record) -> requests.Response:
        return self._client.connection().delete(self.url(record), headers=self._client.headers())

    def is_new_record(self, record: Mapping[str, Any]) -> bool:
        uid = record.get(self.id_field)
        return uid is None or uid == ""

    @staticmethod
    def typecast(record: Mapping[str, Any]) -> Record:
        typed = dict(record)
        for key, value in typed.items():
            if isinstance(value, date):
                typed[key] = value.strftime(DATE_FORMAT)
        return typed

    # URLs

    def url(
        self,
        record: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> str:
        if self.is_root:
            url = self._client.api_url
        else:
            url = f"{self._client.resource_base_url()}/{self._route}"
            uid = record.get(self.id_field) if record else None
            if uid:
                url += f"/{uid}"

        if params:
            query = self.query_string(params)
            if query:
                url += f"?{query}"
        return url

    @classmethod
    def query_string(cls, params: Mapping[str, Any]) -> str:
        parts = []
        for key, value in params.items():
            key = str(key)
            if key in QUERY_OPTIONS:
                if key == "filter":
                    value = cls.build_filter(value)
                key = f"${key}"
            parts.append(f"{key}={quote(str(value), safe='')}")
        return "&".join(parts)

    @staticmethod
    def build_filter(value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return " and ".join(
            "{} eq '{}'".format(field, str(expected).replace("'", "\\'"))
            for field, expected in value.items()
        )

    def _page_items(self, page: Any) -> list[Any]:
        if not isinstance(page, dict):
            raise UnexpectedResponseError(
                f"Expected a page of {self._model_name} records, got {type(page).__name__}"
            )
        return page.get("Items") or []

    def _perform_request(self, url: str) -> Any:
        response = self._client.connection().get(url, headers=self._client.headers())
        data = parse_json(response)
        if not self.is_root:
            link = data.get("NextPageLink") if isinstance(data, dict) else None
            self._next_page_link = link or None
            if link:
                logger.debug("%s has another page: %s", self._model_name, link)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model_name={self._model_name!r}, route={self._route!r})"
