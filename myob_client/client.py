from __future__ import annotations

import logging
from typing import Any, Mapping

from myob_client.apis import CompanyFileApi, ModelRegistry, ResourceApi, default_registry
from myob_client.auth import AuthenticationError, AuthManager
from myob_client.config import DEFAULT_API_URL, AppSettings
from myob_client.http import HttpConnection, LocalConnection
from myob_client.models import CompanyFileContext, CompanyFileSelection

logger = logging.getLogger(__name__)

API_VERSION = "v2"


class CompanyFileNotSelectedError(RuntimeError):
    pass


class Client:
    """Session against one AccountRight API, cloud (OAuth2) or direct.

    Direct mode is chosen by passing ``server_url``; the connection mode is
    fixed for the lifetime of the client. A client holds mutable state (the
    selected company file, cached connection and models) and must be used
    from a single thread.

    Usage::

        client = Client(api_key="key", api_secret="secret", access_token="...")
        client.select_company_file({"name": "Acme", "username": "Administrator", "password": ""})
        customers = client.customer.all_items({"orderby": "LastName"})
    """

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        access_token: str | None = None,
        refresh_token: str | None = None,
        redirect_uri: str = "http://localhost",
        scope: str = "CompanyFile",
        server_url: str | None = None,
        api_url: str = DEFAULT_API_URL,
        company_file: CompanyFileSelection | Mapping[str, Any] | None = None,
        registry: ModelRegistry | None = None,
        connection: HttpConnection | None = None,
        auth_manager: AuthManager | None = None,
        timeout_seconds: int = 30,
    ):
        self._api_key = api_key or ""
        self._api_secret = api_secret or ""
        self._access_token = access_token or None
        self._refresh_token = refresh_token or None
        self._redirect_uri = redirect_uri
        self._scope = scope
        self._server_url = server_url or None
        self._api_url = _with_trailing_slash(self._server_url or api_url)
        self._timeout_seconds = timeout_seconds
        self._registry = registry if registry is not None else default_registry()
        self._connection = connection
        self._auth_manager = auth_manager

        self._current_company_file = CompanyFileContext()
        self._company_files: list[dict[str, Any]] | None = None
        self._models: dict[str, ResourceApi] = {}

        if company_file:
            self.select_company_file(company_file)

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> "Client":
        return cls(
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            access_token=settings.access_token,
            refresh_token=settings.refresh_token,
            redirect_uri=settings.redirect_uri,
            scope=settings.scope,
            server_url=settings.server_url,
            api_url=settings.api_url,
            company_file=settings.company_file_selection(),
            timeout_seconds=settings.timeout_seconds,
            **kwargs,
        )

    @property
    def is_direct(self) -> bool:
        return self._server_url is not None

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def current_company_file(self) -> CompanyFileContext:
        return self._current_company_file

    @property
    def company_file_url(self) -> str | None:
        return self._current_company_file.base_url or None

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    # Headers and connection

    def headers(self) -> dict[str, str]:
        headers = {
            "x-myobapi-version": API_VERSION,
            "Content-Type": "application/json",
        }
        if self._current_company_file.token:
            headers["x-myobapi-cftoken"] = self._current_company_file.token
        if self._api_key:
            headers["x-myobapi-key"] = self._api_key
        return headers

    def connection(self) -> HttpConnection:
        if self._connection is not None:
            return self._connection

        if self.is_direct:
            self._connection = LocalConnection(self._api_url, timeout_seconds=self._timeout_seconds)
            return self._connection

        connection = self._auth().connect(
            access_token=self._access_token,
            refresh_token=self._refresh_token,
            on_token=self._store_token,
        )
        if self._refresh_token:
            connection = connection.refresh()
        self._connection = connection
        return self._connection

    def reset_connection(self) -> None:
        if self._connection is not None:
            self._connection.close()
        self._connection = None

    def close(self) -> None:
        self.reset_connection()

    # OAuth2

    def authorization_url(self, state: str | None = None) -> str:
        return self._auth().authorization_url(state=state)

    def exchange_code(self, code: str) -> dict[str, Any]:
        token = self._auth().exchange_code(code)
        self._store_token(token)
        self.reset_connection()
        return token

    def _auth(self) -> AuthManager:
        if self.is_direct:
            raise AuthenticationError("OAuth2 is not used when connecting directly to an AccountRight server")
        if self._auth_manager is None:
            self._auth_manager = AuthManager(
                api_key=self._api_key,
                api_secret=self._api_secret,
                redirect_uri=self._redirect_uri,
                scope=self._scope,
                timeout_seconds=self._timeout_seconds,
            )
        return self._auth_manager

    def _store_token(self, token: Mapping[str, Any]) -> None:
        self._access_token = token.get("access_token") or self._access_token
        self._refresh_token = token.get("refresh_token") or self._refresh_token

    # Company files

    def _company_file_api(self) -> CompanyFileApi:
        api = self.model("CompanyFile")
        if not isinstance(api, CompanyFileApi):
            raise TypeError("The CompanyFile resource kind must be registered as a CompanyFileApi")
        return api

    def company_files(self) -> list[dict[str, Any]]:
        if self._company_files is None:
            self._company_files = self._company_file_api().available()
        return self._company_files

    def select_company_file(
        self,
        selection: CompanyFileSelection | Mapping[str, Any],
    ) -> CompanyFileContext:
        """Make the matching company file the target of subsequent requests.

        ``selection`` names the file by ``name`` or ``id`` and authenticates
        with a ``token`` or a ``username``/``password`` pair. When nothing
        matches, no company file is selected afterwards; no error is raised.
        If fetching the company file list fails, the previous selection is
        kept and the error propagates.
        """
        if not isinstance(selection, CompanyFileSelection):
            selection = CompanyFileSelection.from_mapping(selection)

        previous = self._current_company_file
        previous_files = self._company_files
        self._current_company_file = CompanyFileContext()
        self._company_files = None
        try:
            company_files = self.company_files()
        except Exception:
            self._current_company_file = previous
            self._company_files = previous_files
            raise

        api = self._company_file_api()
        if selection.name:
            match = api.find_by_name(selection.name, company_files)
        else:
            match = api.find_by_id(selection.id, company_files)
        if match is None:
            logger.warning("No company file matched %s", selection.name or selection.id)
            return self._current_company_file

        self._current_company_file = CompanyFileContext(
            id=str(match.get("Id") or ""),
            token=selection.resolve_token(),
            base_url=str(match.get("Uri") or "").rstrip("/"),
        )
        logger.info("Selected company file %s (%s)", match.get("Name"), self._current_company_file.id)
        return self._current_company_file

    def resource_base_url(self) -> str:
        if self._current_company_file.base_url:
            return self._current_company_file.base_url
        if self._current_company_file.id:
            return f"{self._api_url}{self._current_company_file.id}"
        raise CompanyFileNotSelectedError("No company file selected; call select_company_file() first")

    # Resource models

    def model(self, name: str) -> ResourceApi:
        kind = self._registry.resolve(name)
        if kind is None:
            raise KeyError(f"Unknown resource kind: {name}")
        if kind not in self._models:
            self._models[kind] = self._registry.create(kind, self)
        return self._models[kind]

    def __getattr__(self, name: str) -> ResourceApi:
        registry = self.__dict__.get("_registry")
        if name.startswith("_") or registry is None or name not in registry:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return self.model(name)


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"
