from __future__ import annotations

import logging
from typing import Any, Callable

from oauthlib.oauth2 import OAuth2Error
from requests_oauthlib import OAuth2Session

from myob_client.http import HttpConnection

logger = logging.getLogger(__name__)

OAUTH_SITE = "https://secure.myob.com"
AUTHORIZE_URL = f"{OAUTH_SITE}/oauth2/account/authorize"
TOKEN_URL = f"{OAUTH_SITE}/oauth2/v1/authorize"

TokenCallback = Callable[[dict[str, Any]], None]


class AuthenticationError(RuntimeError):
    pass


class AuthManager:
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        redirect_uri: str,
        scope: str = "CompanyFile",
        timeout_seconds: int = 30,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._redirect_uri = redirect_uri
        self._scope = [s for s in scope.split() if s]
        self._timeout_seconds = timeout_seconds

    def _build_session(
        self,
        token: dict[str, Any] | None = None,
        on_token: TokenCallback | None = None,
    ) -> OAuth2Session:
        def _token_updater(new_token: dict[str, Any]) -> None:
            logger.info("Access token refreshed before expiry")
            if on_token is not None:
                on_token(new_token)

        return OAuth2Session(
            client_id=self._api_key,
            redirect_uri=self._redirect_uri,
            scope=self._scope,
            token=token,
            auto_refresh_url=TOKEN_URL,
            auto_refresh_kwargs={
                "client_id": self._api_key,
                "client_secret": self._api_secret,
            },
            token_updater=_token_updater,
        )

    def authorization_url(self, state: str | None = None) -> str:
        url, _ = self._build_session().authorization_url(AUTHORIZE_URL, state=state)
        return url

    def exchange_code(self, code: str) -> dict[str, Any]:
        if not code.strip():
            raise AuthenticationError("Authorization code is required")

        try:
            token = self._build_session().fetch_token(
                TOKEN_URL,
                code=code.strip(),
                client_secret=self._api_secret,
                include_client_id=True,
                timeout=self._timeout_seconds,
            )
        except OAuth2Error as error:
            raise AuthenticationError(f"Authorization code exchange failed: {error.description or error}") from error
        return dict(token)

    def refresh(self, token: dict[str, Any]) -> dict[str, Any]:
        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise AuthenticationError("Cannot refresh access token without a refresh token")

        try:
            new_token = self._build_session(token=token).refresh_token(
                TOKEN_URL,
                refresh_token=refresh_token,
                client_id=self._api_key,
                client_secret=self._api_secret,
                timeout=self._timeout_seconds,
            )
        except OAuth2Error as error:
            raise AuthenticationError(f"Access token refresh failed: {error.description or error}") from error

        logger.info("Access token refreshed")
        return dict(new_token)

    def connect(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
        token: dict[str, Any] | None = None,
        on_token: TokenCallback | None = None,
    ) -> "OAuthConnection":
        if token is None:
            if not access_token and not refresh_token:
                raise AuthenticationError("An access token or refresh token is required in cloud mode")
            token = {"access_token": access_token or "", "token_type": "Bearer"}
            if refresh_token:
                token["refresh_token"] = refresh_token

        session = self._build_session(token=token, on_token=on_token)
        return OAuthConnection(self, session, on_token=on_token, timeout_seconds=self._timeout_seconds)


class OAuthConnection(HttpConnection):
    """Bearer-authenticated connection to the AccountRight cloud API."""

    def __init__(
        self,
        auth_manager: AuthManager,
        session: OAuth2Session,
        on_token: TokenCallback | None = None,
        timeout_seconds: int = 30,
    ):
        super().__init__(session, timeout_seconds=timeout_seconds)
        self._auth_manager = auth_manager
        self._on_token = on_token

    @property
    def token(self) -> dict[str, Any]:
        return dict(self._session.token)

    def refresh(self) -> "OAuthConnection":
        new_token = self._auth_manager.refresh(self.token)
        if self._on_token is not None:
            self._on_token(new_token)
        return self._auth_manager.connect(token=new_token, on_token=self._on_token)
