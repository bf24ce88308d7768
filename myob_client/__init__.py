"""Client library for the MYOB AccountRight API."""

from .apis import (
    CompanyFileApi,
    ModelRegistry,
    NoNextPageError,
    ResourceApi,
    UnexpectedResponseError,
    default_registry,
)
from .auth import AuthenticationError, AuthManager, OAuthConnection
from .client import Client, CompanyFileNotSelectedError
from .config import AppSettings, ConfigurationError
from .http import ApiHttpError, HttpConnection, LocalConnection, ResponseParseError
from .models import CompanyFileContext, CompanyFileSelection, Record

__version__ = "0.1.0"

__all__ = [
    "Client",
    "AppSettings",
    "AuthManager",
    "HttpConnection",
    "LocalConnection",
    "OAuthConnection",
    "ResourceApi",
    "CompanyFileApi",
    "ModelRegistry",
    "default_registry",
    "CompanyFileContext",
    "CompanyFileSelection",
    "Record",
    "ApiHttpError",
    "AuthenticationError",
    "CompanyFileNotSelectedError",
    "ConfigurationError",
    "NoNextPageError",
    "ResponseParseError",
    "UnexpectedResponseError",
]
