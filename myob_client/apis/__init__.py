from .base import NoNextPageError, ResourceApi, UnexpectedResponseError
from .company_file import CompanyFileApi
from .registry import ModelRegistry, default_registry

__all__ = [
    "ResourceApi",
    "CompanyFileApi",
    "ModelRegistry",
    "default_registry",
    "NoNextPageError",
    "UnexpectedResponseError",
]
