from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Mapping

Record = dict[str, Any]


@dataclass(frozen=True)
class CompanyFileContext:
    """The company file subsequent requests are scoped to.

    The default (all fields empty) instance means no company file is selected.
    """

    id: str = ""
    token: str = ""
    base_url: str = ""

    @property
    def is_selected(self) -> bool:
        return bool(self.id or self.base_url)


@dataclass(frozen=True)
class CompanyFileSelection:
    name: str | None = None
    id: str | None = None
    token: str | None = None
    username: str | None = None
    password: str | None = None

    @staticmethod
    def from_mapping(values: Mapping[str, Any]) -> "CompanyFileSelection":
        def _get(key: str) -> str | None:
            value = values.get(key)
            return None if value is None else str(value)

        selection = CompanyFileSelection(
            name=_get("name"),
            id=_get("id"),
            token=_get("token"),
            username=_get("username"),
            password=_get("password"),
        )
        if not selection.name and not selection.id:
            raise ValueError("Company file selection requires a 'name' or an 'id'")
        return selection

    def resolve_token(self) -> str:
        if self.token:
            return self.token
        if self.username is None and self.password is None:
            return ""
        credentials = f"{self.username or ''}:{self.password or ''}"
        return base64.b64encode(credentials.encode("utf-8")).decode("ascii")
