from __future__ import annotations

from typing import Any, Sequence

from myob_client.apis.base import ResourceApi, UnexpectedResponseError

CompanyFiles = Sequence[dict[str, Any]]


class CompanyFileApi(ResourceApi):
    """The company files available to the current credentials.

    This is the root of the API: it is addressed by the API URL itself and
    never paginates.
    """

    id_field = "Id"

    def __init__(self, client, model_name: str = "CompanyFile"):
        super().__init__(client, model_name, route="")

    def available(self) -> list[dict[str, Any]]:
        company_files = self.records()
        if company_files is None:
            return []
        if not isinstance(company_files, list):
            raise UnexpectedResponseError(
                f"Expected a list of company files, got {type(company_files).__name__}"
            )
        return company_files

    def find_by_name(self, name: str, company_files: CompanyFiles | None = None) -> dict[str, Any] | None:
        """Return the company file called ``name``.

        Searches ``company_files`` when given, otherwise fetches the list.
        """
        candidates = self.available() if company_files is None else company_files
        return next((cf for cf in candidates if cf.get("Name") == name), None)

    def find_by_id(self, company_file_id: str, company_files: CompanyFiles | None = None) -> dict[str, Any] | None:
        candidates = self.available() if company_files is None else company_files
        return next((cf for cf in candidates if cf.get("Id") == company_file_id), None)
