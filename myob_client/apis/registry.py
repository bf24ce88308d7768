from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable

from myob_client.apis.base import ResourceApi
from myob_client.apis.company_file import CompanyFileApi

if TYPE_CHECKING:
    from myob_client.client import Client

ModelFactory = Callable[["Client"], ResourceApi]


def snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class ModelRegistry:
    """Maps resource kind names (``"Customer"``) to factories building their API."""

    def __init__(self):
        self._factories: dict[str, ModelFactory] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        route: str | None = None,
        factory: ModelFactory | None = None,
    ) -> None:
        if not name:
            raise ValueError("Resource kind name is required")
        if factory is None:
            def factory(client, _name=name, _route=route):
                return ResourceApi(client, _name, _route)

        self._factories[name] = factory
        self._aliases[snake_case(name)] = name

    def resolve(self, name: str) -> str | None:
        if name in self._factories:
            return name
        return self._aliases.get(name)

    def create(self, name: str, client: "Client") -> ResourceApi:
        kind = self.resolve(name)
        if kind is None:
            raise KeyError(f"Unknown resource kind: {name}")
        return self._factories[kind](client)

    def names(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None


def default_registry() -> ModelRegistry:
    registry = ModelRegistry()
    registry.register("CompanyFile", factory=CompanyFileApi)
    registry.register("Contact")
    registry.register("Customer", "Contact/Customer")
    registry.register("Supplier", "Contact/Supplier")
    registry.register("Employee", "Contact/Employee")
    registry.register("Account", "GeneralLedger/Account")
    registry.register("TaxCode", "GeneralLedger/TaxCode")
    registry.register("Job", "GeneralLedger/Job")
    registry.register("Item", "Inventory/Item")
    registry.register("ItemInvoice", "Sale/Invoice/Item")
    registry.register("ServiceInvoice", "Sale/Invoice/Service")
    registry.register("CustomerPayment", "Sale/CustomerPayment")
    return registry
