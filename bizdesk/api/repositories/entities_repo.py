from __future__ import annotations
from dataclasses import dataclass, field

from ...utils.helpers import to_amount
from ..client import ApiClient


@dataclass
class OrderRef:
    """An entity's existing order, as needed by the payment sweep."""
    id: str
    total_amount: float
    created_at: str
    transaction_amounts: list[float] = field(default_factory=list)
    payment_status: str | None = None
    type: str | None = None

    @classmethod
    def from_api(cls, row: dict) -> "OrderRef":
        return cls(
            id=str(row.get("id", "")),
            total_amount=to_amount(row.get("totalAmount")),
            created_at=str(row.get("createdAt", "") or ""),
            transaction_amounts=[to_amount(t.get("amount")) for t in (row.get("transactions") or [])],
            payment_status=row.get("paymentStatus"),
            type=row.get("type"),
        )


@dataclass
class Entity:
    id: str
    name: str
    is_default: bool = False
    is_vendor: bool = False
    is_customer: bool = False
    orders: list[OrderRef] = field(default_factory=list)

    @classmethod
    def from_api(cls, row: dict) -> "Entity":
        return cls(
            id=str(row.get("id", "")),
            name=str(row.get("name", "") or ""),
            is_default=bool(row.get("isDefault")),
            is_vendor=bool(row.get("isVendor")),
            is_customer=bool(row.get("isCustomer")),
            orders=[OrderRef.from_api(o) for o in (row.get("orders") or [])],
        )


class EntitiesRepo:
    def __init__(self, api: ApiClient, org_id: str):
        self.api = api
        self.org_id = org_id

    def list_entities(self) -> list[Entity]:
        rows = self.api.get(f"/orgs/{self.org_id}/entities") or []
        return [Entity.from_api(r) for r in rows]

    def list_vendors(self) -> list[Entity]:
        return [e for e in self.list_entities() if e.is_vendor]

    def list_customers(self) -> list[Entity]:
        return [e for e in self.list_entities() if e.is_customer or e.is_default]

    def get_entity(self, entity_id: str) -> Entity:
        """Entity with nested orders (and their transactions)."""
        row = self.api.get(f"/orgs/{self.org_id}/entities/{entity_id}") or {}
        return Entity.from_api(row)
