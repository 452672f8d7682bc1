from __future__ import annotations
from dataclasses import dataclass, field

from ...constants import ORDER_BUY
from ...utils.helpers import to_amount
from ..client import ApiClient


@dataclass
class Variant:
    id: str
    name: str
    buy_price: float
    estimated_price: float
    stock: float

    def price_for(self, order_type: str) -> float:
        return self.buy_price if order_type == ORDER_BUY else self.estimated_price


@dataclass
class Product:
    id: str
    name: str
    variants: list[Variant] = field(default_factory=list)

    @classmethod
    def from_api(cls, row: dict) -> "Product":
        return cls(
            id=str(row.get("id", "")),
            name=str(row.get("name", "") or ""),
            variants=[
                Variant(
                    id=str(v.get("id", "")),
                    name=str(v.get("name", "") or ""),
                    buy_price=to_amount(v.get("buyPrice")),
                    estimated_price=to_amount(v.get("estimatedPrice")),
                    stock=to_amount(v.get("stock")),
                )
                for v in (row.get("variants") or [])
            ],
        )


class ProductsRepo:
    def __init__(self, api: ApiClient, org_id: str):
        self.api = api
        self.org_id = org_id

    def list_products(self) -> list[Product]:
        rows = self.api.get(f"/orgs/{self.org_id}/products") or []
        return [Product.from_api(r) for r in rows]
