# bizdesk/modules/order/draft.py
"""
In-memory order drafts.

A draft is created empty when an order form opens, mutated while the user
walks the wizard, serialized on submit and reset on success. It is never
persisted. DraftSession holds one independent draft per order type so the
BUY and SELL forms never share state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ...api.repositories.entities_repo import Entity
from ...constants import ORDER_BUY, ORDER_TYPES, VAT_CONDITIONAL
from ...utils.helpers import now_iso, to_amount, today_str
from ..payments.details import NoDetails, PaymentDetails
from .charges import ChargeList, percentage_from_amount


@dataclass
class LineItem:
    product_id: str = ""
    variant_id: str = ""
    rate: float = 0.0
    quantity: int = 1
    description: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.product_id) and bool(self.variant_id)

    @property
    def amount(self) -> float:
        return to_amount(self.rate) * to_amount(self.quantity)

    def to_payload(self) -> dict:
        return {
            "productId": self.product_id,
            "variantId": self.variant_id,
            "rate": to_amount(self.rate),
            "quantity": int(to_amount(self.quantity)),
            "description": self.description,
        }


@dataclass
class Discount:
    """Order-level discount. `amount` is authoritative; `percentage` mirrors it."""
    amount: float = 0.0
    percentage: float = 0.0

    def set_amount(self, amount: float, sub_total: float) -> None:
        self.amount = max(0.0, to_amount(amount))
        self.percentage = percentage_from_amount(sub_total, self.amount)

    def set_percentage(self, percentage: float, sub_total: float) -> None:
        pct = min(100.0, max(0.0, to_amount(percentage)))
        self.percentage = pct
        self.amount = to_amount(sub_total) * pct / 100.0

    def on_base_change(self, sub_total: float) -> bool:
        pct = percentage_from_amount(sub_total, self.amount)
        if abs(pct - self.percentage) > 1e-9:
            self.percentage = pct
            return True
        return False


@dataclass
class Payment:
    amount: float
    account_id: str
    details: PaymentDetails = field(default_factory=NoDetails)
    created_at: str = field(default_factory=now_iso)

    def to_payload(self) -> dict:
        return {"amount": self.amount, "accountId": self.account_id, "details": self.details.to_payload()}


@dataclass
class OrderDraft:
    order_type: str
    entity: Optional[Entity] = None
    products: list[LineItem] = field(default_factory=lambda: [LineItem()])
    discount: Discount = field(default_factory=Discount)
    charges: ChargeList = field(default_factory=ChargeList)
    payments: list[Payment] = field(default_factory=list)
    description: str = ""
    order_date: str = field(default_factory=today_str)
    vendor_charge_account_id: Optional[str] = None
    order_id: Optional[str] = None  # set when editing an existing order

    def __post_init__(self):
        if self.order_type not in ORDER_TYPES:
            raise ValueError(f"order_type must be one of {ORDER_TYPES}, got {self.order_type!r}")

    @property
    def is_buy(self) -> bool:
        return self.order_type == ORDER_BUY

    def valid_items(self) -> list[LineItem]:
        return [p for p in self.products if p.is_valid]

    def reset(self) -> None:
        """Back to a blank draft of the same type (keeps the VAT policy)."""
        vat_status = self.charges.vat_status
        self.entity = None
        self.products = [LineItem()]
        self.discount = Discount()
        self.charges = ChargeList(vat_status=vat_status)
        self.payments = []
        self.description = ""
        self.order_date = today_str()
        self.vendor_charge_account_id = None
        self.order_id = None


class DraftSession:
    """Session-scoped owner of the BUY and SELL drafts."""

    def __init__(self, vat_status: str = VAT_CONDITIONAL):
        self._drafts = {
            t: OrderDraft(order_type=t, charges=ChargeList(vat_status=vat_status))
            for t in ORDER_TYPES
        }

    def draft_for(self, order_type: str) -> OrderDraft:
        try:
            return self._drafts[order_type]
        except KeyError:
            raise ValueError(f"Unknown order type: {order_type!r}") from None

    def clear(self, order_type: str) -> None:
        self.draft_for(order_type).reset()
