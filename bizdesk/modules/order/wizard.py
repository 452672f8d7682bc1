# bizdesk/modules/order/wizard.py
"""
Three-step order wizard: DETAILS -> PAYMENT -> SUMMARY.

The wizard owns the draft's consistency. Field commands keep discount and
charge caches in line with the subtotal; transitions are gated by
validations that store a single message in `error` and leave the step
unchanged. Only SUMMARY can submit. Remote failures land in `notice`, the
draft is kept and the step stays on SUMMARY so the user can retry.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional

from ...api.client import ApiError
from ...api.repositories.accounts_repo import AccountsRepo
from ...api.repositories.entities_repo import Entity
from ...api.repositories.orders_repo import OrdersRepo
from ...constants import CHARGE_FIXED, EPS, ORDER_BUY, ORDER_SELL, VAT_CONDITIONAL
from ...utils.helpers import fmt_money, to_amount
from ..payments import allocator
from ..payments.balance_check import (
    account_summaries,
    available_balance,
    check_vendor_charge_account,
    validate_buy_payments,
)
from ..payments.details import PaymentDetails, details_from_payload
from .charges import Charge, ChargeList
from .draft import Discount, LineItem, OrderDraft, Payment
from .pricing import Totals, sub_total, totals_for

_log = logging.getLogger(__name__)


class Step(Enum):
    DETAILS = 1
    PAYMENT = 2
    SUMMARY = 3


class SubmitOutcome(Enum):
    SUBMITTED = "submitted"
    NEEDS_VENDOR_ACCOUNT = "needs_vendor_account"
    INVALID = "invalid"
    FAILED = "failed"
    BUSY = "busy"


MSG_NO_ITEMS = "Please add at least one product."
MSG_NEEDS_ENTITY = "Select Entity for unpaid order."


class OrderWizard:
    def __init__(
        self,
        draft: OrderDraft,
        *,
        orders: OrdersRepo,
        accounts_repo: AccountsRepo | None = None,
        accounts: Iterable = (),
        products: Iterable = (),
        vat_status: str = VAT_CONDITIONAL,
    ):
        self.draft = draft
        self.orders = orders
        self.accounts_repo = accounts_repo
        self.accounts = list(accounts or [])
        self.products = list(products or [])
        self.vat_status = vat_status
        self.step = Step.DETAILS
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.busy = False
        self.last_order: Optional[dict] = None
        self._sync_base()

    # ------------------------------------------------------------------ reads

    @property
    def order_type(self) -> str:
        return self.draft.order_type

    def totals(self) -> Totals:
        return totals_for(self.draft)

    def balance_summaries(self):
        return account_summaries(self.draft.payments, self.accounts, self.order_type)

    def account(self, account_id: Optional[str]):
        return next((a for a in self.accounts if a.id == account_id), None)

    def dismiss_error(self) -> None:
        self.error = None

    def dismiss_notice(self) -> None:
        self.notice = None

    # ------------------------------------------------------------- base sync

    def _sync_base(self) -> bool:
        """Re-derive everything keyed off the subtotal. True if anything changed."""
        base = sub_total(self.draft.products)
        changed = self.draft.charges.recalculate_on_base_change(base)
        changed = self.draft.discount.on_base_change(base) or changed
        changed = self.draft.charges.ensure_vat_policy(self.vat_status, base) or changed
        return changed

    def _base(self) -> float:
        return sub_total(self.draft.products)

    # -------------------------------------------------------- entity / items

    def set_entity(self, entity) -> None:
        self.draft.entity = entity

    def add_line_item(self) -> LineItem:
        item = LineItem()
        self.draft.products.append(item)
        return item

    def remove_line_item(self, index: int) -> None:
        if 0 <= index < len(self.draft.products):
            del self.draft.products[index]
        if not self.draft.products:
            self.draft.products.append(LineItem())
        self._sync_base()

    def select_variant(self, index: int, product_id: str, variant_id: str) -> LineItem:
        """Pick a product/variant for a line; the rate defaults to the variant's price."""
        item = self.draft.products[index]
        item.product_id = product_id or ""
        item.variant_id = variant_id or ""
        variant = self._variant(variant_id)
        if variant is not None:
            item.rate = variant.price_for(self.order_type)
        self._sync_base()
        return item

    def update_line_item(self, index: int, *, rate=None, quantity=None, description=None) -> LineItem:
        item = self.draft.products[index]
        if rate is not None:
            item.rate = max(0.0, to_amount(rate))
        if quantity is not None:
            item.quantity = max(1, int(to_amount(quantity)))
        if description is not None:
            item.description = str(description)
        self._sync_base()
        return item

    def _variant(self, variant_id: str):
        for p in self.products:
            for v in p.variants:
                if v.id == variant_id:
                    return v
        return None

    def _product(self, product_id: str):
        return next((p for p in self.products if p.id == product_id), None)

    # ------------------------------------------------------------ discount

    def set_discount(self, amount) -> None:
        self.draft.discount.set_amount(amount, self._base())

    def set_discount_percentage(self, percentage) -> None:
        self.draft.discount.set_percentage(percentage, self._base())

    # ------------------------------------------------------------- charges

    def add_charge(self, label: str = "", *, beared_by_entity: bool = True) -> Charge:
        return self.draft.charges.add_charge(label, beared_by_entity=beared_by_entity)

    def add_vat(self) -> Charge:
        return self.draft.charges.add_vat(self._base())

    def remove_charge(self, charge_id: str) -> None:
        self.draft.charges.remove_charge(charge_id)

    def set_charge_type(self, charge_id: str, new_type: str) -> Charge:
        return self.draft.charges.set_charge_type(charge_id, new_type, self._base())

    def set_charge_amount(self, charge_id: str, amount) -> Charge:
        return self.draft.charges.set_amount(charge_id, amount, self._base())

    def set_charge_percentage(self, charge_id: str, percentage) -> Charge:
        return self.draft.charges.set_percentage(charge_id, percentage, self._base())

    def set_charge_label(self, charge_id: str, label: str) -> Charge:
        return self.draft.charges.set_label(charge_id, label)

    def set_charge_beared_by_entity(self, charge_id: str, beared: bool) -> Charge:
        return self.draft.charges.set_beared_by_entity(charge_id, beared)

    # ------------------------------------------------------------ payments

    def add_payment(self, amount, account_id: str, details: PaymentDetails | None = None) -> bool:
        ok, msg = allocator.add_payment(self.draft, amount, account_id, self.accounts, details)
        self.error = None if ok else msg
        return ok

    def remove_payment(self, index: int) -> None:
        allocator.remove_payment(self.draft, index)

    def set_vendor_charge_account(self, account_id: Optional[str]) -> None:
        self.draft.vendor_charge_account_id = account_id or None

    def set_description(self, text: str) -> None:
        self.draft.description = (text or "").strip()

    def set_order_date(self, iso_date: str) -> None:
        self.draft.order_date = iso_date

    # --------------------------------------------------------- validations

    def validate_details(self) -> tuple[bool, str]:
        items = self.draft.valid_items()
        if not items:
            return False, MSG_NO_ITEMS
        if self.order_type == ORDER_SELL:
            return self.validate_stock()
        return True, ""

    def validate_stock(self) -> tuple[bool, str]:
        """Requested quantity per variant (summed across lines) must not exceed stock."""
        requested: dict[str, float] = {}
        for it in self.draft.valid_items():
            requested[it.variant_id] = requested.get(it.variant_id, 0.0) + to_amount(it.quantity)
        errors: list[str] = []
        for index, it in enumerate(self.draft.products):
            if not it.is_valid or it.variant_id not in requested:
                continue
            variant = self._variant(it.variant_id)
            if variant is None:
                continue
            qty = requested.pop(it.variant_id)
            if qty - variant.stock > EPS:
                product = self._product(it.product_id)
                errors.append(
                    f"Item {index + 1}: {product.name if product else 'Unknown'} - {variant.name} "
                    f"quantity ({qty:g}) exceeds available stock ({variant.stock:g})"
                )
        if errors:
            return False, "\n".join(errors)
        return True, ""

    def validate_payment(self) -> tuple[bool, str]:
        totals = self.totals()
        if self.draft.entity is None and totals.remaining > EPS:
            return False, MSG_NEEDS_ENTITY
        if self.order_type == ORDER_BUY:
            return validate_buy_payments(self.draft.payments, self.accounts)
        return True, ""

    def validate_vendor_charges(self, totals: Totals) -> tuple[bool, str]:
        if totals.vendor_charges <= EPS:
            return True, ""
        account = self.account(self.draft.vendor_charge_account_id)
        if account is None:
            return check_vendor_charge_account(None, totals.vendor_charges)
        if self.order_type == ORDER_BUY:
            # BUY payments from the same account are spent first
            left = available_balance(account, self.draft.payments)
            if totals.vendor_charges - left > EPS:
                return False, (
                    f"Insufficient balance in {account.name} for vendor charges: "
                    f"available {fmt_money(max(left, 0.0))}, required {fmt_money(totals.vendor_charges)}."
                )
            return True, ""
        return check_vendor_charge_account(account, totals.vendor_charges)

    # --------------------------------------------------------- transitions

    def next(self) -> bool:
        if self.step == Step.DETAILS:
            ok, msg = self.validate_details()
            target = Step.PAYMENT
        elif self.step == Step.PAYMENT:
            ok, msg = self.validate_payment()
            target = Step.SUMMARY
        else:
            return False
        if not ok:
            self.error = msg
            return False
        self.error = None
        self.step = target
        return True

    def back(self) -> bool:
        if self.step == Step.PAYMENT:
            self.step = Step.DETAILS
        elif self.step == Step.SUMMARY:
            self.step = Step.PAYMENT
        else:
            return False
        self.error = None
        return True

    # -------------------------------------------------------------- submit

    def final_payments(self, totals: Totals) -> list[Payment]:
        """
        Walk-in SELL orders are settled in full at the cash counter, whatever
        was entered on the payment step.
        """
        entity = self.draft.entity
        if self.order_type == ORDER_SELL and entity is not None and entity.is_default:
            cash = allocator.default_account(self.accounts)
            if cash is not None:
                if totals.grand_total <= EPS:
                    return []
                return [Payment(amount=totals.grand_total, account_id=cash.id)]
        return list(self.draft.payments)

    def build_payload(self, totals: Totals | None = None) -> dict:
        totals = totals or self.totals()
        d = self.draft
        payload = {
            "products": [it.to_payload() for it in d.valid_items()],
            "discount": to_amount(d.discount.amount),
            "description": d.description,
            "charges": d.charges.to_payload(totals.sub_total - totals.discount),
            "type": d.order_type,
            "payments": [p.to_payload() for p in self.final_payments(totals)],
            "orderDate": d.order_date,
        }
        if d.entity is not None:
            payload["entityId"] = d.entity.id
        return payload

    def submit(self) -> SubmitOutcome:
        if self.busy:
            return SubmitOutcome.BUSY
        if self.step != Step.SUMMARY:
            self.error = "Review the order summary before submitting."
            return SubmitOutcome.INVALID

        totals = self.totals()
        if totals.vendor_charges > EPS and not self.draft.vendor_charge_account_id:
            return SubmitOutcome.NEEDS_VENDOR_ACCOUNT

        checks = [self.validate_details(), self.validate_payment()]
        checks.append(self.validate_vendor_charges(totals))
        for ok, msg in checks:
            if not ok:
                self.error = msg
                _log.warning("order submit rejected: %s", msg)
                return SubmitOutcome.INVALID
        self.error = None

        payload = self.build_payload(totals)
        self.busy = True
        try:
            if self.draft.order_id:
                order = self.orders.update_order(self.draft.order_id, payload)
            else:
                order = self.orders.create_order(payload)
        except ApiError as e:
            self.notice = f"Could not save the order: {e}"
            _log.error("order submit failed: %s", e)
            return SubmitOutcome.FAILED
        finally:
            self.busy = False

        order_id = str((order or {}).get("id") or self.draft.order_id or "")
        self.last_order = order
        _log.info("%s order %s saved (total %.2f)", self.order_type, order_id, totals.grand_total)

        self.notice = None
        if totals.vendor_charges > EPS and self.draft.vendor_charge_account_id:
            self._record_vendor_charges(order_id, totals.vendor_charges)

        self.draft.reset()
        self._sync_base()
        self.step = Step.DETAILS
        return SubmitOutcome.SUBMITTED

    def _record_vendor_charges(self, order_id: str, amount: float) -> None:
        account_id = self.draft.vendor_charge_account_id
        if self.accounts_repo is None:
            _log.error("no accounts repository; vendor charges for order %s not recorded", order_id)
            self.notice = "Order saved, but vendor charges were not recorded."
            return
        try:
            self.accounts_repo.record_transaction(
                account_id,
                amount=amount,
                type=ORDER_BUY,
                description=f"Vendor charges for order {order_id}",
                order_id=order_id,
            )
        except ApiError as e:
            _log.error("vendor charge transaction for order %s failed: %s", order_id, e)
            self.notice = f"Order saved, but vendor charges were not recorded: {e}"

    # ------------------------------------------------------- edit / clear

    def load(self, initial: dict) -> None:
        """Fill the draft from an existing order (edit mode)."""
        d = self.draft
        d.reset()
        d.order_id = str(initial.get("id")) if initial.get("id") else None
        entity = initial.get("entity")
        d.entity = Entity.from_api(entity) if isinstance(entity, dict) else entity
        d.products = [
            LineItem(
                product_id=str(p.get("productId", "") or ""),
                variant_id=str(p.get("variantId", "") or ""),
                rate=to_amount(p.get("rate")),
                quantity=max(1, int(to_amount(p.get("quantity")) or 1)),
                description=str(p.get("description", "") or ""),
            )
            for p in (initial.get("products") or [])
        ] or [LineItem()]
        d.discount = Discount()
        d.discount.set_amount(initial.get("discount"), sub_total(d.products))
        charges = []
        for row in initial.get("charges") or []:
            c = Charge.from_payload(row)
            if c.is_vat and any(x.is_vat for x in charges):
                _log.warning("order %s carries more than one VAT charge; keeping the first", d.order_id)
                continue
            charges.append(c)
        d.charges = ChargeList(charges, vat_status=self.vat_status)
        payments = []
        for p in initial.get("payments") or []:
            account_id = str(p.get("accountId", "") or "")
            acct = self.account(account_id)
            payments.append(Payment(
                amount=to_amount(p.get("amount")),
                account_id=account_id,
                details=details_from_payload(acct.type if acct else None, p.get("details")),
            ))
        d.payments = payments
        d.description = str(initial.get("description", "") or "")
        if initial.get("orderDate"):
            d.order_date = str(initial["orderDate"])[:10]
        self.step = Step.DETAILS
        self.error = None
        self.notice = None
        self._sync_base()

    def clear(self) -> None:
        self.draft.reset()
        self.step = Step.DETAILS
        self.error = None
        self.notice = None
        self._sync_base()


def initial_from_order(order: dict, *, entities: Iterable = (), products: Iterable = ()) -> dict:
    """
    Map an order as the server returns it (GET /orders/{id}) onto the shape
    `OrderWizard.load` takes.

    Items carry only `productVariantId` and `price`; the product is looked up
    through its variants. Stored charges come back as fixed amounts, with the
    percentage shown against the order's `baseAmount`. Recorded transactions
    become the payment rows.
    """
    entity_id = order.get("entityId")
    entity = next((e for e in entities or [] if e.id == entity_id), None) if entity_id else None
    if entity is None and isinstance(order.get("entity"), dict):
        entity = Entity.from_api(order["entity"])

    variant_owner = {v.id: p.id for p in products or [] for v in p.variants}
    items = []
    for row in order.get("items") or []:
        variant_id = str(row.get("productVariantId", "") or "")
        items.append({
            "productId": variant_owner.get(variant_id, ""),
            "variantId": variant_id,
            "rate": to_amount(row.get("price")),
            "quantity": row.get("quantity"),
        })

    base = to_amount(order.get("baseAmount"))
    charges = []
    for row in order.get("charges") or []:
        amount = to_amount(row.get("amount"))
        charges.append({
            "id": row.get("id"),
            "label": row.get("label", ""),
            "type": CHARGE_FIXED,
            "amount": amount,
            "percentage": amount / base * 100 if base else 0.0,
            "isVat": bool(row.get("isVat")),
            "bearedByEntity": bool(row.get("bearedByEntity", False)),
        })

    return {
        "id": order.get("id"),
        "entity": entity,
        "products": items,
        "discount": to_amount(order.get("discount")),
        "charges": charges,
        "payments": [
            {"amount": t.get("amount"), "accountId": t.get("accountId"), "details": t.get("details") or {}}
            for t in order.get("transactions") or []
        ],
        "description": order.get("description", ""),
        "orderDate": order.get("orderDate") or order.get("createdAt"),
    }
