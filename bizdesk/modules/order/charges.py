# bizdesk/modules/order/charges.py
"""
Charge list kept consistent with its taxable base.

- percentage charges: `amount` is a cache of base * percentage / 100
- fixed charges: `percentage` is a display cache of amount / base * 100
- at most one VAT charge; the organisation's vat_status decides whether it
  is mandatory ("always"), forbidden to add ("never") or optional
- every mutation is an explicit command; nothing recomputes behind the
  caller's back, so a UI can call these from change handlers without loops
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional

from ...constants import (
    CHARGE_FIXED,
    CHARGE_PERCENTAGE,
    EPS,
    VAT_ALWAYS,
    VAT_CONDITIONAL,
    VAT_LABEL,
    VAT_NEVER,
    VAT_RATE,
)
from ...utils.helpers import to_amount

_log = logging.getLogger(__name__)


class ChargePolicyError(ValueError):
    """A charge mutation the organisation's VAT policy does not allow."""


def new_charge_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Charge:
    id: str
    label: str = ""
    type: str = CHARGE_FIXED
    amount: float = 0.0
    percentage: float = 0.0
    is_vat: bool = False
    beared_by_entity: bool = True

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "amount": self.amount,
            "percentage": self.percentage,
            "isVat": self.is_vat,
            "bearedByEntity": self.beared_by_entity,
        }

    @classmethod
    def from_payload(cls, row: dict) -> "Charge":
        ctype = row.get("type") if row.get("type") in (CHARGE_FIXED, CHARGE_PERCENTAGE) else CHARGE_FIXED
        return cls(
            id=str(row.get("id") or new_charge_id()),
            label=str(row.get("label", "") or ""),
            type=ctype,
            amount=to_amount(row.get("amount")),
            percentage=to_amount(row.get("percentage")),
            is_vat=bool(row.get("isVat")),
            beared_by_entity=bool(row.get("bearedByEntity", True)),
        )


# -----------------------------
# Base math
# -----------------------------

def amount_from_percentage(base: float, percentage: float) -> float:
    return to_amount(base) * to_amount(percentage) / 100.0


def percentage_from_amount(base: float, amount: float) -> float:
    """Display percentage of `amount` over `base`; 0 when there is no base."""
    b = to_amount(base)
    if b == 0:
        return 0.0
    return to_amount(amount) / b * 100.0


def charge_value(charge: Charge, base: float) -> float:
    """What a charge is worth on `base`: percentage charges follow the base, fixed ones do not."""
    if charge.type == CHARGE_PERCENTAGE:
        return amount_from_percentage(base, charge.percentage)
    return to_amount(charge.amount)


def _clamp_percentage(p: float) -> float:
    p = to_amount(p)
    if p < 0:
        return 0.0
    if p > 100:
        return 100.0
    return p


class ChargeList:
    """Owned, mutable list of charges for one order draft."""

    def __init__(self, charges: Optional[list[Charge]] = None, *, vat_status: str = VAT_CONDITIONAL):
        self._charges: list[Charge] = list(charges or [])
        self.vat_status = vat_status

    # ---- read --------------------------------------------------------------

    def __iter__(self) -> Iterator[Charge]:
        return iter(list(self._charges))

    def __len__(self) -> int:
        return len(self._charges)

    def items(self) -> list[Charge]:
        return [replace(c) for c in self._charges]

    def get(self, charge_id: str) -> Charge:
        for c in self._charges:
            if c.id == charge_id:
                return c
        raise KeyError(charge_id)

    def vat_charge(self) -> Charge | None:
        for c in self._charges:
            if c.is_vat:
                return c
        return None

    def to_payload(self, entity_base: float | None = None) -> list[dict]:
        """
        Only charges that add to what the entity pays are submitted. With
        `entity_base` (sub_total - discount) percentage amounts are taken on
        that base, matching `pricing.charge_amount`.
        """
        rows = []
        for c in self._charges:
            if not c.beared_by_entity:
                continue
            amount = c.amount if entity_base is None else charge_value(c, entity_base)
            if amount > 0:
                rows.append(dict(c.to_payload(), amount=amount))
        return rows

    # ---- base changes --------------------------------------------------------

    def recalculate_on_base_change(self, new_base: float) -> bool:
        """
        Re-derive caches for a new taxable base. Returns True when any field
        actually changed.
        """
        changed = False
        for c in self._charges:
            if c.type == CHARGE_PERCENTAGE:
                amount = amount_from_percentage(new_base, c.percentage)
                if abs(amount - c.amount) > EPS:
                    c.amount = amount
                    changed = True
            else:
                pct = percentage_from_amount(new_base, c.amount)
                if abs(pct - c.percentage) > EPS:
                    c.percentage = pct
                    changed = True
        return changed

    # ---- VAT policy ------------------------------------------------------------

    def ensure_vat_policy(self, vat_status: str, base: float) -> bool:
        """
        Apply the organisation's VAT policy. Under "always" a 13% VAT charge is
        appended when missing and an existing one is pinned back to 13%.
        "never" only blocks adding; an existing VAT charge stays.
        Returns True when the list changed.
        """
        self.vat_status = vat_status
        if vat_status != VAT_ALWAYS:
            return False
        vat = self.vat_charge()
        if vat is None:
            self._charges.append(self._make_vat(base))
            _log.debug("VAT charge added (vat_status=always)")
            return True
        changed = False
        if vat.type != CHARGE_PERCENTAGE or abs(vat.percentage - VAT_RATE) > EPS:
            vat.type = CHARGE_PERCENTAGE
            vat.percentage = VAT_RATE
            changed = True
        amount = amount_from_percentage(base, VAT_RATE)
        if abs(vat.amount - amount) > EPS:
            vat.amount = amount
            changed = True
        return changed

    def add_vat(self, base: float) -> Charge:
        if self.vat_status == VAT_NEVER:
            raise ChargePolicyError("VAT is disabled for this organization.")
        if self.vat_charge() is not None:
            raise ChargePolicyError("A VAT charge already exists.")
        vat = self._make_vat(base)
        self._charges.append(vat)
        return vat

    @staticmethod
    def _make_vat(base: float) -> Charge:
        return Charge(
            id=new_charge_id(),
            label=VAT_LABEL,
            type=CHARGE_PERCENTAGE,
            amount=amount_from_percentage(base, VAT_RATE),
            percentage=VAT_RATE,
            is_vat=True,
            beared_by_entity=True,
        )

    def _guard_locked_vat(self, charge: Charge) -> None:
        if charge.is_vat and self.vat_status == VAT_ALWAYS:
            raise ChargePolicyError("VAT is mandatory for this organization and cannot be changed.")

    # ---- commands --------------------------------------------------------------

    def add_charge(self, label: str = "", *, beared_by_entity: bool = True) -> Charge:
        """Append a zero-value fixed charge for the user to fill in."""
        c = Charge(id=new_charge_id(), label=label, beared_by_entity=beared_by_entity)
        self._charges.append(c)
        return c

    def remove_charge(self, charge_id: str) -> None:
        c = self.get(charge_id)
        if c.is_vat and self.vat_status == VAT_ALWAYS:
            raise ChargePolicyError("VAT is mandatory for this organization and cannot be removed.")
        self._charges = [x for x in self._charges if x.id != charge_id]

    def set_charge_type(self, charge_id: str, new_type: str, base: float) -> Charge:
        if new_type not in (CHARGE_FIXED, CHARGE_PERCENTAGE):
            raise ValueError(f"Unknown charge type: {new_type!r}")
        c = self.get(charge_id)
        if c.type == new_type:
            return c
        self._guard_locked_vat(c)
        if new_type == CHARGE_PERCENTAGE:
            # round-trips through the percentage; float drift is accepted
            c.percentage = percentage_from_amount(base, c.amount)
            c.amount = amount_from_percentage(base, c.percentage)
        else:
            c.percentage = percentage_from_amount(base, c.amount)
        c.type = new_type
        return c

    def set_amount(self, charge_id: str, amount: float, base: float) -> Charge:
        """User typed an amount. Percentage charges derive their rate from it."""
        c = self.get(charge_id)
        self._guard_locked_vat(c)
        amount = max(0.0, to_amount(amount))
        if c.type == CHARGE_PERCENTAGE:
            c.percentage = _clamp_percentage(percentage_from_amount(base, amount))
            c.amount = amount_from_percentage(base, c.percentage)
        else:
            c.amount = amount
            c.percentage = percentage_from_amount(base, amount)
        return c

    def set_percentage(self, charge_id: str, percentage: float, base: float) -> Charge:
        """User typed a rate (0..100). The amount follows for both types."""
        c = self.get(charge_id)
        self._guard_locked_vat(c)
        c.percentage = _clamp_percentage(percentage)
        c.amount = amount_from_percentage(base, c.percentage)
        return c

    def set_label(self, charge_id: str, label: str) -> Charge:
        c = self.get(charge_id)
        c.label = (label or "").strip()
        return c

    def set_beared_by_entity(self, charge_id: str, beared_by_entity: bool) -> Charge:
        c = self.get(charge_id)
        self._guard_locked_vat(c)
        c.beared_by_entity = bool(beared_by_entity)
        return c

    def clear(self) -> None:
        self._charges = []
