# bizdesk/modules/order/summary.py
"""HTML for the wizard's summary page, rendered from a bundled jinja2 template."""
from __future__ import annotations

import logging
from importlib import resources as importlib_resources

from jinja2 import Template

from ...utils.helpers import fmt_money
from ..payments.payment_utilities.calculations import remaining_amount, total_paid
from .charges import charge_value

_log = logging.getLogger(__name__)

TEMPLATE_PACKAGE = "bizdesk.resources.templates"
TEMPLATE_NAME = "order_summary.html"


def _load_template() -> Template:
    try:
        tpl_str = importlib_resources.files(TEMPLATE_PACKAGE).joinpath(TEMPLATE_NAME).read_text(encoding="utf-8")
    except (FileNotFoundError, OSError, ModuleNotFoundError) as e:
        _log.error("Failed to load order summary template: %s", e, exc_info=True)
        tpl_str = "<html><body><p>Failed to load order summary template. See logs for details.</p></body></html>"
    return Template(tpl_str, autoescape=True)


def summary_context(wizard) -> dict:
    d = wizard.draft
    t = wizard.totals()
    items = []
    for it in d.valid_items():
        product = next((p for p in wizard.products if p.id == it.product_id), None)
        variant = next((v for v in (product.variants if product else []) if v.id == it.variant_id), None)
        items.append({
            "name": f"{product.name if product else it.product_id} - {variant.name if variant else it.variant_id}",
            "quantity": it.quantity,
            "rate": fmt_money(it.rate),
            "amount": fmt_money(it.amount),
        })
    final = wizard.final_payments(t)
    paid = total_paid(final)
    payments = []
    for p in final:
        acct = wizard.account(p.account_id)
        payments.append({"account": acct.name if acct else p.account_id, "amount": fmt_money(p.amount)})
    entity_base = t.sub_total - t.discount
    charges = []
    for c in d.charges:
        amount = charge_value(c, entity_base if c.beared_by_entity else t.sub_total)
        if amount > 0:
            charges.append({"label": c.label or "Charge", "amount": fmt_money(amount), "entity": c.beared_by_entity})
    return {
        "title": f"{'Buy' if d.is_buy else 'Sell'} order",
        "order_date": d.order_date,
        "entity": d.entity.name if d.entity else None,
        "items": items,
        "charges": charges,
        "payments": payments,
        "description": d.description,
        "totals": {
            "sub_total": fmt_money(t.sub_total),
            "discount": fmt_money(t.discount),
            "grand_total": fmt_money(t.grand_total),
            "total_paid": fmt_money(paid),
            "remaining": fmt_money(remaining_amount(t.grand_total, paid)),
        },
    }


def render_summary(wizard) -> str:
    return _load_template().render(**summary_context(wizard))
