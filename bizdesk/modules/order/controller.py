from PySide6.QtWidgets import QWidget
import logging
from typing import Optional

from ..base_module import BaseModule
from .view import OrderView
from .form import OrderForm
from .draft import DraftSession
from .wizard import OrderWizard, initial_from_order
from ..entity.payment_dialog import EntityPaymentDialog
from ..entity.summary import entity_order_stats
from ..payments.sweep.sweep_service import PaymentSweepService
from ...api.client import ApiClient, ApiError
from ...api.repositories import AccountsRepo, EntitiesRepo, OrdersRepo, ProductsRepo
from ...constants import ORDER_BUY, VAT_CONDITIONAL
from ...utils.helpers import fmt_money
from ...utils.ui_helpers import error, info, warn

_log = logging.getLogger(__name__)


class OrderController(BaseModule):
    """
    BUY or SELL order page. Opens the order form over the session draft for
    its order type and records lump payments against an entity's open orders.
    """

    def __init__(
        self,
        api: ApiClient,
        org_id: str,
        order_type: str,
        session: DraftSession,
        vat_status: str = VAT_CONDITIONAL,
    ):
        super().__init__()
        self.order_type = order_type
        self.session = session
        self.vat_status = vat_status
        self.accounts_repo = AccountsRepo(api, org_id)
        self.entities_repo = EntitiesRepo(api, org_id)
        self.products_repo = ProductsRepo(api, org_id)
        self.orders = OrdersRepo(api, org_id)
        self.sweep = PaymentSweepService(self.orders)

        self.accounts = []
        self.products = []
        self.entities = []
        self._form: Optional[OrderForm] = None

        self.view = OrderView("Buy Orders" if order_type == ORDER_BUY else "Sell Orders")
        self._wire()
        self._reload()

    def get_widget(self) -> QWidget:
        return self.view

    def _wire(self):
        self.view.btn_order.clicked.connect(self._open_form)
        self.view.btn_reload.clicked.connect(self._reload)
        self.view.btn_pay.clicked.connect(self._pay_entity)
        self.view.btn_edit.clicked.connect(self._edit_selected)
        self.view.cmb_entity.currentIndexChanged.connect(self._update_stats)

    # ------------------------------------------------------------------ data

    def _reload(self):
        try:
            self.accounts = self.accounts_repo.list_accounts()
            self.products = self.products_repo.list_products()
            if self.order_type == ORDER_BUY:
                self.entities = self.entities_repo.list_vendors()
            else:
                self.entities = self.entities_repo.list_customers()
        except ApiError as e:
            _log.error("reload failed: %s", e)
            error(self.view, "Load failed", str(e))
            return

        cmb = self.view.cmb_entity
        current = cmb.currentData()
        cmb.blockSignals(True)
        cmb.clear()
        for e in self.entities:
            cmb.addItem(e.name, e.id)
        idx = cmb.findData(current)
        cmb.setCurrentIndex(idx if idx >= 0 else (0 if self.entities else -1))
        cmb.blockSignals(False)
        self._update_stats()
        self._update_draft_label()

    def _selected_entity(self):
        entity_id = self.view.cmb_entity.currentData()
        return next((e for e in self.entities if e.id == entity_id), None)

    def _update_stats(self, _=None):
        entity = self._selected_entity()
        self._fill_orders(entity)
        if entity is None:
            self.view.lbl_stats.setText("")
            self.view.btn_pay.setEnabled(False)
            return
        stats = entity_order_stats(entity.orders)
        self.view.lbl_stats.setText(
            f"{stats.order_count} order(s), {fmt_money(stats.paid)} paid, {fmt_money(stats.remaining)} outstanding"
        )
        self.view.btn_pay.setEnabled(stats.remaining > 0)

    def _fill_orders(self, entity):
        cmb = self.view.cmb_order
        cmb.clear()
        orders = [o for o in (entity.orders if entity else []) if o.type in (None, self.order_type)]
        for o in sorted(orders, key=lambda o: o.created_at, reverse=True):
            cmb.addItem(f"{o.created_at[:10]}  {fmt_money(o.total_amount)}", o.id)
        self.view.btn_edit.setEnabled(bool(orders))

    def _update_draft_label(self):
        draft = self.session.draft_for(self.order_type)
        n = len(draft.valid_items())
        self.view.lbl_draft.setText(f"Draft in progress: {n} item(s)" if n else "")
        self.view.btn_order.setText("Continue Order" if n else "New Order")

    # ------------------------------------------------------------------ order

    def _make_wizard(self) -> OrderWizard:
        return OrderWizard(
            self.session.draft_for(self.order_type),
            orders=self.orders,
            accounts_repo=self.accounts_repo,
            accounts=self.accounts,
            products=self.products,
            vat_status=self.vat_status,
        )

    def _open_form(self):
        wizard = self._make_wizard()
        self._show_form(wizard)

    def edit_order(self, initial: dict):
        """Open the form pre-filled with an existing order; submit updates it."""
        wizard = self._make_wizard()
        entity_id = initial.get("entityId")
        if entity_id and "entity" not in initial:
            initial = dict(initial, entity=next((e for e in self.entities if e.id == entity_id), None))
        wizard.load(initial)
        self._show_form(wizard)

    def _edit_selected(self):
        order_id = self.view.cmb_order.currentData()
        if not order_id:
            return
        try:
            order = self.orders.get_order(order_id)
        except ApiError as e:
            error(self.view, "Load failed", str(e))
            return
        self.edit_order(initial_from_order(order, entities=self.entities, products=self.products))

    def _show_form(self, wizard: OrderWizard):
        if self._form is not None:
            self._form.close()
        self._form = OrderForm(self.view, wizard=wizard, entities=self.entities)
        self._form.submitted.connect(self._on_submitted)
        self._form.finished.connect(lambda _=None: self._update_draft_label())
        self._form.show()

    def _on_submitted(self, order: dict):
        _log.info("order %s submitted from the %s page", order.get("id"), self.order_type)
        self._reload()

    # --------------------------------------------------------------- payments

    def _pay_entity(self):
        entity = self._selected_entity()
        if entity is None:
            return
        try:
            entity = self.entities_repo.get_entity(entity.id)
        except ApiError as e:
            error(self.view, "Load failed", str(e))
            return
        dlg = EntityPaymentDialog(self.view, entity=entity, accounts=self.accounts, service=self.sweep)
        if not dlg.exec():
            return
        plan = dlg.payload()
        if plan is None:
            return
        result = self.sweep.run(plan)
        if result.ok:
            info(self.view, "Payment recorded", result.summary())
        else:
            warn(self.view, "Payment partially recorded", result.summary())
        self._reload()
