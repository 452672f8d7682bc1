from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QGridLayout, QFormLayout, QStackedWidget, QWidget,
    QGroupBox, QLabel, QComboBox, QLineEdit, QDateEdit, QPushButton, QTableWidget,
    QTableWidgetItem, QAbstractItemView, QCheckBox, QHeaderView, QMessageBox, QTextEdit
)
from PySide6.QtCore import Qt, QDate, Signal

from typing import Iterable
from ...constants import CHARGE_FIXED, CHARGE_PERCENTAGE, ORDER_BUY, VAT_NEVER
from ...utils.helpers import fmt_money, today_str
from ...utils.validators import parse_amount_text
from .charges import ChargePolicyError
from .payment_dialog import AddPaymentDialog
from .summary import render_summary
from .vendor_account_dialog import VendorChargeAccountDialog
from .wizard import OrderWizard, Step, SubmitOutcome


class OrderForm(QDialog):
    """
    Three-page order form (Details, Payment, Summary) bound to an OrderWizard.

    The wizard holds all state; this dialog only forwards edits and repaints.
    Closing the dialog keeps the draft, so reopening continues where the user
    left off.
    """

    submitted = Signal(dict)

    ITEM_COLS = ["#", "Product", "Variant", "Rate", "Qty", "Amount", ""]
    CHARGE_COLS = ["Label", "Type", "Amount", "%", "Entity pays", ""]
    PAYMENT_COLS = ["#", "Account", "Amount", "Details", ""]

    def __init__(self, parent=None, *, wizard: OrderWizard, entities: Iterable = ()):
        super().__init__(parent)
        self.wizard = wizard
        self.entities = list(entities or [])
        is_buy = wizard.order_type == ORDER_BUY
        self.setWindowTitle("Buy Order" if is_buy else "Sell Order")
        self.setModal(False)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)

        self.lbl_step = QLabel()
        self.lbl_step.setStyleSheet("font-weight: bold;")
        outer.addWidget(self.lbl_step)

        self.pages = QStackedWidget()
        self.pages.addWidget(self._build_details_page())
        self.pages.addWidget(self._build_payment_page())
        self.pages.addWidget(self._build_summary_page())
        outer.addWidget(self.pages, 1)

        self.lbl_error = QLabel()
        self.lbl_error.setWordWrap(True)
        self.lbl_error.setStyleSheet("color: #991B1B;")
        outer.addWidget(self.lbl_error)

        row = QHBoxLayout()
        self.btn_clear = QPushButton("Clear")
        self.btn_back = QPushButton("Back")
        self.btn_next = QPushButton("Next")
        self.btn_submit = QPushButton("Submit")
        row.addWidget(self.btn_clear)
        row.addStretch(1)
        row.addWidget(self.btn_back)
        row.addWidget(self.btn_next)
        row.addWidget(self.btn_submit)
        outer.addLayout(row)

        self.btn_clear.clicked.connect(self._on_clear)
        self.btn_back.clicked.connect(self._on_back)
        self.btn_next.clicked.connect(self._on_next)
        self.btn_submit.clicked.connect(self._on_submit)

        self.resize(900, 640)
        self.refresh()

    # -------------------------------------------------------------- pages

    def _build_details_page(self) -> QWidget:
        page = QWidget()
        lay = QVBoxLayout(page)

        header = QFormLayout()
        self.cmb_entity = QComboBox()
        self.cmb_entity.addItem("", None)
        for e in self.entities:
            label = f"{e.name} (walk-in)" if e.is_default else e.name
            self.cmb_entity.addItem(label, e.id)
        self.cmb_entity.currentIndexChanged.connect(self._on_entity_changed)

        self.date = QDateEdit()
        self.date.setCalendarPopup(True)
        self.date.setDisplayFormat("yyyy-MM-dd")
        self.date.dateChanged.connect(
            lambda d: self.wizard.set_order_date(d.toString("yyyy-MM-dd"))
        )

        self.txt_description = QLineEdit()
        self.txt_description.editingFinished.connect(
            lambda: self.wizard.set_description(self.txt_description.text())
        )

        header.addRow("Entity", self.cmb_entity)
        header.addRow("Date", self.date)
        header.addRow("Description", self.txt_description)
        lay.addLayout(header)

        box_items = QGroupBox("Items")
        ib = QVBoxLayout(box_items)
        self.tbl_items = QTableWidget(0, len(self.ITEM_COLS))
        self.tbl_items.setHorizontalHeaderLabels(self.ITEM_COLS)
        self.tbl_items.verticalHeader().setVisible(False)
        self.tbl_items.setSelectionMode(QAbstractItemView.NoSelection)
        self.tbl_items.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        self.tbl_items.horizontalHeader().setSectionResizeMode(2, QHeaderView.Stretch)
        ib.addWidget(self.tbl_items)
        self.btn_add_item = QPushButton("Add Item")
        self.btn_add_item.clicked.connect(self._on_add_item)
        ib.addWidget(self.btn_add_item, 0, Qt.AlignLeft)
        lay.addWidget(box_items, 2)

        box_disc = QGroupBox("Discount")
        dl = QHBoxLayout(box_disc)
        self.txt_discount = QLineEdit()
        self.txt_discount.setPlaceholderText("0")
        self.txt_discount_pct = QLineEdit()
        self.txt_discount_pct.setPlaceholderText("0 %")
        dl.addWidget(QLabel("Amount"))
        dl.addWidget(self.txt_discount)
        dl.addWidget(QLabel("%"))
        dl.addWidget(self.txt_discount_pct)
        self.txt_discount.editingFinished.connect(self._on_discount_amount)
        self.txt_discount_pct.editingFinished.connect(self._on_discount_pct)
        lay.addWidget(box_disc)

        box_ch = QGroupBox("Charges")
        cl = QVBoxLayout(box_ch)
        self.tbl_charges = QTableWidget(0, len(self.CHARGE_COLS))
        self.tbl_charges.setHorizontalHeaderLabels(self.CHARGE_COLS)
        self.tbl_charges.verticalHeader().setVisible(False)
        self.tbl_charges.setSelectionMode(QAbstractItemView.NoSelection)
        self.tbl_charges.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        cl.addWidget(self.tbl_charges)
        btns = QHBoxLayout()
        self.btn_add_charge = QPushButton("Add Charge")
        self.btn_add_vat = QPushButton("Add VAT")
        self.btn_add_charge.clicked.connect(self._on_add_charge)
        self.btn_add_vat.clicked.connect(self._on_add_vat)
        btns.addWidget(self.btn_add_charge)
        btns.addWidget(self.btn_add_vat)
        btns.addStretch(1)
        cl.addLayout(btns)
        lay.addWidget(box_ch, 1)

        self.lbl_details_totals = QLabel()
        lay.addWidget(self.lbl_details_totals)
        return page

    def _build_payment_page(self) -> QWidget:
        page = QWidget()
        lay = QVBoxLayout(page)

        box = QGroupBox("Payments")
        pl = QVBoxLayout(box)
        self.tbl_payments = QTableWidget(0, len(self.PAYMENT_COLS))
        self.tbl_payments.setHorizontalHeaderLabels(self.PAYMENT_COLS)
        self.tbl_payments.verticalHeader().setVisible(False)
        self.tbl_payments.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.tbl_payments.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        pl.addWidget(self.tbl_payments)
        self.btn_add_payment = QPushButton("Add Payment")
        self.btn_add_payment.clicked.connect(self._on_add_payment)
        pl.addWidget(self.btn_add_payment, 0, Qt.AlignLeft)
        lay.addWidget(box, 1)

        self.box_balance = QGroupBox("Account Balances")
        bl = QVBoxLayout(self.box_balance)
        self.lbl_balance = QLabel()
        self.lbl_balance.setWordWrap(True)
        bl.addWidget(self.lbl_balance)
        lay.addWidget(self.box_balance)

        grid = QGridLayout()
        self.lbl_pay_total = QLabel()
        self.lbl_pay_paid = QLabel()
        self.lbl_pay_remaining = QLabel()
        self.lbl_overpaid = QLabel()
        self.lbl_overpaid.setStyleSheet("color: #92400E;")
        grid.addWidget(QLabel("Grand Total"), 0, 0)
        grid.addWidget(self.lbl_pay_total, 0, 1)
        grid.addWidget(QLabel("Paid"), 1, 0)
        grid.addWidget(self.lbl_pay_paid, 1, 1)
        grid.addWidget(QLabel("Remaining"), 2, 0)
        grid.addWidget(self.lbl_pay_remaining, 2, 1)
        grid.addWidget(self.lbl_overpaid, 3, 0, 1, 2)
        lay.addLayout(grid)
        return page

    def _build_summary_page(self) -> QWidget:
        page = QWidget()
        lay = QVBoxLayout(page)
        self.txt_summary = QTextEdit()
        self.txt_summary.setReadOnly(True)
        lay.addWidget(self.txt_summary)
        return page

    # ------------------------------------------------------------ repaint

    def refresh(self):
        w = self.wizard
        self.pages.setCurrentIndex(w.step.value - 1)
        self.lbl_step.setText(f"Step {w.step.value} of 3: {w.step.name.title()}")
        self.btn_back.setEnabled(w.step != Step.DETAILS)
        self.btn_next.setVisible(w.step != Step.SUMMARY)
        self.btn_submit.setVisible(w.step == Step.SUMMARY)
        self.btn_submit.setEnabled(not w.busy)
        self.lbl_error.setText(w.error or "")

        self._refresh_header()
        self._refresh_items()
        self._refresh_discount()
        self._refresh_charges()
        self._refresh_payments()
        self._refresh_totals()
        if w.step == Step.SUMMARY:
            self._refresh_summary()

    def _refresh_header(self):
        d = self.wizard.draft
        self.cmb_entity.blockSignals(True)
        idx = self.cmb_entity.findData(d.entity.id) if d.entity is not None else 0
        self.cmb_entity.setCurrentIndex(max(idx, 0))
        self.cmb_entity.blockSignals(False)

        self.date.blockSignals(True)
        self.date.setDate(QDate.fromString(d.order_date or today_str(), "yyyy-MM-dd"))
        self.date.blockSignals(False)
        self.txt_description.setText(d.description)

    def _refresh_items(self):
        items = self.wizard.draft.products
        self.tbl_items.setRowCount(len(items))
        for r, it in enumerate(items):
            self.tbl_items.setItem(r, 0, QTableWidgetItem(str(r + 1)))

            cmb_product = QComboBox()
            cmb_product.addItem("", None)
            for p in self.wizard.products:
                cmb_product.addItem(p.name, p.id)
            cmb_product.setCurrentIndex(max(cmb_product.findData(it.product_id) if it.product_id else 0, 0))
            cmb_product.currentIndexChanged.connect(lambda _=None, row=r: self._on_product_changed(row))
            self.tbl_items.setCellWidget(r, 1, cmb_product)

            cmb_variant = QComboBox()
            cmb_variant.addItem("", None)
            product = next((p for p in self.wizard.products if p.id == it.product_id), None)
            for v in (product.variants if product else []):
                cmb_variant.addItem(f"{v.name} (stock {v.stock:g})", v.id)
            cmb_variant.setCurrentIndex(max(cmb_variant.findData(it.variant_id) if it.variant_id else 0, 0))
            cmb_variant.currentIndexChanged.connect(lambda _=None, row=r: self._on_variant_changed(row))
            self.tbl_items.setCellWidget(r, 2, cmb_variant)

            txt_rate = QLineEdit(f"{it.rate:g}")
            txt_rate.editingFinished.connect(lambda row=r, w=txt_rate: self._on_item_edit(row, rate=w.text()))
            self.tbl_items.setCellWidget(r, 3, txt_rate)

            txt_qty = QLineEdit(str(it.quantity))
            txt_qty.editingFinished.connect(lambda row=r, w=txt_qty: self._on_item_edit(row, quantity=w.text()))
            self.tbl_items.setCellWidget(r, 4, txt_qty)

            amt = QTableWidgetItem(fmt_money(it.amount))
            amt.setFlags(amt.flags() & ~Qt.ItemIsEditable)
            amt.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
            self.tbl_items.setItem(r, 5, amt)

            btn = QPushButton("✕")
            btn.clicked.connect(lambda _=False, row=r: self._on_remove_item(row))
            self.tbl_items.setCellWidget(r, 6, btn)

    def _refresh_discount(self):
        disc = self.wizard.draft.discount
        self.txt_discount.setText(f"{disc.amount:g}" if disc.amount else "")
        self.txt_discount_pct.setText(f"{disc.percentage:.2f}" if disc.amount else "")

    def _refresh_charges(self):
        charges = list(self.wizard.draft.charges)
        self.tbl_charges.setRowCount(len(charges))
        for r, c in enumerate(charges):
            txt_label = QLineEdit(c.label)
            txt_label.editingFinished.connect(
                lambda cid=c.id, w=txt_label: self._charge_cmd(self.wizard.set_charge_label, cid, w.text())
            )
            self.tbl_charges.setCellWidget(r, 0, txt_label)

            cmb_type = QComboBox()
            cmb_type.addItem("Fixed", CHARGE_FIXED)
            cmb_type.addItem("Percentage", CHARGE_PERCENTAGE)
            cmb_type.setCurrentIndex(cmb_type.findData(c.type))
            cmb_type.currentIndexChanged.connect(
                lambda _=None, cid=c.id, w=cmb_type: self._charge_cmd(self.wizard.set_charge_type, cid, w.currentData())
            )
            self.tbl_charges.setCellWidget(r, 1, cmb_type)

            txt_amount = QLineEdit(f"{c.amount:.2f}")
            txt_amount.editingFinished.connect(
                lambda cid=c.id, w=txt_amount: self._charge_cmd(
                    self.wizard.set_charge_amount, cid, parse_amount_text(w.text())
                )
            )
            self.tbl_charges.setCellWidget(r, 2, txt_amount)

            txt_pct = QLineEdit(f"{c.percentage:.2f}")
            txt_pct.editingFinished.connect(
                lambda cid=c.id, w=txt_pct: self._charge_cmd(
                    self.wizard.set_charge_percentage, cid, parse_amount_text(w.text())
                )
            )
            self.tbl_charges.setCellWidget(r, 3, txt_pct)

            chk = QCheckBox()
            chk.setChecked(c.beared_by_entity)
            chk.toggled.connect(
                lambda on, cid=c.id: self._charge_cmd(self.wizard.set_charge_beared_by_entity, cid, on)
            )
            self.tbl_charges.setCellWidget(r, 4, chk)

            btn = QPushButton("✕")
            btn.clicked.connect(lambda _=False, cid=c.id: self._charge_cmd(self.wizard.remove_charge, cid))
            self.tbl_charges.setCellWidget(r, 5, btn)

        has_vat = self.wizard.draft.charges.vat_charge() is not None
        self.btn_add_vat.setEnabled(not has_vat and self.wizard.vat_status != VAT_NEVER)

    def _refresh_payments(self):
        payments = self.wizard.draft.payments
        self.tbl_payments.setRowCount(len(payments))
        for r, p in enumerate(payments):
            acct = self.wizard.account(p.account_id)
            details = p.details.to_payload()
            self.tbl_payments.setItem(r, 0, QTableWidgetItem(str(r + 1)))
            self.tbl_payments.setItem(r, 1, QTableWidgetItem(acct.name if acct else p.account_id))
            self.tbl_payments.setItem(r, 2, QTableWidgetItem(fmt_money(p.amount)))
            self.tbl_payments.setItem(r, 3, QTableWidgetItem(
                f"Cheque #{details['chequeNumber']} ({details['chequeIssuerBank']})" if details else ""
            ))
            btn = QPushButton("✕")
            btn.clicked.connect(lambda _=False, row=r: self._on_remove_payment(row))
            self.tbl_payments.setCellWidget(r, 4, btn)

        summaries = self.wizard.balance_summaries()
        self.box_balance.setVisible(self.wizard.order_type == ORDER_BUY)
        lines = []
        for s in summaries:
            flag = f" - short by {fmt_money(s.shortfall)}" if s.insufficient else ""
            lines.append(
                f"{s.account.name}: required {fmt_money(s.total_required)} of {fmt_money(s.balance)}{flag}"
            )
        self.lbl_balance.setText("\n".join(lines) or "No payments yet.")

    def _refresh_totals(self):
        t = self.wizard.totals()
        parts = [
            f"Sub Total: {fmt_money(t.sub_total)}",
            f"Discount: {fmt_money(t.discount)}",
            f"Charges: {fmt_money(t.charge_amount)}",
            f"Grand Total: {fmt_money(t.grand_total)}",
        ]
        if t.vendor_charges > 0:
            parts.append(f"Vendor Charges: {fmt_money(t.vendor_charges)}")
        self.lbl_details_totals.setText("    ".join(parts))

        self.lbl_pay_total.setText(fmt_money(t.grand_total))
        self.lbl_pay_paid.setText(fmt_money(t.total_paid))
        self.lbl_pay_remaining.setText(fmt_money(t.remaining))
        self.lbl_overpaid.setText(
            f"Payments exceed the total by {fmt_money(t.overpaid)}." if t.overpaid > 0 else ""
        )

    def _refresh_summary(self):
        self.txt_summary.setHtml(render_summary(self.wizard))

    # ----------------------------------------------------------- handlers

    def _on_entity_changed(self, _=None):
        entity_id = self.cmb_entity.currentData()
        entity = next((e for e in self.entities if e.id == entity_id), None)
        self.wizard.set_entity(entity)

    def _on_add_item(self):
        self.wizard.add_line_item()
        self.refresh()

    def _on_remove_item(self, row: int):
        self.wizard.remove_line_item(row)
        self.refresh()

    def _on_product_changed(self, row: int):
        cmb = self.tbl_items.cellWidget(row, 1)
        self.wizard.select_variant(row, cmb.currentData() or "", "")
        self.refresh()

    def _on_variant_changed(self, row: int):
        item = self.wizard.draft.products[row]
        cmb = self.tbl_items.cellWidget(row, 2)
        self.wizard.select_variant(row, item.product_id, cmb.currentData() or "")
        self.refresh()

    def _on_item_edit(self, row: int, **changes):
        if row >= len(self.wizard.draft.products):
            return
        values = {k: parse_amount_text(v) for k, v in changes.items()}
        self.wizard.update_line_item(row, **values)
        self.refresh()

    def _on_discount_amount(self):
        self.wizard.set_discount(parse_amount_text(self.txt_discount.text()))
        self.refresh()

    def _on_discount_pct(self):
        self.wizard.set_discount_percentage(parse_amount_text(self.txt_discount_pct.text()))
        self.refresh()

    def _on_add_charge(self):
        self.wizard.add_charge()
        self.refresh()

    def _on_add_vat(self):
        self._charge_cmd(self.wizard.add_vat)

    def _charge_cmd(self, fn, *args):
        try:
            fn(*args)
        except ChargePolicyError as e:
            QMessageBox.warning(self, "Charges", str(e))
        self.refresh()

    def _on_add_payment(self):
        t = self.wizard.totals()
        dlg = AddPaymentDialog(
            self,
            order_type=self.wizard.order_type,
            remaining=t.remaining,
            accounts=self.wizard.accounts,
            existing_payments=self.wizard.draft.payments,
        )
        if not dlg.exec():
            return
        p = dlg.payload()
        if p and not self.wizard.add_payment(p["amount"], p["account_id"], p["details"]):
            QMessageBox.warning(self, "Cannot add payment", self.wizard.error or "")
        self.refresh()

    def _on_remove_payment(self, row: int):
        self.wizard.remove_payment(row)
        self.refresh()

    def _on_back(self):
        self.wizard.back()
        self.refresh()

    def _on_next(self):
        self.wizard.set_description(self.txt_description.text())
        self.wizard.next()
        self.refresh()

    def _on_clear(self):
        self.wizard.clear()
        self.refresh()

    def _on_submit(self):
        outcome = self.wizard.submit()
        if outcome == SubmitOutcome.NEEDS_VENDOR_ACCOUNT:
            dlg = VendorChargeAccountDialog(
                self, amount=self.wizard.totals().vendor_charges, accounts=self.wizard.accounts
            )
            if not dlg.exec():
                self.refresh()
                return
            self.wizard.set_vendor_charge_account(dlg.payload())
            outcome = self.wizard.submit()

        if outcome == SubmitOutcome.SUBMITTED:
            if self.wizard.notice:
                QMessageBox.warning(self, "Order saved", self.wizard.notice)
                self.wizard.dismiss_notice()
            else:
                QMessageBox.information(self, "Order saved", "The order has been saved.")
            self.submitted.emit(self.wizard.last_order or {})
        elif outcome == SubmitOutcome.FAILED:
            QMessageBox.critical(self, "Order not saved", self.wizard.notice or "")
            self.wizard.dismiss_notice()
        self.refresh()
