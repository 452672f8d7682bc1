from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QVBoxLayout,
    QHBoxLayout,
    QGroupBox,
    QLabel,
    QGridLayout,
    QComboBox,
    QLineEdit,
    QDateEdit,
    QMessageBox,
)
from PySide6.QtCore import QDate

from typing import Iterable, Optional
from ...constants import EPS
from ...utils.helpers import fmt_money, today_str
from ...utils.validators import parse_amount_text
from ..payments.allocator import default_account, prefill_amount, validate_new_payment
from ..payments.details import ChequeDetails, NoDetails, requires_cheque


class AddPaymentDialog(QDialog):
    """
    Manual payment entry for the order wizard.

    Pre-fills the full remaining amount and the first cash-counter account.
    Cheque accounts unlock the cheque fields, which are then mandatory.
    BUY orders are checked against what is left on the chosen account after
    the payments already in the draft.
    """

    def __init__(
        self,
        parent=None,
        *,
        order_type: str,
        remaining: float,
        accounts: Iterable,
        existing_payments: Iterable = (),
    ):
        super().__init__(parent)
        self.setWindowTitle("Add Payment")
        self.setModal(True)
        self._order_type = order_type
        self._remaining = prefill_amount(remaining)
        self._accounts = list(accounts or [])
        self._existing = list(existing_payments or [])
        self._payload = None

        outer = QVBoxLayout(self)
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)

        box_sum = QGroupBox("Payment Summary")
        sum_lay = QHBoxLayout(box_sum)
        self.lbl_remaining = QLabel(f"Remaining: {fmt_money(self._remaining)}")
        sum_lay.addWidget(self.lbl_remaining)
        outer.addWidget(box_sum)

        box_pay = QGroupBox("Payment Details")
        grid = QGridLayout(box_pay)
        grid.setHorizontalSpacing(12)
        grid.setVerticalSpacing(8)

        self.amount = QLineEdit()
        self.amount.setText(f"{self._remaining:0.2f}")

        self.account = QComboBox()
        self.account.addItem("", None)
        for a in self._accounts:
            self.account.addItem(f"{a.name} ({a.type}) - {fmt_money(a.balance)}", a.id)
        cash = default_account(self._accounts)
        if cash is not None:
            self.account.setCurrentIndex(self.account.findData(cash.id))

        self.cheque_issuer = QLineEdit()
        self.cheque_bank = QLineEdit()
        self.cheque_number = QLineEdit()
        self.cheque_date = QDateEdit()
        self.cheque_date.setCalendarPopup(True)
        self.cheque_date.setDisplayFormat("yyyy-MM-dd")
        self.cheque_date.setDate(QDate.fromString(today_str(), "yyyy-MM-dd"))

        def add_row(row: int, label: str, widget):
            grid.addWidget(QLabel(label), row, 0)
            grid.addWidget(widget, row, 1)

        add_row(0, "Amount", self.amount)
        add_row(1, "Account", self.account)
        add_row(2, "Cheque Issuer", self.cheque_issuer)
        add_row(3, "Issuer Bank", self.cheque_bank)
        add_row(4, "Cheque No", self.cheque_number)
        add_row(5, "Cheque Date", self.cheque_date)

        outer.addWidget(box_pay, 1)

        bb = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.btn_ok = bb.button(QDialogButtonBox.Ok)
        self.btn_ok.setText("Add Payment")
        bb.accepted.connect(self.accept)
        bb.rejected.connect(self.reject)
        outer.addWidget(bb)

        self.account.currentIndexChanged.connect(self._refresh_field_enablement)
        self._refresh_field_enablement()
        self.resize(480, 340)

    # --- helpers ---------------------------------------------------------

    def _amount(self) -> float:
        return parse_amount_text(self.amount.text())

    def _current_account(self):
        account_id = self.account.currentData()
        return next((a for a in self._accounts if a.id == account_id), None)

    def _is_cheque(self) -> bool:
        acct = self._current_account()
        return acct is not None and requires_cheque(acct.type)

    def _refresh_field_enablement(self):
        needs_cheque = self._is_cheque()
        for w in (self.cheque_issuer, self.cheque_bank, self.cheque_number, self.cheque_date):
            w.setEnabled(needs_cheque)
        if not needs_cheque:
            self.cheque_issuer.clear()
            self.cheque_bank.clear()
            self.cheque_number.clear()

    def _details(self):
        if not self._is_cheque():
            return NoDetails()
        return ChequeDetails(
            issuer=self.cheque_issuer.text().strip(),
            bank=self.cheque_bank.text().strip(),
            number=self.cheque_number.text().strip(),
            date=self.cheque_date.date().toString("yyyy-MM-dd"),
        )

    # --- validation / payload --------------------------------------------

    def _validate(self) -> tuple[bool, str]:
        return validate_new_payment(
            self._order_type, self._amount(), self._current_account(), self._details(), self._existing
        )

    def accept(self):
        ok, msg = self._validate()
        if not ok:
            QMessageBox.warning(self, "Cannot add payment", msg)
            return
        amt = self._amount()
        if amt - self._remaining > EPS:
            QMessageBox.information(
                self, "Overpayment", f"Payment exceeds the remaining amount by {fmt_money(amt - self._remaining)}."
            )
        self._payload = {
            "amount": amt,
            "account_id": self.account.currentData(),
            "details": self._details(),
        }
        super().accept()

    def payload(self) -> Optional[dict]:
        return self._payload
