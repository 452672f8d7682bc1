from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QVBoxLayout, QFormLayout, QComboBox, QLabel, QMessageBox
)

from typing import Iterable, Optional
from ...utils.helpers import fmt_money
from ..payments.balance_check import check_vendor_charge_account


class VendorChargeAccountDialog(QDialog):
    """Pick the account that settles charges the organisation bears itself."""

    def __init__(self, parent=None, *, amount: float, accounts: Iterable):
        super().__init__(parent)
        self.setWindowTitle("Vendor Charges")
        self.setModal(True)
        self._amount = amount
        self._accounts = list(accounts or [])
        self._payload = None

        lay = QVBoxLayout(self)
        lay.addWidget(QLabel(f"Vendor charges of {fmt_money(amount)} must be paid from an account."))

        form = QFormLayout()
        self.account = QComboBox()
        self.account.addItem("", None)
        for a in self._accounts:
            self.account.addItem(f"{a.name} ({a.type}) - {fmt_money(a.balance)}", a.id)
        form.addRow("Account", self.account)
        lay.addLayout(form)

        bb = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        bb.accepted.connect(self.accept)
        bb.rejected.connect(self.reject)
        lay.addWidget(bb)

    def _validate(self) -> tuple[bool, str]:
        account_id = self.account.currentData()
        acct = next((a for a in self._accounts if a.id == account_id), None)
        return check_vendor_charge_account(acct, self._amount)

    def accept(self):
        ok, msg = self._validate()
        if not ok:
            QMessageBox.warning(self, "Vendor Charges", msg)
            return
        self._payload = self.account.currentData()
        super().accept()

    def payload(self) -> Optional[str]:
        return self._payload
