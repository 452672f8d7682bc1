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
    QTableWidget,
    QTableWidgetItem,
    QAbstractItemView,
    QHeaderView,
)
from PySide6.QtCore import QDate

from typing import Iterable, Optional
from ...utils.helpers import fmt_money, today_str
from ...utils.validators import parse_amount_text
from ..payments.allocator import default_account
from ..payments.details import ChequeDetails, NoDetails, requires_cheque, validate_details
from ..payments.sweep.allocations_model import SweepAllocationsModel, SweepPlan
from ..payments.sweep.sweep_service import PaymentSweepService
from .summary import entity_order_stats, status_breakdown


class EntityPaymentDialog(QDialog):
    """
    One lump payment from (or to) an entity, spread over its open orders
    oldest first. The allocation preview updates as the amount is typed;
    the accepted payload is the validated SweepPlan.
    """

    def __init__(
        self,
        parent=None,
        *,
        entity,
        accounts: Iterable,
        service: PaymentSweepService,
    ):
        super().__init__(parent)
        self.setWindowTitle(f"Record Payment - {entity.name}")
        self.setModal(True)
        self._entity = entity
        self._accounts = list(accounts or [])
        self._service = service
        self._payload: Optional[SweepPlan] = None

        stats = entity_order_stats(entity.orders)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)

        box_sum = QGroupBox("Outstanding")
        sum_lay = QHBoxLayout(box_sum)
        self.lbl_total = QLabel(f"Orders: {stats.order_count} ({stats.open_orders} open)")
        self.lbl_paid = QLabel(f"Paid: {fmt_money(stats.paid)}")
        self.lbl_remaining = QLabel(f"Remaining: {fmt_money(stats.remaining)}")
        self.lbl_status = QLabel(status_breakdown(stats))
        for w in (self.lbl_total, self.lbl_paid, self.lbl_remaining, self.lbl_status):
            sum_lay.addWidget(w)
        outer.addWidget(box_sum)

        box_pay = QGroupBox("Payment Details")
        grid = QGridLayout(box_pay)
        grid.setHorizontalSpacing(12)
        grid.setVerticalSpacing(8)

        self.amount = QLineEdit()
        self.amount.setPlaceholderText(f"{stats.remaining:0.2f}")

        self.account = QComboBox()
        self.account.addItem("", None)
        for a in self._accounts:
            self.account.addItem(f"{a.name} ({a.type})", a.id)
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
        outer.addWidget(box_pay)

        box_alloc = QGroupBox("Allocation")
        al = QVBoxLayout(box_alloc)
        self.tbl_alloc = QTableWidget(0, 3)
        self.tbl_alloc.setHorizontalHeaderLabels(["Order", "Outstanding", "Applied"])
        self.tbl_alloc.verticalHeader().setVisible(False)
        self.tbl_alloc.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.tbl_alloc.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        al.addWidget(self.tbl_alloc)
        outer.addWidget(box_alloc, 1)

        bb = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.btn_ok = bb.button(QDialogButtonBox.Ok)
        self.btn_ok.setText("Record Payment")
        bb.accepted.connect(self.accept)
        bb.rejected.connect(self.reject)
        outer.addWidget(bb)

        self.amount.textChanged.connect(self._refresh_preview)
        self.account.currentIndexChanged.connect(self._refresh_field_enablement)
        self._refresh_field_enablement()
        self._refresh_preview()
        self.resize(560, 520)

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

    def _details(self):
        if not self._is_cheque():
            return NoDetails()
        return ChequeDetails(
            issuer=self.cheque_issuer.text().strip(),
            bank=self.cheque_bank.text().strip(),
            number=self.cheque_number.text().strip(),
            date=self.cheque_date.date().toString("yyyy-MM-dd"),
        )

    def _refresh_preview(self):
        model = SweepAllocationsModel()
        model.set_candidates(self._entity.orders)
        candidates = model.candidates()
        applied = {}
        amt = self._amount()
        if amt > 0:
            plan = model.allocate(min(amt, model.total_outstanding()), "")
            applied = {r["order_id"]: r["amount"] for r in plan.rows}
        self.tbl_alloc.setRowCount(len(candidates))
        for r, c in enumerate(candidates):
            self.tbl_alloc.setItem(r, 0, QTableWidgetItem(f"{c.order_id} ({c.created_at[:10]})"))
            self.tbl_alloc.setItem(r, 1, QTableWidgetItem(fmt_money(c.remaining)))
            self.tbl_alloc.setItem(r, 2, QTableWidgetItem(fmt_money(applied.get(c.order_id, 0.0))))

    # --- validation / payload --------------------------------------------

    def _validate(self) -> tuple[bool, str, Optional[SweepPlan]]:
        acct = self._current_account()
        if acct is not None:
            ok, msg = validate_details(acct.type, self._details())
            if not ok:
                return False, msg, None
        plan, err = self._service.plan(
            self._entity, self._amount(), acct.id if acct else "", self._details().to_payload()
        )
        if plan is None:
            return False, err, None
        return True, "", plan

    def accept(self):
        ok, msg, plan = self._validate()
        if not ok:
            QMessageBox.warning(self, "Cannot record payment", msg)
            return
        self._payload = plan
        super().accept()

    def payload(self) -> Optional[SweepPlan]:
        return self._payload
