from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QComboBox, QGroupBox, QFormLayout
)


class OrderView(QWidget):
    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        root = QVBoxLayout(self)

        self.lbl_title = QLabel(title)
        self.lbl_title.setStyleSheet("font-size: 16px; font-weight: bold;")
        root.addWidget(self.lbl_title)

        # actions
        row = QHBoxLayout()
        self.btn_order = QPushButton("New Order")
        self.btn_reload = QPushButton("Reload")
        row.addWidget(self.btn_order)
        row.addWidget(self.btn_reload)
        row.addStretch(1)
        root.addLayout(row)

        self.lbl_draft = QLabel()
        root.addWidget(self.lbl_draft)

        # entity balance + lump payment
        box = QGroupBox("Entity Payments")
        form = QFormLayout(box)
        self.cmb_entity = QComboBox()
        self.lbl_stats = QLabel()
        self.btn_pay = QPushButton("Record Payment")
        form.addRow("Entity", self.cmb_entity)
        form.addRow("Balance", self.lbl_stats)
        form.addRow("", self.btn_pay)
        root.addWidget(box)

        # reopen an existing order of the selected entity
        box_edit = QGroupBox("Edit Order")
        edit_form = QFormLayout(box_edit)
        self.cmb_order = QComboBox()
        self.btn_edit = QPushButton("Edit")
        edit_form.addRow("Order", self.cmb_order)
        edit_form.addRow("", self.btn_edit)
        root.addWidget(box_edit)
        root.addStretch(1)
