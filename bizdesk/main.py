from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QListWidget,
    QListWidgetItem,
    QStackedWidget,
    QMessageBox,
    QHBoxLayout,
    QSizePolicy,
)
from PySide6.QtCore import Qt
import sys

from . import config
from .api.client import ApiClient, ApiError
from .api.repositories import OrganizationRepo
from .constants import APP_NAME, ORDER_BUY, ORDER_SELL, VAT_CONDITIONAL
from .modules.base_module import BaseModule
from .modules.order.controller import OrderController
from .modules.order.draft import DraftSession
from .utils.loggers import get_logger

_log = get_logger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, api: ApiClient, org_id: str, vat_status: str = VAT_CONDITIONAL):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.setWindowFlag(Qt.WindowMinimizeButtonHint, True)
        self.setWindowFlag(Qt.WindowMaximizeButtonHint, True)
        self.setMinimumSize(820, 520)

        self.api = api
        self.org_id = org_id
        # one draft per order type, shared by every form opened this session
        self.session = DraftSession(vat_status)

        # ---- Central layout: left nav + stacked pages ----
        central = QWidget(self)
        layout = QVBoxLayout(central)
        self.setCentralWidget(central)

        self.nav = QListWidget()
        self.nav.setFixedWidth(100)
        self.nav.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Expanding)

        self.stack = QStackedWidget()

        row = QWidget()
        row_lay = QHBoxLayout(row)
        row_lay.addWidget(self.nav)
        row_lay.addWidget(self.stack, 1)
        layout.addWidget(row, 1)

        self.modules: list[tuple[str, BaseModule]] = []
        self.nav.currentRowChanged.connect(self.stack.setCurrentIndex)

        for title, order_type in (("Buy", ORDER_BUY), ("Sell", ORDER_SELL)):
            controller = OrderController(api, org_id, order_type, self.session, vat_status)
            self.add_module(title, controller)

        if self.nav.count():
            self.nav.setCurrentRow(0)

    def add_module(self, title: str, module: BaseModule):
        self.modules.append((title, module))
        self.stack.addWidget(module.get_widget())
        self.nav.addItem(QListWidgetItem(title))


def main():
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    if not config.ORG_ID:
        QMessageBox.critical(None, APP_NAME, "Set BIZDESK_ORG_ID to the organization to work with.")
        return

    api = ApiClient()
    vat_status = VAT_CONDITIONAL
    try:
        vat_status = OrganizationRepo(api, config.ORG_ID).get().vat_status
    except ApiError as e:
        _log.warning("could not load organization settings, VAT is optional: %s", e)

    win = MainWindow(api, config.ORG_ID, vat_status)
    win.resize(900, 560)
    win.show()
    code = app.exec()
    api.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
