# bizdesk/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - The REST API is faked with httpx.MockTransport; every request is
#   recorded so tests can assert on paths and bodies
# - Accounts / products / entities are plain fixtures, no server state
# - Silence benign Qt signal warnings
# ---------------------------------------------------------------------

from __future__ import annotations

import json
import os
import re
from typing import Any, Callable

import httpx
import pytest
from PySide6 import QtCore

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from bizdesk.api.client import ApiClient
from bizdesk.api.repositories import AccountsRepo, OrdersRepo
from bizdesk.api.repositories.accounts_repo import Account
from bizdesk.api.repositories.entities_repo import Entity, OrderRef
from bizdesk.api.repositories.products_repo import Product, Variant
from bizdesk.constants import ORDER_BUY, ORDER_SELL, VAT_CONDITIONAL
from bizdesk.modules.order.charges import ChargeList
from bizdesk.modules.order.draft import OrderDraft
from bizdesk.modules.order.wizard import OrderWizard

ORG = "org1"
BASE_URL = "http://api.test/api"


# ---------- Qt: let pytest-qt own the app ----------
@pytest.fixture(scope="session")
def app(qapp):
    return qapp


_BENIGN_QT_PATTERNS = [
    r"^QObject::connect: .* already connected",
    r"^QObject::disconnect: Unexpected null parameter",
    r"^QBasicTimer::stop: Failed\. Platform timer not running\.",
]

@pytest.fixture(autouse=True, scope="session")
def _silence_benign_qt():
    """Filter common harmless Qt messages during tests."""
    original = QtCore.qInstallMessageHandler(None)
    rx = [re.compile(p) for p in _BENIGN_QT_PATTERNS]

    def handler(msg_type, context, message):
        text = str(message)
        for r in rx:
            if r.search(text):
                return
        QtCore.qInstallMessageHandler(None)
        try:
            QtCore.qDebug(message)
        finally:
            QtCore.qInstallMessageHandler(handler)

    QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(original)


# ---------- Fake REST server ----------
class FakeServer:
    """
    Route table keyed by (METHOD, path-without-/api). A route value is either
    (status, json_body) or a callable(request_json) -> (status, json_body).
    Unrouted requests answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[tuple[str, str, Any]] = []

    def route(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def calls(self, method: str | None = None, prefix: str = "") -> list[tuple[str, str, Any]]:
        return [
            r for r in self.requests
            if (method is None or r[0] == method.upper()) and r[1].startswith(prefix)
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"message": f"no route for {request.method} {path}"})
        status, payload = handler(body) if callable(handler) else handler
        return httpx.Response(status, json=payload)


@pytest.fixture()
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture()
def api(server: FakeServer):
    client = ApiClient(BASE_URL, timeout=5.0, transport=httpx.MockTransport(server))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture()
def orders_repo(api) -> OrdersRepo:
    return OrdersRepo(api, ORG)


@pytest.fixture()
def accounts_repo(api) -> AccountsRepo:
    return AccountsRepo(api, ORG)


# ---------- Reference data ----------
@pytest.fixture()
def accounts() -> list[Account]:
    return [
        Account(id="acc-bank", name="Main Bank", type="BANK", balance=1000.0),
        Account(id="acc-cash", name="Cash Counter", type="CASH_COUNTER", balance=100.0),
        Account(id="acc-chq", name="Cheques", type="CHEQUE", balance=500.0),
    ]


@pytest.fixture()
def products() -> list[Product]:
    return [
        Product(id="p1", name="Widget", variants=[
            Variant(id="v1", name="Small", buy_price=80.0, estimated_price=100.0, stock=5),
            Variant(id="v2", name="Large", buy_price=40.0, estimated_price=50.0, stock=2),
        ]),
    ]


@pytest.fixture()
def vendor() -> Entity:
    return Entity(id="e-vendor", name="Vendor X", is_vendor=True)


@pytest.fixture()
def walk_in() -> Entity:
    return Entity(id="e-walkin", name="Walk-in", is_default=True, is_customer=True)


@pytest.fixture()
def entity_with_orders() -> Entity:
    return Entity(id="e-cust", name="Customer C", is_customer=True, orders=[
        OrderRef(id="o2", total_amount=50.0, created_at="2024-02-01T00:00:00Z"),
        OrderRef(id="o1", total_amount=40.0, created_at="2024-01-01T00:00:00Z", transaction_amounts=[10.0]),
        OrderRef(id="o3", total_amount=20.0, created_at="2024-03-01T00:00:00Z"),
        OrderRef(id="o0", total_amount=15.0, created_at="2023-12-01T00:00:00Z", transaction_amounts=[15.0]),
    ])


# ---------- Wizard factory ----------
@pytest.fixture()
def make_wizard(orders_repo, accounts_repo, accounts, products) -> Callable[..., OrderWizard]:
    def _make(order_type: str = ORDER_BUY, vat_status: str = VAT_CONDITIONAL) -> OrderWizard:
        draft = OrderDraft(order_type=order_type, charges=ChargeList(vat_status=vat_status))
        return OrderWizard(
            draft,
            orders=orders_repo,
            accounts_repo=accounts_repo,
            accounts=accounts,
            products=products,
            vat_status=vat_status,
        )
    return _make


@pytest.fixture()
def buy_wizard(make_wizard) -> OrderWizard:
    return make_wizard(ORDER_BUY)


@pytest.fixture()
def sell_wizard(make_wizard) -> OrderWizard:
    return make_wizard(ORDER_SELL)
