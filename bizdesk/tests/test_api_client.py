# bizdesk/tests/test_api_client.py
from __future__ import annotations

import httpx
import pytest

from bizdesk.api.client import ApiClient, ApiError
from bizdesk.api.repositories import AccountsRepo, EntitiesRepo, OrganizationRepo, ProductsRepo
from bizdesk.constants import ORDER_BUY, ORDER_SELL, VAT_ALWAYS, VAT_CONDITIONAL

ORG = "org1"


def test_get_decodes_json(server, api):
    server.route("GET", f"/orgs/{ORG}/accounts", (200, [{"id": "a", "name": "Bank", "type": "bank", "balance": "12.5"}]))
    (acct,) = AccountsRepo(api, ORG).list_accounts()
    assert (acct.id, acct.type, acct.balance) == ("a", "BANK", 12.5)


@pytest.mark.parametrize("payload,expected", [
    ({"message": "Nope"}, "Nope"),
    ({"error": "Bad things"}, "Bad things"),
    ({}, "HTTP 422"),
])
def test_error_status_raises_api_error(server, api, payload, expected):
    server.route("POST", "/x", (422, payload))
    with pytest.raises(ApiError) as exc:
        api.post("/x", {"a": 1})
    assert str(exc.value) == expected
    assert exc.value.status_code == 422
    assert exc.value.body == payload


def test_transport_failure_becomes_api_error():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    with ApiClient("http://api.test/api", transport=httpx.MockTransport(boom)) as client:
        with pytest.raises(ApiError) as exc:
            client.get("/orgs")
    assert "Could not reach the server" in str(exc.value)
    assert exc.value.status_code is None


def test_put_sends_json_body(server, api):
    server.route("PUT", "/orgs/org1/orders/7", (200, {"id": "7"}))
    assert api.put("/orgs/org1/orders/7", {"discount": 5}) == {"id": "7"}
    assert server.requests == [("PUT", "/orgs/org1/orders/7", {"discount": 5})]


def test_entities_parse_nested_orders(server, api):
    server.route("GET", f"/orgs/{ORG}/entities", (200, [
        {"id": "e1", "name": "V", "isVendor": True, "orders": [
            {"id": "o1", "totalAmount": 100, "createdAt": "2024-01-01", "transactions": [{"amount": 40}],
             "paymentStatus": "PARTIAL"},
        ]},
        {"id": "e2", "name": "Walk-in", "isDefault": True},
    ]))
    repo = EntitiesRepo(api, ORG)
    vendors = repo.list_vendors()
    assert [v.id for v in vendors] == ["e1"]
    order = vendors[0].orders[0]
    assert order.transaction_amounts == [40]
    assert order.payment_status == "PARTIAL"
    assert [c.id for c in repo.list_customers()] == ["e2"]


def test_products_and_variant_prices(server, api):
    server.route("GET", f"/orgs/{ORG}/products", (200, [
        {"id": "p", "name": "Tea", "variants": [{"id": "v", "name": "1kg", "buyPrice": 3, "estimatedPrice": 5, "stock": 9}]},
    ]))
    (product,) = ProductsRepo(api, ORG).list_products()
    variant = product.variants[0]
    assert variant.price_for(ORDER_BUY) == 3
    assert variant.price_for(ORDER_SELL) == 5
    assert variant.stock == 9


@pytest.mark.parametrize("raw,expected", [("always", VAT_ALWAYS), ("ALWAYS", VAT_ALWAYS), (None, VAT_CONDITIONAL), ("weird", VAT_CONDITIONAL)])
def test_organization_vat_status(server, api, raw, expected):
    server.route("GET", f"/orgs/{ORG}", (200, {"id": ORG, "name": "Org", "vatStatus": raw}))
    assert OrganizationRepo(api, ORG).get().vat_status == expected
