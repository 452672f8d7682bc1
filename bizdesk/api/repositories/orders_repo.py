from __future__ import annotations

from ..client import ApiClient


class OrdersRepo:
    def __init__(self, api: ApiClient, org_id: str):
        self.api = api
        self.org_id = org_id

    def get_order(self, order_id: str) -> dict:
        """Order with items, charges and transactions as stored."""
        return self.api.get(f"/orgs/{self.org_id}/orders/{order_id}") or {}

    def create_order(self, payload: dict) -> dict:
        return self.api.post(f"/orgs/{self.org_id}/orders", payload) or {}

    def update_order(self, order_id: str, payload: dict) -> dict:
        return self.api.put(f"/orgs/{self.org_id}/orders/{order_id}", payload) or {}

    def add_order_transaction(self, order_id: str, *, amount: float, account_id: str, details: dict | None = None) -> dict:
        """POST /orgs/{org}/orders/{order}/transactions (one sweep allocation)."""
        body = {"amount": amount, "accountId": account_id, "details": details or {}}
        return self.api.post(f"/orgs/{self.org_id}/orders/{order_id}/transactions", body) or {}
