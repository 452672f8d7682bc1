from __future__ import annotations
from dataclasses import dataclass

from ...utils.helpers import to_amount
from ..client import ApiClient


@dataclass
class Account:
    id: str
    name: str
    type: str
    balance: float

    @classmethod
    def from_api(cls, row: dict) -> "Account":
        return cls(
            id=str(row.get("id", "")),
            name=str(row.get("name", "") or ""),
            type=str(row.get("type", "") or "").upper(),
            balance=to_amount(row.get("balance")),
        )


class AccountsRepo:
    def __init__(self, api: ApiClient, org_id: str):
        self.api = api
        self.org_id = org_id

    def list_accounts(self) -> list[Account]:
        rows = self.api.get(f"/orgs/{self.org_id}/accounts") or []
        return [Account.from_api(r) for r in rows]

    def record_transaction(
        self,
        account_id: str,
        *,
        amount: float,
        type: str,
        description: str,
        details: dict | None = None,
        order_id: str | None = None,
    ) -> dict:
        """
        POST /orgs/{org}/accounts/{account}/transactions.
        Used for vendor-charge debits tagged with the order they belong to.
        """
        body: dict = {"amount": amount, "type": type, "description": description}
        if details:
            body["details"] = details
        if order_id:
            body["orderId"] = order_id
        return self.api.post(f"/orgs/{self.org_id}/accounts/{account_id}/transactions", body)
