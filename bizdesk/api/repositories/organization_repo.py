from __future__ import annotations
from dataclasses import dataclass

from ...constants import VAT_CONDITIONAL, VAT_STATUSES
from ..client import ApiClient


@dataclass
class Organization:
    id: str
    name: str
    vat_status: str = VAT_CONDITIONAL

    @classmethod
    def from_api(cls, row: dict) -> "Organization":
        status = str(row.get("vatStatus") or VAT_CONDITIONAL).lower()
        if status not in VAT_STATUSES:
            status = VAT_CONDITIONAL
        return cls(id=str(row.get("id", "")), name=str(row.get("name", "") or ""), vat_status=status)


class OrganizationRepo:
    def __init__(self, api: ApiClient, org_id: str):
        self.api = api
        self.org_id = org_id

    def get(self) -> Organization:
        return Organization.from_api(self.api.get(f"/orgs/{self.org_id}") or {})
