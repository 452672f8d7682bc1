# bizdesk/tests/test_details.py
from __future__ import annotations

from bizdesk.constants import ACCOUNT_BANK, ACCOUNT_CHEQUE
from bizdesk.modules.payments.details import (
    ChequeDetails,
    NoDetails,
    details_from_payload,
    validate_details,
)


def test_cheque_account_requires_all_fields():
    ok, msg = validate_details(ACCOUNT_CHEQUE, ChequeDetails(issuer="A", bank="", number="1", date=""))
    assert not ok
    assert msg == "Missing cheque bank, cheque date."


def test_cheque_details_rejected_on_other_accounts():
    ok, _ = validate_details(ACCOUNT_BANK, ChequeDetails(issuer="A", bank="B", number="1", date="2024-01-01"))
    assert not ok
    assert validate_details(ACCOUNT_BANK, NoDetails()) == (True, "")


def test_details_from_payload():
    data = {"chequeIssuer": "A", "chequeIssuerBank": "B", "chequeNumber": "7", "chequeDate": "2024-01-01"}
    d = details_from_payload(ACCOUNT_CHEQUE, data)
    assert d == ChequeDetails(issuer="A", bank="B", number="7", date="2024-01-01")
    assert d.to_payload() == data
    assert details_from_payload(ACCOUNT_BANK, data) == NoDetails()
    assert details_from_payload(ACCOUNT_CHEQUE, None) == NoDetails()
