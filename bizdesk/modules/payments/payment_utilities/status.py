from __future__ import annotations
from typing import Optional

# ---------- Canonical set & order ----------
STATUS_PENDING = "PENDING"
STATUS_PARTIAL = "PARTIAL"
STATUS_PAID = "PAID"

VALID_STATES: tuple[str, ...] = (STATUS_PENDING, STATUS_PARTIAL, STATUS_PAID)
STATE_ORDER: dict[str, int] = {s: i for i, s in enumerate(VALID_STATES)}

# ---------- Human labels ----------
LABELS = {
    STATUS_PENDING: "Pending",
    STATUS_PARTIAL: "Partial",
    STATUS_PAID: "Paid",
}

# ---------- API ----------

def normalize(state: Optional[str]) -> Optional[str]:
    """Uppercase & strip; return None if empty. Does NOT invent synonyms."""
    if state is None:
        return None
    s = str(state).strip().upper()
    return s or None


def is_valid(state: Optional[str]) -> bool:
    s = normalize(state)
    return s in VALID_STATES if s is not None else False


def label(state: str) -> str:
    """Human label ('Paid'). If unknown, returns the original string title-cased."""
    s = normalize(state)
    if s in LABELS:
        return LABELS[s]  # type: ignore[index]
    return (state or "").strip().title()


def sort_key(state: str) -> int:
    """Stable sort key using STATE_ORDER; unknown states sort after known ones."""
    s = normalize(state)
    return STATE_ORDER.get(s, 999)
