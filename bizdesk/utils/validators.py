# utils/validators.py

def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed and value is None.
    """
    try:
        return True, float(x)
    except Exception:
        return False, None


def parse_amount_text(text: str) -> float:
    """
    Parse what a user typed into an amount box.

    Empty text is 0; anything that is not a plain decimal number is 0 as well,
    matching how the order forms treat half-typed input.
    """
    s = (text or "").strip()
    if not s:
        return 0.0
    ok, val = try_parse_float(s)
    if not ok or val != val:  # NaN
        return 0.0
    return val

