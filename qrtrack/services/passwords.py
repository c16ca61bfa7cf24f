import hmac


def passwords_match(stored: str | None, supplied: str | None) -> bool:
    """Exact, case-sensitive comparison of a stored and a supplied password.

    Kept behind this function so a hashed check can replace it without
    touching the gate.
    """
    if stored is None or supplied is None:
        return False
    return hmac.compare_digest(stored.encode('utf-8'), supplied.encode('utf-8'))
