from werkzeug.security import check_password_hash, generate_password_hash


_dummy_hash = None


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def burn_verification(password: str) -> None:
    """Spend the cost of one hash check for a login that matched no user."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = generate_password_hash("not-a-real-password")
    check_password_hash(_dummy_hash, password)
