from __future__ import annotations

WEAK_PASSWORDS = frozenset({"password", "12345678", "qwertyui", "password123", "notes123"})


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """Return ``(ok, reason)`` for a signup password."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if password.lower() in WEAK_PASSWORDS:
        return False, "Password is too weak. Please choose a stronger password."
    if password.isdigit():
        return False, "Password must not consist of digits only"
    return True, None
