"""Share and view code generation."""

import re
import secrets

SPECIAL_CHARS = "!@#$%^&*?"

SHARE_CODE_PATTERN = re.compile(r"^\d{4}[!@#$%^&*?]$")
VIEW_CODE_PATTERN = re.compile(r"^\d{5}$")


def generate_share_code() -> str:
    """Return a 4-digit number (1000-9999) followed by one special character.

    9000 * 9 = 81,000 possible codes. Not unique by construction; the
    storage layer rejects duplicates at insertion time.
    """
    digits = 1000 + secrets.randbelow(9000)
    return f"{digits}{secrets.choice(SPECIAL_CHARS)}"


def generate_view_code() -> str:
    """Return a 5-digit numeric code in the range 10000-99999."""
    return str(10000 + secrets.randbelow(90000))


def is_share_code(code: str) -> bool:
    return bool(SHARE_CODE_PATTERN.fullmatch(code))


def is_view_code(code: str) -> bool:
    return bool(VIEW_CODE_PATTERN.fullmatch(code))
