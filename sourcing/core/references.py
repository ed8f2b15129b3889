# sourcing/core/references.py
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Callable

_BASE36 = string.digits + string.ascii_uppercase

# Unique-code generation gives up after this many collisions
MAX_ATTEMPTS = 10


def reference_code(prefix: str) -> str:
    """
    Human-readable reference like "PAY-2025-0042".

    Four random digits per year; callers check uniqueness.
    """
    year = datetime.now(timezone.utc).year
    return f"{prefix}-{year}-{secrets.randbelow(10000):04d}"


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def tracking_number() -> str:
    """
    Shipment tracking number: SS-<last 6 base36 chars of ms clock>-<4 random>.
    """
    stamp = _base36(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"SS-{stamp}-{suffix}"


def unique_code(generate: Callable[[], str], exists: Callable[[str], bool]) -> str:
    """
    Draw codes until one is unused, at most MAX_ATTEMPTS times.

    The last candidate is returned even if it collided; unique
    constraints in the database catch the rare leftover clash.
    """
    code = generate()
    for _ in range(MAX_ATTEMPTS):
        if not exists(code):
            break
        code = generate()
    return code
