"""Human-shareable booking reference numbers."""

import secrets

# No 0/O, 1/I/L to keep references readable over the phone
REFERENCE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
REFERENCE_PREFIX = "MS"
REFERENCE_LENGTH = 8


def generate_reference_number() -> str:
    """Return a random reference such as ``MS-7KQ2MZ9A``."""
    code = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
    return f"{REFERENCE_PREFIX}-{code}"
