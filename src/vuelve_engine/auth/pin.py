"""Staff PIN hashing and verification.

Stored format: ``scrypt$<salt-hex>$<derived-key-hex>``. The salt's hex text
is what scrypt receives as salt, so hashes written by earlier deployments
keep verifying.
"""

import hashlib
import hmac
import os
import re
from typing import Optional

PIN_HASH_PREFIX = "scrypt"
SALT_BYTES = 16
KEY_LEN = 32

# scrypt cost parameters
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1

_PIN_RE = re.compile(r"[0-9]{4}")


def is_valid_pin(pin: object) -> bool:
    """Exactly four decimal digits."""
    return isinstance(pin, str) and _PIN_RE.fullmatch(pin) is not None


def _derive(pin: str, salt: str) -> bytes:
    return hashlib.scrypt(
        pin.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LEN,
    )


def hash_pin(pin: str) -> str:
    salt = os.urandom(SALT_BYTES).hex()
    derived = _derive(pin, salt).hex()
    return f"{PIN_HASH_PREFIX}${salt}${derived}"


def verify_pin(
    pin: str,
    stored_hash: Optional[str] = None,
    legacy_pin: Optional[str] = None,
) -> bool:
    """Check a PIN against its scrypt hash, or the legacy plaintext PIN.

    The plaintext comparison only runs for accounts with no recognized hash.
    """
    if stored_hash and stored_hash.startswith(f"{PIN_HASH_PREFIX}$"):
        parts = stored_hash.split("$")
        if len(parts) != 3:
            return False
        _, salt, expected_hex = parts
        try:
            expected = bytes.fromhex(expected_hex)
        except ValueError:
            return False
        calculated = _derive(pin, salt)
        if len(expected) != len(calculated):
            return False
        return hmac.compare_digest(calculated, expected)

    if legacy_pin:
        return legacy_pin == pin

    return False


def needs_rehash(stored_hash: Optional[str], legacy_pin: Optional[str]) -> bool:
    """True for accounts still carrying only a plaintext PIN."""
    return not stored_hash and bool(legacy_pin)
