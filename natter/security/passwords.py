"""scrypt password hashing.

Stored format: ``scrypt$<n>$<r>$<p>$<salt hex>$<hash hex>``. Parameters
travel with the hash so SCRYPT_* settings can change without invalidating
existing users.

Both functions are CPU-bound; async callers run them with asyncio.to_thread.
"""

import hashlib
import hmac
import secrets

from natter.config.settings import get_settings

_SCHEME = "scrypt"
_SALT_BYTES = 16
_KEY_BYTES = 32


def _derive(password: str, salt: bytes, n: int, r: int, p: int) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=n,
        r=r,
        p=p,
        maxmem=128 * n * r * p * 2,
        dklen=_KEY_BYTES,
    )


def hash_password(password: str) -> str:
    settings = get_settings()
    n, r, p = settings.SCRYPT_N, settings.SCRYPT_R, settings.SCRYPT_P
    salt = secrets.token_bytes(_SALT_BYTES)
    key = _derive(password, salt, n, r, p)
    return f"{_SCHEME}${n}${r}${p}${salt.hex()}${key.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time comparison against a stored hash. Malformed hashes fail."""
    parts = stored.split("$")
    if len(parts) != 6 or parts[0] != _SCHEME:
        return False
    try:
        n, r, p = int(parts[1]), int(parts[2]), int(parts[3])
        salt, expected = bytes.fromhex(parts[4]), bytes.fromhex(parts[5])
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt, n, r, p), expected)
