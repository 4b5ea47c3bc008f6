import asyncio
import hmac
import random
import secrets
import string

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SALT_BYTES = 16
KEY_LENGTH = 64

# scrypt cost parameters (N=2^14, r=8, p=1 uses ~16 MiB per derivation)
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1

PASSWORD_LENGTH = 10
PASSWORD_ALPHABET = string.ascii_letters + string.digits
# Hex output only uses 0-9a-f, so one of these guarantees the password
# can never show up inside its own stored hash.
_NON_HEX_LETTERS = "".join(c for c in string.ascii_letters if c not in "abcdef")


def _derive(secret: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(secret.encode("utf-8"))


def hash_secret(secret: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    key = _derive(secret, salt)
    return f"{salt.hex()}:{key.hex()}"


def verify_secret(secret: str, stored: str) -> bool:
    salt_hex, sep, key_hex = stored.partition(":")
    if not sep or not salt_hex or not key_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    if len(expected) != KEY_LENGTH:
        return False

    candidate = _derive(secret, salt)
    return hmac.compare_digest(candidate, expected)


async def hash_secret_async(secret: str) -> str:
    return await asyncio.to_thread(hash_secret, secret)


async def verify_secret_async(secret: str, stored: str) -> bool:
    return await asyncio.to_thread(verify_secret, secret, stored)


def generate_management_password(rng: random.Random | None = None) -> str:
    rng = rng or secrets.SystemRandom()
    chars = [rng.choice(PASSWORD_ALPHABET) for _ in range(PASSWORD_LENGTH - 1)]
    chars.insert(rng.randrange(PASSWORD_LENGTH), rng.choice(_NON_HEX_LETTERS))
    return "".join(chars)
