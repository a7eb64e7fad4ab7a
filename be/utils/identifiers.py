"""Short filenames for stored files.

Random names are drawn from a CSPRNG, one base36 digit per byte. Uniqueness is
not checked here; FileStore looks the name up before using it.
"""
import secrets

from utils.hash import short_hash

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def random_identifier(length: int) -> str:
    # floor(byte * 36 / 256) keeps every digit reachable from a single byte
    return "".join(BASE36_DIGITS[byte * 36 // 256] for byte in secrets.token_bytes(length))


def deterministic_identifier(salt: str, identity: str) -> str:
    """Stable 32 hex char name for an owner, e.g. their stylesheet prefix."""
    return short_hash(f"{salt}{identity}")
