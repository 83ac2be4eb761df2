"""Stored answer credentials, parsed once when a stop is loaded.

A stop's answer is stored as a tagged string:

    plain:<answer>              compared literally with the normalized input
    scrypt:<salt>:<hex-digest>  32-byte scrypt key of the normalized input

Anything else is kept verbatim and compared with plain string equality.
"""
import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional, Union

PLAIN_TAG = "plain"
SCRYPT_TAG = "scrypt"

SCRYPT_DKLEN = 32
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1


def scrypt_maxmem(n: int, r: int, p: int) -> int:
    """Memory ceiling for hashlib.scrypt: the 128*r*n work area plus the p blocks, doubled."""
    return min(2 * 128 * r * (n + p + 2), 2**31 - 1)


def derive_key(normalized: str, salt: str, n: int = SCRYPT_N, r: int = SCRYPT_R, p: int = SCRYPT_P) -> bytes:
    return hashlib.scrypt(
        normalized.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=n,
        r=r,
        p=p,
        maxmem=scrypt_maxmem(n, r, p),
        dklen=SCRYPT_DKLEN,
    )


@dataclass(frozen=True)
class PlainAnswer:
    answer: str

    def matches(self, normalized: str) -> bool:
        # The stored literal is the ground truth; it is not normalized again.
        return self.answer == normalized


@dataclass(frozen=True)
class ScryptHash:
    salt: str
    digest: bytes

    def matches(self, normalized: str, n: int = SCRYPT_N, r: int = SCRYPT_R, p: int = SCRYPT_P) -> bool:
        key = derive_key(normalized, self.salt, n=n, r=r, p=p)
        return hmac.compare_digest(key, self.digest)


@dataclass(frozen=True)
class UnknownCredential:
    raw: str

    def matches(self, normalized: str) -> bool:
        return self.raw == normalized


Credential = Union[PlainAnswer, ScryptHash, UnknownCredential]


def parse_credential(stored: Optional[str]) -> Optional[Credential]:
    """Parse a stored credential string. Returns None when no answer is configured."""
    if not stored:
        return None

    if stored.startswith(PLAIN_TAG + ":"):
        answer = stored[len(PLAIN_TAG) + 1:]
        return PlainAnswer(answer) if answer else None

    if stored.startswith(SCRYPT_TAG + ":"):
        parts = stored.split(":")
        if len(parts) == 3 and parts[1] and parts[2]:
            try:
                digest = bytes.fromhex(parts[2])
            except ValueError:
                digest = b""
            if digest:
                return ScryptHash(salt=parts[1], digest=digest)

    return UnknownCredential(stored)


def format_scrypt(salt: str, digest: bytes) -> str:
    return f"{SCRYPT_TAG}:{salt}:{digest.hex()}"
