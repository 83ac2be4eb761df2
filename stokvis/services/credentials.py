"""
Helpers for authoring hashed answer credentials.

Installed as the ``stokvis-hash-answer`` command, which prints a value ready
for the ``stops.answer_hash`` column:

    $ stokvis-hash-answer "Deventer Koekbier"
    scrypt:3f9c...:a41e...
"""
import argparse
import secrets
import sys
from typing import Optional

from stokvis.config import settings
from stokvis.core.verifier import normalize
from stokvis.models.credential import SCRYPT_N, SCRYPT_P, SCRYPT_R, derive_key, format_scrypt


def hash_answer(
    answer: str,
    salt: Optional[str] = None,
    n: int = SCRYPT_N,
    r: int = SCRYPT_R,
    p: int = SCRYPT_P,
) -> str:
    """Return a ``scrypt:<salt>:<hex>`` credential for the normalized answer."""
    salt = salt or secrets.token_hex(16)
    if ":" in salt:
        raise ValueError("salt must not contain ':'")
    return format_scrypt(salt, derive_key(normalize(answer), salt, n=n, r=r, p=p))


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="stokvis-hash-answer",
        description="Print a scrypt answer credential for a stop.",
    )
    parser.add_argument("answer", help="the answer players must give; normalized before hashing")
    parser.add_argument("--salt", help="fixed salt (default: 16 random bytes, hex)")
    args = parser.parse_args(argv)

    try:
        credential = hash_answer(
            args.answer, salt=args.salt,
            n=settings.scrypt_n, r=settings.scrypt_r, p=settings.scrypt_p,
        )
    except ValueError as exc:
        parser.error(str(exc))
    print(credential)
    return 0


if __name__ == "__main__":
    sys.exit(main())
