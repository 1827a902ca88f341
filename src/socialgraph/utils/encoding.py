from __future__ import annotations

import base64
import binascii


def encode_password(raw: str) -> str:
    """
    Reversible base64 encoding. This is not a hash.
    """
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_password(encoded: str) -> str:
    try:
        return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError("password is not valid base64") from exc
