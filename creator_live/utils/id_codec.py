"""Opaque id codec: numeric database ids <-> 24-char url-safe tokens.

Ids are encrypted with AES-256-CBC under ``sha256(ENCRYPT_SECRET_ID)`` and a
zero IV, so the mapping is deterministic and tokens can be compared for
equality. Short tokens are right-padded with ``0`` to a fixed length.
"""

from __future__ import annotations

import base64
import hashlib
import re

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

ENCODED_ID_LENGTH = 24
MIN_SECRET_LENGTH = 32

_ENCODED_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_ZERO_IV = bytes(16)


class IdCodec:
    def __init__(self, secret: str):
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"ENCRYPT_SECRET_ID must be set and at least {MIN_SECRET_LENGTH} characters")
        self._key = hashlib.sha256(secret.encode("utf-8")).digest()

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(_ZERO_IV))

    def encrypt(self, numeric_id: int) -> str:
        padder = padding.PKCS7(128).padder()
        plain = padder.update(str(int(numeric_id)).encode("ascii")) + padder.finalize()

        encryptor = self._cipher().encryptor()
        raw = encryptor.update(plain) + encryptor.finalize()

        token = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return token.ljust(ENCODED_ID_LENGTH, "0")

    def decrypt(self, token: str | None) -> int | None:
        """Return the numeric id, or None when the token is not one of ours."""
        if not token or not isinstance(token, str) or not _ENCODED_RE.match(token):
            return None

        body = token[:-2] if len(token) == ENCODED_ID_LENGTH and token.endswith("00") else token
        body += "=" * (-len(body) % 4)

        try:
            raw = base64.urlsafe_b64decode(body)
            decryptor = self._cipher().decryptor()
            plain = decryptor.update(raw) + decryptor.finalize()
            unpadder = padding.PKCS7(128).unpadder()
            text = (unpadder.update(plain) + unpadder.finalize()).decode("ascii")
        except ValueError:
            # bad base64, wrong block size, bad padding or non-ascii output
            return None

        if not text.isdigit():
            return None
        return int(text)

    @staticmethod
    def looks_encoded(value: str) -> bool:
        return isinstance(value, str) and len(value) == ENCODED_ID_LENGTH and bool(_ENCODED_RE.match(value))


_id_codec: IdCodec | None = None


def get_id_codec() -> IdCodec:
    global _id_codec
    if _id_codec is None:
        from creator_live.app_config import get_app_environ_config

        _id_codec = IdCodec(get_app_environ_config().ENCRYPT_SECRET_ID)
    return _id_codec
