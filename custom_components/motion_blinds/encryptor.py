"""AES-ECB access token derivation for the Motion Blinds gateway."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import MotionAuthenticationError

_BLOCK_SIZE = 16


def _to_block(value: str) -> bytes:
    """UTF-8 encode and zero-pad (or truncate) to a single AES block."""
    return value.encode()[:_BLOCK_SIZE].ljust(_BLOCK_SIZE, b"\x00")


def get_access_token(key: str, token: str) -> str:
    """Derive the AccessToken the gateway expects for write/read requests.

    AccessToken = hex(AES-128-ECB(key, token)) with both inputs squeezed
    into one 16 byte block and no padding applied to the cipher.
    """
    try:
        cipher = Cipher(algorithms.AES(_to_block(key)), modes.ECB())
    except ValueError as exc:
        raise MotionAuthenticationError(f"Invalid gateway key: {exc}") from exc

    encryptor = cipher.encryptor()
    encrypted: bytes = encryptor.update(_to_block(token)) + encryptor.finalize()
    return encrypted.hex().upper()
