"""
Symmetric encryption for secrets stored at rest (TOTP secrets, backup codes).

AES-256-CBC with PKCS7 padding. Ciphertext is serialized as
``<iv hex>:<ciphertext hex>`` so values written by the Cal.com web app
remain readable.
"""

import base64
import binascii
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 16  # AES blocksize


def _decode_key(key: str) -> bytes:
    try:
        raw_key = base64.b64decode(key)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Invalid key: not valid base64") from e

    if len(raw_key) != KEY_LENGTH:
        logger.error(f"❌ Key must be {KEY_LENGTH} bytes for AES256, got: {len(raw_key)}")
        raise ValueError(f"Invalid key length: expected {KEY_LENGTH} bytes, got {len(raw_key)}")
    return raw_key


def symmetric_encrypt(text: str, key: str) -> str:
    """
    Encrypt a value with AES256.

    Args:
        text: Value to be encrypted
        key: Base64 encoded key, must decode to 32 bytes

    Returns:
        Encrypted value as ``iv:ciphertext`` (both hex)
    """
    raw_key = _decode_key(key)
    iv = os.urandom(IV_LENGTH)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(raw_key), modes.CBC(iv)).encryptor()
    ciphered = encryptor.update(padded) + encryptor.finalize()

    return f"{iv.hex()}:{ciphered.hex()}"


def symmetric_decrypt(text: str, key: str) -> str:
    """
    Decrypt a value produced by ``symmetric_encrypt``.

    Raises:
        ValueError: If the key or ciphertext is malformed
    """
    raw_key = _decode_key(key)

    iv_hex, _, ciphertext_hex = text.partition(":")
    try:
        iv = bytes.fromhex(iv_hex)
        ciphered = bytes.fromhex(ciphertext_hex)
    except ValueError as e:
        raise ValueError("Invalid ciphertext: expected hex encoded iv:ciphertext") from e

    if len(iv) != IV_LENGTH:
        raise ValueError(f"Invalid IV length: expected {IV_LENGTH} bytes, got {len(iv)}")

    decryptor = Cipher(algorithms.AES(raw_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphered) + decryptor.finalize()

    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
