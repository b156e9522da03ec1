# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
CryptoJS-compatible passphrase AES.

The host CRM encrypts its user context with ``CryptoJS.AES.encrypt(text, passphrase)``,
which produces the OpenSSL envelope::

    base64( b"Salted__" + salt[8] + AES-256-CBC(PKCS#7(plaintext)) )

with key and IV derived by EVP_BytesToKey (MD5, one iteration).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from typing import Optional, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

SALT_HEADER = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16
BLOCK_SIZE = 16


def evp_bytes_to_key(
    passphrase: bytes,
    salt: bytes,
    key_len: int = KEY_SIZE,
    iv_len: int = IV_SIZE,
) -> Tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and a single iteration."""
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:key_len], derived[key_len:key_len + iv_len]


def encrypt(plaintext: str, passphrase: str, salt: Optional[bytes] = None) -> str:
    """Encrypt the way ``CryptoJS.AES.encrypt(plaintext, passphrase).toString()`` does."""
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")

    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(SALT_HEADER + salt + ciphertext).decode("ascii")


def decrypt(blob: str, passphrase: str) -> str:
    """
    Decrypt a CryptoJS passphrase envelope to UTF-8 text.

    Mirrors ``CryptoJS.AES.decrypt(blob, passphrase).toString(CryptoJS.enc.Utf8)``:
    every failure (malformed envelope, wrong passphrase, corrupted bytes,
    invalid UTF-8) yields an empty string. Callers cannot and should not tell
    these cases apart.
    """
    if not isinstance(blob, str) or not blob:
        return ""

    try:
        raw = base64.b64decode("".join(blob.split()), validate=True)
    except (binascii.Error, ValueError):
        return ""

    if len(raw) <= len(SALT_HEADER) + SALT_SIZE or not raw.startswith(SALT_HEADER):
        return ""
    salt = raw[len(SALT_HEADER):len(SALT_HEADER) + SALT_SIZE]
    ciphertext = raw[len(SALT_HEADER) + SALT_SIZE:]
    if len(ciphertext) % BLOCK_SIZE:
        return ""

    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    try:
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""
