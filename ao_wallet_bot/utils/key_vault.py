"""Encryption of custodial wallet keys and Arweave keyfile generation."""

from __future__ import annotations

import base64
import hashlib
import json
import secrets
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ao_wallet_bot.errors import KeyVaultError

IV_LENGTH = 16
KEY_LENGTH = 32
RSA_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537


def _b64url(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def address_from_modulus(n: str) -> str:
    """Arweave address: base64url(sha256(modulus bytes))."""
    digest = hashlib.sha256(_b64url_decode(n)).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_keyfile() -> Tuple[Dict[str, str], str]:
    """Create a fresh RSA-4096 JWK and return it with its wallet address."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE
    )
    numbers = private_key.private_numbers()
    public = numbers.public_numbers
    jwk = {
        "kty": "RSA",
        "e": _b64url(public.e),
        "n": _b64url(public.n),
        "d": _b64url(numbers.d),
        "p": _b64url(numbers.p),
        "q": _b64url(numbers.q),
        "dp": _b64url(numbers.dmp1),
        "dq": _b64url(numbers.dmq1),
        "qi": _b64url(numbers.iqmp),
    }
    return jwk, address_from_modulus(jwk["n"])


class KeyVault:
    """AES-256-CBC vault for stored credentials (``"<iv hex>:<ciphertext hex>"``)."""

    def __init__(self, encryption_key: str) -> None:
        key = encryption_key.encode("utf-8")
        if len(key) != KEY_LENGTH:
            raise ValueError("Encryption key must be exactly 32 bytes")
        self._key = key

    def encrypt(self, text: str) -> str:
        iv = secrets.token_bytes(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(text.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, stored: str) -> str:
        try:
            iv_hex, ciphertext_hex = stored.split(":", 1)
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except (AttributeError, ValueError) as exc:
            raise KeyVaultError("Stored credential is not in iv:ciphertext form.") from exc

        if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % IV_LENGTH:
            raise KeyVaultError("Stored credential has invalid lengths.")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except ValueError as exc:
            raise KeyVaultError("Stored credential could not be decrypted.") from exc

    def decrypt_keyfile(self, stored: str) -> Dict[str, Any]:
        """Decrypt a stored credential into a JWK signer."""
        text = self.decrypt(stored)
        try:
            jwk = json.loads(text)
        except json.JSONDecodeError as exc:
            raise KeyVaultError("Stored credential is not a JSON keyfile.") from exc
        if not isinstance(jwk, dict) or jwk.get("kty") != "RSA" or "n" not in jwk:
            raise KeyVaultError("Stored credential is not an RSA keyfile.")
        return jwk

    def encrypt_keyfile(self, jwk: Dict[str, Any]) -> str:
        return self.encrypt(json.dumps(jwk))


__all__ = ["KeyVault", "address_from_modulus", "generate_keyfile"]
