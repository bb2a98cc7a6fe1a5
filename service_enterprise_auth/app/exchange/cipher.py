"""
Signing and field encryption for the verification gateway exchange.

The pipeline talks to the cipher only through ``SignedExchangeCipher``: four
operations, each returning a ``CipherResult`` status instead of raising, so
that tests can script cryptographic outcomes independently of transport.

``RsaExchangeCipher`` is the production implementation. Each side holds its
own RSA private key and the peer's public key:

- sign:    RSA PKCS#1 v1.5 / SHA-256 over ``k1=v1&k2=v2`` (sorted keys)
- verify:  the same canonical string without ``signature``, peer key
- encrypt: AES-256-GCM content key wrapped with RSA-OAEP/SHA-256 (peer key),
           ``base64(wrapped_key || nonce || ciphertext)``
- decrypt: the reverse with the local private key
"""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from shared.errors import ConfigurationError
from shared.logging import get_logger

SUCCESS = "00"
SIGN_FAILED = "61"
VERIFY_FAILED = "62"
ENCRYPT_FAILED = "63"
DECRYPT_FAILED = "64"

SIGNATURE_FIELD = "signature"
MERCHANT_PRIVATE_KEY_FILE = "merchant_private_key.pem"
GATEWAY_PUBLIC_KEY_FILE = "gateway_public_key.pem"

_NONCE_SIZE = 12
_CONTENT_KEY_BITS = 256


@dataclass(frozen=True)
class CipherResult:
    status: str
    value: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


class SignedExchangeCipher(Protocol):
    """Capability interface of the gateway cryptography."""

    def sign(self, fields: Mapping[str, str]) -> CipherResult:
        ...

    def verify(self, fields: Mapping[str, str]) -> CipherResult:
        ...

    def encrypt_field(self, plaintext: str) -> CipherResult:
        ...

    def decrypt_field(self, ciphertext: str) -> CipherResult:
        ...


def signing_string(fields: Mapping[str, str]) -> str:
    """Canonical ``k=v&...`` string over all fields except ``signature``."""
    return "&".join(
        f"{key}={fields[key]}"
        for key in sorted(fields)
        if key != SIGNATURE_FIELD and fields[key] is not None
    )


class RsaExchangeCipher:
    """RSA/AES-GCM implementation of ``SignedExchangeCipher``."""

    def __init__(self, private_key: rsa.RSAPrivateKey, peer_public_key: rsa.RSAPublicKey):
        self._private_key = private_key
        self._peer_public_key = peer_public_key
        self.logger = get_logger("enterprise-auth.cipher")

    @classmethod
    def from_directory(cls, config_path: Optional[str], key_password: Optional[str] = None) -> "RsaExchangeCipher":
        """Load the merchant private key and gateway public key from ``config_path``."""
        if not config_path:
            raise ConfigurationError("secss config path is not set")

        directory = Path(config_path)
        private_path = directory / MERCHANT_PRIVATE_KEY_FILE
        public_path = directory / GATEWAY_PUBLIC_KEY_FILE
        try:
            private_key = serialization.load_pem_private_key(
                private_path.read_bytes(),
                password=key_password.encode("utf-8") if key_password else None,
            )
            public_key = serialization.load_pem_public_key(public_path.read_bytes())
        except (OSError, ValueError, TypeError) as e:
            raise ConfigurationError(
                "Cipher initialization failed",
                details={"config_path": str(directory), "error": str(e)}
            )

        if not isinstance(private_key, rsa.RSAPrivateKey) or not isinstance(public_key, rsa.RSAPublicKey):
            raise ConfigurationError("Cipher keys must be RSA keys", details={"config_path": str(directory)})

        return cls(private_key, public_key)

    def sign(self, fields: Mapping[str, str]) -> CipherResult:
        try:
            signature = self._private_key.sign(
                signing_string(fields).encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
        except (ValueError, TypeError) as e:
            self.logger.error("Signing failed", error=str(e))
            return CipherResult(SIGN_FAILED, message=str(e))
        return CipherResult(SUCCESS, base64.b64encode(signature).decode("ascii"))

    def verify(self, fields: Mapping[str, str]) -> CipherResult:
        encoded = fields.get(SIGNATURE_FIELD)
        if not encoded:
            return CipherResult(VERIFY_FAILED, message="signature is missing")
        try:
            self._peer_public_key.verify(
                base64.b64decode(encoded, validate=True),
                signing_string(fields).encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
        except (InvalidSignature, binascii.Error, ValueError):
            return CipherResult(VERIFY_FAILED, message="signature does not match")
        return CipherResult(SUCCESS)

    def encrypt_field(self, plaintext: str) -> CipherResult:
        try:
            content_key = AESGCM.generate_key(bit_length=_CONTENT_KEY_BITS)
            nonce = os.urandom(_NONCE_SIZE)
            ciphertext = AESGCM(content_key).encrypt(nonce, plaintext.encode("utf-8"), None)
            wrapped_key = self._peer_public_key.encrypt(content_key, self._oaep())
        except (ValueError, TypeError) as e:
            self.logger.error("Field encryption failed", error=str(e))
            return CipherResult(ENCRYPT_FAILED, message=str(e))
        blob = wrapped_key + nonce + ciphertext
        return CipherResult(SUCCESS, base64.b64encode(blob).decode("ascii"))

    def decrypt_field(self, ciphertext: str) -> CipherResult:
        key_size = self._private_key.key_size // 8
        try:
            blob = base64.b64decode(ciphertext, validate=True)
            if len(blob) <= key_size + _NONCE_SIZE:
                return CipherResult(DECRYPT_FAILED, message="ciphertext is truncated")
            wrapped_key = blob[:key_size]
            nonce = blob[key_size:key_size + _NONCE_SIZE]
            content_key = self._private_key.decrypt(wrapped_key, self._oaep())
            plaintext = AESGCM(content_key).decrypt(nonce, blob[key_size + _NONCE_SIZE:], None)
            return CipherResult(SUCCESS, plaintext.decode("utf-8"))
        except (InvalidTag, binascii.Error, ValueError, TypeError) as e:
            return CipherResult(DECRYPT_FAILED, message=str(e) or type(e).__name__)

    @staticmethod
    def _oaep() -> padding.OAEP:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        )
