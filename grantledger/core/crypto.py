"""
grantledger/core/crypto.py

Signing key for the audit journal.

One Ed25519 private key per journal writer, stored as an unencrypted
PKCS#8 PEM file. Records carry the signer's raw public key as hex, so a
journal can be verified without access to the key file.

    public_key_hex        : 64-char lowercase hex of the raw public key
    sign(data)            : bytes -> base64url str, no padding
    verify_detached(...)  : True / False, never raises
"""

import base64
import binascii
from pathlib import Path
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)


SIGNATURE_BYTES  = 64
PUBLIC_KEY_BYTES = 32


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class Ed25519KeyManager:
    """Holds the journal signing key."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._public_key_hex = private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        ).hex()

    @classmethod
    def generate(cls) -> "Ed25519KeyManager":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Ed25519KeyManager":
        """
        Read a PEM private key.

        FileNotFoundError when path is missing, ValueError when the file
        holds anything but an unencrypted Ed25519 key.
        """
        path = Path(path)
        try:
            private_key = load_pem_private_key(path.read_bytes(), password=None)
        except FileNotFoundError:
            raise
        except (ValueError, TypeError) as exc:
            raise ValueError(f"{path} is not a readable PEM private key") from exc
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(f"{path} holds a {type(private_key).__name__}, not Ed25519")
        return cls(private_key)

    @classmethod
    def load_or_generate(cls, path: Union[str, Path]) -> "Ed25519KeyManager":
        """Load the key at path, creating and saving a new one if absent."""
        path = Path(path)
        if path.exists():
            return cls.from_file(path)
        key = cls.generate()
        key.save(path)
        return key

    @property
    def public_key_hex(self) -> str:
        return self._public_key_hex

    def sign(self, data: bytes) -> str:
        return _b64url(self._private_key.sign(data))

    @staticmethod
    def verify_detached(data: bytes, signature_b64: str, public_key_hex: str) -> bool:
        """Check signature_b64 over data against a hex public key."""
        try:
            raw_key = bytes.fromhex(public_key_hex)
            raw_sig = _unb64url(signature_b64)
        except (TypeError, ValueError, binascii.Error):
            return False
        if len(raw_key) != PUBLIC_KEY_BYTES or len(raw_sig) != SIGNATURE_BYTES:
            return False
        try:
            Ed25519PublicKey.from_public_bytes(raw_key).verify(raw_sig, data)
        except (InvalidSignature, ValueError):
            return False
        return True

    def save(self, path: Union[str, Path]) -> None:
        """Write the private key as PEM, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._private_key.private_bytes(
            encoding=             Encoding.PEM,
            format=               PrivateFormat.PKCS8,
            encryption_algorithm= NoEncryption(),
        ))

    def __repr__(self) -> str:
        return f"Ed25519KeyManager(public_key_hex={self._public_key_hex[:16]}...)"
