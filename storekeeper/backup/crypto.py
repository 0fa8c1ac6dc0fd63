"""Password-based payload encryption (PBKDF2-SHA256 key derivation + Fernet)."""

import base64
import os
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import DecryptionError

ENCRYPTION_SCHEME = "pbkdf2-sha256+fernet"
SALT_BYTES = 16
DEFAULT_ITERATIONS = 390_000


def derive_key(password: str, salt: bytes, iterations: int = DEFAULT_ITERATIONS) -> bytes:
    """Derive a url-safe base64 Fernet key from a password."""
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)
    return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))


def encrypt_payload(plaintext: bytes, password: str, iterations: int = DEFAULT_ITERATIONS) -> Dict[str, Any]:
    """Encrypt serialized payload bytes into a JSON-safe envelope.

    Raises:
        ValueError: If the password is empty
    """
    if not password or not password.strip():
        raise ValueError("Password is required for encryption")

    salt = os.urandom(SALT_BYTES)
    token = Fernet(derive_key(password, salt, iterations)).encrypt(plaintext)
    return {
        "scheme": ENCRYPTION_SCHEME,
        "salt": base64.b64encode(salt).decode("ascii"),
        "iterations": iterations,
        "token": token.decode("ascii"),
    }


def is_encrypted_envelope(data: Any) -> bool:
    return isinstance(data, dict) and data.get("scheme") == ENCRYPTION_SCHEME and "token" in data


def decrypt_payload(envelope: Dict[str, Any], password: str) -> bytes:
    """Decrypt an envelope produced by ``encrypt_payload``.

    Raises:
        DecryptionError: Missing password, wrong password or corrupted envelope
    """
    if not password or not password.strip():
        raise DecryptionError("This backup is encrypted. Please provide a password.")
    if not is_encrypted_envelope(envelope):
        raise DecryptionError(f"Unsupported encryption envelope (expected scheme {ENCRYPTION_SCHEME})")

    token = envelope["token"]
    if not isinstance(token, str):
        raise DecryptionError(f"Corrupted encryption envelope: token is {type(token).__name__}, not str")

    try:
        salt = base64.b64decode(envelope["salt"])
        iterations = int(envelope.get("iterations", DEFAULT_ITERATIONS))
        key = derive_key(password, salt, iterations)
        return Fernet(key).decrypt(token.encode("ascii"))
    except InvalidToken as e:
        raise DecryptionError("Invalid password or corrupted data") from e
    except (KeyError, ValueError, TypeError) as e:
        raise DecryptionError(f"Corrupted encryption envelope: {e}") from e
