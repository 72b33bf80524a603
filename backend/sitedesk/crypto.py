import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


def _derive_key(raw: str) -> bytes:
    # Accept a ready Fernet key, otherwise stretch any passphrase to 32 bytes.
    try:
        if len(base64.urlsafe_b64decode(raw.encode("utf-8"))) == 32:
            return raw.encode("utf-8")
    except ValueError:
        pass
    digest = hashlib.sha256(raw.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class DecryptionError(Exception):
    pass


class MissingKeyError(RuntimeError):
    pass


class Crypto:
    """Symmetric string codec. Empty values map to None in both directions."""

    def __init__(self, key_str: str):
        if not key_str:
            raise MissingKeyError("APP_ENCRYPTION_KEY is required")
        self.fernet = Fernet(_derive_key(key_str))

    def encrypt(self, plaintext: str | None) -> str | None:
        if not plaintext:
            return None
        return self.fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str | None) -> str | None:
        if not token:
            return None
        try:
            return self.fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise DecryptionError("Stored value cannot be decrypted with the configured key") from exc
