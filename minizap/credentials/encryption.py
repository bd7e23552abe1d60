"""Integration credentials are stored as Fernet tokens of their JSON form."""

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from minizap.exceptions import CredentialError

logger = logging.getLogger(__name__)


def _fernet_for(key: str) -> Fernet:
    if not key:
        logger.warning(
            "[Credentials] MINIZAP_CREDENTIAL_ENCRYPTION_KEY is empty; this process uses an "
            "ephemeral key, so integrations saved now cannot be read by the next one"
        )
        return Fernet(Fernet.generate_key())
    try:
        return Fernet(key.encode())
    except (ValueError, TypeError) as exc:
        raise CredentialError(f"Invalid Fernet key: {exc}") from exc


class CredentialEncryption:
    """Encrypts credential mappings for the ``integrations`` table."""

    def __init__(self, key: str = "") -> None:
        self._fernet = _fernet_for(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode())
        except InvalidToken as exc:
            raise CredentialError("Decryption failed: wrong key or corrupted credentials") from exc
        return plaintext.decode()

    def encrypt_credentials(self, credentials: dict[str, Any]) -> str:
        if not isinstance(credentials, dict):
            raise CredentialError("Credentials must be a mapping of field to value")
        return self.encrypt(json.dumps(credentials))

    def decrypt_credentials(self, ciphertext: str) -> dict[str, Any]:
        data = json.loads(self.decrypt(ciphertext))
        if not isinstance(data, dict):
            raise CredentialError("Stored credentials are not a JSON object")
        return data
