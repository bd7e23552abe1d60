"""Storage and lookup of a user's integration credentials (gmail, sendgrid, twilio).

Email and SMS handlers call ``get_credentials(user_id, service)`` and never
see the ciphertext or the session.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from minizap.credentials.encryption import CredentialEncryption
from minizap.db.models import IntegrationModel
from minizap.db.repository import Repository
from minizap.exceptions import CredentialError, IntegrationNotFound, PersistenceError

logger = logging.getLogger(__name__)


# service → credential fields the email/sms handlers read
SERVICE_FIELDS: dict[str, tuple[str, ...]] = {
    "gmail": ("email", "app_password"),
    "sendgrid": ("api_key",),
    "twilio": ("accountSid", "authToken", "phoneNumber"),
}


def check_credentials(service: str, credentials: dict[str, Any]) -> None:
    """Raise CredentialError unless *credentials* carry every field *service* needs."""
    if service not in SERVICE_FIELDS:
        raise CredentialError(f"Unsupported integration service: {service}")
    missing = [f for f in SERVICE_FIELDS[service] if not credentials.get(f)]
    if missing:
        raise CredentialError(f"Missing {service} credentials: {', '.join(missing)}")


async def store_integration(
    repo: Repository,
    encryption: CredentialEncryption,
    user_id: str,
    service: str,
    name: str,
    credentials: dict[str, Any],
) -> IntegrationModel:
    """Validate, encrypt and insert one integration row."""
    check_credentials(service, credentials)
    model = await repo.save_integration(user_id, service, name, encryption.encrypt_credentials(credentials))
    logger.info(f"[Integrations] Stored {service} integration {model.id} for user {user_id}")
    return model


def _not_found(service: str) -> IntegrationNotFound:
    return IntegrationNotFound(f"{service.capitalize()} integration not found", service=service)


@runtime_checkable
class IntegrationResolver(Protocol):
    async def get_credentials(self, user_id: str, service: str) -> dict[str, Any]:
        ...


class SqlIntegrationResolver:
    """Reads the newest active ``integrations`` row and decrypts it."""

    def __init__(self, session_factory: async_sessionmaker, encryption: CredentialEncryption):
        self._session_factory = session_factory
        self._enc = encryption

    async def get_credentials(self, user_id: str, service: str) -> dict[str, Any]:
        try:
            async with self._session_factory() as session:
                record = await Repository(session).get_active_integration(user_id, service)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"get_integration failed: {exc}", operation="get_integration") from exc
        if record is None:
            raise _not_found(service)
        logger.debug(f"[Integrations] Loaded {service} credentials for user {user_id}")
        return self._enc.decrypt_credentials(record.credentials)


class StaticIntegrationResolver:
    """Plain ``{(user_id, service): credentials}`` mapping. Used by the CLI and tests."""

    def __init__(self, credentials: dict[tuple[str, str], dict[str, Any]] = None):
        self._credentials = dict(credentials or {})

    def add(self, user_id: str, service: str, credentials: dict[str, Any]) -> None:
        self._credentials[(user_id, service)] = dict(credentials)

    async def get_credentials(self, user_id: str, service: str) -> dict[str, Any]:
        if (user_id, service) not in self._credentials:
            raise _not_found(service)
        return dict(self._credentials[(user_id, service)])
