"""Encrypted integration credentials."""

from minizap.credentials.encryption import CredentialEncryption
from minizap.credentials.integrations import (
    IntegrationResolver, SqlIntegrationResolver, StaticIntegrationResolver,
)

__all__ = [
    "CredentialEncryption",
    "IntegrationResolver",
    "SqlIntegrationResolver",
    "StaticIntegrationResolver",
]
