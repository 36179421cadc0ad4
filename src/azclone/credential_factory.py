"""Credential factory for Azure authentication.

This module creates Azure Identity SDK credential objects for the management
clients. One credential is shared by the source and destination subscriptions.

Supported credential types:
- AzureCliCredential: Delegate to Azure CLI (default)
- ClientSecretCredential: Service principal with client secret
- ManagedIdentityCredential: Managed identity (system or user-assigned)
- DefaultAzureCredential: The SDK's own fallback chain

Security:
- No token storage - delegates to Azure Identity SDK
- Client secrets from environment variables only
"""

import logging
import os
from enum import StrEnum
from typing import Any

from azure.identity import (
    AzureCliCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
    ManagedIdentityCredential,
)

logger = logging.getLogger(__name__)


class CredentialFactoryError(Exception):
    """Raised when credential creation fails."""

    exit_code = 1


class AuthMethod(StrEnum):
    """Authentication method enumeration.

    - AZURE_CLI: Use Azure CLI login (default)
    - SERVICE_PRINCIPAL_SECRET: Service principal with client secret from environment
    - MANAGED_IDENTITY: Managed identity (system or user-assigned)
    - DEFAULT: DefaultAzureCredential chain
    """

    AZURE_CLI = "azure_cli"
    SERVICE_PRINCIPAL_SECRET = "sp_secret"  # noqa: S105 - Enum value, not a password
    MANAGED_IDENTITY = "managed_identity"
    DEFAULT = "default"


class CredentialFactory:
    """Factory for creating Azure Identity credentials."""

    @staticmethod
    def create_credential(method: AuthMethod | str = AuthMethod.AZURE_CLI) -> Any:
        """Create Azure Identity credential for the given method.

        Args:
            method: Authentication method (enum member or its string value)

        Returns:
            Azure Identity credential object (TokenCredential)

        Raises:
            CredentialFactoryError: If the method is unknown or credential creation fails
        """
        try:
            method = AuthMethod(method)
        except ValueError as e:
            raise CredentialFactoryError(f"Unsupported authentication method: {method}") from e

        logger.debug(f"Creating credential for auth method: {method.value}")

        if method == AuthMethod.AZURE_CLI:
            return CredentialFactory._create_cli_credential()
        if method == AuthMethod.SERVICE_PRINCIPAL_SECRET:
            return CredentialFactory._create_sp_secret_credential()
        if method == AuthMethod.MANAGED_IDENTITY:
            return CredentialFactory._create_managed_identity_credential()
        return DefaultAzureCredential()

    @staticmethod
    def _create_cli_credential() -> AzureCliCredential:
        """Create Azure CLI credential.

        Raises:
            CredentialFactoryError: If Azure CLI credential cannot be created
        """
        try:
            return AzureCliCredential()
        except Exception as e:
            raise CredentialFactoryError(
                f"Failed to create Azure CLI credential. "
                f"Is Azure CLI installed and authenticated? Error: {e}"
            ) from e

    @staticmethod
    def _create_sp_secret_credential() -> ClientSecretCredential:
        """Create service principal credential from AZURE_* environment variables.

        Raises:
            CredentialFactoryError: If any required variable is missing
        """
        tenant_id = os.getenv("AZURE_TENANT_ID")
        client_id = os.getenv("AZURE_CLIENT_ID")
        client_secret = os.getenv("AZURE_CLIENT_SECRET")

        missing = [
            name
            for name, value in (
                ("AZURE_TENANT_ID", tenant_id),
                ("AZURE_CLIENT_ID", client_id),
                ("AZURE_CLIENT_SECRET", client_secret),
            )
            if not value
        ]
        if missing:
            raise CredentialFactoryError(
                f"Service principal authentication requires environment variables: "
                f"{', '.join(missing)}"
            )

        try:
            return ClientSecretCredential(
                tenant_id=tenant_id,
                client_id=client_id,
                client_secret=client_secret,
            )
        except Exception as e:
            # Never echo the secret; the SDK message does not contain it
            raise CredentialFactoryError(
                f"Failed to create service principal credential: {type(e).__name__}"
            ) from e

    @staticmethod
    def _create_managed_identity_credential() -> ManagedIdentityCredential:
        """Create managed identity credential.

        Uses a user-assigned identity when AZURE_CLIENT_ID is set, otherwise system-assigned.
        """
        client_id = os.getenv("AZURE_CLIENT_ID")
        try:
            if client_id:
                return ManagedIdentityCredential(client_id=client_id)
            return ManagedIdentityCredential()
        except Exception as e:
            raise CredentialFactoryError(f"Failed to create managed identity credential: {e}") from e
