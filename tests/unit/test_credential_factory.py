"""Unit tests for credential_factory module."""

from unittest.mock import patch

import pytest

from azclone.credential_factory import AuthMethod, CredentialFactory, CredentialFactoryError

SP_ENV = {
    "AZURE_TENANT_ID": "tenant",
    "AZURE_CLIENT_ID": "client",
    "AZURE_CLIENT_SECRET": "secret",
}


class TestCreateCredential:
    """Tests for CredentialFactory.create_credential."""

    @patch("azclone.credential_factory.AzureCliCredential")
    def test_azure_cli_default(self, mock_cli):
        """Azure CLI is the default method."""
        credential = CredentialFactory.create_credential()
        assert credential is mock_cli.return_value

    @patch("azclone.credential_factory.AzureCliCredential")
    def test_accepts_string_value(self, mock_cli):
        """Config files store the method as its string value."""
        assert CredentialFactory.create_credential("azure_cli") is mock_cli.return_value

    def test_unknown_method(self):
        """Unknown methods raise CredentialFactoryError."""
        with pytest.raises(CredentialFactoryError, match="Unsupported authentication method"):
            CredentialFactory.create_credential("kerberos")

    @patch("azclone.credential_factory.AzureCliCredential", side_effect=RuntimeError("no az"))
    def test_cli_failure_wrapped(self, mock_cli):
        """SDK errors are wrapped."""
        with pytest.raises(CredentialFactoryError, match="Azure CLI"):
            CredentialFactory.create_credential(AuthMethod.AZURE_CLI)

    @patch("azclone.credential_factory.ClientSecretCredential")
    def test_service_principal_from_env(self, mock_sp, monkeypatch):
        """Service principal credentials come from AZURE_* variables."""
        for key, value in SP_ENV.items():
            monkeypatch.setenv(key, value)

        CredentialFactory.create_credential(AuthMethod.SERVICE_PRINCIPAL_SECRET)

        mock_sp.assert_called_once_with(tenant_id="tenant", client_id="client", client_secret="secret")

    def test_service_principal_missing_env(self, monkeypatch):
        """Every missing variable is named, never the secret value."""
        monkeypatch.setenv("AZURE_TENANT_ID", "tenant")
        monkeypatch.delenv("AZURE_CLIENT_ID", raising=False)
        monkeypatch.delenv("AZURE_CLIENT_SECRET", raising=False)

        with pytest.raises(CredentialFactoryError) as exc_info:
            CredentialFactory.create_credential("sp_secret")

        assert "AZURE_CLIENT_ID" in str(exc_info.value)
        assert "AZURE_CLIENT_SECRET" in str(exc_info.value)
        assert "AZURE_TENANT_ID" not in str(exc_info.value)

    @patch("azclone.credential_factory.ManagedIdentityCredential")
    def test_user_assigned_managed_identity(self, mock_mi, monkeypatch):
        """AZURE_CLIENT_ID selects a user-assigned identity."""
        monkeypatch.setenv("AZURE_CLIENT_ID", "client")
        CredentialFactory.create_credential(AuthMethod.MANAGED_IDENTITY)
        mock_mi.assert_called_once_with(client_id="client")

    @patch("azclone.credential_factory.ManagedIdentityCredential")
    def test_system_assigned_managed_identity(self, mock_mi, monkeypatch):
        """Without AZURE_CLIENT_ID the system-assigned identity is used."""
        monkeypatch.delenv("AZURE_CLIENT_ID", raising=False)
        CredentialFactory.create_credential(AuthMethod.MANAGED_IDENTITY)
        mock_mi.assert_called_once_with()

    @patch("azclone.credential_factory.DefaultAzureCredential")
    def test_default_chain(self, mock_default):
        """The default method uses the SDK's credential chain."""
        assert CredentialFactory.create_credential("default") is mock_default.return_value
