"""
Shared pytest fixtures for the deploy-secrets test suite.

The autouse fixture below isolates tests from the live audit directory:
every test gets a fresh audit logger writing under ``tmp_path``.
"""

import pytest

from deploy_secrets.config import SecretsSettings
from deploy_secrets.vault import EncryptionService, KeyManager, SecretRecord, SecretsVault


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) logs a vault event
    would try to write into ``/var/log/deploy-secrets``.
    """
    import deploy_secrets.core.audit_log as audit_mod

    # Reset the singleton so the next get_audit_logger() builds a fresh
    # instance from DEPLOY_SECRETS_AUDIT_DIR.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None
    monkeypatch.setenv("DEPLOY_SECRETS_AUDIT_DIR", str(tmp_path / "audit_logs"))

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temp directory, root check disabled."""
    return SecretsSettings(
        secrets_dir=tmp_path / "secrets",
        config_dir=tmp_path / "config",
        backup_dir=tmp_path / "backups",
        audit_dir=tmp_path / "audit_logs",
        require_root=False,
    )


@pytest.fixture
def key_manager(settings):
    settings.secrets_dir.mkdir(mode=0o700)
    manager = KeyManager(settings.key_path)
    manager.generate_key()
    return manager


@pytest.fixture
def vault(settings, key_manager):
    """A vault handle with a generated key and no vault file yet."""
    return SecretsVault.from_settings(settings)


@pytest.fixture
def cli_env(settings, monkeypatch):
    """Point the CLI at the temp layout through environment variables."""
    monkeypatch.setenv("DEPLOY_SECRETS_DIR", str(settings.secrets_dir))
    monkeypatch.setenv("DEPLOY_SECRETS_CONFIG_DIR", str(settings.config_dir))
    monkeypatch.setenv("DEPLOY_SECRETS_BACKUP_DIR", str(settings.backup_dir))
    monkeypatch.setenv("DEPLOY_SECRETS_AUDIT_DIR", str(settings.audit_dir))
    monkeypatch.setenv("DEPLOY_SECRETS_REQUIRE_ROOT", "false")
    monkeypatch.chdir(settings.secrets_dir.parent)
    return settings


@pytest.fixture
def plant_foreign_value():
    """Return a helper that stores a record encrypted with some other key."""
    def plant(vault, name, environment):
        foreign = EncryptionService.encrypt_text(
            "from another vault", EncryptionService.generate_key()
        )
        content = vault.store.load()
        content.setdefault(environment, {})[name] = SecretRecord(
            value=foreign, created="2025-01-01T00:00:00Z", type="encrypted"
        )
        vault.store.save(content)

    return plant
