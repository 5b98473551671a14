"""Tests for placeholder scanning, provider resolution and config processing."""

import pytest

from deploy_secrets.exceptions import (
    MissingKeyError,
    TemplateNotFoundError,
    UnresolvedPlaceholderWarning,
    VaultCorruptionError,
)
from deploy_secrets.templates import (
    DefaultProvider,
    EnvironmentProvider,
    ProviderChain,
    SEED_TEMPLATES,
    TemplateProcessor,
    VaultProvider,
    build_chain,
    process_config,
    scan_placeholders,
    substitute,
    write_seed_templates,
)


# ── Scanner ──────────────────────────────────────────────────────────


class TestScanner:
    def test_distinct_names_in_first_occurrence_order(self):
        content = "${B} ${A} ${B} text ${C}${A}"
        assert scan_placeholders(content) == ["B", "A", "C"]

    def test_ignores_non_tokens(self):
        content = "$A {B} ${} ${with space} $${OK}"
        assert scan_placeholders(content) == ["OK"]

    def test_substitute_leaves_unknown_verbatim(self):
        out = substitute("a=${A} b=${B}", {"A": "1"}.get)
        assert out == "a=1 b=${B}"

    def test_substitute_is_single_pass(self):
        out = substitute("x=${A}", {"A": "${B}", "B": "nested"}.get)
        assert out == "x=${B}"


# ── Providers ────────────────────────────────────────────────────────


class TestProviders:
    def test_environment_provider(self):
        provider = EnvironmentProvider({"HOME_URL": "http://h"})
        assert provider.resolve("HOME_URL") == "http://h"
        assert provider.resolve("NOPE") is None

    def test_environment_provider_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("DEPLOY_TEST_VAR", "from-os")
        assert EnvironmentProvider().resolve("DEPLOY_TEST_VAR") == "from-os"

    def test_empty_environment_variable_is_unset(self):
        provider = EnvironmentProvider({"DB_HOST": ""})
        assert provider.resolve("DB_HOST") is None

    def test_empty_environment_variable_falls_through(self):
        chain = ProviderChain([EnvironmentProvider({"A": ""}), DefaultProvider({"A": "fallback"})])
        assert chain.resolve_with_source("A") == ("fallback", "default")

    def test_default_provider(self):
        provider = DefaultProvider({"PORT": "5432"})
        assert provider.resolve("PORT") == "5432"
        assert provider.resolve("HOST") is None

    def test_vault_provider_not_found_is_none(self, vault):
        vault.store_secret("A", "1", "production")
        provider = VaultProvider(vault, "production")
        assert provider.resolve("A") == "1"
        assert provider.resolve("B") is None

    def test_vault_provider_propagates_missing_key(self, vault, settings):
        vault.store_secret("A", "1", "production")
        settings.key_path.unlink()
        with pytest.raises(MissingKeyError):
            VaultProvider(vault, "production").resolve("A")

    def test_chain_first_answer_wins(self):
        chain = ProviderChain([
            DefaultProvider({"A": "first"}),
            DefaultProvider({"A": "second", "B": "only-second"}),
        ])
        assert chain.resolve("A") == "first"
        assert chain.resolve("B") == "only-second"
        assert chain.resolve("C") is None

    def test_chain_reports_source(self):
        chain = ProviderChain([EnvironmentProvider({"A": "1"}), DefaultProvider({"B": "2"})])
        assert chain.resolve_with_source("A") == ("1", "environment")
        assert chain.resolve_with_source("B") == ("2", "default")
        assert chain.resolve_with_source("C") == (None, None)


# ── Processor ────────────────────────────────────────────────────────


class TestTemplateProcessor:
    def test_vault_beats_environment(self, vault):
        vault.store_secret("DB_HOST", "vault-host", "production")
        chain = build_chain(vault, "production", environ={"DB_HOST": "env-host"})

        result = TemplateProcessor(chain).render("host: ${DB_HOST}")
        assert result.content == "host: vault-host"
        assert result.resolved == {"DB_HOST": "vault"}
        assert result.complete

    def test_environment_fallback(self, vault):
        vault.store_secret("OTHER", "x", "production")
        chain = build_chain(vault, "production", environ={"DB_HOST": "env-host"})

        result = TemplateProcessor(chain).render("host: ${DB_HOST}")
        assert result.content == "host: env-host"
        assert result.resolved == {"DB_HOST": "environment"}

    def test_defaults_come_last(self, vault):
        chain = build_chain(vault, "production", environ={"A": "env"},
                            defaults={"A": "default", "B": "default"})
        result = TemplateProcessor(chain).render("${A} ${B}")
        assert result.content == "env default"

    def test_unresolved_left_verbatim_with_warning(self, vault):
        chain = build_chain(vault, "production", environ={})
        with pytest.warns(UnresolvedPlaceholderWarning, match="MISSING"):
            result = TemplateProcessor(chain).render("a: ${MISSING}\nb: ${MISSING}")
        assert result.content == "a: ${MISSING}\nb: ${MISSING}"
        assert result.unresolved == ["MISSING"]
        assert not result.complete

    def test_secret_containing_token_not_rescanned(self, vault):
        vault.store_secret("PASSWORD", "p${OTHER}w", "production")
        chain = build_chain(vault, "production", environ={"OTHER": "leak"})
        result = TemplateProcessor(chain).render("pw: ${PASSWORD}")
        assert result.content == "pw: p${OTHER}w"

    def test_vault_lookup_is_environment_scoped(self, vault):
        vault.store_secret("DB_HOST", "stage-host", "staging")
        chain = build_chain(vault, "production", environ={})
        with pytest.warns(UnresolvedPlaceholderWarning):
            result = TemplateProcessor(chain).render("${DB_HOST}")
        assert result.unresolved == ["DB_HOST"]


class TestProcessConfig:
    def test_writes_rendered_output(self, vault, tmp_path):
        vault.store_secret("DB_PASSWORD", "s3cret", "production")
        template = tmp_path / "in.yaml"
        template.write_text("password: ${DB_PASSWORD}\nhost: ${DB_HOST}\n")
        output = tmp_path / "out" / "nested" / "config.yaml"

        result = process_config(vault, "production", template, output,
                                environ={"DB_HOST": "db.local"})

        assert output.read_text() == "password: s3cret\nhost: db.local\n"
        assert output.stat().st_mode & 0o777 == 0o644
        assert result.resolved == {"DB_PASSWORD": "vault", "DB_HOST": "environment"}

    def test_unresolved_does_not_abort(self, vault, tmp_path):
        template = tmp_path / "in.yaml"
        template.write_text("x: ${NOT_ANYWHERE}\n")
        output = tmp_path / "out.yaml"

        with pytest.warns(UnresolvedPlaceholderWarning):
            result = process_config(vault, "production", template, output, environ={})

        assert output.read_text() == "x: ${NOT_ANYWHERE}\n"
        assert result.unresolved == ["NOT_ANYWHERE"]

    def test_empty_environment_variable_left_unresolved(self, vault, tmp_path):
        template = tmp_path / "in.yaml"
        template.write_text("host: ${DB_HOST}\n")
        output = tmp_path / "out.yaml"

        with pytest.warns(UnresolvedPlaceholderWarning, match="DB_HOST"):
            result = process_config(vault, "production", template, output,
                                    environ={"DB_HOST": ""})

        assert result.unresolved == ["DB_HOST"]
        assert result.resolved == {}
        assert output.read_text() == "host: ${DB_HOST}\n"

    def test_non_utf8_template(self, vault, tmp_path):
        template = tmp_path / "in.yaml"
        template.write_bytes(b"host: \xff\xfe ${X}\n")
        with pytest.raises(TemplateNotFoundError, match="not valid UTF-8"):
            process_config(vault, "production", template, tmp_path / "out.yaml", environ={})
        assert not (tmp_path / "out.yaml").exists()

    def test_missing_template(self, vault, tmp_path):
        with pytest.raises(TemplateNotFoundError) as excinfo:
            process_config(vault, "production", tmp_path / "nope.yaml", tmp_path / "out.yaml")
        assert excinfo.value.exit_code == 1
        assert not (tmp_path / "out.yaml").exists()

    def test_corrupt_vault_aborts(self, vault, settings, tmp_path):
        vault.store_secret("A", "1", "production")
        settings.vault_path.write_bytes(b"garbage")
        template = tmp_path / "in.yaml"
        template.write_text("${A}")

        with pytest.raises(VaultCorruptionError):
            process_config(vault, "production", template, tmp_path / "out.yaml", environ={})
        assert not (tmp_path / "out.yaml").exists()

    def test_template_without_placeholders_is_copied(self, vault, tmp_path):
        template = tmp_path / "in.yaml"
        template.write_text("plain: true\n")
        output = tmp_path / "out.yaml"
        result = process_config(vault, "production", template, output, environ={})
        assert output.read_text() == "plain: true\n"
        assert result.resolved == {} and result.unresolved == []


# ── Seed templates ───────────────────────────────────────────────────


class TestSeedTemplates:
    def test_writes_one_template_per_environment(self, tmp_path):
        written = write_seed_templates(tmp_path / "environments")
        assert sorted(p.parent.name for p in written) == ["development", "production", "staging"]
        for path in written:
            assert path.name == "config.yaml"
            assert path.stat().st_mode & 0o777 == 0o644

    def test_existing_templates_kept(self, tmp_path):
        target = tmp_path / "environments" / "production" / "config.yaml"
        target.parent.mkdir(parents=True)
        target.write_text("custom: true\n")

        written = write_seed_templates(tmp_path / "environments")

        assert target.read_text() == "custom: true\n"
        assert target not in written
        assert len(written) == 2

    def test_deployment_templates_reference_database_placeholders(self):
        for environment in ("staging", "production"):
            names = scan_placeholders(SEED_TEMPLATES[environment])
            assert {"DB_HOST", "DB_PORT", "DB_NAME", "HA_BASE_URL"} <= set(names)
