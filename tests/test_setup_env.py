"""Tests for the interactive environment setup flow."""

from deploy_secrets.setup_env import DEVELOPMENT_DEFAULTS, EnvironmentSetup, webhook_url


class ScriptedPrompt:
    """Answers prompts from a list and records the questions asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, question):
        self.questions.append(question)
        return self.answers.pop(0)


def test_webhook_url():
    assert webhook_url("https://ha.example.com") == "https://ha.example.com/api/webhook/"
    assert webhook_url("https://ha.example.com/") == "https://ha.example.com/api/webhook/"


def test_development_uses_defaults_without_prompting(vault):
    prompt = ScriptedPrompt([])
    stored = EnvironmentSetup(vault, prompt=prompt, secret_prompt=prompt).run("development")

    assert set(stored) == set(DEVELOPMENT_DEFAULTS)
    assert prompt.questions == []
    for name, value in DEVELOPMENT_DEFAULTS.items():
        assert vault.get_secret(name, "development") == value


def test_staging_prompts(vault):
    visible = ScriptedPrompt(["db.stage", "https://stage.example.com"])
    hidden = ScriptedPrompt(["stage-pw"])

    EnvironmentSetup(vault, prompt=visible, secret_prompt=hidden).run("staging")

    assert vault.get_secret("DB_HOST", "staging") == "db.stage"
    assert vault.get_secret("DB_PASSWORD", "staging") == "stage-pw"
    assert vault.get_secret("HA_BASE_URL", "staging") == "https://stage.example.com"
    assert vault.get_secret("HA_WEBHOOK_URL", "staging") == "https://stage.example.com/api/webhook/"
    assert vault.list_environments() == ["staging"]
    assert len(hidden.questions) == 1
    assert "password" in hidden.questions[0]


def test_production_also_asks_for_network_id(vault):
    visible = ScriptedPrompt(["db.prod", "https://ha.example.com", "8056c2e21c000001"])
    hidden = ScriptedPrompt(["prod-pw"])

    stored = EnvironmentSetup(vault, prompt=visible, secret_prompt=hidden).run("production")

    assert "ZEROTIER_NETWORK_ID" in stored
    assert vault.get_secret("ZEROTIER_NETWORK_ID", "production") == "8056c2e21c000001"
    assert vault.get_secret("DB_PASSWORD", "production") == "prod-pw"


def test_blank_answers_are_asked_again(vault):
    visible = ScriptedPrompt(["", "   ", "db.prod", "https://ha", "net"])
    hidden = ScriptedPrompt(["", "pw"])

    EnvironmentSetup(vault, prompt=visible, secret_prompt=hidden).run("production")

    assert vault.get_secret("DB_HOST", "production") == "db.prod"
    assert vault.get_secret("DB_PASSWORD", "production") == "pw"
    assert visible.questions[1].startswith("A value is required.")


def test_unknown_environment_free_form(vault, capsys):
    visible = ScriptedPrompt(["API_TOKEN", "SMTP_PASSWORD", ""])
    hidden = ScriptedPrompt(["tok", "mail-pw"])

    stored = EnvironmentSetup(vault, prompt=visible, secret_prompt=hidden).run("qa")

    assert stored == ["API_TOKEN", "SMTP_PASSWORD"]
    assert vault.get_secret("API_TOKEN", "qa") == "tok"
    assert vault.get_secret("SMTP_PASSWORD", "qa") == "mail-pw"
    assert "No preset" in capsys.readouterr().out


def test_free_form_with_no_entries_stores_nothing(vault, settings):
    stored = EnvironmentSetup(vault, prompt=ScriptedPrompt([""]),
                              secret_prompt=ScriptedPrompt([])).run("qa")
    assert stored == []
    assert not settings.vault_path.exists()


def test_secret_values_not_echoed(vault, capsys):
    visible = ScriptedPrompt(["db", "https://ha"])
    hidden = ScriptedPrompt(["very-secret-password"])

    EnvironmentSetup(vault, prompt=visible, secret_prompt=hidden).run("staging")

    captured = capsys.readouterr()
    assert "very-secret-password" not in captured.out
    assert "very-secret-password" not in captured.err
