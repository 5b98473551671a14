# Deploy Secrets - Interactive Environment Setup
#
# Bulk population of one environment. This is an operator-facing flow that
# sits on top of the vault primitives (store_secret only); it is kept out of
# the vault package so non-interactive callers never pull in prompting.

import getpass
import logging
from typing import Callable, Dict, List, Optional

from .core import EventSeverity, EventType, log_security_event
from .vault import SecretsVault

logger = logging.getLogger(__name__)

DEVELOPMENT_DEFAULTS: Dict[str, str] = {
    "DB_HOST": "localhost",
    "DB_PORT": "5432",
    "DB_NAME": "hass_dev",
    "HA_BASE_URL": "http://localhost:8123",
    "HA_WEBHOOK_URL": "http://localhost:8123/api/webhook/",
}


def webhook_url(base_url: str) -> str:
    return base_url.rstrip("/") + "/api/webhook/"


class EnvironmentSetup:
    """
    Populate an environment's secrets.

    Args:
        vault: Vault handle to store into
        prompt: Reads a visible answer (default: ``input``)
        secret_prompt: Reads a hidden answer (default: ``getpass.getpass``)
    """

    def __init__(
        self,
        vault: SecretsVault,
        prompt: Optional[Callable[[str], str]] = None,
        secret_prompt: Optional[Callable[[str], str]] = None,
    ):
        self.vault = vault
        self.prompt = prompt or input
        self.secret_prompt = secret_prompt or getpass.getpass

    def run(self, environment: str) -> List[str]:
        """Collect and store secrets for ``environment``; returns stored names."""
        logger.info("Setting up secrets for environment: %s", environment)

        if environment == "development":
            values = dict(DEVELOPMENT_DEFAULTS)
        elif environment in ("staging", "production"):
            values = self._prompt_deployment(environment)
        else:
            values = self._prompt_free_form(environment)

        for name, value in values.items():
            self.vault.store_secret(name, value, environment)

        logger.info("Secrets setup completed for environment: %s", environment)
        log_security_event(
            EventType.ENVIRONMENT_SETUP,
            EventSeverity.INFO,
            f"Environment '{environment}' populated with {len(values)} secret(s)",
            details={"environment": environment, "names": sorted(values)},
        )
        return list(values)

    def _prompt_deployment(self, environment: str) -> Dict[str, str]:
        db_host = self._ask(f"Enter {environment} database host: ")
        db_password = self._ask(f"Enter {environment} database password: ", hidden=True)
        ha_url = self._ask(f"Enter {environment} Home Assistant URL: ")

        values = {
            "DB_HOST": db_host,
            "DB_PASSWORD": db_password,
            "HA_BASE_URL": ha_url,
            "HA_WEBHOOK_URL": webhook_url(ha_url),
        }
        if environment == "production":
            values["ZEROTIER_NETWORK_ID"] = self._ask("Enter ZeroTier network ID: ")
        return values

    def _prompt_free_form(self, environment: str) -> Dict[str, str]:
        print(f"No preset for environment '{environment}'. "
              "Enter secrets one by one; leave the name blank to finish.")
        values: Dict[str, str] = {}
        while True:
            name = self.prompt("Secret name: ").strip()
            if not name:
                break
            values[name] = self._ask(f"Value for {name}: ", hidden=True)
        return values

    def _ask(self, question: str, hidden: bool = False) -> str:
        reader = self.secret_prompt if hidden else self.prompt
        answer = reader(question)
        while not answer.strip():
            answer = reader("A value is required. " + question)
        return answer.strip() if not hidden else answer
