"""
Value providers for template placeholders.

Each provider answers ``resolve(name) -> Optional[str]``; ``None`` means
"not mine, ask the next one". ``ProviderChain`` asks them in priority order.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Mapping, Optional

from ..exceptions import NotFoundError
from ..vault import SecretsVault

logger = logging.getLogger(__name__)


class ValueProvider(ABC):
    """Abstract base class for placeholder value sources."""

    name = "provider"

    @abstractmethod
    def resolve(self, name: str) -> Optional[str]:
        """Return the value for ``name`` or None if this source has none."""


class VaultProvider(ValueProvider):
    """Secrets from the vault for one environment.

    Only a missing secret maps to None. Missing key, corruption and
    decryption failures propagate and abort processing.
    """

    name = "vault"

    def __init__(self, vault: SecretsVault, environment: str):
        self.vault = vault
        self.environment = environment

    def resolve(self, name: str) -> Optional[str]:
        try:
            return self.vault.get_secret(name, self.environment)
        except NotFoundError:
            return None


class EnvironmentProvider(ValueProvider):
    """Variables from the calling process environment.

    A variable that is set but empty counts as unset.
    """

    name = "environment"

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def resolve(self, name: str) -> Optional[str]:
        environ = os.environ if self._environ is None else self._environ
        return environ.get(name) or None


class DefaultProvider(ValueProvider):
    """Fixed fallback values."""

    name = "default"

    def __init__(self, defaults: Mapping[str, str]):
        self.defaults = dict(defaults)

    def resolve(self, name: str) -> Optional[str]:
        return self.defaults.get(name)


class ProviderChain:
    """First non-None answer wins."""

    def __init__(self, providers: Iterable[ValueProvider]):
        self.providers: List[ValueProvider] = list(providers)

    def resolve(self, name: str) -> Optional[str]:
        value, _ = self.resolve_with_source(name)
        return value

    def resolve_with_source(self, name: str):
        """Return ``(value, provider_name)``, or ``(None, None)`` if unresolved."""
        for provider in self.providers:
            value = provider.resolve(name)
            if value is not None:
                logger.debug("Replaced %s with value from %s", name, provider.name)
                return value, provider.name
        return None, None
