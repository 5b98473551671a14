"""Schema for the decrypted vault document.

Decoding is strict: a document that is not a mapping of environment names to
mappings of secret names to records is rejected, never coerced.
"""

from datetime import datetime, timezone
from typing import Dict, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

SECRET_TYPE_ENCRYPTED = "encrypted"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


class SecretRecord(BaseModel):
    """One stored secret. ``value`` is the encrypted token, never plaintext."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    value: str = Field(min_length=1)
    created: str
    type: str = SECRET_TYPE_ENCRYPTED


VaultContent = Dict[str, Dict[str, SecretRecord]]

VAULT_ADAPTER: TypeAdapter = TypeAdapter(VaultContent)


class SecretInfo(NamedTuple):
    """Listing row for a single environment."""
    name: str
    created: str
    type: str


class EnvironmentSecretInfo(NamedTuple):
    """Listing row across all environments."""
    environment: str
    name: str
    created: str
    type: str
