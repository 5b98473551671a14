"""Configuration template materialization: placeholder scanning and resolution."""

from .processor import RenderResult, TemplateProcessor, build_chain, process_config
from .providers import (
    DefaultProvider,
    EnvironmentProvider,
    ProviderChain,
    ValueProvider,
    VaultProvider,
)
from .scanner import PLACEHOLDER_PATTERN, scan_placeholders, substitute
from .seeds import SEED_TEMPLATES, write_seed_templates

__all__ = [
    "DefaultProvider",
    "EnvironmentProvider",
    "PLACEHOLDER_PATTERN",
    "ProviderChain",
    "RenderResult",
    "SEED_TEMPLATES",
    "TemplateProcessor",
    "ValueProvider",
    "VaultProvider",
    "build_chain",
    "process_config",
    "scan_placeholders",
    "substitute",
    "write_seed_templates",
]
