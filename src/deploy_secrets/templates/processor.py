# Deploy Secrets - Template Processor
#
# Materializes a configuration template for one environment: every distinct
# ${NAME} token is resolved through the provider chain (vault first, then
# the process environment, then optional defaults). Tokens nobody can
# resolve stay in the output verbatim and are reported, but never abort
# processing.

import logging
import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from ..core import EventSeverity, EventType, log_security_event
from ..exceptions import TemplateNotFoundError, UnresolvedPlaceholderWarning
from ..vault import SecretsVault
from .providers import (
    DefaultProvider,
    EnvironmentProvider,
    ProviderChain,
    VaultProvider,
)
from .scanner import scan_placeholders, substitute

logger = logging.getLogger(__name__)

OUTPUT_FILE_MODE = 0o644


@dataclass
class RenderResult:
    """Rendered content plus which tokens were resolved, and from where."""
    content: str
    resolved: Dict[str, str] = field(default_factory=dict)  # name -> provider name
    unresolved: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.unresolved


class TemplateProcessor:
    """Resolve ``${NAME}`` placeholders through a ProviderChain."""

    def __init__(self, chain: ProviderChain):
        self.chain = chain

    def render(self, content: str) -> RenderResult:
        values: Dict[str, str] = {}
        result = RenderResult(content=content)

        for name in scan_placeholders(content):
            value, source = self.chain.resolve_with_source(name)
            if value is None:
                result.unresolved.append(name)
                logger.warning("No value found for variable: %s", name)
                warnings.warn(
                    f"No value found for placeholder ${{{name}}}",
                    UnresolvedPlaceholderWarning,
                    stacklevel=2,
                )
                continue
            values[name] = value
            result.resolved[name] = source

        result.content = substitute(content, values.get)
        return result


def build_chain(
    vault: SecretsVault,
    environment: str,
    environ: Optional[Mapping[str, str]] = None,
    defaults: Optional[Mapping[str, str]] = None,
) -> ProviderChain:
    """Standard priority: vault, process environment, then defaults if given."""
    providers = [VaultProvider(vault, environment), EnvironmentProvider(environ)]
    if defaults:
        providers.append(DefaultProvider(defaults))
    return ProviderChain(providers)


def process_config(
    vault: SecretsVault,
    environment: str,
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
    defaults: Optional[Mapping[str, str]] = None,
) -> RenderResult:
    """
    Render ``input_path`` for ``environment`` and write ``output_path``.

    The output gets ordinary 0644 permissions; the vault stays the only
    protected copy of the secrets.

    Raises:
        TemplateNotFoundError: Input template missing, unreadable or not UTF-8
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    logger.debug("Processing configuration for environment: %s", environment)

    try:
        template = input_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TemplateNotFoundError(f"Configuration template not found: {input_path}") from e
    except OSError as e:
        raise TemplateNotFoundError(f"Cannot read configuration template {input_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise TemplateNotFoundError(f"Configuration template is not valid UTF-8: {input_path}") from e

    processor = TemplateProcessor(build_chain(vault, environment, environ, defaults))
    result = processor.render(template)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.content, encoding="utf-8")
    os.chmod(output_path, OUTPUT_FILE_MODE)

    logger.info("Configuration processed and written to: %s", output_path)
    log_security_event(
        EventType.CONFIG_PROCESSED,
        EventSeverity.INFO,
        f"Configuration processed for environment '{environment}'",
        details={
            "environment": environment,
            "template": str(input_path),
            "output": str(output_path),
            "resolved": sorted(result.resolved),
            "unresolved": result.unresolved,
        },
    )
    if result.unresolved:
        log_security_event(
            EventType.PLACEHOLDER_UNRESOLVED,
            EventSeverity.WARNING,
            f"{len(result.unresolved)} placeholder(s) left unresolved",
            details={"environment": environment, "names": result.unresolved},
        )
    return result
