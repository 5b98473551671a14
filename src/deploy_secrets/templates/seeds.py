"""Seed configuration templates written by ``init``.

Development is fully literal. Staging and production reference secrets
through ``${NAME}`` placeholders that ``process-config`` fills in.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Union

logger = logging.getLogger(__name__)

SEED_FILENAME = "config.yaml"
ENV_DIR_MODE = 0o755

DEVELOPMENT_TEMPLATE = """\
# Development Environment Configuration
environment: development
debug: true
log_level: DEBUG

database:
  host: localhost
  port: 5432
  name: hass_dev
  ssl_mode: disable

home_assistant:
  base_url: http://localhost:8123
  webhook_url: http://localhost:8123/api/webhook/

external_services:
  weather_api:
    enabled: false
    rate_limit: 1000

security:
  session_timeout: 7200
  csrf_protection: false

backup:
  enabled: true
  interval: "0 2 * * *"
  retention_days: 7
"""

STAGING_TEMPLATE = """\
# Staging Environment Configuration
environment: staging
debug: false
log_level: INFO

database:
  host: "${DB_HOST}"
  port: "${DB_PORT}"
  name: "${DB_NAME}"
  ssl_mode: require

home_assistant:
  base_url: "${HA_BASE_URL}"
  webhook_url: "${HA_WEBHOOK_URL}"

external_services:
  weather_api:
    enabled: true
    rate_limit: 5000

security:
  session_timeout: 3600
  csrf_protection: true

backup:
  enabled: true
  interval: "0 3 * * *"
  retention_days: 14
"""

PRODUCTION_TEMPLATE = """\
# Production Environment Configuration
environment: production
debug: false
log_level: INFO

database:
  host: "${DB_HOST}"
  port: "${DB_PORT}"
  name: "${DB_NAME}"
  ssl_mode: require

home_assistant:
  base_url: "${HA_BASE_URL}"
  webhook_url: "${HA_WEBHOOK_URL}"

external_services:
  weather_api:
    enabled: true
    rate_limit: 10000

security:
  session_timeout: 3600
  csrf_protection: true

backup:
  enabled: true
  interval: "0 2 * * *"
  retention_days: 30
  remote_backup: true
"""

SEED_TEMPLATES: Dict[str, str] = {
    "development": DEVELOPMENT_TEMPLATE,
    "staging": STAGING_TEMPLATE,
    "production": PRODUCTION_TEMPLATE,
}


def write_seed_templates(environments_dir: Union[str, Path]) -> List[Path]:
    """
    Write one ``config.yaml`` per seeded environment.

    Existing templates are left alone so operator edits survive a re-run
    of ``init``.

    Returns:
        Paths that were newly written.
    """
    environments_dir = Path(environments_dir)
    written = []
    for environment, template in SEED_TEMPLATES.items():
        env_dir = environments_dir / environment
        env_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(env_dir, ENV_DIR_MODE)

        target = env_dir / SEED_FILENAME
        if target.exists():
            logger.info("Template already exists, keeping it: %s", target)
            continue
        target.write_text(template, encoding="utf-8")
        os.chmod(target, 0o644)
        written.append(target)

    logger.info("Configuration templates generated in %s", environments_dir)
    return written
