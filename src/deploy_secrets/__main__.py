# Deploy Secrets - Command Line Entry Point
#
# One sub-command per invocation. The deployment layer calls
# `process-config` before starting a service; a scheduler calls `backup`.
# Every fatal error prints a message on stderr and exits with the code
# attached to its exception class (see exceptions.py).

import argparse
import logging
import os
import sys
import warnings
from typing import List, Optional, Sequence

from . import __version__
from .backup import BackupManager
from .config import DEFAULT_ENVIRONMENT, SecretsSettings
from .core import (
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
    require_privileges,
)
from .exceptions import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    SecretsError,
    UnresolvedPlaceholderWarning,
    UsageError,
)
from .setup_env import EnvironmentSetup
from .templates import process_config, write_seed_templates
from .vault import KeyManager, SecretsVault, VaultLock

logger = logging.getLogger("deploy_secrets")

SECRETS_DIR_MODE = 0o700
CONFIG_DIR_MODE = 0o755


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad usage as UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(f"{self.prog}: {message}")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="deploy-secrets",
        description="Environment-scoped secrets vault for deployment pipelines",
        epilog="Environments: development, staging, production, default",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("--version", action="version",
                        version=f"deploy-secrets {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    sub.add_parser("init", help="Initialize secrets management")

    p = sub.add_parser("store", help="Store a secret")
    p.add_argument("name")
    p.add_argument("value")
    p.add_argument("environment", nargs="?", default=DEFAULT_ENVIRONMENT)

    p = sub.add_parser("get", help="Retrieve a secret")
    p.add_argument("name")
    p.add_argument("environment", nargs="?", default=DEFAULT_ENVIRONMENT)

    p = sub.add_parser("list", help="List secrets (names and metadata only)")
    p.add_argument("environment", nargs="?", default=None)

    p = sub.add_parser("delete", help="Delete a secret")
    p.add_argument("name")
    p.add_argument("environment", nargs="?", default=DEFAULT_ENVIRONMENT)

    p = sub.add_parser("setup-env", help="Interactive environment setup")
    p.add_argument("environment")

    p = sub.add_parser("process-config", help="Process configuration with secrets")
    p.add_argument("environment")
    p.add_argument("input_file")
    p.add_argument("output_file")

    p = sub.add_parser("backup", help="Backup secrets vault")
    p.add_argument("destination", nargs="?", default=None)

    p = sub.add_parser("restore", help="Restore secrets vault")
    p.add_argument("archive")

    sub.add_parser("help", help="Show this help")

    return parser


def _configure_console_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(asctime)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _print_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(str(cell))) for w, cell in zip(widths, row)]
    for row in [headers, *rows]:
        print("  ".join(str(cell).ljust(w) for cell, w in zip(row, widths)).rstrip())


# ── Commands ─────────────────────────────────────────────────────────


def cmd_init(args, settings: SecretsSettings) -> int:
    logger.info("Initializing secrets management structure...")

    settings.secrets_dir.mkdir(parents=True, exist_ok=True)
    os.chmod(settings.secrets_dir, SECRETS_DIR_MODE)
    for directory in (settings.config_dir, settings.environments_dir):
        directory.mkdir(parents=True, exist_ok=True)
        os.chmod(directory, CONFIG_DIR_MODE)
    logger.info("Secrets structure initialized")

    KeyManager(settings.key_path).generate_key()
    written = write_seed_templates(settings.environments_dir)

    get_audit_logger().log_event(
        event_type=EventType.SYSTEM_INIT,
        severity=EventSeverity.INFO,
        message="Secrets management initialized",
        details={
            "secrets_dir": str(settings.secrets_dir),
            "config_dir": str(settings.config_dir),
            "templates_written": [str(p) for p in written],
        },
    )
    return EXIT_OK


def cmd_store(args, settings: SecretsSettings) -> int:
    SecretsVault.from_settings(settings).store_secret(args.name, args.value, args.environment)
    return EXIT_OK


def cmd_get(args, settings: SecretsSettings) -> int:
    print(SecretsVault.from_settings(settings).get_secret(args.name, args.environment))
    return EXIT_OK


def cmd_list(args, settings: SecretsSettings) -> int:
    vault = SecretsVault.from_settings(settings)
    if not vault.store.exists():
        logger.warning("No vault file found")
        return EXIT_OK

    rows = vault.list_secrets(args.environment)
    if args.environment is not None:
        _print_table(("SECRET", "CREATED", "TYPE"), rows)
    else:
        _print_table(("ENVIRONMENT", "SECRET", "CREATED", "TYPE"), rows)
    return EXIT_OK


def cmd_delete(args, settings: SecretsSettings) -> int:
    logger.warning("Deleting secret: %s from environment: %s", args.name, args.environment)
    SecretsVault.from_settings(settings).delete_secret(args.name, args.environment)
    return EXIT_OK


def cmd_setup_env(args, settings: SecretsSettings) -> int:
    EnvironmentSetup(SecretsVault.from_settings(settings)).run(args.environment)
    return EXIT_OK


def cmd_process_config(args, settings: SecretsSettings) -> int:
    vault = SecretsVault.from_settings(settings)
    with warnings.catch_warnings():
        # Already reported through logging
        warnings.simplefilter("ignore", UnresolvedPlaceholderWarning)
        result = process_config(vault, args.environment, args.input_file, args.output_file)
    if result.unresolved:
        logger.warning("Unresolved placeholders left in output: %s", ", ".join(result.unresolved))
    return EXIT_OK


def cmd_backup(args, settings: SecretsSettings) -> int:
    manager = BackupManager(settings.secrets_dir, settings.backup_dir,
                            lock=VaultLock(settings.lock_path))
    print(manager.backup(args.destination))
    return EXIT_OK


def cmd_restore(args, settings: SecretsSettings) -> int:
    manager = BackupManager(settings.secrets_dir, settings.backup_dir,
                            lock=VaultLock(settings.lock_path))
    result = manager.restore(args.archive)
    if result.safety_copy:
        print(f"Previous secrets saved to: {result.safety_copy}")
    return EXIT_OK


COMMANDS = {
    "init": cmd_init,
    "store": cmd_store,
    "get": cmd_get,
    "list": cmd_list,
    "delete": cmd_delete,
    "setup-env": cmd_setup_env,
    "process-config": cmd_process_config,
    "backup": cmd_backup,
    "restore": cmd_restore,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for deploy-secrets.

    Returns:
        Process exit code (0 on success).
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    if args.command in (None, "help"):
        parser.print_help()
        return EXIT_OK

    _configure_console_logging(args.verbose)
    settings = SecretsSettings.from_env()
    configure_audit_logger(settings.audit_dir)

    try:
        require_privileges(args.command, enforce=settings.require_root)
        return COMMANDS[args.command](args, settings)
    except SecretsError as e:
        logger.error("%s", e)
        return e.exit_code
    except ValueError as e:
        logger.error("%s", e)
        return EXIT_USAGE
    except OSError as e:
        logger.error("%s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
