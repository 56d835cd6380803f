"""Command-line entry point for the job board core.

Subcommands:
- init-db: create the database schema
- send-test-email: render and dispatch one sample message of a given kind
- check-config: validate configuration and print a summary
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.exceptions import ConfigurationError
from jobboard.config.loader import load_config
from jobboard.config.models import AppConfig
from jobboard.errors import JobBoardError
from jobboard.logging import get_logger
from jobboard.logging.config import configure_logging
from jobboard.notifications import MessageKind, NotificationDispatcher, NotifyOptions
from jobboard.persistence.database import close_database, init_database
from jobboard.persistence.exceptions import PersistenceError

logger = get_logger(__name__, component="cli")

SAMPLE_TEMPLATE_DATA: Dict[MessageKind, Dict[str, object]] = {
    MessageKind.WELCOME: {"name": "Test User"},
    MessageKind.APPLICATION_CONFIRMATION: {
        "candidate_name": "Test Candidate",
        "job_title": "Senior Python Engineer",
        "company_name": "Example Corp",
        "application_id": "test-application",
    },
    MessageKind.STATUS_UPDATE: {
        "candidate_name": "Test Candidate",
        "job_title": "Senior Python Engineer",
        "company_name": "Example Corp",
        "status": "interview",
        "notes": "We'd love to meet you next week.",
    },
    MessageKind.PASSWORD_RESET: {"name": "Test User", "reset_token": "test-token", "expiry_hours": 1},
    MessageKind.EMPLOYER_NEW_APPLICATION: {
        "employer_name": "Hiring Manager",
        "candidate_name": "Test Candidate",
        "job_title": "Senior Python Engineer",
        "application_id": "test-application",
    },
}


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobboard",
        description="JobBoard - application lifecycle and transactional email tooling",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables if they do not exist")

    send_parser = subparsers.add_parser(
        "send-test-email", help="Dispatch a sample message (logged only outside production)"
    )
    send_parser.add_argument(
        "--kind",
        required=True,
        choices=[kind.value for kind in MessageKind],
        help="Message kind to render",
    )
    send_parser.add_argument("--to", required=True, help="Recipient email address")
    send_parser.add_argument(
        "--skip-domain-check",
        action="store_true",
        help="Send even if the recipient domain is not verified",
    )

    subparsers.add_parser("check-config", help="Validate configuration and print a summary")

    return parser


def run_init_db(env_config: EnvironmentConfig) -> int:
    init_database(env_config.database_url)
    close_database()
    print("Database schema is ready")
    return 0


def run_send_test_email(
    app_config: AppConfig, env_config: EnvironmentConfig, kind: str, to: str, skip_domain_check: bool
) -> int:
    message_kind = MessageKind(kind)
    dispatcher = NotificationDispatcher(app_config.email, env_config)
    result = dispatcher.notify(
        message_kind,
        to,
        SAMPLE_TEMPLATE_DATA[message_kind],
        NotifyOptions(skip_domain_check=skip_domain_check),
    )
    print(
        f"{result.outcome}: {result.subject} -> {result.recipient} "
        f"(message id: {result.message_id}, attempts: {result.attempts})"
    )
    return 0


def run_check_config(app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    lines: List[str] = [
        "Configuration OK",
        f"  environment: {env_config.app_env} ({'live sending' if env_config.is_production else 'emails are logged'})",
        f"  email from: {env_config.email_from}",
        f"  frontend url: {env_config.frontend_url}",
        f"  mail provider: {app_config.email.provider}",
        f"  retries: {app_config.email.max_retries} x {app_config.email.retry_delay_ms}ms (linear)",
        f"  verified domains: {', '.join(app_config.email.verified_domains) or '(none)'}",
        f"  notification workers: {app_config.lifecycle.notification_workers}",
    ]
    print("\n".join(lines))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the jobboard CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.app_env,
        )

        logger.info(
            f"Running {args.command}",
            extra={"event": "cli.command.starting", "command": args.command},
        )

        if args.command == "init-db":
            return run_init_db(env_config)
        if args.command == "send-test-email":
            return run_send_test_email(
                app_config, env_config, args.kind, args.to, args.skip_domain_check
            )
        return run_check_config(app_config, env_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except JobBoardError as e:
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        logger.error(
            f"Command failed: {e.message}",
            extra={"event": "cli.command.failed", "error_code": e.code},
        )
        return 1
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
