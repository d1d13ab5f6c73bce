"""
Logging setup.

Configures loguru for workers and the CLI. Sets up log rotation and
retention policies.
"""

import sys

from loguru import logger

from referral_engine.config.settings import settings


def setup_logging(log_file: str | None = "logs/commission.log") -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        log_file: Path of the rotating log file, None to log to stderr only
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(
        f"Commission engine logging configured "
        f"(level={settings.log_level}, environment={settings.environment})"
    )
