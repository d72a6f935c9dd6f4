"""Root logging configuration shared by the HTTP app and the CLI."""

from __future__ import annotations

import logging

from storefront.settings import AppSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: AppSettings) -> None:
    """Configure the root logger once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=settings.log_level_numeric, format=LOG_FORMAT)
    else:
        root.setLevel(settings.log_level_numeric)


def log_config_warnings(settings: AppSettings, logger: logging.Logger) -> None:
    """Emit ``optional_config_warnings`` in a framed block."""

    warnings = settings.optional_config_warnings()
    if not warnings:
        return
    logger.warning("=" * 60)
    logger.warning("Environment Configuration Warnings:")
    for warning in warnings:
        logger.warning(f"  • {warning}")
    logger.warning("=" * 60)
