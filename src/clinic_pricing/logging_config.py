"""Logging configuration for the pricing engine."""
import logging
import sys
from typing import Optional


_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stderr handler to the package logger once."""
    global _configured
    if _configured:
        return

    if level is None:
        from .config.settings import get_settings
        level = get_settings().log_level

    logger = logging.getLogger("clinic_pricing")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)
    _configured = True
