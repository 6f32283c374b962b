"""
Services Module - Infrastructure services for the FROI intake wizard.

- Logging and observability (logging_config)
"""

from .logging_config import configure_from_settings, configure_logging, get_logger

__all__ = [
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
