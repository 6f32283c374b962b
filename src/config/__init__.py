"""Configuration module for the FROI intake wizard."""

from .settings import ClaimsSettings, Settings, SMTPSettings, get_settings

__all__ = [
    "ClaimsSettings",
    "Settings",
    "SMTPSettings",
    "get_settings",
]
