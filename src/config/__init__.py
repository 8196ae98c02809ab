# src/config/__init__.py
"""
Настройки сервиса: `from src.config import settings`.
"""

from src.config.loader import NominatimSettings, Settings, get_settings, settings

__all__ = ["NominatimSettings", "Settings", "get_settings", "settings"]
