"""Configuration module using Pydantic Settings.

Usage:
    from sirop.config import StoreSettings

    settings = StoreSettings(path="./data")
"""

from sirop.config.settings import StoreSettings

__all__ = [
    "StoreSettings",
]
