"""
api package - GameBanana endpoint configuration and client.
"""

from .gamebanana import APISettings, ConfigError, GameBananaAPIConfig, GameBananaAPIError, GameBananaClient

__all__ = ["APISettings", "ConfigError", "GameBananaAPIConfig", "GameBananaAPIError", "GameBananaClient"]
