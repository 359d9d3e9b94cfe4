"""Configuration module for tacchain-e2e."""

from tacchain_e2e.config.settings import Settings

__all__ = ["Settings"]
