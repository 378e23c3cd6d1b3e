"""Configuration package."""

from grievance.config.settings import Settings

__all__ = ["Settings"]
