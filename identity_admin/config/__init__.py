"""Configuration module for the identity admin client."""
from .settings import AdminConfig, load_settings

__all__ = ["AdminConfig", "load_settings"]
