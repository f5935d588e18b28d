"""
appdistro Base Command Classes

Abstract base classes for consistent command structure.
"""

from .base_command import BaseCommand
from .config_command import ConfigCommand

__all__ = [
    "BaseCommand",
    "ConfigCommand",
]
