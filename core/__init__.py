"""Shared infrastructure — structured logging.

This package is framework-agnostic. It must NEVER import from ``tgbot/``.
"""

from core.logger import BotLogger

__all__ = [
    "BotLogger",
]
