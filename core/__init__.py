"""Framework-agnostic support code: structured logging.

This package must NEVER import from ``botapi/``.
"""

from core.logger import BotLogger

__all__ = [
    "BotLogger",
]
