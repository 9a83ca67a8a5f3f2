"""
Cogs package for RagaBot
Contains all Discord cogs (command groups)
"""

from .music import Music
from .info import Info

__all__ = [
    'Music',
    'Info'
]
