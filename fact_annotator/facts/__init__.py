"""The fact source module.

This module loads the corpus of facts used as annotation values and hands
them out one at a time.
"""

from .source import FactSource

__all__ = [
    "FactSource",
]
