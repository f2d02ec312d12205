"""
Core traversal logic.
"""

from .walker import DirectoryWalker

__all__ = ["DirectoryWalker"]
