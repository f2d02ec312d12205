"""
User facing interfaces: Python API and command line.
"""

from .api import GitSubdirDownloader

__all__ = ["GitSubdirDownloader"]
