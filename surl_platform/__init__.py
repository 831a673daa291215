"""
surl_platform package initializer.
"""

from . import codec
from . import manager
from . import storage

__all__ = ["codec", "manager", "storage"]
