"""
Utility helpers shared across the package.
"""

from .logging import configure_logging

__all__ = ['configure_logging']
