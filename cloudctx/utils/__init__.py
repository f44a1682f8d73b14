"""
Utility functions shared by the providers and the command line.
"""

from .state_file import StateFile
from .logging_setup import setup_logging

__all__ = [
    'StateFile',
    'setup_logging',
]
