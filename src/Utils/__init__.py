"""
Utility functions for the file storage tools.

This module provides the logging setup shared by the command line tools.
"""

from .logging import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
