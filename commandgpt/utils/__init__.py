# commandgpt/utils/__init__.py
"""
Utility functions for CommandGPT.
"""

from .logging import setup_logging, get_logger

__all__ = ['setup_logging', 'get_logger']
