# commandgpt/cli/__init__.py
"""
Command-line interface for CommandGPT.
"""
from .main import app

__all__ = ['app']
