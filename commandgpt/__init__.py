# commandgpt/__init__.py
"""
CommandGPT: natural language to shell commands, behind a safety gate.
"""

__version__ = '0.1.0'
